"""Client for the local hardware signing agent."""

from typing import Any

import httpx

from batch_signer.agent.exceptions import AgentError, AgentSignError, AgentUnreachableError
from batch_signer.agent.models import AgentSignature, Certificate
from batch_signer.logging.logger import Log


class AgentClient:
    """Talks to the agent's HTTP endpoint.

    A refused connection always surfaces as ``AgentUnreachableError`` so
    callers can tell "agent not running" apart from every other failure.
    """

    CERTIFICATES_PATH = "/api/certificates"
    SIGN_PATH = "/api/certificates/signe"

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self._http = http_client

    async def list_certificates(self) -> list[Certificate]:
        """Return the certificates available on the inserted token.

        An empty list means the agent is running but no token is inserted.

        Raises:
            AgentUnreachableError: if the agent is not running.
            AgentError: on an error status or any other transport failure.
        """
        try:
            response = await self._http.get(self.CERTIFICATES_PATH)
            response.raise_for_status()
        except httpx.ConnectError as exc:
            raise AgentUnreachableError() from exc
        except httpx.HTTPStatusError as exc:
            raise AgentError(
                f"Agent returned status {exc.response.status_code} for certificate listing"
            ) from exc
        except httpx.HTTPError as exc:
            raise AgentError(f"Certificate listing failed: {exc}") from exc

        payload = _json_or_none(response)
        if not isinstance(payload, list):
            return []
        certificates = []
        for index, raw in enumerate(payload):
            certificate = _build_certificate(raw)
            if certificate is None:
                Log.warning(f"Skipping malformed certificate entry at index {index}")
                continue
            certificates.append(certificate)
        return certificates

    async def sign_digest(self, digest: str, algorithm: str, alias: str) -> AgentSignature:
        """Have the agent sign a server-issued digest with the key named by ``alias``.

        Raises:
            AgentUnreachableError: if the agent stopped listening.
            AgentSignError: if the agent fails or answers without a signature.
        """
        body = {"digest": digest, "algorithm": algorithm, "alias": alias}
        try:
            response = await self._http.post(self.SIGN_PATH, json=body)
            response.raise_for_status()
        except httpx.ConnectError as exc:
            raise AgentUnreachableError() from exc
        except httpx.HTTPStatusError as exc:
            payload = _json_or_none(exc.response)
            raise AgentSignError(
                _agent_message(payload)
                or f"Agent sign request returned status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise AgentSignError(f"Agent sign request failed: {exc}") from exc

        payload = _json_or_none(response)
        if not isinstance(payload, dict):
            raise AgentSignError("Invalid agent response")
        signature_value = payload.get("signatureValue")
        certificate = payload.get("certificate")
        if payload.get("success") is False or not signature_value or not certificate:
            raise AgentSignError(_agent_message(payload) or "Invalid agent response")
        if not isinstance(signature_value, str) or not isinstance(certificate, str):
            raise AgentSignError("Invalid agent response")

        algorithm_used = payload.get("algorithm")
        return AgentSignature(
            signature_value=signature_value,
            certificate=certificate,
            algorithm=algorithm_used if isinstance(algorithm_used, str) else None,
        )


def _build_certificate(raw: Any) -> Certificate | None:
    if not isinstance(raw, dict):
        return None
    alias = raw.get("alias")
    if not alias or not isinstance(alias, str):
        return None
    return Certificate(
        alias=alias,
        serial_number=str(raw.get("serialNumber") or ""),
        algorithm=str(raw.get("algorithm") or ""),
        issuer=str(raw.get("issuer") or ""),
        subject=str(raw.get("subject") or ""),
        type=str(raw.get("type") or ""),
        valid_from=str(raw.get("validFrom") or ""),
        valid_until=str(raw.get("validUntil") or ""),
    )


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _agent_message(payload: Any) -> str | None:
    if isinstance(payload, dict):
        message = payload.get("message")
        if isinstance(message, str) and message.strip():
            return message
    return None
