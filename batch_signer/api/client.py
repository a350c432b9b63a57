"""Typed wrappers for the signing server's ACCEPT, PREPARE and COMPLETE calls."""

from typing import Any

import httpx

from batch_signer.api.auth import PasswordGrantTokenProvider
from batch_signer.api.exceptions import (
    AcceptError,
    AcceptErrorKind,
    CompleteError,
    PdfFetchError,
    PrepareError,
    TokenError,
)
from batch_signer.api.models import (
    AcceptResult,
    CompleteResult,
    InvoiceSessionSeed,
    PrepareResult,
)
from batch_signer.logging.logger import Log

_EXPIRED_STATUSES = frozenset({400, 401})
_NOT_FOUND_STATUS = 404


class SigningApiClient:
    """Client for the remote signing server.

    Holds no protocol state: every call is one request/response exchange and
    the caller is responsible for passing the ACCEPT-time session token to
    both ``prepare_invoice`` and ``complete_invoice``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        token_provider: PasswordGrantTokenProvider | None = None,
    ) -> None:
        self._http = http_client
        self._token_provider = token_provider

    async def accept_batch(self, document_identifier: str) -> AcceptResult:
        """Accept the signing request and return one seed per invoice.

        Raises:
            AcceptError: classified as EXPIRED, INVALID, EMPTY or OTHER.
        """
        if not document_identifier.strip():
            raise AcceptError(AcceptErrorKind.INVALID, "Missing document identifier")

        url = f"/api/sign/{document_identifier}/accept"
        try:
            response = await self._post_json(url, {})
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise self._classify_accept_failure(exc.response) from exc
        except (httpx.HTTPError, TokenError) as exc:
            raise AcceptError(
                AcceptErrorKind.OTHER, f"Unable to reach the signing server: {exc}"
            ) from exc
        except ValueError as exc:
            raise AcceptError(
                AcceptErrorKind.OTHER, "Signing server returned an invalid response"
            ) from exc

        if not isinstance(payload, dict):
            raise AcceptError(
                AcceptErrorKind.OTHER, "Signing server returned an invalid response"
            )
        raw_sessions = payload.get("signingSessions")
        if not isinstance(raw_sessions, list) or not raw_sessions:
            raise AcceptError(AcceptErrorKind.EMPTY, "No invoices to sign were found")

        sessions = tuple(_build_seed(raw, i) for i, raw in enumerate(raw_sessions))
        Log.info(
            f"Accepted signing request with {len(sessions)} invoice(s)",
            batch=document_identifier,
        )
        status = payload.get("status")
        return AcceptResult(
            sessions=sessions,
            status=status if isinstance(status, str) else None,
        )

    async def prepare_invoice(
        self,
        batch_document_identifier: str,
        signing_session_id: str,
        alias: str,
        serial_number: str,
        *,
        invoice_id: str,
    ) -> PrepareResult:
        """Ask the server for the digest to sign for one invoice.

        ``signing_session_id`` must be the token captured at ACCEPT time.

        Raises:
            PrepareError: if the call fails or the response has no digest.
        """
        url = f"/api/sign/{batch_document_identifier}/prepare"
        body = {
            "alias": alias,
            "signingSessionId": signing_session_id,
            "serialNumber": serial_number,
        }
        generic = f"Prepare failed for invoice {invoice_id}"
        try:
            response = await self._post_json(url, body)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPStatusError as exc:
            raise PrepareError(
                invoice_id, _server_message(exc.response) or generic
            ) from exc
        except (httpx.HTTPError, TokenError, ValueError) as exc:
            raise PrepareError(invoice_id, f"{generic}: {exc}") from exc

        if not isinstance(payload, dict):
            raise PrepareError(invoice_id, f"{generic}: invalid response")
        digest = payload.get("digest")
        if not digest or not isinstance(digest, str):
            raise PrepareError(
                invoice_id, _payload_message(payload) or "Digest missing from prepare response"
            )

        signature_id = payload.get("signatureId")
        status = payload.get("status")
        echoed = payload.get("signingSessionId")
        return PrepareResult(
            digest=digest,
            signature_id=signature_id if isinstance(signature_id, int) else None,
            status=status if isinstance(status, str) else None,
            prepare_session_id=echoed if isinstance(echoed, str) else None,
        )

    async def complete_invoice(
        self,
        batch_document_identifier: str,
        signing_session_id: str,
        signature_value: str,
        certificate: str,
        algorithm: str,
        *,
        invoice_id: str,
    ) -> CompleteResult:
        """Finalize one invoice signature with the agent's output.

        ``signing_session_id`` must be the token captured at ACCEPT time,
        never a value returned by PREPARE.

        Raises:
            CompleteError: if the call fails or the server reports failure.
        """
        url = f"/api/sign/{batch_document_identifier}/complete"
        body = {
            "signingSessionId": signing_session_id,
            "signatureValue": signature_value,
            "certificate": certificate,
            "algorithm": algorithm,
        }
        generic = f"Complete failed for invoice {invoice_id}"
        try:
            response = await self._post_json(url, body)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise CompleteError(
                invoice_id, _server_message(exc.response) or generic
            ) from exc
        except (httpx.HTTPError, TokenError) as exc:
            raise CompleteError(invoice_id, f"{generic}: {exc}") from exc

        payload = _json_or_none(response)
        if isinstance(payload, dict):
            if payload.get("success") is False:
                raise CompleteError(invoice_id, _payload_message(payload) or generic)
            status = payload.get("status")
            return CompleteResult(status=status if isinstance(status, str) else None)
        return CompleteResult()

    async def fetch_invoice_pdf(
        self, batch_document_identifier: str, invoice_id: str
    ) -> bytes:
        """Download the PDF of one invoice.

        Raises:
            PdfFetchError: on any transport failure or error status.
        """
        url = f"/sign/{batch_document_identifier}/invoices/{invoice_id}/pdf"
        try:
            response = await self._http.get(url, headers=await self._auth_headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PdfFetchError(
                invoice_id,
                f"PDF download returned status {exc.response.status_code}",
            ) from exc
        except (httpx.HTTPError, TokenError) as exc:
            raise PdfFetchError(invoice_id, f"PDF download failed: {exc}") from exc
        return response.content

    async def _post_json(self, url: str, body: dict[str, str]) -> httpx.Response:
        return await self._http.post(url, json=body, headers=await self._auth_headers())

    async def _auth_headers(self) -> dict[str, str]:
        if self._token_provider is None:
            return {}
        token = await self._token_provider.get_token()
        return {"Authorization": f"Bearer {token}"}

    @staticmethod
    def _classify_accept_failure(response: httpx.Response) -> AcceptError:
        if response.status_code in _EXPIRED_STATUSES:
            return AcceptError(
                AcceptErrorKind.EXPIRED,
                "This session has expired. Please restart the signing process.",
            )
        if response.status_code == _NOT_FOUND_STATUS:
            return AcceptError(
                AcceptErrorKind.INVALID,
                "The signing link is invalid or no longer exists.",
            )
        return AcceptError(
            AcceptErrorKind.OTHER,
            _server_message(response) or "Unable to load the invoices.",
        )


def _build_seed(raw: Any, index: int) -> InvoiceSessionSeed:
    if not isinstance(raw, dict):
        raise AcceptError(
            AcceptErrorKind.OTHER, f"Signing session at index {index} must be an object"
        )
    fields: dict[str, str] = {}
    for key in ("documentIdentifier", "signingSessionId", "invoiceId"):
        value = raw.get(key)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not value or not isinstance(value, str):
            raise AcceptError(
                AcceptErrorKind.OTHER,
                f"Signing session at index {index}: '{key}' must be a non-empty string",
            )
        fields[key] = value
    return InvoiceSessionSeed(
        document_identifier=fields["documentIdentifier"],
        signing_session_id=fields["signingSessionId"],
        invoice_id=fields["invoiceId"],
    )


def _json_or_none(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


def _payload_message(payload: dict[str, Any]) -> str | None:
    message = payload.get("message")
    if isinstance(message, str) and message.strip():
        return message
    return None


def _server_message(response: httpx.Response) -> str | None:
    payload = _json_or_none(response)
    if isinstance(payload, dict):
        return _payload_message(payload)
    return None
