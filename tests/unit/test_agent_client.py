import json
from collections.abc import Callable

import httpx
import pytest

from batch_signer.agent.client import AgentClient
from batch_signer.agent.exceptions import AgentError, AgentSignError, AgentUnreachableError
from batch_signer.agent.models import Certificate

pytestmark = pytest.mark.anyio

Handler = Callable[[httpx.Request], httpx.Response]

CERTIFICATE_PAYLOAD = {
    "algorithm": "SHA1WithRSA",
    "alias": "Jane Doe",
    "issuer": "CN=Test CA,O=Example,C=FR",
    "serialNumber": "51255aef",
    "subject": "CN=Jane Doe",
    "type": "SSCD",
    "validFrom": "2025-01-01",
    "validUntil": "2027-01-01",
}


def _make_http(handler: Handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url="http://localhost:53821", transport=httpx.MockTransport(handler)
    )


def _refused(request: httpx.Request) -> httpx.Response:
    raise httpx.ConnectError("connection refused", request=request)


class TestListCertificates:
    async def test_parses_certificates(self) -> None:
        async with _make_http(
            lambda request: httpx.Response(200, json=[CERTIFICATE_PAYLOAD])
        ) as http:
            certificates = await AgentClient(http).list_certificates()

        assert certificates == [
            Certificate(
                alias="Jane Doe",
                serial_number="51255aef",
                algorithm="SHA1WithRSA",
                issuer="CN=Test CA,O=Example,C=FR",
                subject="CN=Jane Doe",
                type="SSCD",
                valid_from="2025-01-01",
                valid_until="2027-01-01",
            )
        ]

    async def test_empty_list_means_no_token(self) -> None:
        async with _make_http(lambda request: httpx.Response(200, json=[])) as http:
            assert await AgentClient(http).list_certificates() == []

    async def test_failure_marker_means_no_token(self) -> None:
        async with _make_http(
            lambda request: httpx.Response(200, json={"success": False})
        ) as http:
            assert await AgentClient(http).list_certificates() == []

    async def test_skips_entries_without_alias(self) -> None:
        payload = [{"serialNumber": "x"}, CERTIFICATE_PAYLOAD]
        async with _make_http(lambda request: httpx.Response(200, json=payload)) as http:
            certificates = await AgentClient(http).list_certificates()
        assert [c.alias for c in certificates] == ["Jane Doe"]

    async def test_connection_refused_is_unreachable(self) -> None:
        async with _make_http(_refused) as http:
            with pytest.raises(AgentUnreachableError):
                await AgentClient(http).list_certificates()

    async def test_error_status_is_agent_error(self) -> None:
        async with _make_http(lambda request: httpx.Response(500)) as http:
            with pytest.raises(AgentError, match="status 500") as exc_info:
                await AgentClient(http).list_certificates()
        assert not isinstance(exc_info.value, AgentUnreachableError)


class TestSignDigest:
    async def test_returns_signature_and_certificate(self) -> None:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(
                200,
                json={
                    "signatureValue": "c2ln",
                    "certificate": "Y2VydA==",
                    "algorithm": "SHA1WithRSA",
                    "success": True,
                },
            )

        async with _make_http(handler) as http:
            signature = await AgentClient(http).sign_digest("digest", "SHA1WithRSA", "Jane Doe")

        assert signature.signature_value == "c2ln"
        assert signature.certificate == "Y2VydA=="
        assert signature.algorithm == "SHA1WithRSA"
        assert requests[0].url.path == "/api/certificates/signe"
        assert json.loads(requests[0].content) == {
            "digest": "digest",
            "algorithm": "SHA1WithRSA",
            "alias": "Jane Doe",
        }

    @pytest.mark.parametrize(
        "payload",
        [
            {"certificate": "Y2VydA=="},
            {"signatureValue": "c2ln"},
            {"signatureValue": "", "certificate": "Y2VydA=="},
        ],
    )
    async def test_missing_field_raises(self, payload: dict[str, str]) -> None:
        async with _make_http(lambda request: httpx.Response(200, json=payload)) as http:
            with pytest.raises(AgentSignError, match="Invalid agent response"):
                await AgentClient(http).sign_digest("digest", "SHA1WithRSA", "Jane Doe")

    async def test_agent_failure_message_is_kept(self) -> None:
        payload = {"success": False, "message": "PIN locked"}
        async with _make_http(lambda request: httpx.Response(200, json=payload)) as http:
            with pytest.raises(AgentSignError, match="PIN locked"):
                await AgentClient(http).sign_digest("digest", "SHA1WithRSA", "Jane Doe")

    async def test_connection_refused_is_unreachable(self) -> None:
        async with _make_http(_refused) as http:
            with pytest.raises(AgentUnreachableError, match="agent unreachable"):
                await AgentClient(http).sign_digest("digest", "SHA1WithRSA", "Jane Doe")

    async def test_error_status_is_sign_error(self) -> None:
        async with _make_http(lambda request: httpx.Response(500)) as http:
            with pytest.raises(AgentSignError, match="status 500"):
                await AgentClient(http).sign_digest("digest", "SHA1WithRSA", "Jane Doe")


class TestCertificate:
    def test_issuer_common_name(self, certificate: Certificate) -> None:
        assert certificate.issuer_common_name == "Test CA"

    def test_issuer_without_common_name(self) -> None:
        cert = Certificate(alias="a", serial_number="1", algorithm="x", issuer="O=Example")
        assert cert.issuer_common_name == "O=Example"
