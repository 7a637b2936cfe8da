"""
End-to-end pipeline tests per adapter.

Vault and PSP are mocked with respx; the pipeline code runs unmodified.
"""

import base64
import hashlib
import json
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from urllib.parse import parse_qsl, urlencode

import httpx
import pytest
import respx

from conftest import DETOKENIZE_URL, b64, escaped, vault_records
from vaultbridge.adapters import AzulAdapter, CybersourceAdapter, SegpayAdapter
from vaultbridge.codecs.xml_attr import parse_xml
from vaultbridge.core.types import HeaderMultiMap, Invocation
from vaultbridge.forwarder import Forwarder
from vaultbridge.pipeline import Pipeline
from vaultbridge.vault.client import DetokenizationClient

FIXED_NOW = datetime(2026, 10, 18, 9, 30, 0, tzinfo=timezone.utc)
VAULT_ERROR = {
    "error": {"grpc_code": 5, "http_code": 404, "message": "Token not found", "http_status": "Not Found", "details": []}
}


def invocation(body, headers: dict | None = None) -> Invocation:
    return Invocation(body_content=b64(body), headers=HeaderMultiMap(headers or {}))


@pytest.fixture
def vault(vault_config, credentials) -> DetokenizationClient:
    return DetokenizationClient(vault_config, credentials)


@pytest.fixture
def mtls_headers(client_identity) -> dict:
    cert, key = client_identity
    return {
        "X-Request-Id": ["req-1"],
        "Cert": [escaped(cert)],
        "Key": [escaped(key)],
        "Auth1": ["auth-one"],
        "Auth2": ["auth-two"],
    }


class TestAzulPipeline:
    """Mutual TLS adapter with expiry month/year merged into YYYYMM."""

    @pytest.fixture
    def pipeline(self, azul_config, vault) -> Pipeline:
        return Pipeline(AzulAdapter(azul_config), vault, Forwarder())

    @pytest.fixture
    def body(self) -> dict:
        return {
            "Channel": "EC",
            "Amount": "1000",
            "CardNumber": "tok_c",
            "ExpirationMonth": "tok_m",
            "ExpirationYear": "tok_y",
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_expiration_is_merged(self, pipeline, body, mtls_headers, azul_config) -> None:
        vault_route = respx.post(DETOKENIZE_URL).mock(
            return_value=httpx.Response(
                200, json=vault_records(("tok_c", "4111111111111111"), ("tok_y", "29"), ("tok_m", "05"))
            )
        )
        psp_route = respx.post(azul_config.psp_url).mock(
            return_value=httpx.Response(200, json={"ResponseCode": "ISO8583", "IsoCode": "00"})
        )

        response = await pipeline.run(invocation(body, mtls_headers))

        assert response.status_code == 200
        assert response.body_bytes == '{"ResponseCode":"ISO8583","IsoCode":"00"}'
        assert response.headers["Error-From-Client"] == "false"

        sent_tokens = json.loads(vault_route.calls.last.request.content)["detokenizationParameters"]
        assert [p["token"] for p in sent_tokens] == ["tok_c", "tok_y", "tok_m"]

        sent = psp_route.calls.last.request
        payload = json.loads(sent.content)
        assert "ExpirationMonth" not in payload
        assert "ExpirationYear" not in payload
        assert payload["Expiration"] == "202905"
        assert payload["CardNumber"] == "4111111111111111"
        assert payload["Channel"] == "EC"
        assert sent.headers["Auth1"] == "auth-one"
        assert sent.headers["Auth2"] == "auth-two"

    @pytest.mark.asyncio
    @respx.mock
    async def test_cvc_is_detokenized_when_present(self, pipeline, body, mtls_headers, azul_config) -> None:
        body["CVC"] = "tok_v"
        respx.post(DETOKENIZE_URL).mock(
            return_value=httpx.Response(
                200,
                json=vault_records(("tok_c", "4111"), ("tok_y", "29"), ("tok_m", "05"), ("tok_v", "123")),
            )
        )
        psp_route = respx.post(azul_config.psp_url).mock(return_value=httpx.Response(200, json={}))

        await pipeline.run(invocation(body, mtls_headers))

        assert json.loads(psp_route.calls.last.request.content)["CVC"] == "123"

    @pytest.mark.asyncio
    async def test_missing_client_identity_fails_fast(self, pipeline, body) -> None:
        with respx.mock(assert_all_called=False) as respx_router:
            vault_route = respx_router.post(DETOKENIZE_URL)

            response = await pipeline.run(invocation(body, {"Auth1": ["a"]}))

            assert response.status_code == 400
            assert "'cert' and 'key'" in response.body_bytes
            assert response.headers["Error-From-Client"] == "false"
            assert vault_route.called is False

    @pytest.mark.asyncio
    async def test_vault_failure_uses_http_code(self, pipeline, body, mtls_headers, azul_config) -> None:
        with respx.mock(assert_all_called=False) as respx_router:
            respx_router.post(DETOKENIZE_URL).mock(return_value=httpx.Response(404, json=VAULT_ERROR))
            psp_route = respx_router.post(azul_config.psp_url)

            response = await pipeline.run(invocation(body, mtls_headers))

            assert response.status_code == 404
            assert json.loads(response.body_bytes) == VAULT_ERROR
            assert response.headers["Error-From-Client"] == "false"
            assert psp_route.called is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_psp_failure(self, pipeline, body, mtls_headers, azul_config) -> None:
        respx.post(DETOKENIZE_URL).mock(
            return_value=httpx.Response(200, json=vault_records(("tok_c", "4111"), ("tok_y", "29"), ("tok_m", "05")))
        )
        respx.post(azul_config.psp_url).mock(
            return_value=httpx.Response(401, json={"ErrorDescription": "Invalid Auth1"})
        )

        response = await pipeline.run(invocation(body, mtls_headers))

        assert response.status_code == 401
        assert response.body_bytes == '{"ErrorDescription":"Invalid Auth1"}'
        assert response.headers["Error-From-Client"] == "true"


class TestCybersourcePipeline:
    """HTTP signature adapter."""

    @pytest.fixture
    def pipeline(self, cybersource_config, vault) -> Pipeline:
        return Pipeline(CybersourceAdapter(cybersource_config, clock=lambda: FIXED_NOW), vault, Forwarder())

    @pytest.fixture
    def body(self) -> dict:
        return {
            "clientReferenceInformation": {"code": "TC50171_3"},
            "paymentInformation": {
                "card": {"number": "tok_n", "expirationMonth": "tok_m", "expirationYear": "tok_y"}
            },
            "orderInformation": {"amountDetails": {"totalAmount": "102.21", "currency": "USD"}},
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_signed_request(self, pipeline, body, cybersource_config) -> None:
        respx.post(DETOKENIZE_URL).mock(
            return_value=httpx.Response(
                200, json=vault_records(("tok_n", "4111111111111111"), ("tok_m", "12"), ("tok_y", "2031"))
            )
        )
        psp_route = respx.post("https://api.example.com/pay").mock(
            return_value=httpx.Response(201, json={"id": "6461731521426399003473", "status": "AUTHORIZED"})
        )

        response = await pipeline.run(invocation(body, {"X-Request-Id": ["req-9"]}))

        assert response.status_code == 201
        assert json.loads(response.body_bytes)["status"] == "AUTHORIZED"

        sent = psp_route.calls.last.request
        assert json.loads(sent.content)["paymentInformation"]["card"] == {
            "number": "4111111111111111",
            "expirationMonth": "12",
            "expirationYear": "2031",
        }
        digest = base64.b64encode(hashlib.sha256(sent.content).digest()).decode()
        assert sent.headers["digest"] == f"SHA-256={digest}"
        assert sent.headers["date"] == "Sun, 18 Oct 2026 09:30:00 GMT"
        assert sent.headers["v-c-merchant-id"] == "m1"
        assert sent.headers["host"] == "api.example.com"
        assert sent.headers["signature"].startswith('keyid="k1", algorithm="HmacSHA256"')

    @pytest.mark.asyncio
    async def test_missing_card_object_is_internal_failure(self, pipeline) -> None:
        with respx.mock(assert_all_called=False) as respx_router:
            vault_route = respx_router.post(DETOKENIZE_URL)

            response = await pipeline.run(invocation({"paymentInformation": {}}))

            assert response.status_code == 500
            assert "card" in json.loads(response.body_bytes)
            assert vault_route.called is False

    @pytest.mark.asyncio
    @respx.mock
    async def test_psp_unreachable(self, pipeline, body) -> None:
        respx.post(DETOKENIZE_URL).mock(
            return_value=httpx.Response(200, json=vault_records(("tok_n", "4111"), ("tok_m", "12"), ("tok_y", "2031")))
        )
        route = respx.post("https://api.example.com/pay").mock(side_effect=httpx.ConnectTimeout("timed out"))

        response = await pipeline.run(invocation(body))

        assert response.status_code == 502
        assert response.headers["Error-From-Client"] == "true"
        assert route.call_count == 1


class TestSegpayPipeline:
    """Form-wrapped XML adapter."""

    XML = (
        '<data><authrequest CardNumber="tok_c" CVV="tok_v" ExpDate="tok_e" '
        'Amount="9.95" CurrencyCode="USD"/></data>'
    )

    @pytest.fixture
    def pipeline(self, segpay_config, vault) -> Pipeline:
        return Pipeline(SegpayAdapter(segpay_config), vault, Forwarder())

    def form(self, xml: str | None = None) -> str:
        return urlencode([("XMLData", xml or self.XML), ("eticketid", "1234:5678")])

    @pytest.mark.asyncio
    @respx.mock
    async def test_attributes_replaced(self, pipeline, segpay_config) -> None:
        respx.post(DETOKENIZE_URL).mock(
            return_value=httpx.Response(
                200, json=vault_records(("tok_c", "4111111111111111"), ("tok_v", "123"), ("tok_e", "0529"))
            )
        )
        psp_route = respx.post(segpay_config.auth_url).mock(
            return_value=httpx.Response(200, text="<response><status>Approved</status></response>")
        )

        response = await pipeline.run(invocation(self.form()))

        assert response.status_code == 200
        assert response.body_bytes == "<response><status>Approved</status></response>"
        assert response.headers["Content-Type"] == "text/xml"
        assert response.headers["Error-From-Client"] == "false"

        sent = psp_route.calls.last.request
        assert sent.headers["Content-Type"] == "application/x-www-form-urlencoded"
        params = dict(parse_qsl(sent.content.decode()))
        assert params["eticketid"] == "1234:5678"
        auth = parse_xml(params["XMLData"]).find("authrequest")
        assert dict(auth.attrib) == {
            "CardNumber": "4111111111111111",
            "CVV": "123",
            "ExpDate": "0529",
            "Amount": "9.95",
            "CurrencyCode": "USD",
        }

    @pytest.mark.asyncio
    @respx.mock
    async def test_psp_failure_is_still_xml(self, pipeline, segpay_config) -> None:
        respx.post(DETOKENIZE_URL).mock(
            return_value=httpx.Response(200, json=vault_records(("tok_c", "4"), ("tok_v", "1"), ("tok_e", "0")))
        )
        respx.post(segpay_config.auth_url).mock(return_value=httpx.Response(500, text="<error/>"))

        response = await pipeline.run(invocation(self.form()))

        assert response.status_code == 500
        assert response.body_bytes == "<error/>"
        assert response.headers["Content-Type"] == "text/xml"
        assert response.headers["Error-From-Client"] == "true"

    @pytest.mark.asyncio
    @respx.mock
    async def test_vault_failure_without_http_code_defaults_to_500(self, pipeline) -> None:
        respx.post(DETOKENIZE_URL).mock(return_value=httpx.Response(403, json={"error": {"message": "denied"}}))

        response = await pipeline.run(invocation(self.form()))

        assert response.status_code == 500
        assert json.loads(response.body_bytes) == {"error": {"message": "denied"}}
        assert response.headers["Error-From-Client"] == "false"

    @pytest.mark.asyncio
    @respx.mock
    async def test_vault_failure_ignores_http_code(self, pipeline) -> None:
        respx.post(DETOKENIZE_URL).mock(return_value=httpx.Response(404, json=VAULT_ERROR))

        response = await pipeline.run(invocation(self.form()))

        assert response.status_code == 500
        assert response.headers["Error-From-Client"] == "false"
        assert json.loads(response.body_bytes) == VAULT_ERROR

    @pytest.mark.asyncio
    async def test_missing_xml_field(self, pipeline) -> None:
        response = await pipeline.run(invocation("eticketid=1"))

        assert response.status_code == 500
        assert response.body_bytes == '"XMLData field not found in the request"'
        assert response.headers["Error-From-Client"] == "false"

    @pytest.mark.asyncio
    async def test_xxe_payload_is_rejected(self, pipeline) -> None:
        xxe = (
            '<!DOCTYPE data [<!ENTITY xxe SYSTEM "file:///etc/passwd">]>'
            '<data><authrequest CardNumber="&xxe;"/></data>'
        )

        response = await pipeline.run(invocation(self.form(xxe)))

        assert response.status_code == 500
        assert "passwd" not in response.body_bytes


class TestNeverRaises:
    """Every input yields exactly one well-formed response."""

    @pytest.fixture(params=["azul", "cybersource", "segpay"])
    def pipeline(self, request, azul_config, cybersource_config, segpay_config, vault) -> Pipeline:
        adapter = {
            "azul": lambda: AzulAdapter(azul_config),
            "cybersource": lambda: CybersourceAdapter(cybersource_config),
            "segpay": lambda: SegpayAdapter(segpay_config),
        }[request.param]()
        return Pipeline(adapter, vault, Forwarder())

    @pytest.mark.asyncio
    @pytest.mark.parametrize("body_content", ["", "   ", b64(""), b64("   \n")])
    async def test_blank_body_is_bad_request(self, pipeline, body_content) -> None:
        response = await pipeline.run(Invocation(body_content=body_content))

        assert response.status_code == 400
        assert response.body_bytes == "Bad request"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body_content",
        ["abc", b64("garbage"), b64(b"\x00\xff\xfe"), b64("[]"), b64("null"), b64("XMLData=<<<")],
    )
    async def test_garbage_yields_one_response(self, pipeline, body_content, client_identity) -> None:
        with respx.mock(assert_all_called=False) as respx_router:
            cert, key = client_identity
            headers = HeaderMultiMap({"Cert": [escaped(cert)], "Key": [escaped(key)]})
            respx_router.post(DETOKENIZE_URL).mock(return_value=httpx.Response(500, text="unexpected"))

            response = await pipeline.run(Invocation(body_content=body_content, headers=headers))

            assert response.status_code in (400, 500)
            assert set(response.headers) == {"Content-Type", "Error-From-Client"}
            assert response.headers["Error-From-Client"] == "false"
            assert isinstance(response.body_bytes, str)

    @pytest.mark.asyncio
    async def test_unexpected_exception_is_contained(self, pipeline) -> None:
        pipeline.vault = MagicMock()
        pipeline.vault.detokenize = AsyncMock(side_effect=RuntimeError("kaboom"))
        pipeline.adapter.auth.preflight = MagicMock(return_value=None)
        body = {
            "azul": {"CardNumber": "t", "ExpirationMonth": "m", "ExpirationYear": "y"},
            "cybersource": {"paymentInformation": {"card": {"number": "t"}}},
            "segpay": "XMLData=" + '<data><authrequest CardNumber="t"/></data>',
        }[pipeline.adapter.name]

        response = await pipeline.run(invocation(body))

        assert response.status_code == 500
        assert response.body_bytes == '"kaboom"'
