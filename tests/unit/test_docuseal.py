"""
DocuSeal client and webhook signature checks, with httpx.MockTransport standing
in for the remote API.
"""
import hashlib
import hmac
import json

import httpx
import pytest

from partner_portal.integrations.docuseal import DocuSealClient, DocuSealError, verify_webhook_signature

BODY = b'{"event_type":"form.completed"}'


def _sign(body: bytes, secret: str) -> str:
    return hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()


class TestWebhookSignature:
    def test_plain_hex(self):
        assert verify_webhook_signature(BODY, _sign(BODY, "s3cret"), secret="s3cret")

    def test_prefixed_hex(self):
        assert verify_webhook_signature(BODY, "sha256=" + _sign(BODY, "s3cret"), secret="s3cret")

    def test_wrong_secret(self):
        assert not verify_webhook_signature(BODY, _sign(BODY, "other"), secret="s3cret")

    def test_missing_signature(self):
        assert not verify_webhook_signature(BODY, None, secret="s3cret")

    def test_no_secret_configured(self):
        assert verify_webhook_signature(BODY, None, secret="")


class TestClient:
    async def test_create_html_template(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["path"] = request.url.path
            seen["token"] = request.headers["X-Auth-Token"]
            seen["payload"] = json.loads(request.content)
            return httpx.Response(200, json={"id": 42, "slug": "abc", "name": "SkyYield - LOI"})

        client = DocuSealClient(api_key="key", base_url="https://docuseal.test", transport=httpx.MockTransport(handler))
        result = await client.create_html_template("SkyYield - LOI", "<p>x</p>", "SkyYield Templates")

        assert result["id"] == 42
        assert seen["path"] == "/templates/html"
        assert seen["token"] == "key"
        assert seen["payload"]["folder_name"] == "SkyYield Templates"

    async def test_numeric_template_id_sent_as_int(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["payload"] = json.loads(request.content)
            return httpx.Response(200, json=[{"id": 1, "submission_id": 77}])

        client = DocuSealClient(api_key="key", base_url="https://docuseal.test", transport=httpx.MockTransport(handler))
        await client.create_submission("1234", [{"role": "Client", "email": "a@b.c"}], metadata={"partner_id": 5})

        assert seen["payload"]["template_id"] == 1234
        assert seen["payload"]["metadata"] == {"partner_id": 5}

    async def test_http_error_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(422, text="invalid html")

        client = DocuSealClient(api_key="key", base_url="https://docuseal.test", transport=httpx.MockTransport(handler))
        with pytest.raises(DocuSealError) as exc_info:
            await client.create_html_template("x", "<p>", "f")
        assert exc_info.value.status_code == 422

    async def test_transport_failure_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = DocuSealClient(api_key="key", base_url="https://docuseal.test", transport=httpx.MockTransport(handler))
        with pytest.raises(DocuSealError):
            await client.create_submission("1", [])

    async def test_missing_api_key(self):
        client = DocuSealClient(api_key="", base_url="https://docuseal.test")
        with pytest.raises(DocuSealError, match="not configured"):
            await client.create_html_template("x", "<p>", "f")

    async def test_non_json_success_body_raises(self):
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, text="<html>gateway</html>")

        client = DocuSealClient(api_key="key", base_url="https://docuseal.test", transport=httpx.MockTransport(handler))
        with pytest.raises(DocuSealError, match="invalid JSON") as exc_info:
            await client.create_html_template("x", "<p>", "f")
        assert exc_info.value.status_code == 200
