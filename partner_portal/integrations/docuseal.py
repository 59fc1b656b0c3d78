"""
DocuSeal API client.

Only the calls this service needs: registering an HTML template and creating
a submission from a registered template.
"""
import hashlib
import hmac
from typing import Any, Optional

import httpx

from partner_portal.core.config import settings
from partner_portal.core.logging import get_logger

logger = get_logger(__name__)


class DocuSealError(Exception):
    """Raised when a DocuSeal call fails (transport, auth or validation)."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class DocuSealClient:
    """Thin async wrapper over the DocuSeal REST API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.DOCUSEAL_API_KEY if api_key is None else api_key
        self.base_url = (base_url or settings.DOCUSEAL_API_URL).rstrip("/")
        self.timeout = timeout or settings.DOCUSEAL_TIMEOUT_SECONDS
        self._transport = transport

    async def _request(self, method: str, endpoint: str, payload: Optional[dict[str, Any]] = None) -> Any:
        if not self.api_key:
            raise DocuSealError("DOCUSEAL_API_KEY not configured")

        headers = {"X-Auth-Token": self.api_key, "Content-Type": "application/json"}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(method, endpoint, json=payload, headers=headers)
        except httpx.TimeoutException as exc:
            raise DocuSealError(f"DocuSeal API timeout: {endpoint}") from exc
        except httpx.HTTPError as exc:
            raise DocuSealError(f"DocuSeal request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error("docuseal_api_error", endpoint=endpoint, status_code=response.status_code)
            raise DocuSealError(
                f"DocuSeal API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            logger.error("docuseal_invalid_json", endpoint=endpoint, status_code=response.status_code)
            raise DocuSealError("DocuSeal returned invalid JSON", status_code=response.status_code) from exc

    async def create_html_template(self, name: str, html: str, folder_name: str) -> dict[str, Any]:
        """POST /templates/html -> {id, slug, name, ...}"""
        return await self._request(
            "POST", "/templates/html", {"name": name, "html": html, "folder_name": folder_name}
        )

    async def create_submission(
        self,
        template_id: str,
        submitters: list[dict[str, Any]],
        send_email: bool = True,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Any:
        """POST /submissions. DocuSeal answers with a list of submitters or a submission object."""
        payload: dict[str, Any] = {
            "template_id": int(template_id) if str(template_id).isdigit() else template_id,
            "send_email": send_email,
            "submitters": submitters,
        }
        if metadata:
            payload["metadata"] = metadata
        return await self._request("POST", "/submissions", payload)


def verify_webhook_signature(body: bytes, signature: Optional[str], secret: Optional[str] = None) -> bool:
    """
    Check the HMAC-SHA256 of the raw body.

    Accepts ``<hex>`` or ``sha256=<hex>``. Always passes when no secret is configured.
    """
    secret = settings.DOCUSEAL_WEBHOOK_SECRET if secret is None else secret
    if not secret:
        return True
    if not signature:
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    provided = signature.split("=", 1)[1] if signature.startswith("sha256=") else signature
    return hmac.compare_digest(provided, expected)
