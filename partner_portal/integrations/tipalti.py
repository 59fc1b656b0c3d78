"""
Tipalti payee API client.

Payees are keyed by our partner code (Tipalti's ``idap``). Every call is
signed with HMAC-SHA256 over ``timestamp + body``; the onboarding link the
partner follows is signed the same way over its query string.
"""
import hashlib
import hmac
import json
import time
from typing import Any, Optional
from urllib.parse import quote

import httpx

from partner_portal.core.config import settings
from partner_portal.core.logging import get_logger

logger = get_logger(__name__)


class TipaltiError(Exception):
    """Raised when a Tipalti call fails."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class TipaltiClient:
    def __init__(
        self,
        api_key: Optional[str] = None,
        hmac_secret: Optional[str] = None,
        base_url: Optional[str] = None,
        ui_url: Optional[str] = None,
        payer_name: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = settings.TIPALTI_API_KEY if api_key is None else api_key
        self.hmac_secret = settings.TIPALTI_HMAC_SECRET if hmac_secret is None else hmac_secret
        self.base_url = (base_url or settings.TIPALTI_API_URL).rstrip("/")
        self.ui_url = (ui_url or settings.TIPALTI_UI_URL).rstrip("/")
        self.payer_name = payer_name or settings.TIPALTI_PAYER_NAME
        self.timeout = timeout or settings.TIPALTI_TIMEOUT_SECONDS
        self._transport = transport

    def sign(self, message: str) -> str:
        return hmac.new(self.hmac_secret.encode(), message.encode(), hashlib.sha256).hexdigest()

    async def _request(self, method: str, endpoint: str, payload: Optional[dict[str, Any]] = None) -> Any:
        if not self.api_key:
            raise TipaltiError("TIPALTI_API_KEY not configured")

        timestamp = str(int(time.time()))
        body = json.dumps(payload if payload is not None else {}, separators=(",", ":"))
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
            "X-Tipalti-Timestamp": timestamp,
            "X-Tipalti-Signature": self.sign(timestamp + body),
        }
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url, timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.request(
                    method, endpoint, content=body if payload is not None else None, headers=headers
                )
        except httpx.TimeoutException as exc:
            raise TipaltiError(f"Tipalti API timeout: {endpoint}") from exc
        except httpx.HTTPError as exc:
            raise TipaltiError(f"Tipalti request failed: {exc}") from exc

        if response.status_code >= 400:
            logger.error("tipalti_api_error", endpoint=endpoint, status_code=response.status_code)
            raise TipaltiError(
                f"Tipalti API error: {response.status_code} - {response.text}",
                status_code=response.status_code,
            )
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise TipaltiError("Tipalti returned invalid JSON", status_code=response.status_code) from exc

    async def create_payee(self, payee: dict[str, Any]) -> dict[str, Any]:
        """POST /api/v1/payees"""
        return await self._request("POST", "/api/v1/payees", payee)

    async def get_payee(self, payee_id: str) -> dict[str, Any]:
        """GET /api/v1/payees/{idap} -> {payeeStatus, paymentMethod, isPayable, ...}"""
        return await self._request("GET", f"/api/v1/payees/{quote(payee_id, safe='')}")

    def onboarding_url(self, payee_id: str, timestamp: Optional[int] = None) -> str:
        ts = int(time.time()) if timestamp is None else timestamp
        params = f"idap={quote(payee_id, safe='')}&payer={quote(self.payer_name, safe='')}&ts={ts}"
        return f"{self.ui_url}/payeedashboard/home?{params}&hash={self.sign(params)}"
