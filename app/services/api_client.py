"""
app/services/api_client.py

Purpose: HTTP client for the phone verification endpoints

- Used by the onboarding wizard
- Sends the user's access token as a bearer token
- Always returns the JSON envelope; transport failures become {"ok": False}
"""

from typing import Any, Dict, Optional

import httpx

from app.core.logging import get_logger

logger = get_logger(__name__)

NETWORK_ERROR_MESSAGE = "Could not reach the server. Please try again."


class VerificationApiClient:
    """Calls /phone/start and /phone/check on behalf of a signed-in user."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        api_prefix: str = "/api",
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = base_url.rstrip("/")
        self.api_prefix = api_prefix.rstrip("/")
        self._access_token = access_token
        self._http = http_client or httpx.AsyncClient(timeout=15.0)

    async def aclose(self):
        await self._http.aclose()

    async def _post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        url = f"{self.base_url}{self.api_prefix}{path}"
        try:
            response = await self._http.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self._access_token}"},
            )
        except httpx.HTTPError as e:
            logger.error(f"Request to {path} failed: {e}")
            return {"ok": False, "error": NETWORK_ERROR_MESSAGE, "status_code": None}

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict) or "ok" not in body:
            body = {"ok": False, "error": f"Unexpected response ({response.status_code})"}

        body["status_code"] = response.status_code
        return body

    async def start(self, phone: str) -> Dict[str, Any]:
        return await self._post("/phone/start", {"phone": phone})

    async def check(self, code: str) -> Dict[str, Any]:
        return await self._post("/phone/check", {"code": code})
