"""
app/services/provider.py

Purpose: Vonage Verify v2 client

- Requests an SMS code for a phone number
- Checks a code against a pending request
- Basic auth built from the API key/secret pair
- Translates provider error types into ProviderFailureKind
- Never raises for HTTP or transport failures; returns ProviderResult
"""

import base64
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from app.core.config import Settings
from app.core.logging import get_logger
from app.models.verification import ProviderFailureKind
from utils.constants import (
    PROVIDER_EXPIRED_TYPES,
    PROVIDER_INVALID_CODE_TYPES,
    PROVIDER_RATE_LIMITED_TYPES,
    PROVIDER_SUCCESS_STATUS,
)
from utils.validation_utils import mask_phone

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProviderFailure:
    kind: ProviderFailureKind
    status_code: Optional[int] = None
    title: Optional[str] = None
    detail: Optional[str] = None
    # True when no usable HTTP response was received
    transport_error: bool = False
    # True for a 2xx whose body does not report the outcome
    malformed: bool = False


@dataclass(frozen=True)
class ProviderResult:
    success: bool
    request_id: Optional[str] = None
    failure: Optional[ProviderFailure] = None


def build_basic_auth_header(api_key: str, api_secret: str) -> str:
    """
    Builds the `Authorization` header value for the key/secret pair.
    """
    credentials = f"{api_key}:{api_secret}".encode("utf-8")
    return "Basic " + base64.b64encode(credentials).decode("ascii")


def _error_type_fragment(error_type: str) -> str:
    # "https://www.developer.vonage.com/api-errors/verify#invalid-code" -> "invalid-code"
    if "#" in error_type:
        return error_type.rsplit("#", 1)[-1]
    return error_type.rstrip("/").rsplit("/", 1)[-1]


def classify_provider_error(status_code: Optional[int], body: Dict[str, Any]) -> ProviderFailureKind:
    """
    Maps a provider error response to a ProviderFailureKind.

    The error `type` URI wins when it names a known error; otherwise the
    HTTP status decides (404/410 expired, 429 rate limited).

    Args:
        status_code: HTTP status of the provider response
        body: Decoded JSON error body (may be empty)

    Returns:
        The failure classification
    """
    fragment = _error_type_fragment(str(body.get("type") or "")).lower()

    if fragment in PROVIDER_INVALID_CODE_TYPES:
        return ProviderFailureKind.INVALID_CODE
    if fragment in PROVIDER_EXPIRED_TYPES:
        return ProviderFailureKind.EXPIRED_CODE
    if fragment in PROVIDER_RATE_LIMITED_TYPES:
        return ProviderFailureKind.RATE_LIMITED

    if status_code == 429:
        return ProviderFailureKind.RATE_LIMITED
    if status_code in (404, 410):
        return ProviderFailureKind.EXPIRED_CODE

    return ProviderFailureKind.GENERIC


def _json_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}


def _failure_from_response(response: httpx.Response) -> ProviderFailure:
    body = _json_body(response)
    return ProviderFailure(
        kind=classify_provider_error(response.status_code, body),
        status_code=response.status_code,
        title=body.get("title"),
        detail=body.get("detail"),
    )


class VonageVerifyClient:
    """Client for the Vonage Verify v2 API. Holds no per-request state."""

    def __init__(self, http_client: httpx.AsyncClient, api_key: str, api_secret: str, base_url: str):
        self._http = http_client
        self._auth_header = build_basic_auth_header(api_key, api_secret)
        self.base_url = base_url.rstrip("/")

    @classmethod
    def from_settings(cls, config: Settings, http_client: Optional[httpx.AsyncClient] = None) -> "VonageVerifyClient":
        if http_client is None:
            http_client = httpx.AsyncClient(timeout=config.VONAGE_TIMEOUT_SECONDS)
        return cls(
            http_client,
            api_key=config.VONAGE_API_KEY or "",
            api_secret=config.VONAGE_API_SECRET or "",
            base_url=config.VONAGE_BASE_URL,
        )

    async def aclose(self):
        await self._http.aclose()

    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        return await self._http.post(
            f"{self.base_url}{path}",
            json=payload,
            headers={
                "Authorization": self._auth_header,
                "Accept": "application/json",
            },
        )

    async def issue(self, phone: str, brand: str) -> ProviderResult:
        """
        Requests an SMS verification code.

        Args:
            phone: E.164 phone number
            brand: Brand name shown in the SMS

        Returns:
            ProviderResult with the provider's request_id on success.
            A success without a request_id is returned as-is for the
            caller to reject.
        """
        payload = {
            "brand": brand,
            "workflow": [{"channel": "sms", "to": phone}],
        }

        try:
            logger.info(f"📤 Requesting verification code for {mask_phone(phone)}")
            response = await self._post("/v2/verify", payload)
        except httpx.TimeoutException:
            logger.error("Vonage verify timeout while issuing code")
            return ProviderResult(success=False, failure=ProviderFailure(
                kind=ProviderFailureKind.GENERIC, transport_error=True
            ))
        except httpx.RequestError as e:
            logger.error(f"Network error issuing verification code: {e}")
            return ProviderResult(success=False, failure=ProviderFailure(
                kind=ProviderFailureKind.GENERIC, transport_error=True
            ))

        if response.is_success:
            request_id = _json_body(response).get("request_id")
            logger.info(f"✅ Verification requested: request_id={request_id}")
            return ProviderResult(success=True, request_id=request_id)

        failure = _failure_from_response(response)
        logger.warning(
            f"❌ Vonage rejected verification request: {response.status_code} "
            f"{failure.title or ''} {failure.detail or ''}".rstrip()
        )
        return ProviderResult(success=False, failure=failure)

    async def check(self, request_id: str, code: str) -> ProviderResult:
        """
        Checks a code against a pending verification request.

        Args:
            request_id: Provider request id returned by issue()
            code: Code entered by the user

        Returns:
            ProviderResult; success only when the provider reports the
            request as completed
        """
        try:
            response = await self._post(f"/v2/verify/{request_id}", {"code": code})
        except httpx.TimeoutException:
            logger.error("Vonage verify timeout while checking code")
            return ProviderResult(success=False, request_id=request_id, failure=ProviderFailure(
                kind=ProviderFailureKind.GENERIC, transport_error=True
            ))
        except httpx.RequestError as e:
            logger.error(f"Network error checking verification code: {e}")
            return ProviderResult(success=False, request_id=request_id, failure=ProviderFailure(
                kind=ProviderFailureKind.GENERIC, transport_error=True
            ))

        if response.is_success:
            status = _json_body(response).get("status")
            if status == PROVIDER_SUCCESS_STATUS:
                logger.info(f"✅ Verification completed: request_id={request_id}")
                return ProviderResult(success=True, request_id=request_id)

            logger.error(
                f"Vonage check returned {response.status_code} without a completed status "
                f"(status={status!r}); request_id={request_id}"
            )
            return ProviderResult(success=False, request_id=request_id, failure=ProviderFailure(
                kind=ProviderFailureKind.GENERIC,
                status_code=response.status_code,
                malformed=True,
            ))

        failure = _failure_from_response(response)
        logger.info(
            f"Vonage check failed: request_id={request_id} "
            f"status={response.status_code} kind={failure.kind.value}"
        )
        return ProviderResult(success=False, request_id=request_id, failure=failure)
