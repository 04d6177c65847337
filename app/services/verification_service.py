"""
app/services/verification_service.py

Purpose: Phone verification state machine

- start: validate, check ownership, issue a code, persist the pending request
- check: validate, check the code, record the verification
- Validation order is fixed: configuration, input, authentication, record
- Provider failures become ProviderError with a user-facing message
- No automatic retries; the user resubmits
"""

import math
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional

from app.core.config import Settings
from app.core.exceptions import (
    AlreadyVerifiedError,
    AuthRequiredError,
    ConfigurationError,
    ConflictError,
    InvalidInputError,
    NoActiveRequestError,
    ProviderError,
    RateLimitedError,
    StaleRequestError,
    StorageError,
)
from app.core.logging import LogContext, get_logger
from app.flow.states import VerificationEvent, VerificationState, next_verification_state
from app.models.verification import Identity, ProviderFailureKind, VerificationRecord
from app.services.provider import ProviderFailure, VonageVerifyClient
from app.services.store import VerificationStore
from utils.constants import (
    AUTH_REQUIRED_MESSAGE,
    CHECK_FAILED_MESSAGE,
    CODE_INVALID_MESSAGE,
    CODE_REQUIRED_MESSAGE,
    EXPIRED_CODE_MESSAGE,
    INVALID_CODE_MESSAGE,
    PHONE_INVALID_MESSAGE,
    PHONE_REQUIRED_MESSAGE,
    PROVIDER_INVALID_RESPONSE_MESSAGE,
    PROVIDER_UNAVAILABLE_MESSAGE,
    RATE_LIMITED_MESSAGE,
    RESEND_COOLDOWN_MESSAGE,
    START_FAILED_MESSAGE,
)
from utils.validation_utils import (
    extract_bearer_token,
    mask_phone,
    normalize_code,
    validate_e164,
    validate_verification_code,
)

logger = get_logger(__name__)


CHECK_FAILURE_MESSAGES: Dict[ProviderFailureKind, str] = {
    ProviderFailureKind.INVALID_CODE: INVALID_CODE_MESSAGE,
    ProviderFailureKind.EXPIRED_CODE: EXPIRED_CODE_MESSAGE,
    ProviderFailureKind.RATE_LIMITED: RATE_LIMITED_MESSAGE,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def start_failure_error(failure: Optional[ProviderFailure]) -> ProviderError:
    """
    Builds the error for a rejected issue request.
    Provider detail/title are passed through; transport failures are 500.
    """
    if failure is None:
        return ProviderError(START_FAILED_MESSAGE)
    if failure.transport_error:
        return ProviderError(PROVIDER_UNAVAILABLE_MESSAGE, status_code=500)
    return ProviderError(
        failure.detail or failure.title or START_FAILED_MESSAGE,
        kind=failure.kind,
    )


def check_failure_error(failure: Optional[ProviderFailure]) -> ProviderError:
    """
    Builds the error for a rejected code. Known kinds get fixed messages;
    GENERIC falls back to the provider's detail/title. Transport failures
    and unreadable success responses are 500.
    """
    if failure is None:
        return ProviderError(CHECK_FAILED_MESSAGE)
    if failure.transport_error:
        return ProviderError(PROVIDER_UNAVAILABLE_MESSAGE, status_code=500)
    if failure.malformed:
        return ProviderError(PROVIDER_INVALID_RESPONSE_MESSAGE, status_code=500)

    message = CHECK_FAILURE_MESSAGES.get(failure.kind)
    if message is None:
        message = failure.detail or failure.title or CHECK_FAILED_MESSAGE
    return ProviderError(message, kind=failure.kind)


class VerificationService:
    """
    Runs the start/check operations for one request.
    Holds no mutable state; provider and store are injected.
    """

    def __init__(
        self,
        config: Settings,
        provider: Optional[VonageVerifyClient],
        store: Optional[VerificationStore],
        clock: Callable[[], datetime] = _utcnow
    ):
        self.config = config
        self.provider = provider
        self.store = store
        self._clock = clock

    def _ensure_configured(self):
        missing = self.config.missing_verification_settings()
        if missing:
            logger.error(f"Missing required settings: {', '.join(missing)}")
            raise ConfigurationError()
        if self.provider is None or self.store is None:
            logger.error("Verification clients were not initialized at startup")
            raise ConfigurationError()

    async def _authenticate(self, authorization: Optional[str]) -> Identity:
        token = extract_bearer_token(authorization)
        if token is None:
            raise AuthRequiredError(AUTH_REQUIRED_MESSAGE)

        identity = await self.store.resolve_identity(token)
        if identity is None:
            raise AuthRequiredError(AUTH_REQUIRED_MESSAGE)
        return identity

    @staticmethod
    def _validate_phone(phone: Any) -> str:
        if phone is None or (isinstance(phone, str) and not phone.strip()):
            raise InvalidInputError(PHONE_REQUIRED_MESSAGE)

        # Numbers, lists and objects are malformed, not missing
        if not isinstance(phone, str) or not validate_e164(phone):
            raise InvalidInputError(PHONE_INVALID_MESSAGE)
        return phone.strip()

    @staticmethod
    def _validate_code(code: Any) -> str:
        if code is not None and not isinstance(code, str):
            raise InvalidInputError(CODE_INVALID_MESSAGE)

        code = normalize_code(code)
        if not code:
            raise InvalidInputError(CODE_REQUIRED_MESSAGE)

        if not validate_verification_code(code):
            raise InvalidInputError(CODE_INVALID_MESSAGE)
        return code

    def _enforce_cooldown(self, record: Optional[VerificationRecord]):
        cooldown = self.config.VERIFY_RESEND_COOLDOWN_SECONDS
        if not cooldown or record is None or record.updated_at is None:
            return
        if record.state != VerificationState.CODE_PENDING:
            return

        updated_at = record.updated_at
        if updated_at.tzinfo is None:
            updated_at = updated_at.replace(tzinfo=timezone.utc)

        elapsed = (self._clock() - updated_at).total_seconds()
        if elapsed < cooldown:
            retry_after = max(1, math.ceil(cooldown - elapsed))
            raise RateLimitedError(
                retry_after=retry_after,
                message=RESEND_COOLDOWN_MESSAGE.format(seconds=retry_after)
            )

    async def start(self, authorization: Optional[str], phone: Any) -> Dict[str, Any]:
        """
        Starts phone verification for the caller.

        Args:
            authorization: Raw Authorization header
            phone: Phone number in E.164 format

        Returns:
            {"request_id": <provider request id>}

        Raises:
            VerificationError subclass for every failure
        """
        self._ensure_configured()
        phone = self._validate_phone(phone)
        identity = await self._authenticate(authorization)

        with LogContext(user_id=identity.user_id):
            owner = await self.store.find_verified_owner(phone, exclude_user_id=identity.user_id)
            if owner is not None:
                logger.warning(f"Phone {mask_phone(phone)} already verified by another user")
                raise ConflictError()

            record = await self.store.get_verification_state(identity.user_id)
            self._enforce_cooldown(record)
            current_state = record.state if record else VerificationState.UNVERIFIED

            result = await self.provider.issue(phone, self.config.VONAGE_BRAND)
            if not result.success:
                raise start_failure_error(result.failure)

            if not result.request_id:
                logger.error("Vonage accepted the request but returned no request_id")
                raise ProviderError(PROVIDER_INVALID_RESPONSE_MESSAGE, status_code=500)

            patch = {
                "phone_e164": phone,
                "phone_verified": False,
                "pending_request_id": result.request_id,
                "updated_at": self._clock(),
            }
            try:
                updated = await self.store.set_verification_state(identity.user_id, patch)
            except StorageError:
                logger.error(
                    f"Code issued but not persisted; request_id={result.request_id} is orphaned"
                )
                raise

            if not updated:
                logger.error(
                    f"No profile row for user; request_id={result.request_id} is orphaned"
                )
                raise StorageError()

            next_state = next_verification_state(current_state, VerificationEvent.START_SUCCEEDED)
            logger.info(
                f"📲 Verification started for {mask_phone(phone)}: "
                f"{current_state.value} -> {next_state.value}"
            )
            return {"request_id": result.request_id}

    async def check(self, authorization: Optional[str], code: Any) -> Dict[str, Any]:
        """
        Checks the caller's verification code.

        Args:
            authorization: Raw Authorization header
            code: Code from the SMS (4-8 digits)

        Returns:
            {"verified": True}

        Raises:
            VerificationError subclass for every failure
        """
        self._ensure_configured()
        code = self._validate_code(code)
        identity = await self._authenticate(authorization)

        with LogContext(user_id=identity.user_id):
            record = await self.store.get_verification_state(identity.user_id)
            if record is None:
                raise NoActiveRequestError()

            if record.state == VerificationState.VERIFIED:
                raise AlreadyVerifiedError()

            if next_verification_state(record.state, VerificationEvent.CHECK_SUCCEEDED) is None:
                raise NoActiveRequestError()

            result = await self.provider.check(record.pending_request_id, code)
            if not result.success:
                error = check_failure_error(result.failure)
                logger.info(f"Code rejected ({error.kind.value}); state stays {record.state.value}")
                raise error

            patch = {
                "phone_verified": True,
                "pending_request_id": None,
                "updated_at": self._clock(),
            }
            try:
                updated = await self.store.set_verification_state(
                    identity.user_id,
                    patch,
                    expected_request_id=record.pending_request_id
                )
            except StorageError:
                logger.error(
                    f"Code approved but verification not persisted; "
                    f"request_id={record.pending_request_id}"
                )
                raise

            if not updated:
                logger.warning(
                    f"Pending request {record.pending_request_id} was replaced before "
                    f"the check could be recorded"
                )
                raise StaleRequestError()

            logger.info(f"✅ Phone {mask_phone(record.phone_e164)} verified")
            return {"verified": True}
