from typing import Optional, Any

from app.models.verification import ProviderFailureKind
from utils.constants import (
    ALREADY_VERIFIED_MESSAGE,
    AUTH_REQUIRED_MESSAGE,
    CHECK_FAILED_MESSAGE,
    CONFIGURATION_ERROR_MESSAGE,
    NO_ACTIVE_REQUEST_MESSAGE,
    PHONE_TAKEN_MESSAGE,
    STALE_REQUEST_MESSAGE,
    STORAGE_ERROR_MESSAGE,
)


class VerificationError(Exception):
    """
    Base exception for the phone verification service.
    Every subclass maps to one HTTP status and one user-facing message.
    """
    def __init__(self, message: str, code: str = "INTERNAL_ERROR", status_code: int = 500, details: Optional[Any] = None):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ConfigurationError(VerificationError):
    """
    Raised when required deployment settings are missing.
    The message is opaque; the missing names go to the log only.
    """
    def __init__(self, message: str = CONFIGURATION_ERROR_MESSAGE, details: Optional[Any] = None):
        super().__init__(message, code="CONFIGURATION_ERROR", status_code=500, details=details)


class InvalidInputError(VerificationError):
    """
    Raised when the phone number or code fails validation.
    """
    def __init__(self, message: str = "Invalid input", details: Optional[Any] = None):
        super().__init__(message, code="INVALID_INPUT", status_code=400, details=details)


class AuthRequiredError(VerificationError):
    """
    Raised when the bearer token is missing, malformed or does not resolve.
    """
    def __init__(self, message: str = AUTH_REQUIRED_MESSAGE, details: Optional[Any] = None):
        super().__init__(message, code="AUTH_REQUIRED", status_code=401, details=details)


class ConflictError(VerificationError):
    """
    Raised when another user already verified the requested number.
    """
    def __init__(self, message: str = PHONE_TAKEN_MESSAGE, details: Optional[Any] = None):
        super().__init__(message, code="PHONE_TAKEN", status_code=409, details=details)


class NoActiveRequestError(VerificationError):
    def __init__(self, message: str = NO_ACTIVE_REQUEST_MESSAGE, details: Optional[Any] = None):
        super().__init__(message, code="NO_ACTIVE_REQUEST", status_code=400, details=details)


class AlreadyVerifiedError(VerificationError):
    def __init__(self, message: str = ALREADY_VERIFIED_MESSAGE, details: Optional[Any] = None):
        super().__init__(message, code="ALREADY_VERIFIED", status_code=400, details=details)


class RateLimitedError(VerificationError):
    """
    Raised when a user restarts verification before the resend cooldown ends.
    """
    def __init__(self, retry_after: int, message: str = "Please wait before requesting another code", details: Optional[Any] = None):
        self.retry_after = retry_after
        super().__init__(message, code="RATE_LIMITED", status_code=429, details=details)


class ProviderError(VerificationError):
    """
    Raised when the verification provider rejects a request or answers
    with something we cannot use.
    """
    def __init__(
        self,
        message: str = CHECK_FAILED_MESSAGE,
        kind: ProviderFailureKind = ProviderFailureKind.GENERIC,
        status_code: int = 400,
        details: Optional[Any] = None
    ):
        self.kind = kind
        super().__init__(message, code="PROVIDER_ERROR", status_code=status_code, details=details)


class StorageError(VerificationError):
    """
    Raised when reading or writing the profile row fails.
    """
    def __init__(self, message: str = STORAGE_ERROR_MESSAGE, details: Optional[Any] = None):
        super().__init__(message, code="STORAGE_ERROR", status_code=500, details=details)


class StaleRequestError(VerificationError):
    """
    Raised when a check succeeded at the provider but the pending request
    was replaced by a newer start before it could be recorded.
    """
    def __init__(self, message: str = STALE_REQUEST_MESSAGE, details: Optional[Any] = None):
        super().__init__(message, code="STALE_REQUEST", status_code=409, details=details)
