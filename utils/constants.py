"""
utils/constants.py

Purpose: Centralized static content

- All user-facing messages returned in the error envelope
- Validation patterns
- Provider error type fragments

(Prevents hardcoding across the codebase)
"""

# ============================================================
# VALIDATION
# ============================================================

E164_PATTERN = r"^\+[1-9][0-9]{6,14}$"
CODE_PATTERN = r"^[0-9]{4,8}$"

# Codes a user could guess without receiving the SMS
REJECTED_CODES = frozenset({"0000", "1234"})

BEARER_PREFIX = "Bearer "

# ============================================================
# START
# ============================================================

PHONE_REQUIRED_MESSAGE = "Phone number is required"
PHONE_INVALID_MESSAGE = "Phone number must be in E.164 format (e.g. +15551234567)"
PHONE_TAKEN_MESSAGE = "This phone number is already verified by another user"
START_SUCCESS_MESSAGE = "Verification code sent"
START_FAILED_MESSAGE = "Failed to start verification"
RESEND_COOLDOWN_MESSAGE = "Please wait {seconds} seconds before requesting another code"

# ============================================================
# CHECK
# ============================================================

CODE_REQUIRED_MESSAGE = "Verification code is required"
CODE_INVALID_MESSAGE = "Verification code must be 4-8 digits"
NO_ACTIVE_REQUEST_MESSAGE = "No active verification. Please start verification first"
ALREADY_VERIFIED_MESSAGE = "Phone number is already verified"
STALE_REQUEST_MESSAGE = "Verification was restarted. Please enter the most recent code."
CHECK_SUCCESS_MESSAGE = "Phone number verified"

INVALID_CODE_MESSAGE = "Invalid verification code. Please try again."
EXPIRED_CODE_MESSAGE = "Verification code has expired. Please request a new one."
RATE_LIMITED_MESSAGE = "Too many attempts. Please wait a moment and try again."
CHECK_FAILED_MESSAGE = "Verification failed. Please try again."

# ============================================================
# SHARED
# ============================================================

AUTH_REQUIRED_MESSAGE = "Authentication required"
CONFIGURATION_ERROR_MESSAGE = "Server configuration error"
STORAGE_ERROR_MESSAGE = "Failed to save verification status"
PROVIDER_INVALID_RESPONSE_MESSAGE = "Invalid response from verification service"
PROVIDER_UNAVAILABLE_MESSAGE = "Verification service is unavailable. Please try again."
METHOD_NOT_ALLOWED_MESSAGE = "Method not allowed"
INVALID_BODY_MESSAGE = "Invalid request body"
INTERNAL_ERROR_MESSAGE = "An internal error occurred. Please try again later."

# ============================================================
# PROVIDER (Vonage Verify v2 error type fragments)
# ============================================================

PROVIDER_INVALID_CODE_TYPES = frozenset({"invalid-code"})
PROVIDER_EXPIRED_TYPES = frozenset({"expired", "not-found"})
PROVIDER_RATE_LIMITED_TYPES = frozenset({"throttled", "rate-limit"})

PROVIDER_SUCCESS_STATUS = "completed"
