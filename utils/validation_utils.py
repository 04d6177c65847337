"""
utils/validation_utils.py

Purpose: Input validation

- E.164 phone number validation
- Verification code validation
- Bearer token extraction
- Phone masking for logs
"""

import re
from typing import Optional

from utils.constants import BEARER_PREFIX, CODE_PATTERN, E164_PATTERN, REJECTED_CODES


_E164_RE = re.compile(E164_PATTERN)
_CODE_RE = re.compile(CODE_PATTERN)


def validate_e164(phone: str) -> bool:
    """
    Validates E.164 format: `+` followed by 7-15 digits, no separators.

    Args:
        phone: Phone number string (surrounding whitespace is ignored)

    Returns:
        True if valid, False otherwise
    """
    if not phone:
        return False

    return bool(_E164_RE.match(phone.strip()))


def normalize_code(code: str) -> str:
    """
    Strips all whitespace from a verification code ("12 34 56" -> "123456").
    """
    if not code:
        return ""
    return "".join(code.split())


def validate_verification_code(code: str) -> bool:
    """
    Validates verification code format (4-8 digits) and rejects trivially
    guessable codes.

    Args:
        code: Code string

    Returns:
        True if the code may be sent to the provider
    """
    code = normalize_code(code)
    if not _CODE_RE.match(code):
        return False

    return code not in REJECTED_CODES


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """
    Extracts the token from an `Authorization: Bearer <token>` header.

    Args:
        authorization: Raw header value

    Returns:
        Token, or None if the header is missing or malformed
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        return None

    token = authorization[len(BEARER_PREFIX):].strip()
    return token or None


def mask_phone(phone: Optional[str]) -> str:
    """
    Masks the middle digits of a phone number for logging.

    Example: +15551234567 -> +1555***4567
    """
    if not phone:
        return "<none>"
    if len(phone) <= 8:
        return phone[:2] + "***"
    return f"{phone[:5]}***{phone[-4:]}"
