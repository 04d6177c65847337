"""
utils/phone_utils.py

Purpose: Phone number parsing and formatting

- Converts free-form input to E.164 before calling /phone/start
- Display formatting (national / international)
- Country detection
"""

from typing import Any, Dict, Optional

import phonenumbers


DISPLAY_FORMATS = {
    "E164": phonenumbers.PhoneNumberFormat.E164,
    "INTERNATIONAL": phonenumbers.PhoneNumberFormat.INTERNATIONAL,
    "NATIONAL": phonenumbers.PhoneNumberFormat.NATIONAL,
}


def _parse_valid(raw: Optional[str], default_country: str) -> Optional[phonenumbers.PhoneNumber]:
    if not raw or not isinstance(raw, str) or not raw.strip():
        return None

    try:
        parsed = phonenumbers.parse(raw.strip(), default_country)
    except phonenumbers.NumberParseException:
        return None

    if not phonenumbers.is_valid_number(parsed):
        return None
    return parsed


def to_e164(raw: Optional[str], default_country: str = "US") -> Optional[str]:
    """
    Converts a raw phone number to E.164 format.

    Args:
        raw: Raw input, e.g. "(555) 123-4567" or "+44 121 234 5678"
        default_country: Region used when the input has no country code

    Returns:
        E.164 number (e.g. "+15551234567") or None if invalid
    """
    parsed = _parse_valid(raw, default_country)
    if parsed is None:
        return None
    return phonenumbers.format_number(parsed, phonenumbers.PhoneNumberFormat.E164)


def format_phone_display(
    raw: Optional[str],
    default_country: str = "US",
    style: str = "NATIONAL"
) -> Optional[str]:
    """
    Formats a phone number for display.

    Args:
        raw: Raw or E.164 phone number
        default_country: Region used when the input has no country code
        style: "NATIONAL", "INTERNATIONAL" or "E164"

    Returns:
        Formatted number or None if invalid
    """
    parsed = _parse_valid(raw, default_country)
    if parsed is None:
        return None
    return phonenumbers.format_number(parsed, DISPLAY_FORMATS[style.upper()])


def get_phone_country(raw: Optional[str], default_country: str = "US") -> Optional[str]:
    parsed = _parse_valid(raw, default_country)
    if parsed is None:
        return None
    return phonenumbers.region_code_for_number(parsed)


def validate_phone_for_api(raw: Optional[str], default_country: str = "US") -> Dict[str, Any]:
    """
    Validates and formats a phone number for API submission.

    Returns:
        {"valid": bool, "e164": str|None, "formatted": str|None, "country": str|None}
    """
    e164 = to_e164(raw, default_country)
    valid = e164 is not None

    return {
        "valid": valid,
        "e164": e164,
        "formatted": format_phone_display(e164, default_country, "NATIONAL") if valid else None,
        "country": get_phone_country(e164, default_country) if valid else None,
    }
