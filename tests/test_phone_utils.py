from utils.phone_utils import format_phone_display, get_phone_country, to_e164, validate_phone_for_api


def test_to_e164_with_default_country():
    assert to_e164("(201) 555-0123") == "+12015550123"
    assert to_e164("201-555-0123", "US") == "+12015550123"


def test_to_e164_keeps_explicit_country_code():
    assert to_e164("+44 121 234 5678", "US") == "+441212345678"


def test_to_e164_invalid():
    assert to_e164("invalid") is None
    assert to_e164("555") is None
    assert to_e164("   ") is None
    assert to_e164(None) is None


def test_format_phone_display():
    assert format_phone_display("+12015550123", "US", "NATIONAL") == "(201) 555-0123"
    assert format_phone_display("+12015550123", "US", "INTERNATIONAL") == "+1 201-555-0123"


def test_get_phone_country():
    assert get_phone_country("+441212345678") == "GB"


def test_validate_phone_for_api():
    assert validate_phone_for_api("(201) 555-0123") == {
        "valid": True,
        "e164": "+12015550123",
        "formatted": "(201) 555-0123",
        "country": "US",
    }
    assert validate_phone_for_api("nope")["valid"] is False
