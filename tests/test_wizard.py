import httpx
import pytest
import respx

from app.flow.states import WizardStep
from app.flow.wizard import PhoneVerificationWizard
from app.services.api_client import VerificationApiClient

BASE_URL = "https://app.example.test"


def make_wizard(**kwargs) -> PhoneVerificationWizard:
    client = VerificationApiClient(BASE_URL, "token-a", http_client=httpx.AsyncClient())
    return PhoneVerificationWizard(client, **kwargs)


def test_verified_profile_skips_to_complete():
    wizard = make_wizard(phone_verified=True)

    assert wizard.step == WizardStep.COMPLETE
    assert wizard.progress == ""


@pytest.mark.asyncio
@respx.mock
async def test_happy_path():
    start = respx.post(f"{BASE_URL}/api/phone/start").respond(
        200, json={"ok": True, "request_id": "REQ1", "message": "Verification code sent"}
    )
    check = respx.post(f"{BASE_URL}/api/phone/check").respond(
        200, json={"ok": True, "message": "Phone number verified", "phone_verified": True}
    )
    wizard = make_wizard()
    assert wizard.progress == "Step 1 of 2"

    result = await wizard.submit_phone("(201) 555-0123")

    assert result["success"] is True
    assert result["title"] == "Enter code"
    assert result["progress"] == "Step 2 of 2"
    assert wizard.step == WizardStep.CODE_ENTRY
    assert wizard.phone_e164 == "+12015550123"
    assert start.calls[0].request.headers["Authorization"] == "Bearer token-a"

    result = await wizard.submit_code("482913")

    assert result["success"] is True
    assert wizard.step == WizardStep.COMPLETE
    assert result["title"] == "Verified"
    assert result["progress"] == ""
    assert check.called


@pytest.mark.asyncio
@respx.mock
async def test_invalid_phone_stays_on_entry():
    start = respx.post(f"{BASE_URL}/api/phone/start")
    wizard = make_wizard()

    result = await wizard.submit_phone("12")

    assert result["success"] is False
    assert result["error"] == "Please enter a valid phone number"
    assert wizard.step == WizardStep.PHONE_ENTRY
    assert not start.called


@pytest.mark.asyncio
@respx.mock
async def test_server_error_is_shown():
    respx.post(f"{BASE_URL}/api/phone/start").respond(
        409, json={"ok": False, "error": "This phone number is already verified by another user"}
    )
    wizard = make_wizard()

    result = await wizard.submit_phone("+12015550123")

    assert result["success"] is False
    assert result["error"] == "This phone number is already verified by another user"
    assert wizard.step == WizardStep.PHONE_ENTRY


@pytest.mark.asyncio
@respx.mock
async def test_bad_code_is_checked_locally():
    respx.post(f"{BASE_URL}/api/phone/start").respond(200, json={"ok": True, "request_id": "REQ1"})
    check = respx.post(f"{BASE_URL}/api/phone/check")
    wizard = make_wizard()
    await wizard.submit_phone("+12015550123")

    result = await wizard.submit_code("12")

    assert result["error"] == "Verification code must be 4-8 digits"
    assert wizard.step == WizardStep.CODE_ENTRY
    assert not check.called


@pytest.mark.asyncio
@respx.mock
async def test_resend_and_change_number():
    respx.post(f"{BASE_URL}/api/phone/start").mock(side_effect=[
        httpx.Response(200, json={"ok": True, "request_id": "REQ1"}),
        httpx.Response(200, json={"ok": True, "request_id": "REQ2"}),
    ])
    wizard = make_wizard()
    await wizard.submit_phone("+12015550123")

    result = await wizard.resend()

    assert result["success"] is True
    assert wizard.request_id == "REQ2"

    wizard.change_number()
    assert wizard.step == WizardStep.PHONE_ENTRY
    assert wizard.phone_e164 is None


@pytest.mark.asyncio
@respx.mock
async def test_network_failure_keeps_step():
    respx.post(f"{BASE_URL}/api/phone/start").mock(side_effect=httpx.ConnectError("offline"))
    wizard = make_wizard()

    result = await wizard.submit_phone("+12015550123")

    assert result["success"] is False
    assert result["error"] == "Could not reach the server. Please try again."


@pytest.mark.asyncio
async def test_submit_code_before_phone_is_rejected():
    wizard = make_wizard()

    with pytest.raises(ValueError):
        await wizard.submit_code("482913")
