"""
app/flow/wizard.py

Purpose: Client-side phone verification wizard

- PHONE_ENTRY -> CODE_ENTRY -> COMPLETE
- Normalizes the phone number before calling /phone/start
- Validates the code locally before calling /phone/check
- Skips straight to COMPLETE when the profile is already verified
- Every action returns {"success", "step", "title", "progress", "error"?}
"""

from typing import Any, Dict, Optional

from app.core.logging import get_logger
from app.flow.states import WizardStep, get_progress_message, get_step_metadata, is_valid_transition
from app.services.api_client import VerificationApiClient
from utils.constants import ALREADY_VERIFIED_MESSAGE, CODE_INVALID_MESSAGE
from utils.phone_utils import validate_phone_for_api
from utils.validation_utils import normalize_code, validate_verification_code

logger = get_logger(__name__)

INVALID_PHONE_INPUT_MESSAGE = "Please enter a valid phone number"


class PhoneVerificationWizard:

    def __init__(
        self,
        client: VerificationApiClient,
        phone_verified: bool = False,
        default_country: str = "US"
    ):
        self.client = client
        self.default_country = default_country
        self.step = WizardStep.COMPLETE if phone_verified else WizardStep.PHONE_ENTRY
        self.phone_e164: Optional[str] = None
        self.phone_display: Optional[str] = None
        self.request_id: Optional[str] = None
        self.error: Optional[str] = None

    @property
    def title(self) -> str:
        return get_step_metadata(self.step).display_name

    @property
    def progress(self) -> str:
        return get_progress_message(self.step)

    def _move(self, to_step: WizardStep):
        if not is_valid_transition(self.step, to_step):
            raise ValueError(f"Cannot move from {self.step.value} to {to_step.value}")
        logger.debug(f"Wizard step {self.step.value} -> {to_step.value}")
        self.step = to_step

    def _result(self, success: bool, error: Optional[str] = None, **extra) -> Dict[str, Any]:
        self.error = error
        result = {
            "success": success,
            "step": self.step,
            "title": self.title,
            "progress": self.progress,
        }
        if error:
            result["error"] = error
        result.update(extra)
        return result

    async def submit_phone(self, raw_phone: str) -> Dict[str, Any]:
        """
        Normalizes the number and requests a code.

        Args:
            raw_phone: Number as typed, e.g. "(555) 123-4567"

        Returns:
            Result dict; on success the wizard is at CODE_ENTRY
        """
        if self.step != WizardStep.PHONE_ENTRY:
            raise ValueError(f"submit_phone is not allowed at {self.step.value}")

        phone = validate_phone_for_api(raw_phone, self.default_country)
        if not phone["valid"]:
            return self._result(False, INVALID_PHONE_INPUT_MESSAGE)

        response = await self.client.start(phone["e164"])
        if not response.get("ok"):
            return self._result(False, response.get("error"), retry_after=response.get("retry_after"))

        self.phone_e164 = phone["e164"]
        self.phone_display = phone["formatted"]
        self.request_id = response.get("request_id")
        self._move(WizardStep.CODE_ENTRY)
        return self._result(True, phone=self.phone_display)

    async def submit_code(self, code: str) -> Dict[str, Any]:
        """
        Checks the code. Stays at CODE_ENTRY on any failure so the user can
        retry or resend.
        """
        if self.step != WizardStep.CODE_ENTRY:
            raise ValueError(f"submit_code is not allowed at {self.step.value}")

        code = normalize_code(code)
        if not validate_verification_code(code):
            return self._result(False, CODE_INVALID_MESSAGE)

        response = await self.client.check(code)
        if response.get("ok") or response.get("error") == ALREADY_VERIFIED_MESSAGE:
            self.request_id = None
            self._move(WizardStep.COMPLETE)
            return self._result(True)

        return self._result(False, response.get("error"))

    async def resend(self) -> Dict[str, Any]:
        """Requests a fresh code for the number already entered."""
        if self.step != WizardStep.CODE_ENTRY or not self.phone_e164:
            raise ValueError(f"resend is not allowed at {self.step.value}")

        response = await self.client.start(self.phone_e164)
        if not response.get("ok"):
            return self._result(False, response.get("error"), retry_after=response.get("retry_after"))

        self.request_id = response.get("request_id")
        self._move(WizardStep.CODE_ENTRY)
        return self._result(True)

    def change_number(self) -> Dict[str, Any]:
        self._move(WizardStep.PHONE_ENTRY)
        self.phone_e164 = None
        self.phone_display = None
        self.request_id = None
        return self._result(True)
