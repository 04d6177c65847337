from app.flow.states import (
    VerificationEvent,
    VerificationState,
    WizardStep,
    is_valid_transition,
    next_verification_state,
)
from app.models.verification import VerificationRecord, to_columns


def test_verification_transitions():
    assert next_verification_state(VerificationState.UNVERIFIED, VerificationEvent.START_SUCCEEDED) == VerificationState.CODE_PENDING
    assert next_verification_state(VerificationState.CODE_PENDING, VerificationEvent.START_SUCCEEDED) == VerificationState.CODE_PENDING
    assert next_verification_state(VerificationState.CODE_PENDING, VerificationEvent.CHECK_SUCCEEDED) == VerificationState.VERIFIED
    assert next_verification_state(VerificationState.CODE_PENDING, VerificationEvent.CHECK_FAILED) == VerificationState.CODE_PENDING
    assert next_verification_state(VerificationState.VERIFIED, VerificationEvent.START_SUCCEEDED) == VerificationState.CODE_PENDING


def test_check_not_allowed_outside_pending():
    assert next_verification_state(VerificationState.UNVERIFIED, VerificationEvent.CHECK_SUCCEEDED) is None
    assert next_verification_state(VerificationState.VERIFIED, VerificationEvent.CHECK_SUCCEEDED) is None


def test_record_state():
    assert VerificationRecord(user_id="u").state == VerificationState.UNVERIFIED
    assert VerificationRecord(user_id="u", pending_request_id="REQ1").state == VerificationState.CODE_PENDING
    assert VerificationRecord(user_id="u", phone_verified=True).state == VerificationState.VERIFIED


def test_to_columns_renames_pending_request():
    assert to_columns({"pending_request_id": None, "phone_verified": True}) == {
        "verify_request_id": None,
        "phone_verified": True,
    }


def test_wizard_transitions():
    assert is_valid_transition(WizardStep.PHONE_ENTRY, WizardStep.CODE_ENTRY)
    assert is_valid_transition(WizardStep.CODE_ENTRY, WizardStep.PHONE_ENTRY)
    assert not is_valid_transition(WizardStep.PHONE_ENTRY, WizardStep.COMPLETE)
