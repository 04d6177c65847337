"""
app/flow/states.py

Purpose: Defines the phone verification states

- VerificationState: lifecycle of a profile's phone verification
- WizardStep: screens of the client verification wizard
- Single source of truth for both flows
- State transition validation
"""

from enum import Enum
from typing import Dict, List, Optional
from dataclasses import dataclass


class VerificationState(str, Enum):
    """
    Phone verification lifecycle of one profile.
    """

    UNVERIFIED = "UNVERIFIED"
    CODE_PENDING = "CODE_PENDING"
    VERIFIED = "VERIFIED"


class VerificationEvent(str, Enum):
    START_SUCCEEDED = "START_SUCCEEDED"
    CHECK_SUCCEEDED = "CHECK_SUCCEEDED"
    CHECK_FAILED = "CHECK_FAILED"


# (state, event) -> next state. Missing pairs are not allowed.
VERIFICATION_TRANSITIONS: Dict[VerificationState, Dict[VerificationEvent, VerificationState]] = {
    VerificationState.UNVERIFIED: {
        VerificationEvent.START_SUCCEEDED: VerificationState.CODE_PENDING,
    },
    VerificationState.CODE_PENDING: {
        VerificationEvent.START_SUCCEEDED: VerificationState.CODE_PENDING,  # Re-issue overwrites pending id
        VerificationEvent.CHECK_SUCCEEDED: VerificationState.VERIFIED,
        VerificationEvent.CHECK_FAILED: VerificationState.CODE_PENDING,
    },
    VerificationState.VERIFIED: {
        VerificationEvent.START_SUCCEEDED: VerificationState.CODE_PENDING,  # Re-verification resets the flag
    },
}


def next_verification_state(
    state: VerificationState,
    event: VerificationEvent
) -> Optional[VerificationState]:
    """
    Looks up the state reached from `state` on `event`.

    Args:
        state: Current verification state
        event: Outcome of a start or check call

    Returns:
        Next state, or None if the event is not allowed in this state
    """
    return VERIFICATION_TRANSITIONS.get(state, {}).get(event)


class WizardStep(str, Enum):
    """
    Screens of the client phone verification wizard.
    """

    PHONE_ENTRY = "PHONE_ENTRY"
    CODE_ENTRY = "CODE_ENTRY"
    COMPLETE = "COMPLETE"


@dataclass
class StepMetadata:
    """
    Metadata associated with each wizard step.
    """
    name: WizardStep
    display_name: str
    step_number: Optional[int] = None  # For progress tracking
    total_steps: int = 2


STEP_METADATA: Dict[WizardStep, StepMetadata] = {
    WizardStep.PHONE_ENTRY: StepMetadata(
        name=WizardStep.PHONE_ENTRY,
        display_name="Enter phone number",
        step_number=1
    ),
    WizardStep.CODE_ENTRY: StepMetadata(
        name=WizardStep.CODE_ENTRY,
        display_name="Enter code",
        step_number=2
    ),
    WizardStep.COMPLETE: StepMetadata(
        name=WizardStep.COMPLETE,
        display_name="Verified"
    ),
}


STEP_TRANSITIONS: Dict[WizardStep, List[WizardStep]] = {
    WizardStep.PHONE_ENTRY: [
        WizardStep.CODE_ENTRY,
        WizardStep.PHONE_ENTRY,  # Retry on invalid input
    ],
    WizardStep.CODE_ENTRY: [
        WizardStep.COMPLETE,
        WizardStep.CODE_ENTRY,  # Wrong code or resend
        WizardStep.PHONE_ENTRY,  # Change number
    ],
    WizardStep.COMPLETE: [
        WizardStep.PHONE_ENTRY,  # Verify a different number
    ],
}


def is_valid_transition(from_step: WizardStep, to_step: WizardStep) -> bool:
    """
    Checks if a wizard step transition is valid.

    Args:
        from_step: Current step
        to_step: Target step

    Returns:
        True if transition is allowed, False otherwise
    """
    return to_step in STEP_TRANSITIONS.get(from_step, [])


def get_step_metadata(step: WizardStep) -> StepMetadata:
    return STEP_METADATA.get(step, StepMetadata(
        name=step,
        display_name=step.value
    ))


def get_progress_message(step: WizardStep) -> str:
    """
    Generates a progress message for the current step (e.g. "Step 1 of 2").
    """
    metadata = get_step_metadata(step)
    if metadata.step_number and metadata.step_number > 0:
        return f"Step {metadata.step_number} of {metadata.total_steps}"
    return ""
