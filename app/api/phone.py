"""
app/api/phone.py

Purpose: Phone verification endpoints

- POST /phone/start: send a verification code to the caller's phone
- POST /phone/check: confirm the code and mark the phone verified
- Bearer token via the Authorization header
- Errors are raised as VerificationError and rendered by app.core.errors
"""

from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from app.core.config import settings
from app.schemas.response import ErrorResponse
from app.schemas.verification import (
    CheckVerificationRequest,
    CheckVerificationResponse,
    StartVerificationRequest,
    StartVerificationResponse,
)
from app.services.verification_service import VerificationService
from utils.constants import CHECK_SUCCESS_MESSAGE, START_SUCCESS_MESSAGE

router = APIRouter(prefix="/phone")


ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Invalid input or verification state"},
    401: {"model": ErrorResponse, "description": "Missing or invalid bearer token"},
    409: {"model": ErrorResponse, "description": "Number taken or verification restarted"},
    500: {"model": ErrorResponse, "description": "Configuration, provider or storage failure"},
}


def get_verification_service(request: Request) -> VerificationService:
    """
    Builds the service from the clients created in the app lifespan.
    Missing clients surface as a configuration error inside the service.
    """
    state = request.app.state
    return VerificationService(
        config=getattr(state, "settings", settings),
        provider=getattr(state, "provider", None),
        store=getattr(state, "store", None),
    )


@router.post(
    "/start",
    response_model=StartVerificationResponse,
    responses={**ERROR_RESPONSES, 429: {"model": ErrorResponse, "description": "Resend cooldown"}},
)
async def start_verification(
    args: Optional[StartVerificationRequest] = None,
    authorization: Optional[str] = Header(None),
    service: VerificationService = Depends(get_verification_service),
):
    """Sends a verification code to the phone number in the body."""
    result = await service.start(authorization, args.phone if args else None)
    return StartVerificationResponse(
        request_id=result["request_id"],
        message=START_SUCCESS_MESSAGE,
    )


@router.post(
    "/check",
    response_model=CheckVerificationResponse,
    responses=ERROR_RESPONSES,
)
async def check_verification(
    args: Optional[CheckVerificationRequest] = None,
    authorization: Optional[str] = Header(None),
    service: VerificationService = Depends(get_verification_service),
):
    """Checks the code from the SMS and marks the phone verified."""
    await service.check(authorization, args.code if args else None)
    return CheckVerificationResponse(message=CHECK_SUCCESS_MESSAGE)
