"""
app/schemas/verification.py

Purpose: Request/response models for the phone endpoints

- Fields are optional and untyped so that presence, type and format are
  reported by the service after its configuration check
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class StartVerificationRequest(BaseModel):
    phone: Any = Field(
        default=None,
        description="Phone number to verify, in E.164 format",
        examples=["+15551234567"]
    )


class StartVerificationResponse(BaseModel):
    ok: Literal[True] = True
    request_id: str
    message: str


class CheckVerificationRequest(BaseModel):
    code: Any = Field(
        default=None,
        description="Code from the verification SMS (4-8 digits)",
        examples=["123456"]
    )


class CheckVerificationResponse(BaseModel):
    ok: Literal[True] = True
    message: str
    phone_verified: Literal[True] = True
