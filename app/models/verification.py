"""
app/models/verification.py

Purpose: Verification data types

- VerificationRecord: the verification columns of a profile row
- Identity: the caller resolved from a bearer token
- ProviderFailureKind: closed set of provider failure classifications
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional

from app.flow.states import VerificationState


# Profile row column for each record field
COLUMN_NAMES: Dict[str, str] = {
    "user_id": "id",
    "phone_e164": "phone_e164",
    "phone_verified": "phone_verified",
    "pending_request_id": "verify_request_id",
    "updated_at": "updated_at",
}


class ProviderFailureKind(str, Enum):
    INVALID_CODE = "invalid_code"
    EXPIRED_CODE = "expired_code"
    RATE_LIMITED = "rate_limited"
    GENERIC = "generic"


@dataclass(frozen=True)
class Identity:
    user_id: str
    email: Optional[str] = None


@dataclass
class VerificationRecord:
    """
    Verification fields living on a user's profile row.
    Fields default to unverified until the first successful start.
    """
    user_id: str
    phone_e164: Optional[str] = None
    phone_verified: bool = False
    pending_request_id: Optional[str] = None
    updated_at: Optional[datetime] = None

    @property
    def state(self) -> VerificationState:
        if self.phone_verified:
            return VerificationState.VERIFIED
        if self.pending_request_id:
            return VerificationState.CODE_PENDING
        return VerificationState.UNVERIFIED

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "VerificationRecord":
        """
        Builds a record from a profile row keyed by column name.

        Args:
            row: Row dict as returned by the store

        Returns:
            VerificationRecord
        """
        updated_at = row.get(COLUMN_NAMES["updated_at"])
        if isinstance(updated_at, str):
            updated_at = datetime.fromisoformat(updated_at.replace("Z", "+00:00"))

        return cls(
            user_id=str(row[COLUMN_NAMES["user_id"]]),
            phone_e164=row.get(COLUMN_NAMES["phone_e164"]),
            phone_verified=bool(row.get(COLUMN_NAMES["phone_verified"]) or False),
            pending_request_id=row.get(COLUMN_NAMES["pending_request_id"]),
            updated_at=updated_at,
        )


def to_columns(patch: Dict[str, Any]) -> Dict[str, Any]:
    """
    Translates a record patch keyed by field name into column names.
    Datetimes are serialized to ISO 8601.
    """
    columns = {}
    for field, value in patch.items():
        if field not in COLUMN_NAMES:
            raise KeyError(f"Unknown verification field: {field}")
        if isinstance(value, datetime):
            value = value.isoformat()
        columns[COLUMN_NAMES[field]] = value
    return columns
