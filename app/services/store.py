"""
app/services/store.py

Purpose: Identity and profile persistence

- Resolves bearer tokens to identities (Supabase Auth)
- Reads and patches the verification columns of a profile row
- Conditional update for recording a successful check
- Narrow VerificationStore interface so handlers never see the full profile
"""

from typing import Any, Dict, Optional, Protocol

import httpx
from supabase import AsyncClient, AuthError, PostgrestAPIError, acreate_client

from app.core.config import Settings
from app.core.exceptions import StorageError
from app.core.logging import get_logger
from app.models.verification import COLUMN_NAMES, Identity, VerificationRecord, to_columns

logger = get_logger(__name__)


class VerificationStore(Protocol):
    async def resolve_identity(self, token: str) -> Optional[Identity]:
        """Returns the identity for a live token, or None."""
        ...

    async def get_verification_state(self, user_id: str) -> Optional[VerificationRecord]:
        ...

    async def find_verified_owner(self, phone: str, exclude_user_id: str) -> Optional[str]:
        """Returns the id of another user who verified `phone`, or None."""
        ...

    async def set_verification_state(
        self,
        user_id: str,
        patch: Dict[str, Any],
        expected_request_id: Optional[str] = None
    ) -> bool:
        """
        Applies `patch` to the user's record. With `expected_request_id`
        the write only happens while that request is still pending.
        Returns True if a row was updated.
        """
        ...


_RECORD_COLUMNS = ", ".join(COLUMN_NAMES.values())


class SupabaseVerificationStore:
    """VerificationStore backed by a Supabase project (service role)."""

    def __init__(self, client: AsyncClient, table: str = "profiles"):
        self._client = client
        self.table = table

    @classmethod
    async def from_settings(cls, config: Settings) -> "SupabaseVerificationStore":
        client = await acreate_client(config.SUPABASE_URL, config.SUPABASE_SERVICE_ROLE)
        return cls(client, table=config.SUPABASE_PROFILES_TABLE)

    async def aclose(self):
        await self._client.postgrest.aclose()

    def _profiles(self):
        return self._client.table(self.table)

    async def resolve_identity(self, token: str) -> Optional[Identity]:
        try:
            response = await self._client.auth.get_user(token)
        except AuthError as e:
            logger.warning(f"Auth verification failed: {e}")
            return None
        except httpx.HTTPError as e:
            logger.error(f"Auth service unreachable: {e}")
            raise StorageError("Failed to verify session") from e

        user = response.user if response else None
        if user is None:
            return None
        return Identity(user_id=str(user.id), email=getattr(user, "email", None))

    async def get_verification_state(self, user_id: str) -> Optional[VerificationRecord]:
        try:
            response = await (
                self._profiles()
                .select(_RECORD_COLUMNS)
                .eq(COLUMN_NAMES["user_id"], user_id)
                .limit(1)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as e:
            logger.error(f"Profile fetch error: {e}", exc_info=True)
            raise StorageError("Failed to load verification status") from e

        if not response.data:
            return None
        return VerificationRecord.from_row(response.data[0])

    async def find_verified_owner(self, phone: str, exclude_user_id: str) -> Optional[str]:
        try:
            response = await (
                self._profiles()
                .select(COLUMN_NAMES["user_id"])
                .eq(COLUMN_NAMES["phone_e164"], phone)
                .eq(COLUMN_NAMES["phone_verified"], True)
                .neq(COLUMN_NAMES["user_id"], exclude_user_id)
                .limit(1)
                .execute()
            )
        except (PostgrestAPIError, httpx.HTTPError) as e:
            logger.error(f"Phone ownership lookup error: {e}", exc_info=True)
            raise StorageError("Failed to check phone number") from e

        if not response.data:
            return None
        return str(response.data[0][COLUMN_NAMES["user_id"]])

    async def set_verification_state(
        self,
        user_id: str,
        patch: Dict[str, Any],
        expected_request_id: Optional[str] = None
    ) -> bool:
        query = (
            self._profiles()
            .update(to_columns(patch))
            .eq(COLUMN_NAMES["user_id"], user_id)
        )
        if expected_request_id is not None:
            query = query.eq(COLUMN_NAMES["pending_request_id"], expected_request_id)

        try:
            response = await query.execute()
        except (PostgrestAPIError, httpx.HTTPError) as e:
            logger.error(f"Profile update error: {e}", exc_info=True)
            raise StorageError() from e

        return bool(response.data)
