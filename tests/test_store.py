from unittest.mock import AsyncMock, MagicMock

import pytest
from supabase import AuthError, PostgrestAPIError

from app.core.exceptions import StorageError
from app.services.store import SupabaseVerificationStore


def make_query(data=None, error=None):
    """PostgREST builder stub: every filter returns the builder itself."""
    query = MagicMock()
    for name in ("select", "update", "eq", "neq", "limit"):
        getattr(query, name).return_value = query
    if error is not None:
        query.execute = AsyncMock(side_effect=error)
    else:
        query.execute = AsyncMock(return_value=MagicMock(data=data if data is not None else []))
    return query


def make_store(query=None):
    client = MagicMock()
    client.table.return_value = query or make_query()
    return SupabaseVerificationStore(client, table="profiles"), client


@pytest.mark.asyncio
async def test_resolve_identity():
    store, client = make_store()
    client.auth.get_user = AsyncMock(return_value=MagicMock(user=MagicMock(id="user-a", email="a@example.com")))

    identity = await store.resolve_identity("token")

    assert identity.user_id == "user-a"
    assert identity.email == "a@example.com"
    client.auth.get_user.assert_awaited_once_with("token")


@pytest.mark.asyncio
async def test_resolve_identity_invalid_token():
    store, client = make_store()
    client.auth.get_user = AsyncMock(side_effect=AuthError("invalid JWT", None))

    assert await store.resolve_identity("token") is None


@pytest.mark.asyncio
async def test_get_verification_state_maps_columns():
    query = make_query([{
        "id": "user-a",
        "phone_e164": "+15551234567",
        "phone_verified": False,
        "verify_request_id": "REQ1",
        "updated_at": "2026-01-01T12:00:00+00:00",
    }])
    store, client = make_store(query)

    record = await store.get_verification_state("user-a")

    client.table.assert_called_with("profiles")
    query.eq.assert_called_with("id", "user-a")
    assert record.phone_e164 == "+15551234567"
    assert record.pending_request_id == "REQ1"
    assert record.updated_at.year == 2026


@pytest.mark.asyncio
async def test_get_verification_state_missing_row():
    store, _ = make_store(make_query([]))

    assert await store.get_verification_state("user-a") is None


@pytest.mark.asyncio
async def test_find_verified_owner_excludes_caller():
    query = make_query([{"id": "user-b"}])
    store, _ = make_store(query)

    owner = await store.find_verified_owner("+15551234567", exclude_user_id="user-a")

    assert owner == "user-b"
    query.eq.assert_any_call("phone_e164", "+15551234567")
    query.eq.assert_any_call("phone_verified", True)
    query.neq.assert_called_once_with("id", "user-a")


@pytest.mark.asyncio
async def test_conditional_update_filters_on_pending_request():
    query = make_query([])
    store, _ = make_store(query)

    updated = await store.set_verification_state(
        "user-a",
        {"phone_verified": True, "pending_request_id": None},
        expected_request_id="REQ1"
    )

    assert updated is False
    query.update.assert_called_once_with({"phone_verified": True, "verify_request_id": None})
    query.eq.assert_any_call("verify_request_id", "REQ1")


@pytest.mark.asyncio
async def test_postgrest_error_becomes_storage_error():
    query = make_query(error=PostgrestAPIError({"message": "permission denied", "code": "42501"}))
    store, _ = make_store(query)

    with pytest.raises(StorageError):
        await store.set_verification_state("user-a", {"phone_verified": False})


@pytest.mark.asyncio
async def test_aclose_closes_postgrest_session():
    store, client = make_store()
    client.postgrest.aclose = AsyncMock()

    await store.aclose()

    client.postgrest.aclose.assert_awaited_once()
