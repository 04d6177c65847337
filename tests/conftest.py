from dataclasses import replace
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from app.api.phone import get_verification_service
from app.core.config import Settings
from app.core.exceptions import StorageError
from app.main import app
from app.models.verification import Identity, VerificationRecord
from app.services.provider import ProviderResult
from app.services.verification_service import VerificationService


TOKEN_A = "token-a"
TOKEN_B = "token-b"
USER_A = "user-a"
USER_B = "user-b"


class FakeStore:
    """In-memory VerificationStore."""

    def __init__(self):
        self.tokens: Dict[str, Identity] = {}
        self.records: Dict[str, VerificationRecord] = {}
        self.calls: List[str] = []
        self.fail_writes = False
        self.fail_reads = False

    def add_user(self, token: str, user_id: str, **fields) -> VerificationRecord:
        self.tokens[token] = Identity(user_id=user_id)
        self.records[user_id] = VerificationRecord(user_id=user_id, **fields)
        return self.records[user_id]

    async def resolve_identity(self, token: str) -> Optional[Identity]:
        self.calls.append("resolve_identity")
        return self.tokens.get(token)

    async def get_verification_state(self, user_id: str) -> Optional[VerificationRecord]:
        self.calls.append("get_verification_state")
        if self.fail_reads:
            raise StorageError("Failed to load verification status")
        record = self.records.get(user_id)
        return replace(record) if record else None

    async def find_verified_owner(self, phone: str, exclude_user_id: str) -> Optional[str]:
        self.calls.append("find_verified_owner")
        for user_id, record in self.records.items():
            if user_id != exclude_user_id and record.phone_verified and record.phone_e164 == phone:
                return user_id
        return None

    async def set_verification_state(
        self,
        user_id: str,
        patch: Dict[str, Any],
        expected_request_id: Optional[str] = None
    ) -> bool:
        self.calls.append("set_verification_state")
        if self.fail_writes:
            raise StorageError()
        record = self.records.get(user_id)
        if record is None:
            return False
        if expected_request_id is not None and record.pending_request_id != expected_request_id:
            return False
        for field, value in patch.items():
            setattr(record, field, value)
        return True


class FakeProvider:
    def __init__(self):
        self.issue_result = ProviderResult(success=True, request_id="REQ1")
        self.check_result = ProviderResult(success=True)
        self.issued: List[tuple] = []
        self.checked: List[tuple] = []

    async def issue(self, phone: str, brand: str) -> ProviderResult:
        self.issued.append((phone, brand))
        return self.issue_result

    async def check(self, request_id: str, code: str) -> ProviderResult:
        self.checked.append((request_id, code))
        return self.check_result


def make_settings(**overrides) -> Settings:
    values = {
        "SUPABASE_URL": "https://project.supabase.test",
        "SUPABASE_SERVICE_ROLE": "service-role",
        "VONAGE_API_KEY": "key",
        "VONAGE_API_SECRET": "secret",
        "VONAGE_BRAND": "Spark",
        "VERIFY_RESEND_COOLDOWN_SECONDS": 0,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def store():
    fake = FakeStore()
    fake.add_user(TOKEN_A, USER_A)
    fake.add_user(TOKEN_B, USER_B)
    return fake


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def test_settings():
    return make_settings()


@pytest.fixture
def service(test_settings, provider, store):
    return VerificationService(test_settings, provider, store)


@pytest.fixture
def client(service):
    app.dependency_overrides[get_verification_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def bearer(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
