from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.core.limiter import limiter
from app.dependencies.database import get_db_connection
from app.main import app
from app.modules.audit.service import AuditService
from app.modules.auth.revocation import revocation_list
from app.modules.invitations.service import InvitationService
from app.modules.roles.schemas import Role
from tests.fakes import (
    FakeAccountRepository,
    FakeAuditRepository,
    FakeCache,
    FakeInviteTokenRepository,
    FakeProfileRepository,
    FakeRoleRepository,
    FakeStore,
)


class Clock:
    def __init__(self):
        self.now = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def admin_id(store):
    return store.add_user("admin@example.com", Role.ADMIN)


@pytest.fixture
def manager_id(store):
    return store.add_user("manager@example.com", Role.MANAGER)


@pytest.fixture
def mailer():
    return AsyncMock(return_value=None)


@pytest.fixture
def invitation_service(store, mailer, clock):
    return InvitationService(
        FakeInviteTokenRepository(store),
        FakeAccountRepository(store),
        FakeProfileRepository(store),
        FakeRoleRepository(store),
        AuditService(FakeAuditRepository(store)),
        mailer=mailer,
        clock=clock,
    )


# In-memory Redis for the revocation list and rate limiter
@pytest.fixture(autouse=True)
def fake_cache(monkeypatch):
    fake = FakeCache()
    monkeypatch.setattr(revocation_list, "store", fake)
    monkeypatch.setattr(limiter, "store", fake)
    return fake


# API Client
@pytest_asyncio.fixture(scope="function")
async def async_client():
    async def no_db():
        yield None

    app.dependency_overrides[get_db_connection] = no_db
    async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test"
    ) as client:
        yield client
    app.dependency_overrides.clear()
