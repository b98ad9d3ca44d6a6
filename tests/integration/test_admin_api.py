# tests/integration/test_admin_api.py

import pytest
from httpx import AsyncClient

from app.dependencies.auth_utils import get_current_user_id
from app.dependencies.permissions import get_role_repo
from app.main import app
from app.modules.audit.router import get_audit_service
from app.modules.audit.service import AuditService
from app.modules.roles.schemas import Role
from app.modules.settings.router import get_settings_service
from app.modules.settings.schemas import TIMEOUT_KEY, WARNING_KEY
from app.modules.settings.service import SettingsService
from app.modules.users.router import get_user_service
from app.modules.users.service import UserService
from tests.fakes import (
    FakeAccountRepository,
    FakeAuditRepository,
    FakeCache,
    FakeInviteTokenRepository,
    FakeProfileRepository,
    FakeRoleRepository,
    FakeSettingsRepository,
)


@pytest.fixture
def wired(store):
    audit = AuditService(FakeAuditRepository(store))
    app.dependency_overrides[get_role_repo] = lambda: FakeRoleRepository(store)
    app.dependency_overrides[get_audit_service] = lambda: audit
    app.dependency_overrides[get_settings_service] = lambda: SettingsService(
        FakeSettingsRepository(store), FakeCache(), audit
    )
    app.dependency_overrides[get_user_service] = lambda: UserService(
        FakeAccountRepository(store),
        FakeProfileRepository(store),
        FakeInviteTokenRepository(store),
        FakeRoleRepository(store),
        audit,
    )


def act_as(user_id):
    app.dependency_overrides[get_current_user_id] = lambda: user_id


# ---------------------------------------------------------
# settings
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_admin_updates_session_timeout(async_client: AsyncClient, wired, store, admin_id):
    act_as(admin_id)

    resp = await async_client.put(
        "/api/v1/settings/session-timeout",
        json={"timeout_minutes": 30, "warning_minutes": 5},
    )

    assert resp.status_code == 200
    assert resp.json()["timeout_minutes"] == 30
    assert store.settings == {TIMEOUT_KEY: 30, WARNING_KEY: 5}

    resp = await async_client.get("/api/v1/settings/session-timeout")
    assert (resp.json()["timeout_minutes"], resp.json()["warning_minutes"]) == (30, 5)


@pytest.mark.asyncio
async def test_manager_cannot_update_session_timeout(async_client: AsyncClient, wired, store, manager_id):
    act_as(manager_id)

    resp = await async_client.put(
        "/api/v1/settings/session-timeout",
        json={"timeout_minutes": 30, "warning_minutes": 5},
    )

    assert resp.status_code == 403
    assert store.settings == {}


@pytest.mark.asyncio
async def test_invalid_session_timeout(async_client: AsyncClient, wired, admin_id):
    act_as(admin_id)

    resp = await async_client.put(
        "/api/v1/settings/session-timeout",
        json={"timeout_minutes": 5, "warning_minutes": 10},
    )

    assert resp.status_code == 400
    assert resp.json()["details"][0]["message"] == "warning_minutes must be less than timeout_minutes"


# ---------------------------------------------------------
# users
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_delete_user(async_client: AsyncClient, wired, store, admin_id):
    target = store.add_user("target@example.com", Role.USER)
    act_as(admin_id)

    resp = await async_client.delete(f"/api/v1/users/{target}")

    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert target not in store.accounts


@pytest.mark.asyncio
async def test_manager_cannot_delete_admin(async_client: AsyncClient, wired, store, admin_id, manager_id):
    act_as(manager_id)

    resp = await async_client.delete(f"/api/v1/users/{admin_id}")

    assert resp.status_code == 403
    assert admin_id in store.accounts


@pytest.mark.asyncio
async def test_delete_unknown_user(async_client: AsyncClient, wired, admin_id):
    act_as(admin_id)

    resp = await async_client.delete("/api/v1/users/00000000-0000-0000-0000-000000000001")

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "error": "User not found"}


def add_pending(store, email):
    user_id = store.add_user(email, Role.USER)
    store.profiles[user_id] = store.profiles[user_id].model_copy(update={"password_set": False})
    return user_id


@pytest.mark.asyncio
async def test_manager_lists_users(async_client: AsyncClient, wired, store, admin_id, manager_id):
    pending = add_pending(store, "pending@example.com")
    act_as(manager_id)

    resp = await async_client.get("/api/v1/users")

    assert resp.status_code == 200
    users = {u["user_id"]: u for u in resp.json()["users"]}
    assert set(users) == {str(admin_id), str(manager_id), str(pending)}
    assert users[str(pending)]["password_set"] is False
    assert users[str(admin_id)]["password_set"] is True


@pytest.mark.asyncio
async def test_list_pending_invites_only(async_client: AsyncClient, wired, store, admin_id):
    pending = add_pending(store, "pending@example.com")
    act_as(admin_id)

    resp = await async_client.get("/api/v1/users", params={"password_set": "false"})

    assert resp.status_code == 200
    assert [u["user_id"] for u in resp.json()["users"]] == [str(pending)]


@pytest.mark.asyncio
async def test_plain_user_cannot_list_users(async_client: AsyncClient, wired, store):
    act_as(store.add_user("someone@example.com", Role.USER))

    resp = await async_client.get("/api/v1/users")

    assert resp.status_code == 403
    assert resp.json() == {"success": False, "error": "Insufficient permissions"}


# ---------------------------------------------------------
# audit
# ---------------------------------------------------------
@pytest.mark.asyncio
async def test_admin_reads_audit_log(async_client: AsyncClient, wired, store, admin_id):
    target = store.add_user("target@example.com", Role.USER)
    act_as(admin_id)
    await async_client.delete(f"/api/v1/users/{target}")

    resp = await async_client.get("/api/v1/audit/logs", params={"action_type": "user.delete"})

    assert resp.status_code == 200
    logs = resp.json()
    assert len(logs) == 1
    assert logs[0]["resource_id"] == str(target)


@pytest.mark.asyncio
async def test_manager_cannot_read_audit_log(async_client: AsyncClient, wired, manager_id):
    act_as(manager_id)

    resp = await async_client.get("/api/v1/audit/logs")

    assert resp.status_code == 403
