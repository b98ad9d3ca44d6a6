# tests/integration/test_invitations_api.py

import pytest
from httpx import AsyncClient

from app.core.limiter import limiter
from app.dependencies.auth_utils import get_current_user_id
from app.main import app
from app.modules.invitations.router import get_invitation_service

INVITE = {
    "email": "bob@example.com",
    "role": "user",
    "full_name": "Bob Builder",
    "mobile_number": "555-0100",
    "station_id": "ST-7",
}


@pytest.fixture
def as_admin(invitation_service, admin_id):
    app.dependency_overrides[get_invitation_service] = lambda: invitation_service
    app.dependency_overrides[get_current_user_id] = lambda: admin_id


@pytest.mark.asyncio
async def test_issue_validate_consume_flow(async_client: AsyncClient, as_admin, store):
    resp = await async_client.post("/api/v1/issue-invite", json=INVITE)
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["email_sent"] is True
    token = body["token"]
    assert body["invite_link"].endswith(f"token={token}")
    assert body["user"]["role"] == "user"

    resp = await async_client.post("/api/v1/set-password", json={"token": token, "validate_only": True})
    assert resp.status_code == 200
    assert resp.json()["user_data"]["full_name"] == "Bob Builder"

    resp = await async_client.post("/api/v1/set-password", json={"token": token, "password": "Str0ngP@ss"})
    assert resp.status_code == 200
    assert resp.json()["success"] is True

    resp = await async_client.post("/api/v1/set-password", json={"token": token, "password": "Str0ngP@ss"})
    assert resp.status_code == 400
    assert resp.json() == {"success": False, "error": "Invalid or expired invitation"}


@pytest.mark.asyncio
async def test_issue_requires_bearer_token(async_client: AsyncClient, invitation_service):
    app.dependency_overrides[get_invitation_service] = lambda: invitation_service

    resp = await async_client.post("/api/v1/issue-invite", json=INVITE)

    assert resp.status_code == 401
    assert resp.json()["success"] is False


@pytest.mark.asyncio
async def test_issue_field_errors(async_client: AsyncClient, as_admin):
    resp = await async_client.post(
        "/api/v1/issue-invite",
        json={**INVITE, "email": "nope", "full_name": "B"},
    )

    assert resp.status_code == 400
    body = resp.json()
    assert body["success"] is False
    assert body["error"] == "Invalid input"
    fields = {d["field"] for d in body["details"]}
    assert fields == {"email", "full_name"}


@pytest.mark.asyncio
async def test_manager_cannot_invite_admin(async_client: AsyncClient, invitation_service, manager_id):
    app.dependency_overrides[get_invitation_service] = lambda: invitation_service
    app.dependency_overrides[get_current_user_id] = lambda: manager_id

    resp = await async_client.post("/api/v1/issue-invite", json={**INVITE, "role": "admin"})

    assert resp.status_code == 403
    assert resp.json() == {"success": False, "error": "Insufficient permissions"}


@pytest.mark.asyncio
async def test_reinvite_of_active_account_conflicts(async_client: AsyncClient, as_admin, store):
    resp = await async_client.post("/api/v1/issue-invite", json=INVITE)
    token = resp.json()["token"]
    await async_client.post("/api/v1/set-password", json={"token": token, "password": "Str0ngP@ss"})

    resp = await async_client.post("/api/v1/issue-invite", json=INVITE)

    assert resp.status_code == 409


@pytest.mark.asyncio
async def test_weak_password_reports_rules(async_client: AsyncClient, as_admin):
    resp = await async_client.post("/api/v1/set-password", json={"token": "abc", "password": "weak"})

    assert resp.status_code == 400
    details = resp.json()["details"]
    assert details[0]["field"] == "password"
    assert "at least 8 characters" in details[0]["message"]
    assert not details[0]["message"].startswith("Value error")


@pytest.mark.asyncio
async def test_unknown_token_is_invalid(async_client: AsyncClient, as_admin):
    resp = await async_client.post("/api/v1/set-password", json={"token": "missing", "validate_only": True})

    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid or expired invitation"


@pytest.mark.asyncio
async def test_set_password_is_rate_limited(async_client: AsyncClient, as_admin, monkeypatch):
    monkeypatch.setattr(limiter, "clock", lambda: 1_000_000.0)
    codes = []
    for _ in range(11):
        resp = await async_client.post("/api/v1/set-password", json={"token": "missing", "validate_only": True})
        codes.append(resp.status_code)

    assert codes[:10] == [400] * 10
    assert codes[10] == 429
