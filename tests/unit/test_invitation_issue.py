# tests/unit/test_invitation_issue.py

from datetime import timedelta

import pytest

from app.core.config import settings
from app.core.exceptions import ConflictError, InternalError, PermissionDenied
from app.modules.invitations.schemas import IssueInviteRequest
from app.modules.roles.schemas import Role


def invite(email="bob@example.com", role=Role.USER, **extra):
    return IssueInviteRequest(email=email, role=role, full_name="Bob Builder", **extra)


def rows_for(store, email):
    accounts = [a for a in store.accounts.values() if a.email == email]
    tokens = [t for t in store.tokens.values() if t.email == email]
    profiles = [p for p in store.profiles.values() if p.email == email]
    return accounts, tokens, profiles


@pytest.mark.asyncio
async def test_admin_issues_invite(invitation_service, store, admin_id, mailer, clock):
    result = await invitation_service.issue_invite(admin_id, invite(mobile_number="555-0100"))

    assert result.success is True
    assert result.email_sent is True
    assert result.expires_at == clock.now + timedelta(hours=24)
    assert result.invite_link.endswith(f"/set-password?token={result.token}")

    accounts, tokens, profiles = rows_for(store, "bob@example.com")
    assert len(accounts) == 1 and accounts[0].status == "invited"
    assert accounts[0].hashed_password is None
    assert len(tokens) == 1 and tokens[0].used is False
    assert tokens[0].user_data.user_id == accounts[0].account_id
    assert tokens[0].user_data.mobile_number == "555-0100"
    assert len(profiles) == 1 and profiles[0].password_set is False
    assert store.roles[accounts[0].account_id] == Role.USER

    mailer.assert_awaited_once()
    assert mailer.await_args.kwargs["email_to"] == "bob@example.com"
    assert result.token in mailer.await_args.kwargs["html"]
    assert "invite.issue" in [e.action_type for e in store.audit]


@pytest.mark.asyncio
async def test_email_is_normalized_to_lower_case(invitation_service, store, admin_id):
    result = await invitation_service.issue_invite(admin_id, invite(email="Bob@Example.COM"))

    assert result.user.email == "bob@example.com"
    assert store.tokens[result.token].email == "bob@example.com"


@pytest.mark.asyncio
async def test_manager_cannot_invite_admin(invitation_service, store, manager_id):
    with pytest.raises(PermissionDenied) as exc:
        await invitation_service.issue_invite(manager_id, invite(role=Role.ADMIN))

    assert exc.value.status_code == 403
    assert exc.value.detail == "Insufficient permissions"
    assert rows_for(store, "bob@example.com") == ([], [], [])


@pytest.mark.asyncio
async def test_manager_invites_manager_unless_strict(invitation_service, store, manager_id, monkeypatch):
    result = await invitation_service.issue_invite(manager_id, invite(role=Role.MANAGER))
    assert result.user.role == Role.MANAGER

    monkeypatch.setattr(settings, "MANAGERS_CAN_INVITE_MANAGERS", False)
    with pytest.raises(PermissionDenied):
        await invitation_service.issue_invite(manager_id, invite(email="carol@example.com", role=Role.MANAGER))


@pytest.mark.asyncio
async def test_plain_user_is_rejected_even_with_admin_email(invitation_service, store):
    user_id = store.add_user("someone@example.com", Role.USER)

    with pytest.raises(PermissionDenied):
        await invitation_service.issue_invite(user_id, invite(admin_email="admin@example.com"))


@pytest.mark.asyncio
async def test_requestor_without_role_is_rejected(invitation_service, store):
    ghost_id = store.add_user("ghost@example.com", Role.ADMIN)
    del store.roles[ghost_id]

    with pytest.raises(PermissionDenied):
        await invitation_service.issue_invite(ghost_id, invite())


@pytest.mark.asyncio
async def test_active_account_conflicts(invitation_service, store, admin_id):
    store.add_user("bob@example.com", Role.USER, hashed_password="x")

    with pytest.raises(ConflictError) as exc:
        await invitation_service.issue_invite(admin_id, invite())

    assert exc.value.status_code == 409
    assert len(store.tokens) == 0


@pytest.mark.asyncio
async def test_reinvite_replaces_abandoned_invite(invitation_service, store, admin_id):
    first = await invitation_service.issue_invite(admin_id, invite())
    second = await invitation_service.issue_invite(admin_id, invite())

    accounts, tokens, profiles = rows_for(store, "bob@example.com")
    assert len(accounts) == 1
    assert len(profiles) == 1
    assert [t.token for t in tokens] == [second.token]
    assert first.token not in store.tokens
    assert accounts[0].account_id == second.user.id
    assert store.roles.get(first.user.id) is None
    assert "invite.cleanup" in [e.action_type for e in store.audit]


@pytest.mark.asyncio
async def test_token_write_failure_removes_account(invitation_service, store, admin_id, mailer):
    store.failures.names.add("create_token")

    with pytest.raises(InternalError) as exc:
        await invitation_service.issue_invite(admin_id, invite())

    assert exc.value.status_code == 500
    assert rows_for(store, "bob@example.com") == ([], [], [])
    mailer.assert_not_awaited()


@pytest.mark.asyncio
async def test_profile_write_failure_removes_token_and_account(invitation_service, store, admin_id):
    store.failures.names.add("create_profile")

    with pytest.raises(InternalError):
        await invitation_service.issue_invite(admin_id, invite())

    assert rows_for(store, "bob@example.com") == ([], [], [])


@pytest.mark.asyncio
async def test_failed_compensation_is_still_internal(invitation_service, store, admin_id):
    store.failures.names.update({"create_token", "delete_account"})

    with pytest.raises(InternalError):
        await invitation_service.issue_invite(admin_id, invite())


@pytest.mark.asyncio
async def test_email_failure_keeps_invite(invitation_service, store, admin_id, mailer):
    mailer.side_effect = OSError("smtp unreachable")

    result = await invitation_service.issue_invite(admin_id, invite())

    assert result.email_sent is False
    assert result.token in store.tokens
    assert result.invite_link


@pytest.mark.asyncio
async def test_audit_failure_does_not_fail_issuance(invitation_service, store, admin_id):
    store.failures.names.add("log_event")

    result = await invitation_service.issue_invite(admin_id, invite())

    assert result.success is True
    assert result.token in store.tokens
