# tests/unit/test_policy.py

import pytest

from app.modules.roles.policy import authorize
from app.modules.roles.schemas import Action, Role


@pytest.mark.parametrize("target", list(Role))
def test_admin_may_invite_any_role(target):
    assert authorize(Role.ADMIN, Action.INVITE_ISSUE, target) is True


def test_manager_invite_matrix():
    assert authorize(Role.MANAGER, Action.INVITE_ISSUE, Role.USER) is True
    assert authorize(Role.MANAGER, Action.INVITE_ISSUE, Role.MANAGER) is True
    assert authorize(Role.MANAGER, Action.INVITE_ISSUE, Role.ADMIN) is False


def test_strict_variant_limits_managers_to_users():
    kwargs = {"managers_can_invite_managers": False}
    assert authorize(Role.MANAGER, Action.INVITE_ISSUE, Role.USER, **kwargs) is True
    assert authorize(Role.MANAGER, Action.INVITE_ISSUE, Role.MANAGER, **kwargs) is False


def test_user_cannot_issue_or_delete():
    assert authorize(Role.USER, Action.INVITE_ISSUE, Role.USER) is False
    assert authorize(Role.USER, Action.USER_DELETE, Role.USER) is False


def test_delete_matrix():
    assert authorize(Role.ADMIN, Action.USER_DELETE, Role.ADMIN) is True
    assert authorize(Role.MANAGER, Action.USER_DELETE, Role.USER) is True
    assert authorize(Role.MANAGER, Action.USER_DELETE, Role.ADMIN) is False


def test_settings_and_audit_actions():
    for role in Role:
        assert authorize(role, Action.SETTINGS_READ) is True
    assert authorize(Role.ADMIN, Action.SETTINGS_UPDATE) is True
    assert authorize(Role.MANAGER, Action.SETTINGS_UPDATE) is False
    assert authorize(Role.ADMIN, Action.AUDIT_READ) is True
    assert authorize(Role.MANAGER, Action.AUDIT_READ) is False


def test_user_listing_is_for_admins_and_managers():
    assert authorize(Role.ADMIN, Action.USER_LIST) is True
    assert authorize(Role.MANAGER, Action.USER_LIST) is True
    assert authorize(Role.USER, Action.USER_LIST) is False
    assert authorize(None, Action.USER_LIST) is False


def test_roles_given_as_strings():
    assert authorize("admin", Action.INVITE_ISSUE, "manager") is True
    assert authorize("manager", Action.INVITE_ISSUE, "admin") is False


@pytest.mark.parametrize("requestor", [None, "", "superuser", "Admin"])
def test_unknown_requestor_is_denied(requestor):
    assert authorize(requestor, Action.INVITE_ISSUE, Role.USER) is False


def test_unknown_target_is_denied():
    assert authorize(Role.ADMIN, Action.INVITE_ISSUE, "root") is False
