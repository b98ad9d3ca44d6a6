# app/modules/roles/policy.py

"""
Single authorization matrix for every entry point.

    authorize(requestor_role, action, target_role) -> bool

`target_role` is the role of the account being created / deleted; actions
that do not act on another account ignore it.
"""

from typing import Dict, FrozenSet, Optional

from app.core.config import settings
from app.modules.roles.schemas import Action, Role

ALL_ROLES: FrozenSet[Role] = frozenset(Role)


def _matrix(managers_can_invite_managers: bool) -> Dict[Role, Dict[Action, FrozenSet[Role]]]:
    manager_invites = (
        frozenset({Role.MANAGER, Role.USER})
        if managers_can_invite_managers
        else frozenset({Role.USER})
    )
    return {
        Role.ADMIN: {
            Action.INVITE_ISSUE: ALL_ROLES,
            Action.USER_LIST: ALL_ROLES,
            Action.USER_DELETE: ALL_ROLES,
            Action.SETTINGS_READ: ALL_ROLES,
            Action.SETTINGS_UPDATE: ALL_ROLES,
            Action.AUDIT_READ: ALL_ROLES,
        },
        Role.MANAGER: {
            Action.INVITE_ISSUE: manager_invites,
            Action.USER_LIST: ALL_ROLES,
            Action.USER_DELETE: frozenset({Role.MANAGER, Role.USER}),
            Action.SETTINGS_READ: ALL_ROLES,
        },
        Role.USER: {
            Action.SETTINGS_READ: ALL_ROLES,
        },
    }


def _as_role(value) -> Optional[Role]:
    if value is None:
        return None
    try:
        return Role(value)
    except ValueError:
        return None


def authorize(
    requestor_role,
    action: Action,
    target_role=None,
    *,
    managers_can_invite_managers: Optional[bool] = None,
) -> bool:
    role = _as_role(requestor_role)
    if role is None:
        return False

    if managers_can_invite_managers is None:
        managers_can_invite_managers = settings.MANAGERS_CAN_INVITE_MANAGERS

    allowed_targets = _matrix(managers_can_invite_managers).get(role, {}).get(action)
    if allowed_targets is None:
        return False

    if target_role is None:
        return True

    target = _as_role(target_role)
    return target is not None and target in allowed_targets
