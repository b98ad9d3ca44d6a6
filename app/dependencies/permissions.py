# app/dependencies/permissions.py

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import Depends

from app.core.exceptions import PermissionDenied
from app.dependencies.auth_utils import get_current_user_id
from app.dependencies.database import get_db_connection
from app.modules.roles.policy import authorize
from app.modules.roles.repository import RoleRepository
from app.modules.roles.schemas import Action

logger = logging.getLogger(__name__)


def get_role_repo(conn=Depends(get_db_connection)) -> RoleRepository:
    return RoleRepository(conn)


def require_action(action: Action):
    """
    Dependency factory enforcing `action` for the caller's stored role.

    Usage:
        @router.get("/x", dependencies=[Depends(require_action(Action.AUDIT_READ))])
        async def handler(...):
            ...

    Actions that also depend on a target role (issuing, deleting) are
    checked again by the service once the target is known.
    """

    async def checker(
        user_id: UUID = Depends(get_current_user_id),
        role_repo: RoleRepository = Depends(get_role_repo),
    ) -> UUID:
        role = await role_repo.resolve_role(user_id)
        if not authorize(role, action):
            logger.info("permission.denied user=%s action=%s", user_id, action.value)
            raise PermissionDenied()
        return user_id

    return checker
