# app/modules/users/router.py

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request

from app.dependencies.auth_utils import get_current_user_id
from app.dependencies.database import get_db_connection
from app.dependencies.permissions import require_action
from app.modules.accounts.repository import AccountRepository, ProfileRepository
from app.modules.accounts.schemas import UserDeleteResponse, UserListResponse
from app.modules.audit.repository import AuditRepository
from app.modules.audit.service import AuditService
from app.modules.invitations.repository import InviteTokenRepository
from app.modules.roles.repository import RoleRepository
from app.modules.roles.schemas import Action
from app.modules.users.service import UserService

router = APIRouter(
    prefix="/users",
    tags=["Users"],
)


def get_user_service(conn=Depends(get_db_connection)) -> UserService:
    return UserService(
        AccountRepository(conn),
        ProfileRepository(conn),
        InviteTokenRepository(conn),
        RoleRepository(conn),
        AuditService(AuditRepository(conn)),
    )


# ---------------------------------------------------------
# LIST USERS
# ---------------------------------------------------------
@router.get(
    "",
    response_model=UserListResponse,
    dependencies=[Depends(require_action(Action.USER_LIST))],
)
async def list_users(
    password_set: Optional[bool] = None,
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
    service: UserService = Depends(get_user_service),
):
    return await service.list_users(password_set, limit=limit, offset=offset)


# ---------------------------------------------------------
# DELETE USER
# ---------------------------------------------------------
@router.delete("/{user_id}", response_model=UserDeleteResponse)
async def delete_user(
    user_id: UUID,
    request: Request,
    requestor_id: UUID = Depends(get_current_user_id),
    service: UserService = Depends(get_user_service),
):
    ip = request.client.host if request.client else None
    return await service.delete_user(requestor_id, user_id, ip_address=ip)
