# app/modules/invitations/router.py

from uuid import UUID

from fastapi import APIRouter, Depends, Request, status

from app.core.config import settings
from app.core.exceptions import InvalidInviteToken
from app.core.limiter import rate_limit
from app.dependencies.auth_utils import get_current_user_id
from app.dependencies.database import get_db_connection
from app.modules.accounts.repository import AccountRepository, ProfileRepository
from app.modules.audit.repository import AuditRepository
from app.modules.audit.service import AuditService
from app.modules.invitations.repository import InviteTokenRepository
from app.modules.invitations.schemas import (
    IssueInviteRequest,
    IssueInviteResponse,
    SetPasswordRequest,
    SetPasswordResponse,
)
from app.modules.invitations.service import InvitationService
from app.modules.roles.repository import RoleRepository

router = APIRouter(tags=["Invitations"])


async def get_invitation_service(conn=Depends(get_db_connection)) -> InvitationService:
    """
    Provide InvitationService with all required repositories.
    """
    return InvitationService(
        InviteTokenRepository(conn),
        AccountRepository(conn),
        ProfileRepository(conn),
        RoleRepository(conn),
        AuditService(AuditRepository(conn)),
    )


# ---------------------------------------------------------
# ISSUE INVITE (admin / manager)
# ---------------------------------------------------------
@router.post(
    "/issue-invite",
    response_model=IssueInviteResponse,
    status_code=status.HTTP_200_OK,
)
async def issue_invite(
    request: Request,
    body: IssueInviteRequest,
    user_id: UUID = Depends(get_current_user_id),
    service: InvitationService = Depends(get_invitation_service),
):
    ip = request.client.host if request.client else None
    return await service.issue_invite(requestor_id=user_id, payload=body, ip_address=ip)


# ---------------------------------------------------------
# SET PASSWORD (PUBLIC / NO AUTH)
# ---------------------------------------------------------
@router.post(
    "/set-password",
    response_model=SetPasswordResponse,
    dependencies=[Depends(rate_limit("set_password", settings.RATE_LIMIT_SET_PASSWORD_PER_MINUTE))],
)
async def set_password(
    request: Request,
    body: SetPasswordRequest,
    service: InvitationService = Depends(get_invitation_service),
):
    if body.validate_only:
        result = await service.validate_token(body.token)
        if not result.valid:
            raise InvalidInviteToken(result.reason)
        return SetPasswordResponse(message="Invitation is valid", user_data=result.user_data)

    ip = request.client.host if request.client else None
    return await service.consume_token(body.token, body.password, ip_address=ip)
