# app/modules/auth/router.py

from fastapi import APIRouter, Depends, Request

from app.core.config import settings
from app.core.limiter import rate_limit
from app.core.security import get_bearer_token
from app.dependencies.auth_utils import get_current_token_payload
from app.dependencies.database import get_db_connection
from app.modules.accounts.repository import AccountRepository, ProfileRepository
from app.modules.audit.repository import AuditRepository
from app.modules.audit.service import AuditService
from app.modules.auth.revocation import revocation_list
from app.modules.auth.schemas import LoginRequest, LogoutResponse, TokenResponse
from app.modules.auth.service import AuthService
from app.modules.roles.repository import RoleRepository

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
)


# -------------------------------------------------------
# Dependency factory for AuthService
# -------------------------------------------------------
async def get_auth_service(conn=Depends(get_db_connection)) -> AuthService:
    return AuthService(
        AccountRepository(conn),
        ProfileRepository(conn),
        RoleRepository(conn),
        AuditService(AuditRepository(conn)),
        revocation_list,
    )


# -------------------------------------------------------
# LOGIN
# -------------------------------------------------------
@router.post(
    "/login",
    response_model=TokenResponse,
    dependencies=[Depends(rate_limit("login", settings.RATE_LIMIT_LOGIN_PER_MINUTE))],
)
async def login(
    body: LoginRequest,
    request: Request,
    svc: AuthService = Depends(get_auth_service),
):
    ip = request.client.host if request.client else None
    ua = request.headers.get("user-agent", "")
    return await svc.login(body, ip_address=ip, user_agent=ua)


# -------------------------------------------------------
# LOGOUT
# -------------------------------------------------------
@router.post(
    "/logout",
    response_model=LogoutResponse,
    dependencies=[Depends(get_current_token_payload)],
)
async def logout(
    request: Request,
    svc: AuthService = Depends(get_auth_service),
):
    # Access token comes from Authorization: Bearer <token>
    token = get_bearer_token(request)
    ip = request.client.host if request.client else None
    return await svc.logout(token, ip_address=ip)
