# app/modules/auth/service.py

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.exceptions import AuthenticationError
from app.core.security import (
    create_access_token,
    datetime_from_timestamp,
    decode_token,
    verify_password,
)
from app.modules.accounts.repository import AccountRepository, ProfileRepository
from app.modules.audit.service import AuditService
from app.modules.auth.revocation import RevocationList
from app.modules.auth.schemas import LoginRequest, LogoutResponse, SessionUser, TokenResponse
from app.modules.roles.repository import RoleRepository

logger = logging.getLogger(__name__)


class AuthService:
    """
    Authentication service:
    - login via email/password (activated accounts only)
    - logout via access token (revocation list)
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        profile_repo: ProfileRepository,
        role_repo: RoleRepository,
        audit: AuditService,
        revocations: RevocationList,
    ):
        self.account_repo = account_repo
        self.profile_repo = profile_repo
        self.role_repo = role_repo
        self.audit = audit
        self.revocations = revocations

    # ------------------------------------------------------------------
    # LOGIN
    # ------------------------------------------------------------------
    async def login(
        self,
        payload: LoginRequest,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> TokenResponse:
        account = await self.account_repo.get_by_email(payload.email)

        # Invited accounts have no password yet; same message as a bad password.
        if (
            account is None
            or account.status != "active"
            or not await run_in_threadpool(verify_password, payload.password, account.hashed_password)
        ):
            logger.info("auth.login_failed email=%s", payload.email)
            raise AuthenticationError("Invalid email or password")

        profile = await self.profile_repo.get_by_user_id(account.account_id)
        role = await self.role_repo.resolve_role(account.account_id)
        if profile is None or role is None:
            logger.warning("auth.login_incomplete_account account=%s", account.account_id)
            raise AuthenticationError("Invalid email or password")

        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
        access_token = create_access_token(
            data={"sub": str(account.account_id), "role": role.value},
            expires_delta=expires_delta,
        )

        await self.audit.log(
            actor_user_id=account.account_id,
            action_type="auth.login",
            resource_type="user",
            resource_id=str(account.account_id),
            details={"user_agent": user_agent or ""},
            ip_address=ip_address,
        )

        return TokenResponse(
            access_token=access_token,
            expires_in=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
            user=SessionUser(
                id=account.account_id,
                email=account.email,
                full_name=profile.full_name,
                role=role,
            ),
        )

    # ------------------------------------------------------------------
    # LOGOUT
    # ------------------------------------------------------------------
    async def logout(
        self,
        token: str,
        ip_address: Optional[str] = None,
    ) -> LogoutResponse:
        payload = decode_token(token, verify_exp=False)
        if not payload:
            raise AuthenticationError("Invalid token")

        exp = payload.get("exp")
        if exp is not None:
            remaining = datetime_from_timestamp(exp) - datetime.now(timezone.utc)
            ttl = int(remaining.total_seconds())
        else:
            ttl = settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60

        # Already-expired tokens need no revocation entry.
        if ttl > 0:
            await self.revocations.revoke(token, ttl)

        try:
            user_id = UUID(str(payload.get("sub")))
        except ValueError:
            user_id = None

        logger.info("auth.logout user=%s", user_id)
        await self.audit.log(
            actor_user_id=user_id,
            action_type="auth.logout",
            resource_type="user",
            resource_id=str(user_id) if user_id else None,
            details={},
            ip_address=ip_address,
        )
        return LogoutResponse()
