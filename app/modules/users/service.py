# app/modules/users/service.py

import logging
from typing import Optional
from uuid import UUID

from asyncpg import PostgresError

from app.core.exceptions import (
    InternalError,
    NotFoundError,
    PermissionDenied,
    ValidationFailed,
)
from app.core.security import get_password_hash
from app.modules.accounts.repository import AccountRepository, ProfileRepository
from app.modules.accounts.schemas import ProfileRecord, UserDeleteResponse, UserListResponse
from app.modules.audit.service import AuditService
from app.modules.invitations.repository import InviteTokenRepository
from app.modules.roles.policy import authorize
from app.modules.roles.repository import RoleRepository
from app.modules.roles.schemas import Action, Role

logger = logging.getLogger(__name__)


class UserService:
    def __init__(
        self,
        account_repo: AccountRepository,
        profile_repo: ProfileRepository,
        invite_repo: InviteTokenRepository,
        role_repo: RoleRepository,
        audit: AuditService,
    ):
        self.account_repo = account_repo
        self.profile_repo = profile_repo
        self.invite_repo = invite_repo
        self.role_repo = role_repo
        self.audit = audit

    # ---------------------------------------------------------
    # LIST
    # ---------------------------------------------------------
    async def list_users(
        self,
        password_set: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> UserListResponse:
        profiles = await self.profile_repo.list_profiles(password_set, limit=limit, offset=offset)
        return UserListResponse(users=profiles)

    # ---------------------------------------------------------
    # DELETE (cascade)
    # ---------------------------------------------------------
    async def delete_user(
        self,
        requestor_id: UUID,
        user_id: UUID,
        ip_address: Optional[str] = None,
    ) -> UserDeleteResponse:
        if requestor_id == user_id:
            raise ValidationFailed("You cannot delete your own account")

        requestor_role = await self.role_repo.resolve_role(requestor_id)
        account = await self.account_repo.get_by_id(user_id)
        if account is None:
            if not authorize(requestor_role, Action.USER_DELETE):
                raise PermissionDenied()
            raise NotFoundError("User not found")

        # Accounts without a stored role are treated as admins: admin-only.
        target_role = await self.role_repo.resolve_role(user_id) or Role.ADMIN
        if not authorize(requestor_role, Action.USER_DELETE, target_role):
            logger.warning(
                "user.delete_forbidden requestor=%s target=%s target_role=%s",
                requestor_id,
                user_id,
                target_role.value,
            )
            raise PermissionDenied()

        try:
            tokens = await self.invite_repo.delete_by_email(account.email)
            profiles = await self.profile_repo.delete_by_email_or_user(account.email, user_id)
            await self.account_repo.delete_account(user_id)
        except (PostgresError, OSError) as exc:
            logger.error("user.delete_failed user=%s: %s", user_id, exc)
            raise InternalError("Failed to delete user")

        logger.info("user.deleted user=%s tokens=%d profiles=%d", user_id, tokens, profiles)
        await self.audit.log(
            actor_user_id=requestor_id,
            action_type="user.delete",
            resource_type="user",
            resource_id=str(user_id),
            details={"email": account.email, "role": target_role.value},
            ip_address=ip_address,
        )
        return UserDeleteResponse(message="User deleted successfully")

    # ---------------------------------------------------------
    # BOOTSTRAP
    # ---------------------------------------------------------
    async def bootstrap_admin(self, email: str, password: str, full_name: str) -> bool:
        """
        Create the first administrator. Returns False when an account with
        this email already exists (nothing is changed).
        """
        if await self.account_repo.get_by_email(email) is not None:
            return False

        account = await self.account_repo.create_active_account(
            email,
            get_password_hash(password),
            {"full_name": full_name, "role": Role.ADMIN.value, "bootstrap": True},
        )
        await self.profile_repo.create_profile(
            ProfileRecord(
                user_id=account.account_id,
                email=account.email,
                full_name=full_name,
                role=Role.ADMIN,
                password_set=True,
            )
        )
        logger.info("user.bootstrap_admin email=%s", account.email)
        return True
