# app/modules/invitations/service.py

"""
InvitationService:
- Issues single-use, time-limited password-setup tokens
- Validates tokens (read-only) and consumes them exactly once
- Cleans up abandoned invites so the same email can be re-invited
- Integrates Audit logging
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional
from uuid import UUID, uuid4

from aiosmtplib import SMTPException
from asyncpg import PostgresError
from starlette.concurrency import run_in_threadpool

from app.core.config import settings
from app.core.email import send_email
from app.core.exceptions import (
    ConflictError,
    InternalError,
    InvalidInviteToken,
    NotFoundError,
    PermissionDenied,
)
from app.core.security import get_password_hash, mask_token, new_invite_token
from app.modules.accounts.repository import AccountRepository, ProfileRepository
from app.modules.accounts.schemas import ProfileRecord
from app.modules.audit.service import AuditService
from app.modules.invitations.emails import build_invite_email, build_invite_link
from app.modules.invitations.repository import InviteTokenRepository
from app.modules.invitations.schemas import (
    InvitedUser,
    IssueInviteRequest,
    IssueInviteResponse,
    PendingUserData,
    SetPasswordResponse,
    TokenValidation,
)
from app.modules.roles.policy import authorize
from app.modules.roles.repository import RoleRepository
from app.modules.roles.schemas import Action

logger = logging.getLogger(__name__)

Mailer = Callable[..., Awaitable[None]]
STORAGE_ERRORS = (PostgresError, OSError)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class InvitationService:
    def __init__(
        self,
        repo: InviteTokenRepository,
        account_repo: AccountRepository,
        profile_repo: ProfileRepository,
        role_repo: RoleRepository,
        audit: AuditService,
        mailer: Mailer = send_email,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.repo = repo
        self.account_repo = account_repo
        self.profile_repo = profile_repo
        self.role_repo = role_repo
        self.audit = audit
        self.mailer = mailer
        self.clock = clock or _utcnow

    # ---------------------------------------------------------
    # ISSUE
    # ---------------------------------------------------------
    async def issue_invite(
        self,
        requestor_id: UUID,
        payload: IssueInviteRequest,
        ip_address: Optional[str] = None,
    ) -> IssueInviteResponse:
        requestor_role = await self.role_repo.resolve_role(requestor_id)
        if not authorize(requestor_role, Action.INVITE_ISSUE, payload.role):
            logger.warning(
                "invite.forbidden requestor=%s role=%s target_role=%s",
                requestor_id,
                requestor_role.value if requestor_role else None,
                payload.role.value,
            )
            raise PermissionDenied()

        email = payload.email.lower()
        await self._reclaim_email(email, requestor_id, ip_address)

        now = self.clock()
        token = new_invite_token()
        expires_at = now + timedelta(minutes=settings.INVITE_TOKEN_TTL_MINUTES)

        metadata = {
            "full_name": payload.full_name,
            "role": payload.role.value,
            "mobile_number": payload.mobile_number or "",
            "station_id": payload.station_id or "",
            "center_address": payload.center_address or "",
            "registrar": payload.registrar,
            "invited_by": str(requestor_id),
        }

        try:
            account = await self.account_repo.create_pending_account(email, metadata)
        except STORAGE_ERRORS as exc:
            logger.error("invite.account_create_failed email=%s: %s", email, exc)
            raise InternalError("Failed to create account")

        user_data = PendingUserData(
            user_id=account.account_id,
            email=email,
            full_name=payload.full_name,
            role=payload.role,
            mobile_number=payload.mobile_number or "",
            station_id=payload.station_id or "",
            center_address=payload.center_address or "",
            registrar=payload.registrar,
        )

        try:
            await self.repo.create_token(token, email, expires_at, user_data)
        except STORAGE_ERRORS as exc:
            logger.error("invite.token_create_failed email=%s: %s", email, exc)
            await self._compensate(account.account_id, token=None)
            raise InternalError("Failed to create invitation")

        try:
            await self.profile_repo.create_profile(
                ProfileRecord(**user_data.model_dump(), password_set=False)
            )
        except STORAGE_ERRORS as exc:
            logger.error("invite.profile_create_failed email=%s: %s", email, exc)
            await self._compensate(account.account_id, token=token)
            raise InternalError("Failed to create user profile")

        logger.info(
            "invite.issued email=%s role=%s token=%s expires_at=%s",
            email,
            payload.role.value,
            mask_token(token),
            expires_at.isoformat(),
        )

        await self.audit.log(
            actor_user_id=requestor_id,
            action_type="invite.issue",
            resource_type="invite_token",
            resource_id=str(account.account_id),
            details={"email": email, "role": payload.role.value},
            ip_address=ip_address,
        )

        invite_link = build_invite_link(token)
        email_sent = await self._send_invite_email(user_data, invite_link, expires_at)

        return IssueInviteResponse(
            message="Invitation sent" if email_sent else "Invitation created; email delivery failed",
            user=InvitedUser(
                id=account.account_id,
                email=email,
                full_name=payload.full_name,
                role=payload.role,
            ),
            token=token,
            invite_link=invite_link,
            expires_at=expires_at,
            email_sent=email_sent,
        )

    async def _reclaim_email(
        self,
        email: str,
        requestor_id: UUID,
        ip_address: Optional[str],
    ) -> None:
        """
        Remove an abandoned invite (account never activated) so the address
        can be invited again. Active accounts are left alone.
        """
        existing = await self.account_repo.get_by_email(email)
        if existing is None:
            return

        if existing.status == "active":
            logger.info("invite.conflict email=%s account=%s", email, existing.account_id)
            raise ConflictError("An active account already exists for this email")

        try:
            profiles = await self.profile_repo.delete_by_email_or_user(email, existing.account_id)
            tokens = await self.repo.delete_by_email(email)
            await self.account_repo.delete_account(existing.account_id)
        except STORAGE_ERRORS as exc:
            logger.error("invite.cleanup_failed email=%s: %s", email, exc)
            raise InternalError("Failed to clean up previous invitation")

        logger.info(
            "invite.reclaimed email=%s account=%s profiles=%d tokens=%d",
            email,
            existing.account_id,
            profiles,
            tokens,
        )
        await self.audit.log(
            actor_user_id=requestor_id,
            action_type="invite.cleanup",
            resource_type="account",
            resource_id=str(existing.account_id),
            details={"email": email, "profiles": profiles, "tokens": tokens},
            ip_address=ip_address,
        )

    async def _compensate(self, account_id: UUID, token: Optional[str]) -> None:
        if token is not None:
            try:
                await self.repo.delete_by_token(token)
            except STORAGE_ERRORS as exc:
                logger.error("invite.compensation_failed token=%s: %s", mask_token(token), exc)
        try:
            await self.account_repo.delete_account(account_id)
        except STORAGE_ERRORS as exc:
            logger.error("invite.compensation_failed account=%s: %s", account_id, exc)

    async def _send_invite_email(
        self,
        user_data: PendingUserData,
        invite_link: str,
        expires_at: datetime,
    ) -> bool:
        subject, html, text = build_invite_email(
            user_data.full_name,
            user_data.role.value,
            invite_link,
            expires_at,
        )
        try:
            await self.mailer(subject=subject, email_to=user_data.email, html=html, text=text)
        except (SMTPException, OSError) as exc:
            logger.error("invite.email_failed email=%s: %s", user_data.email, exc)
            return False
        return True

    # ---------------------------------------------------------
    # VALIDATE (read-only)
    # ---------------------------------------------------------
    async def validate_token(self, token: str) -> TokenValidation:
        record = await self.repo.get_unused_by_token(token)
        if record is None:
            logger.info("invite.not_found token=%s", mask_token(token))
            return TokenValidation(valid=False, reason=InvalidInviteToken.NOT_FOUND)

        if record.expires_at <= self.clock():
            logger.info("invite.expired token=%s", mask_token(token))
            return TokenValidation(valid=False, reason=InvalidInviteToken.EXPIRED)

        return TokenValidation(valid=True, user_data=record.user_data)

    # ---------------------------------------------------------
    # CONSUME (single use)
    # ---------------------------------------------------------
    async def consume_token(
        self,
        token: str,
        password: str,
        ip_address: Optional[str] = None,
    ) -> SetPasswordResponse:
        now = self.clock()
        record = await self.repo.get_by_token(token)

        if record is None:
            logger.info("invite.not_found token=%s", mask_token(token))
            raise InvalidInviteToken(InvalidInviteToken.NOT_FOUND)
        if record.used:
            logger.info("invite.already_used token=%s", mask_token(token))
            raise InvalidInviteToken(InvalidInviteToken.ALREADY_USED)
        if record.expires_at <= now:
            logger.info("invite.expired token=%s", mask_token(token))
            raise InvalidInviteToken(InvalidInviteToken.EXPIRED)

        claim_id = uuid4()
        stale_before = now - timedelta(seconds=settings.INVITE_CLAIM_LEASE_SECONDS)
        if not await self.repo.claim(token, claim_id, now, stale_before):
            logger.info("invite.claim_lost token=%s", mask_token(token))
            raise InvalidInviteToken(InvalidInviteToken.ALREADY_USED)

        user_data = record.user_data
        hashed_password = await run_in_threadpool(get_password_hash, password)

        try:
            updated = await self.account_repo.set_password(user_data.user_id, hashed_password)
        except STORAGE_ERRORS as exc:
            logger.error("invite.password_set_failed account=%s: %s", user_data.user_id, exc)
            await self._release(token, claim_id)
            raise InternalError("Failed to set password")

        if not updated:
            account = await self.account_repo.get_by_id(user_data.user_id)
            if account is None:
                logger.error("invite.account_missing account=%s token=%s", user_data.user_id, mask_token(token))
                await self._release(token, claim_id)
                raise NotFoundError("Account not found")

            # Another consumer activated the account after our claim lapsed.
            logger.warning("invite.already_activated account=%s token=%s", user_data.user_id, mask_token(token))
            await self._retire(token, claim_id)
            raise InvalidInviteToken(InvalidInviteToken.ALREADY_USED)

        drift = []
        try:
            if not await self.repo.mark_used(token, claim_id):
                drift.append("token_not_marked_used")
        except STORAGE_ERRORS as exc:
            logger.warning("invite.mark_used_failed token=%s: %s", mask_token(token), exc)
            drift.append("token_not_marked_used")

        try:
            if not await self.profile_repo.mark_password_set(user_data.user_id):
                drift.append("profile_flag_not_set")
        except STORAGE_ERRORS as exc:
            logger.warning("invite.profile_flag_failed account=%s: %s", user_data.user_id, exc)
            drift.append("profile_flag_not_set")

        if drift:
            logger.warning(
                "invite.bookkeeping_drift account=%s token=%s issues=%s",
                user_data.user_id,
                mask_token(token),
                ",".join(drift),
            )
            await self.audit.log(
                actor_user_id=user_data.user_id,
                action_type="invite.bookkeeping_drift",
                resource_type="invite_token",
                resource_id=str(user_data.user_id),
                details={"issues": drift, "email": user_data.email},
                ip_address=ip_address,
            )

        logger.info("invite.consumed account=%s token=%s", user_data.user_id, mask_token(token))
        await self.audit.log(
            actor_user_id=user_data.user_id,
            action_type="invite.consume",
            resource_type="invite_token",
            resource_id=str(user_data.user_id),
            details={"email": user_data.email},
            ip_address=ip_address,
        )

        return SetPasswordResponse(
            message="Password set successfully",
            user_data=user_data,
        )

    async def _retire(self, token: str, claim_id: UUID) -> None:
        try:
            await self.repo.mark_used(token, claim_id)
        except STORAGE_ERRORS as exc:
            logger.warning("invite.mark_used_failed token=%s: %s", mask_token(token), exc)

    async def _release(self, token: str, claim_id: UUID) -> None:
        # An unreleased claim still lapses after the lease window.
        try:
            await self.repo.release_claim(token, claim_id)
        except STORAGE_ERRORS as exc:
            logger.warning("invite.release_failed token=%s: %s", mask_token(token), exc)
