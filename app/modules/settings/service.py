# app/modules/settings/service.py

import json
import logging
from typing import Any, Optional
from uuid import UUID

from asyncpg import PostgresError
from redis.exceptions import RedisError

from app.core.cache import Cache
from app.core.config import settings
from app.core.exceptions import InternalError
from app.modules.audit.service import AuditService
from app.modules.settings.repository import SettingsRepository
from app.modules.settings.schemas import (
    TIMEOUT_KEY,
    WARNING_KEY,
    SessionTimeoutResponse,
    SessionTimeoutUpdate,
    normalize_timeout,
)

logger = logging.getLogger(__name__)

CACHE_KEY = "settings:session_timeout"


def _as_int(value: Any, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class SettingsService:
    """
    Session-timeout policy backed by system_settings, cached in Redis.

    Reads never fail: an unreachable store degrades to the configured
    defaults so clients always get a usable (normalized) policy.
    """

    def __init__(self, repo: SettingsRepository, cache: Cache, audit: AuditService) -> None:
        self.repo = repo
        self.cache = cache
        self.audit = audit

    async def get_session_timeout(self) -> SessionTimeoutResponse:
        cached = await self._read_cache()
        if cached is not None:
            return cached

        try:
            values = await self.repo.get_many([TIMEOUT_KEY, WARNING_KEY])
        except (PostgresError, OSError) as exc:
            logger.warning("settings.read_failed, using defaults: %s", exc)
            return self._defaults()

        if not values:
            policy = self._defaults()
        else:
            timeout, warning = normalize_timeout(
                _as_int(values.get(TIMEOUT_KEY), settings.SESSION_TIMEOUT_MINUTES),
                _as_int(values.get(WARNING_KEY), settings.SESSION_WARNING_MINUTES),
            )
            policy = SessionTimeoutResponse(timeout_minutes=timeout, warning_minutes=warning)

        await self._write_cache(policy)
        return policy

    async def update_session_timeout(
        self,
        actor_user_id: UUID,
        payload: SessionTimeoutUpdate,
        ip_address: Optional[str] = None,
    ) -> SessionTimeoutResponse:
        try:
            await self.repo.upsert(TIMEOUT_KEY, payload.timeout_minutes, actor_user_id)
            await self.repo.upsert(WARNING_KEY, payload.warning_minutes, actor_user_id)
        except (PostgresError, OSError) as exc:
            logger.error("settings.update_failed: %s", exc)
            raise InternalError("Failed to update settings")

        try:
            await self.cache.delete(CACHE_KEY)
        except (RedisError, OSError) as exc:
            logger.warning("settings.cache_invalidate_failed: %s", exc)

        await self.audit.log(
            actor_user_id=actor_user_id,
            action_type="settings.update",
            resource_type="system_settings",
            resource_id="session.timeout",
            details=payload.model_dump(),
            ip_address=ip_address,
        )

        timeout, warning = normalize_timeout(payload.timeout_minutes, payload.warning_minutes)
        return SessionTimeoutResponse(timeout_minutes=timeout, warning_minutes=warning)

    # ---------------------------------------------------------
    # helpers
    # ---------------------------------------------------------
    @staticmethod
    def _defaults() -> SessionTimeoutResponse:
        timeout, warning = normalize_timeout(
            settings.SESSION_TIMEOUT_MINUTES, settings.SESSION_WARNING_MINUTES
        )
        return SessionTimeoutResponse(timeout_minutes=timeout, warning_minutes=warning, source="default")

    async def _read_cache(self) -> Optional[SessionTimeoutResponse]:
        try:
            raw = await self.cache.get(CACHE_KEY)
        except (RedisError, OSError) as exc:
            logger.warning("settings.cache_read_failed: %s", exc)
            return None
        if not raw:
            return None
        try:
            return SessionTimeoutResponse(**json.loads(raw))
        except (ValueError, TypeError):
            return None

    async def _write_cache(self, policy: SessionTimeoutResponse) -> None:
        try:
            await self.cache.set(
                CACHE_KEY,
                policy.model_dump_json(),
                ttl=settings.SETTINGS_CACHE_TTL_SECONDS,
            )
        except (RedisError, OSError) as exc:
            logger.warning("settings.cache_write_failed: %s", exc)
