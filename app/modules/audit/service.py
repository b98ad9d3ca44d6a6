# app/modules/audit/service.py

import logging
from typing import List, Optional
from uuid import UUID

from asyncpg import PostgresError

from app.modules.audit.repository import AuditRepository
from app.modules.audit.schemas import AuditQuery, AuditLogCreate, AuditLogEntry

logger = logging.getLogger(__name__)


class AuditService:
    def __init__(self, repo: AuditRepository):
        self.repo = repo

    async def log(
        self,
        actor_user_id: Optional[UUID],
        action_type: str,
        resource_type: str,
        resource_id: Optional[str],
        details: dict,
        ip_address: Optional[str] = None,
    ) -> bool:
        """
        Best-effort: a failed audit write is logged and reported as False,
        it never changes the outcome of the operation being audited.
        """
        payload = AuditLogCreate(
            action_type=action_type,
            resource_type=resource_type,
            resource_id=resource_id or "",
            details=details or {},
        )

        try:
            await self.repo.log_event(
                payload=payload,
                actor_user_id=actor_user_id,
                ip_address=ip_address,
            )
        except (PostgresError, OSError) as exc:
            logger.warning("Audit write failed for %s/%s: %s", action_type, resource_id, exc)
            return False
        return True

    async def query(self, q: AuditQuery) -> List[AuditLogEntry]:
        return await self.repo.query_events(q)
