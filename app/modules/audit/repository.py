# app/modules/audit/repository.py

import json
from typing import List, Optional, Any
from uuid import UUID

from asyncpg import Connection

from app.modules.audit.schemas import AuditLogCreate, AuditLogEntry, AuditQuery


class AuditRepository:
    """
    Thin wrapper around the audit_logs table.
    """

    def __init__(self, conn: Connection):
        self.conn = conn

    async def log_event(
            self,
            payload: AuditLogCreate,
            actor_user_id: Optional[UUID] = None,
            ip_address: Optional[str] = None,
    ) -> None:
        """
        Insert an audit log entry.
        """
        details_json = json.dumps(payload.details or {}, default=str)

        await self.conn.execute(
            """
            INSERT INTO audit_logs (
                actor_user_id,
                action_type,
                resource_type,
                resource_id,
                ip_address,
                details
            )
            VALUES ($1, $2, $3, $4, $5, $6::jsonb)
            """,
            actor_user_id,
            payload.action_type,
            payload.resource_type,
            payload.resource_id,
            ip_address,
            details_json,
        )

    async def query_events(self, q: AuditQuery) -> List[AuditLogEntry]:
        """
        Dynamic filtering for audit logs.
        """
        sql = """
            SELECT
                audit_id,
                actor_user_id,
                action_type,
                resource_type,
                resource_id,
                ip_address,
                details,
                created_at
            FROM audit_logs
            WHERE true
        """
        params: List[Any] = []
        idx = 1

        if q.action_type:
            sql += f" AND action_type = ${idx}"
            params.append(q.action_type)
            idx += 1

        if q.resource_type:
            sql += f" AND resource_type = ${idx}"
            params.append(q.resource_type)
            idx += 1

        sql += f" ORDER BY created_at DESC LIMIT ${idx} OFFSET ${idx + 1}"
        params.append(q.limit)
        params.append(q.offset)

        rows = await self.conn.fetch(sql, *params)
        return [AuditLogEntry(**dict(r)) for r in rows]
