# app/modules/invitations/repository.py

"""
Repository for invite tokens:
- Create token row
- Lookup by token
- Claim / release / mark used (conditional single-row updates)
- Cleanup by email / token
"""

from datetime import datetime
from typing import Optional
from uuid import UUID

from asyncpg import Connection

from app.core.database import rows_affected
from app.modules.invitations.schemas import InviteTokenRecord, PendingUserData

_COLUMNS = """
    token, email, expires_at, used, user_data, claim_id, claimed_at, created_at
"""


class InviteTokenRepository:
    def __init__(self, conn: Connection):
        self.conn = conn

    # ---------------------------------------------------------
    # CREATE
    # ---------------------------------------------------------
    async def create_token(
        self,
        token: str,
        email: str,
        expires_at: datetime,
        user_data: PendingUserData,
    ) -> InviteTokenRecord:
        row = await self.conn.fetchrow(
            f"""
            INSERT INTO invite_tokens (token, email, expires_at, used, user_data)
            VALUES ($1, lower($2), $3, false, $4::jsonb)
            RETURNING {_COLUMNS}
            """,
            token,
            email,
            expires_at,
            user_data.model_dump_json(),
        )
        return InviteTokenRecord(**dict(row))

    # ---------------------------------------------------------
    # LOOKUP
    # ---------------------------------------------------------
    async def get_by_token(self, token: str) -> Optional[InviteTokenRecord]:
        row = await self.conn.fetchrow(
            f"SELECT {_COLUMNS} FROM invite_tokens WHERE token = $1",
            token,
        )
        return InviteTokenRecord(**dict(row)) if row else None

    async def get_unused_by_token(self, token: str) -> Optional[InviteTokenRecord]:
        row = await self.conn.fetchrow(
            f"SELECT {_COLUMNS} FROM invite_tokens WHERE token = $1 AND used = false",
            token,
        )
        return InviteTokenRecord(**dict(row)) if row else None

    # ---------------------------------------------------------
    # CONSUMPTION (conditional updates)
    # ---------------------------------------------------------
    async def claim(
        self,
        token: str,
        claim_id: UUID,
        now: datetime,
        stale_before: datetime,
    ) -> bool:
        """
        Take the exclusive right to consume `token`. Exactly one concurrent
        caller gets True; a claim older than `stale_before` (crashed
        consumer) can be taken over.
        """
        result = await self.conn.execute(
            """
            UPDATE invite_tokens
            SET claim_id = $2, claimed_at = $3
            WHERE token = $1
              AND used = false
              AND expires_at > $3
              AND (claim_id IS NULL OR claimed_at < $4)
            """,
            token,
            claim_id,
            now,
            stale_before,
        )
        return rows_affected(result) == 1

    async def release_claim(self, token: str, claim_id: UUID) -> bool:
        result = await self.conn.execute(
            """
            UPDATE invite_tokens
            SET claim_id = NULL, claimed_at = NULL
            WHERE token = $1 AND claim_id = $2 AND used = false
            """,
            token,
            claim_id,
        )
        return rows_affected(result) == 1

    async def mark_used(self, token: str, claim_id: UUID) -> bool:
        result = await self.conn.execute(
            """
            UPDATE invite_tokens
            SET used = true
            WHERE token = $1 AND used = false AND claim_id = $2
            """,
            token,
            claim_id,
        )
        return rows_affected(result) == 1

    # ---------------------------------------------------------
    # CLEANUP
    # ---------------------------------------------------------
    async def delete_by_email(self, email: str) -> int:
        result = await self.conn.execute(
            "DELETE FROM invite_tokens WHERE email = lower($1)",
            email,
        )
        return rows_affected(result)

    async def delete_by_token(self, token: str) -> bool:
        result = await self.conn.execute(
            "DELETE FROM invite_tokens WHERE token = $1",
            token,
        )
        return rows_affected(result) == 1
