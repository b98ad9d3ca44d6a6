# app/modules/accounts/repository.py

"""
Account directory + profile rows.

- accounts: identity, credential hash and invite metadata
- profiles: the PendingAccount record whose password_set flag flips once
"""

import json
from typing import Any, Dict, List, Optional
from uuid import UUID

from asyncpg import Connection

from app.core.database import rows_affected
from app.modules.accounts.schemas import AccountRecord, ProfileRecord


class AccountRepository:
    def __init__(self, conn: Connection):
        self.conn = conn

    # ---------------------------------------------------------
    # READ
    # ---------------------------------------------------------
    async def get_by_email(self, email: str) -> Optional[AccountRecord]:
        row = await self.conn.fetchrow(
            """
            SELECT account_id, email, hashed_password, status, metadata, created_at
            FROM accounts
            WHERE email = lower($1)
            """,
            email,
        )
        return AccountRecord(**dict(row)) if row else None

    async def get_by_id(self, account_id: UUID) -> Optional[AccountRecord]:
        row = await self.conn.fetchrow(
            """
            SELECT account_id, email, hashed_password, status, metadata, created_at
            FROM accounts
            WHERE account_id = $1
            """,
            account_id,
        )
        return AccountRecord(**dict(row)) if row else None

    # ---------------------------------------------------------
    # WRITE
    # ---------------------------------------------------------
    async def create_pending_account(self, email: str, metadata: Dict[str, Any]) -> AccountRecord:
        row = await self.conn.fetchrow(
            """
            INSERT INTO accounts (email, status, metadata)
            VALUES (lower($1), 'invited', $2::jsonb)
            RETURNING account_id, email, hashed_password, status, metadata, created_at
            """,
            email,
            json.dumps(metadata),
        )
        return AccountRecord(**dict(row))

    async def create_active_account(self, email: str, hashed_password: str, metadata: Dict[str, Any]) -> AccountRecord:
        row = await self.conn.fetchrow(
            """
            INSERT INTO accounts (email, hashed_password, status, metadata)
            VALUES (lower($1), $2, 'active', $3::jsonb)
            RETURNING account_id, email, hashed_password, status, metadata, created_at
            """,
            email,
            hashed_password,
            json.dumps(metadata),
        )
        return AccountRecord(**dict(row))

    async def set_password(self, account_id: UUID, hashed_password: str) -> bool:
        """
        Activate an invited account. Only the first write wins: an account
        that is already active is left untouched and False is returned.
        """
        result = await self.conn.execute(
            """
            UPDATE accounts
            SET hashed_password = $2,
                status = 'active',
                password_updated_at = now()
            WHERE account_id = $1
              AND status = 'invited'
            """,
            account_id,
            hashed_password,
        )
        return rows_affected(result) == 1

    async def delete_account(self, account_id: UUID) -> bool:
        result = await self.conn.execute(
            "DELETE FROM accounts WHERE account_id = $1",
            account_id,
        )
        return rows_affected(result) > 0


class ProfileRepository:
    def __init__(self, conn: Connection):
        self.conn = conn

    async def get_by_user_id(self, user_id: UUID) -> Optional[ProfileRecord]:
        row = await self.conn.fetchrow(
            """
            SELECT user_id, email, full_name, role, mobile_number, station_id,
                   center_address, registrar, password_set, created_at
            FROM profiles
            WHERE user_id = $1
            """,
            user_id,
        )
        return ProfileRecord(**dict(row)) if row else None

    async def get_by_email(self, email: str) -> Optional[ProfileRecord]:
        row = await self.conn.fetchrow(
            """
            SELECT user_id, email, full_name, role, mobile_number, station_id,
                   center_address, registrar, password_set, created_at
            FROM profiles
            WHERE email = lower($1)
            ORDER BY created_at DESC
            LIMIT 1
            """,
            email,
        )
        return ProfileRecord(**dict(row)) if row else None

    async def create_profile(self, profile: ProfileRecord) -> None:
        """
        Insert the profile and its user_roles row in one statement so the
        role store never disagrees with the profile.
        """
        await self.conn.execute(
            """
            WITH p AS (
                INSERT INTO profiles (
                    user_id, email, full_name, role, mobile_number,
                    station_id, center_address, registrar, password_set
                )
                VALUES ($1, lower($2), $3, $4, $5, $6, $7, $8, $9)
                RETURNING user_id, role
            )
            INSERT INTO user_roles (user_id, role)
            SELECT user_id, role FROM p
            ON CONFLICT (user_id) DO UPDATE SET role = EXCLUDED.role
            """,
            profile.user_id,
            profile.email,
            profile.full_name,
            profile.role.value,
            profile.mobile_number,
            profile.station_id,
            profile.center_address,
            profile.registrar,
            profile.password_set,
        )

    async def list_profiles(
        self,
        password_set: Optional[bool] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ProfileRecord]:
        """
        Newest first. password_set=False lists invites still pending.
        """
        sql = """
            SELECT user_id, email, full_name, role, mobile_number, station_id,
                   center_address, registrar, password_set, created_at
            FROM profiles
            WHERE true
        """
        params: List[Any] = []
        idx = 1

        if password_set is not None:
            sql += f" AND password_set = ${idx}"
            params.append(password_set)
            idx += 1

        sql += f" ORDER BY created_at DESC LIMIT ${idx} OFFSET ${idx + 1}"
        params.append(limit)
        params.append(offset)

        rows = await self.conn.fetch(sql, *params)
        return [ProfileRecord(**dict(r)) for r in rows]

    async def delete_by_email_or_user(self, email: str, user_id: Optional[UUID]) -> int:
        result = await self.conn.execute(
            "DELETE FROM profiles WHERE email = lower($1) OR user_id = $2",
            email,
            user_id,
        )
        return rows_affected(result)

    async def mark_password_set(self, user_id: UUID) -> bool:
        result = await self.conn.execute(
            """
            UPDATE profiles
            SET password_set = true
            WHERE user_id = $1 AND password_set = false
            """,
            user_id,
        )
        return rows_affected(result) == 1
