# app/modules/roles/repository.py

from typing import Optional
from uuid import UUID

from asyncpg import Connection

from app.modules.roles.schemas import Role


class RoleRepository:
    """
    Authoritative role store (user_roles table).

    Client-supplied role claims are never consulted; every permission
    decision starts from resolve_role().
    """

    def __init__(self, conn: Connection):
        self.conn = conn

    # ---------------------------------------------------------
    # READ
    # ---------------------------------------------------------
    async def resolve_role(self, user_id: UUID) -> Optional[Role]:
        value = await self.conn.fetchval(
            "SELECT role FROM user_roles WHERE user_id = $1",
            user_id,
        )
        if value is None:
            return None
        try:
            return Role(value)
        except ValueError:
            return None

