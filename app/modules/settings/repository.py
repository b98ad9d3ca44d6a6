# app/modules/settings/repository.py

import json
from typing import Any, Dict, Iterable, Optional
from uuid import UUID

from asyncpg import Connection


class SettingsRepository:
    """
    Key/value rows of system_settings (value is jsonb).
    """

    def __init__(self, conn: Connection) -> None:
        self.conn = conn

    async def get_many(self, keys: Iterable[str]) -> Dict[str, Any]:
        rows = await self.conn.fetch(
            "SELECT key, value FROM system_settings WHERE key = ANY($1::text[])",
            list(keys),
        )
        values = {}
        for r in rows:
            value = r["value"]
            values[r["key"]] = json.loads(value) if isinstance(value, str) else value
        return values

    async def upsert(self, key: str, value: Any, updated_by: Optional[UUID]) -> None:
        await self.conn.execute(
            """
            INSERT INTO system_settings (key, value, updated_by, updated_at)
            VALUES ($1, $2::jsonb, $3, now())
            ON CONFLICT (key) DO UPDATE
            SET value = EXCLUDED.value,
                updated_by = EXCLUDED.updated_by,
                updated_at = now()
            """,
            key,
            json.dumps(value),
            updated_by,
        )
