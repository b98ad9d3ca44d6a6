# app/core/database.py

import asyncpg
from typing import AsyncGenerator, Optional

from app.core.config import settings


class Database:
    """
    Central asyncpg connection pool wrapper.

    - connect() / disconnect() manage the pool lifecycle.
    - get_connection() yields a pooled connection (no implicit transaction;
      services decide where a transaction boundary belongs).
    - ping() is used by /health and startup checks.
    """

    def __init__(self) -> None:
        self.pool: Optional[asyncpg.Pool] = None

    async def connect(self) -> None:
        if self.pool is not None:
            return

        self.pool = await asyncpg.create_pool(
            host=settings.DATABASE_HOST,
            port=settings.DATABASE_PORT,
            user=settings.DATABASE_USER,
            password=settings.DATABASE_PASSWORD,
            database=settings.DATABASE_NAME,
            min_size=settings.DATABASE_POOL_MIN_SIZE,
            max_size=settings.DATABASE_POOL_SIZE,
        )

    async def disconnect(self) -> None:
        if self.pool is not None:
            await self.pool.close()
            self.pool = None

    async def ping(self) -> bool:
        """
        Lightweight health check used by /health and startup.

        Returns True if the database responds to a simple query.
        """
        try:
            if self.pool is None:
                await self.connect()
            async with self.pool.acquire() as conn:
                await conn.execute("SELECT 1")
            return True
        except (OSError, asyncpg.PostgresError):
            return False

    async def get_connection(self) -> AsyncGenerator[asyncpg.Connection, None]:
        if self.pool is None:
            await self.connect()

        async with self.pool.acquire() as conn:
            yield conn


def rows_affected(command_tag: str) -> int:
    """
    Parse the row count out of an asyncpg command tag.

    asyncpg returns e.g. "UPDATE 1", "DELETE 3", "INSERT 0 1".
    """
    try:
        return int(command_tag.split()[-1])
    except (AttributeError, IndexError, ValueError):
        return 0


db = Database()
