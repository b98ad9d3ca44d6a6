# app/core/cache.py

import redis.asyncio as redis
from redis.exceptions import RedisError
from typing import Optional

from app.core.config import settings


class Cache:
    """
    Redis cache wrapper.

    - connect() / close() manage the client lifecycle.
    - ping() used by /health and startup checks.
    - get / set / delete for the settings cache and the token revocation list.
    """

    def __init__(self) -> None:
        self.redis: Optional[redis.Redis] = None

    async def connect(self) -> None:
        if self.redis is not None:
            return

        self.redis = redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )

    async def close(self) -> None:
        if self.redis is not None:
            await self.redis.close()
            self.redis = None

    async def ping(self) -> bool:
        """
        Lightweight health check used by /health and startup.
        """
        try:
            if self.redis is None:
                await self.connect()
            return bool(await self.redis.ping())
        except (RedisError, OSError):
            return False

    async def get(self, key: str):
        if self.redis is None:
            await self.connect()
        return await self.redis.get(key)

    async def set(self, key: str, value: str, ttl: int = 3600) -> None:
        if self.redis is None:
            await self.connect()
        await self.redis.set(key, value, ex=max(1, ttl))

    async def incr_window(self, key: str, ttl: int) -> int:
        """
        Atomically bump a counter and (re)arm its expiry.
        """
        if self.redis is None:
            await self.connect()
        async with self.redis.pipeline(transaction=True) as pipe:
            pipe.incr(key)
            pipe.expire(key, max(1, ttl))
            count, _ = await pipe.execute()
        return int(count)

    async def exists(self, key: str) -> bool:
        if self.redis is None:
            await self.connect()
        return bool(await self.redis.exists(key))

    async def delete(self, key: str) -> None:
        if self.redis is None:
            await self.connect()
        await self.redis.delete(key)


cache = Cache()
