# app/core/limiter.py

import logging
import time

from fastapi import Request
from redis.exceptions import RedisError

from app.core.cache import Cache, cache
from app.core.exceptions import RateLimited

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Fixed-window counter per key. Fails open when Redis is unavailable.
    """

    def __init__(self, store: Cache, clock=time.time):
        self.store = store
        self.clock = clock

    async def is_allowed(self, key: str, limit: int, window_seconds: int) -> bool:
        now = int(self.clock())
        window_key = f"rate:{key}:{now // window_seconds}"

        try:
            count = await self.store.incr_window(window_key, window_seconds)
            if count > limit:
                return False
        except (RedisError, OSError) as exc:
            logger.warning("rate_limit.unavailable key=%s: %s", key, exc)
        return True


limiter = RateLimiter(cache)


def rate_limit(scope: str, limit: int, window_seconds: int = 60):
    """
    Dependency factory limiting requests per client IP for `scope`.
    """

    async def checker(request: Request) -> None:
        ip = request.client.host if request.client else "unknown"
        if not await limiter.is_allowed(f"{scope}:{ip}", limit, window_seconds):
            logger.info("rate_limit.exceeded scope=%s ip=%s", scope, ip)
            raise RateLimited()

    return checker
