import asyncio
import logging
import sys

from app.core.cache import Cache
from app.core.config import settings
from app.core.database import Database

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("connection_check")

MAX_RETRIES = 30
RETRY_INTERVAL = 2  # seconds


async def wait_for(name: str, ping) -> bool:
    """Call `ping` until it reports True or retries run out."""
    for attempt in range(1, MAX_RETRIES + 1):
        logger.info("Checking %s (attempt %d/%d)...", name, attempt, MAX_RETRIES)
        if await ping():
            logger.info("✅ %s is ready!", name)
            return True
        logger.warning("⚠️ %s not ready yet", name)
        await asyncio.sleep(RETRY_INTERVAL)
    return False


async def main() -> int:
    database = Database()
    cache = Cache()
    try:
        results = await asyncio.gather(
            wait_for(f"PostgreSQL at {settings.DATABASE_HOST}", database.ping),
            wait_for(f"Redis at {settings.REDIS_URL}", cache.ping),
        )
    finally:
        await database.disconnect()
        await cache.close()

    if all(results):
        logger.info("🚀 All critical services are UP.")
        return 0
    logger.error("❌ Critical services failed to start. Aborting.")
    return 1


if __name__ == "__main__":
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        logger.info("Connection check cancelled.")
        sys.exit(1)
