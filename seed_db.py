import asyncio
import logging
import sys

import asyncpg

from app.core.config import settings
from app.modules.accounts.repository import AccountRepository, ProfileRepository
from app.modules.audit.repository import AuditRepository
from app.modules.audit.service import AuditService
from app.modules.invitations.repository import InviteTokenRepository
from app.modules.roles.repository import RoleRepository
from app.modules.users.service import UserService

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("seed_db")


async def seed_database() -> bool:
    logger.info("Seeding database at %s...", settings.DATABASE_HOST)

    try:
        with open("schema.sql", "r") as f:
            sql = f.read()
    except FileNotFoundError:
        logger.error("'schema.sql' file not found.")
        return False

    try:
        conn = await asyncpg.connect(settings.DATABASE_URL)
    except (OSError, asyncpg.PostgresError) as e:
        logger.error("Database connection failed: %s", e)
        return False

    try:
        await conn.execute(sql)
        logger.info("Schema applied.")

        if not (settings.BOOTSTRAP_ADMIN_EMAIL and settings.BOOTSTRAP_ADMIN_PASSWORD):
            logger.info("BOOTSTRAP_ADMIN_EMAIL / _PASSWORD not set; skipping first administrator.")
            return True

        service = UserService(
            AccountRepository(conn),
            ProfileRepository(conn),
            InviteTokenRepository(conn),
            RoleRepository(conn),
            AuditService(AuditRepository(conn)),
        )
        async with conn.transaction():
            created = await service.bootstrap_admin(
                settings.BOOTSTRAP_ADMIN_EMAIL,
                settings.BOOTSTRAP_ADMIN_PASSWORD,
                settings.BOOTSTRAP_ADMIN_NAME,
            )
        if created:
            logger.info("Administrator %s created.", settings.BOOTSTRAP_ADMIN_EMAIL)
        else:
            logger.info("Administrator %s already exists.", settings.BOOTSTRAP_ADMIN_EMAIL)
        return True
    except asyncpg.PostgresError as e:
        logger.error("Database error: %s", e)
        return False
    finally:
        await conn.close()


if __name__ == "__main__":
    sys.exit(0 if asyncio.run(seed_database()) else 1)
