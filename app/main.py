# app/main.py

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.core.database import db
from app.core.cache import cache
from app.core.errors import register_exception_handlers

# Routers
from app.modules.auth.router import router as auth_router
from app.modules.invitations.router import router as invitations_router
from app.modules.settings.router import router as settings_router
from app.modules.users.router import router as users_router
from app.modules.audit.router import router as audit_router

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger("uvicorn")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application startup/shutdown lifecycle.
    - Connect DB pool
    - Connect Redis
    """
    logger.info("Starting %s...", settings.APP_NAME)
    await db.connect()
    await cache.connect()
    logger.info("Database and cache connections established.")
    yield
    logger.info("Shutting down %s...", settings.APP_NAME)
    await db.disconnect()
    await cache.close()
    logger.info("Database and cache connections closed.")


app = FastAPI(
    title=settings.APP_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

# CORS (tighten allow_origins in production)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)


# -------------------------------------------------------------------
# HEALTH CHECK
# -------------------------------------------------------------------
@app.get("/health", tags=["System"])
async def health_check():
    """
    Runtime liveness probe used by infra / load balancers.
    Verifies DB and Redis.
    """
    db_health = await db.ping()
    cache_health = await cache.ping()

    status_code = 200 if (db_health and cache_health) else 503

    return JSONResponse(
        status_code=status_code,
        content={
            "status": "ok" if status_code == 200 else "unhealthy",
            "components": {
                "database": "connected" if db_health else "disconnected",
                "redis": "connected" if cache_health else "disconnected",
            },
        },
    )


# -------------------------------------------------------------------
# API ROUTERS (versioned)
# -------------------------------------------------------------------
API_PREFIX = "/api/v1"

app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(invitations_router, prefix=API_PREFIX)
app.include_router(settings_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(audit_router, prefix=API_PREFIX)
