# app/core/config.py

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import computed_field
from typing import Optional


class Settings(BaseSettings):
    # -------------------------------------------------
    # Project
    # -------------------------------------------------
    APP_NAME: str = "Workforce Backend"
    DEBUG: bool = False
    ENVIRONMENT: str = "local"
    LOG_LEVEL: str = "INFO"

    # -------------------------------------------------
    # Database Settings
    # -------------------------------------------------
    DATABASE_HOST: str = "localhost"
    DATABASE_PORT: int = 5432
    DATABASE_USER: str = "postgres"
    DATABASE_PASSWORD: str = "postgres"
    DATABASE_NAME: str = "workforce"
    DATABASE_POOL_MIN_SIZE: int = 2
    DATABASE_POOL_SIZE: int = 10

    # -------------------------------------------------
    # Redis / Cache
    # -------------------------------------------------
    REDIS_URL: str = "redis://localhost:6379/0"

    # -------------------------------------------------
    # JWT / Auth
    # -------------------------------------------------
    JWT_SECRET_KEY: str = "CHANGE_ME_SUPER_SECRET"
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # Optional “pepper” for password hashing (extra static secret)
    PASSWORD_PEPPER: str = ""

    # -------------------------------------------------
    # Invitations
    # -------------------------------------------------
    # 24 hours for email invites; same-session setup flows use 10.
    INVITE_TOKEN_TTL_MINUTES: int = 1440
    INVITE_CLAIM_LEASE_SECONDS: int = 60
    # False = stricter variant: managers may only invite plain users
    MANAGERS_CAN_INVITE_MANAGERS: bool = True

    # -------------------------------------------------
    # Session timeout fallbacks (remote values win)
    # -------------------------------------------------
    SESSION_TIMEOUT_MINUTES: int = 15
    SESSION_WARNING_MINUTES: int = 2
    SETTINGS_CACHE_TTL_SECONDS: int = 300

    # -------------------------------------------------
    # Rate limits (requests per client IP per minute)
    # -------------------------------------------------
    RATE_LIMIT_LOGIN_PER_MINUTE: int = 10
    RATE_LIMIT_SET_PASSWORD_PER_MINUTE: int = 10

    # -------------------------------------------------
    # Email Settings (adjust or override in .env)
    # -------------------------------------------------
    SMTP_HOST: str = "localhost"
    SMTP_PORT: int = 1025
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    SMTP_USE_TLS: bool = True
    EMAILS_FROM_EMAIL: str = "noreply@workforce.local"

    # -------------------------------------------------
    # Frontend / URLs
    # -------------------------------------------------
    FRONTEND_BASE_URL: str = "http://localhost:3000"
    SET_PASSWORD_PATH: str = "/set-password"

    # -------------------------------------------------
    # First administrator (seed_db.py)
    # -------------------------------------------------
    BOOTSTRAP_ADMIN_EMAIL: Optional[str] = None
    BOOTSTRAP_ADMIN_PASSWORD: Optional[str] = None
    BOOTSTRAP_ADMIN_NAME: str = "System Administrator"

    # -------------------------------------------------
    # Pydantic Settings
    # -------------------------------------------------
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",        # ignore unknown env vars
        case_sensitive=False,
    )

    # -------------------------------------------------
    # Computed / convenience properties
    # -------------------------------------------------
    @computed_field
    @property
    def DATABASE_URL(self) -> str:  # type: ignore[override]
        """
        Convenience DSN string for libraries that want a URL.
        """
        return (
            f"postgresql://{self.DATABASE_USER}:{self.DATABASE_PASSWORD}"
            f"@{self.DATABASE_HOST}:{self.DATABASE_PORT}/{self.DATABASE_NAME}"
        )


settings = Settings()
