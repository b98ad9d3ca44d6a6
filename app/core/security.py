# app/core/security.py

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

import hashlib
from uuid import uuid4

from fastapi import Request
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.core.exceptions import AuthenticationError


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

_pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def _pepper_password(password: str) -> str:
    """
    Apply a global pepper (if configured) to the password.

    This MUST be used in both hashing and verification so they match.
    """
    pepper = getattr(settings, "PASSWORD_PEPPER", "") or ""
    return password + pepper


# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def verify_password(plain_password: str, hashed_password: Optional[str]) -> bool:
    """Return True if plain_password matches hashed_password."""
    if not hashed_password:
        return False
    try:
        return _pwd_context.verify(_pepper_password(plain_password), hashed_password)
    except ValueError:
        # Stored hash is invalid/corrupt: treat as non-match
        return False


def get_password_hash(password: str) -> str:
    """Hash a password for storing in the database."""
    return _pwd_context.hash(_pepper_password(password))


# ---------------------------------------------------------------------------
# Invite tokens
# ---------------------------------------------------------------------------

def new_invite_token() -> str:
    """128-bit random token rendered as a canonical UUID string."""
    return str(uuid4())


def mask_token(token: Optional[str]) -> str:
    """Only the first 8 characters of a token ever reach the logs."""
    if not token:
        return "MISSING"
    return f"{token[:8]}..."


# ---------------------------------------------------------------------------
# JWT helpers
# ---------------------------------------------------------------------------

def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()

    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    to_encode.update(
        {
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            "type": "access",
            "jti": str(uuid4()),
        }
    )
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_token(token: str, verify_exp: bool = True) -> Optional[Dict[str, Any]]:
    """
    Decode a JWT and optionally verify exp.

    Returns the payload dict on success, or None on failure.
    """
    try:
        return jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM],
            options={"verify_exp": verify_exp},
        )
    except JWTError:
        return None


def datetime_from_timestamp(ts: Union[int, float]) -> datetime:
    """Convert a UNIX timestamp (seconds) to timezone-aware datetime."""
    return datetime.fromtimestamp(float(ts), tz=timezone.utc)


# ---------------------------------------------------------------------------
# Authorization header helpers
# ---------------------------------------------------------------------------

def get_bearer_token(request: Request) -> str:
    """
    Extract Bearer token from Authorization header.

    This is synchronous; do *not* "await" it.
    """
    auth_header = request.headers.get("authorization")
    if not auth_header:
        raise AuthenticationError("Missing Authorization header")

    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Invalid authorization header format")

    return parts[1]


# ---------------------------------------------------------------------------
# Token hashing helpers (revocation list)
# ---------------------------------------------------------------------------

def hash_access_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()
