# app/dependencies/auth_utils.py

"""
Utilities for extracting user identity from the access token.
Used by:
- routers (to get current user_id)
- logout (to revoke the presented token)
"""

from typing import Any, Dict
from uuid import UUID

from fastapi import Request

from app.core.exceptions import AuthenticationError
from app.core.security import decode_token, get_bearer_token
from app.modules.auth.revocation import revocation_list


async def get_current_token_payload(request: Request) -> Dict[str, Any]:
    """
    FastAPI dependency returning the decoded JWT payload.

    - read Bearer token from Authorization header
    - decode JWT (signature + exp)
    - reject tokens revoked by logout
    """
    token = get_bearer_token(request)
    payload = decode_token(token, verify_exp=True)

    if not payload or payload.get("type") != "access":
        raise AuthenticationError("Invalid token")

    if await revocation_list.is_revoked(token):
        raise AuthenticationError("Token has been revoked")

    return payload


async def get_current_user_id(request: Request) -> UUID:
    """
    FastAPI dependency to extract the user_id (sub) from the JWT.

    Example:
        async def some_route(user_id: UUID = Depends(get_current_user_id)):
            ...
    """
    payload = await get_current_token_payload(request)

    try:
        return UUID(str(payload.get("sub")))
    except ValueError:
        raise AuthenticationError("User ID missing from token")
