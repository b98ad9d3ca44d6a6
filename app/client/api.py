# app/client/api.py

"""
Thin async HTTP client for the workforce API, used by front-end style
consumers (session monitor, auth state, scripts).
"""

from typing import Any, Dict, Optional

import httpx

API_PREFIX = "/api/v1"


class ClientError(Exception):
    def __init__(self, status_code: int, message: str, details: Any = None):
        super().__init__(f"{status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.details = details


class WorkforceClient:
    def __init__(
        self,
        base_url: str,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0,
    ):
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "WorkforceClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ---------------------------------------------------------
    # internal
    # ---------------------------------------------------------
    async def _request(
        self,
        method: str,
        path: str,
        access_token: Optional[str] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        headers = {"Authorization": f"Bearer {access_token}"} if access_token else {}
        response = await self._http.request(method, API_PREFIX + path, json=json, headers=headers)

        try:
            body = response.json()
        except ValueError:
            body = {}

        if response.is_error:
            error = body if isinstance(body, dict) else {}
            raise ClientError(
                response.status_code,
                error.get("error") or response.reason_phrase,
                error.get("details"),
            )
        return body

    # ---------------------------------------------------------
    # auth
    # ---------------------------------------------------------
    async def login(self, email: str, password: str) -> Dict[str, Any]:
        return await self._request("POST", "/auth/login", json={"email": email, "password": password})

    async def logout(self, access_token: str) -> Dict[str, Any]:
        return await self._request("POST", "/auth/logout", access_token=access_token)

    # ---------------------------------------------------------
    # invitations
    # ---------------------------------------------------------
    async def issue_invite(self, access_token: str, invite: Dict[str, Any]) -> Dict[str, Any]:
        return await self._request("POST", "/issue-invite", access_token=access_token, json=invite)

    async def validate_invite(self, token: str) -> Dict[str, Any]:
        return await self._request("POST", "/set-password", json={"token": token, "validate_only": True})

    async def set_password(self, token: str, password: str) -> Dict[str, Any]:
        return await self._request("POST", "/set-password", json={"token": token, "password": password})

    # ---------------------------------------------------------
    # users
    # ---------------------------------------------------------
    async def list_users(self, access_token: str, pending_only: bool = False) -> Dict[str, Any]:
        path = "/users?password_set=false" if pending_only else "/users"
        return await self._request("GET", path, access_token=access_token)

    # ---------------------------------------------------------
    # settings
    # ---------------------------------------------------------
    async def get_session_timeout(self, access_token: Optional[str]) -> Dict[str, Any]:
        return await self._request("GET", "/settings/session-timeout", access_token=access_token)
