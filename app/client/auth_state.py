# app/client/auth_state.py

import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

import httpx

from app.client.api import ClientError, WorkforceClient

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"


class AuthEvent(str, Enum):
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"


Listener = Callable[[AuthEvent, "AuthState"], None]


class AuthState:
    """
    Current user + access token. Changes only through sign_in / sign_out,
    observers register with subscribe().
    """

    def __init__(self, client: WorkforceClient, navigate: Optional[Callable[[str], None]] = None):
        self.client = client
        self.navigate = navigate
        self.user: Optional[Dict[str, Any]] = None
        self.access_token: Optional[str] = None
        self._listeners: List[Listener] = []

    @property
    def is_authenticated(self) -> bool:
        return self.access_token is not None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self.unsubscribe(listener)

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: AuthEvent) -> None:
        for listener in list(self._listeners):
            listener(event, self)

    async def sign_in(self, email: str, password: str) -> Dict[str, Any]:
        body = await self.client.login(email, password)
        self.access_token = body["access_token"]
        self.user = body["user"]
        self._emit(AuthEvent.SIGNED_IN)
        return self.user

    async def sign_out(self) -> None:
        """
        Revoke the token server-side, then clear local state even if the
        revoke call failed.
        """
        token = self.access_token
        if token is None and self.user is None:
            return

        if token is not None:
            try:
                await self.client.logout(token)
            except (ClientError, httpx.HTTPError) as exc:
                logger.warning("Sign-out revoke failed, clearing local session anyway: %s", exc)

        self.access_token = None
        self.user = None
        self._emit(AuthEvent.SIGNED_OUT)

        if self.navigate is not None:
            self.navigate(LOGIN_PATH)
