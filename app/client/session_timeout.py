# app/client/session_timeout.py

"""
Idle-session monitor.

    IDLE -> ACTIVE -> WARNING_SHOWN -> EXPIRED

Any activity event while ACTIVE or WARNING_SHOWN re-arms both timers from
"now". Once the timeout timer fires the session is signed out and nothing
can bring it back short of a new sign-in.
"""

import asyncio
import logging
import time
from enum import Enum
from typing import Callable, Dict, List, Optional, Protocol, Tuple

import httpx

from app.client.api import ClientError, WorkforceClient
from app.client.auth_state import AuthEvent, AuthState
from app.core.config import settings
from app.modules.settings.schemas import SessionTimeoutPolicy, normalize_timeout

logger = logging.getLogger(__name__)

ACTIVITY_EVENTS: Tuple[str, ...] = (
    "mousedown",
    "mousemove",
    "keypress",
    "scroll",
    "touchstart",
    "click",
)


def default_policy() -> SessionTimeoutPolicy:
    return SessionTimeoutPolicy(
        timeout_minutes=settings.SESSION_TIMEOUT_MINUTES,
        warning_minutes=settings.SESSION_WARNING_MINUTES,
    ).normalized()


# ---------------------------------------------------------
# Remote policy
# ---------------------------------------------------------
class SessionTimeoutSettingsLoader:
    """
    Fetches the remote policy and caches it for `ttl_seconds`. A failed
    fetch returns the defaults (not cached, the next load retries).
    """

    def __init__(
        self,
        client: WorkforceClient,
        token_provider: Callable[[], Optional[str]],
        ttl_seconds: float = 300,
        defaults: Optional[SessionTimeoutPolicy] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.client = client
        self.token_provider = token_provider
        self.ttl_seconds = ttl_seconds
        self.defaults = defaults or default_policy()
        self.clock = clock
        self._cached: Optional[SessionTimeoutPolicy] = None
        self._fetched_at = 0.0

    def invalidate(self) -> None:
        self._cached = None

    async def load(self) -> SessionTimeoutPolicy:
        if self._cached is not None and self.clock() - self._fetched_at < self.ttl_seconds:
            return self._cached

        try:
            body = await self.client.get_session_timeout(self.token_provider())
            policy = SessionTimeoutPolicy(
                timeout_minutes=body["timeout_minutes"],
                warning_minutes=body["warning_minutes"],
            ).normalized()
        except (ClientError, httpx.HTTPError, KeyError, ValueError) as exc:
            logger.warning("Session timeout settings unavailable, using defaults: %s", exc)
            return self.defaults.normalized()

        self._cached = policy
        self._fetched_at = self.clock()
        return policy


# ---------------------------------------------------------
# Timers and activity
# ---------------------------------------------------------
class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    def now(self) -> float: ...

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        return self._loop or asyncio.get_running_loop()

    def now(self) -> float:
        return self.loop.time()

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return self.loop.call_later(delay, callback)


class ActivitySource(Protocol):
    def add_listener(self, event_type: str, callback: Callable[[str], None]) -> None: ...

    def remove_listener(self, event_type: str, callback: Callable[[str], None]) -> None: ...


class ActivityHub:
    """
    In-process activity source. Hosts call emit() for every user
    interaction they observe.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Callable[[str], None]]] = {}

    def add_listener(self, event_type: str, callback: Callable[[str], None]) -> None:
        self._listeners.setdefault(event_type, []).append(callback)

    def remove_listener(self, event_type: str, callback: Callable[[str], None]) -> None:
        callbacks = self._listeners.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def listener_count(self) -> int:
        return sum(len(v) for v in self._listeners.values())

    def emit(self, event_type: str) -> None:
        for callback in list(self._listeners.get(event_type, [])):
            callback(event_type)


# ---------------------------------------------------------
# Monitor
# ---------------------------------------------------------
class MonitorState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"
    WARNING_SHOWN = "warning_shown"
    EXPIRED = "expired"


class SessionTimeoutMonitor:
    def __init__(
        self,
        auth_state: AuthState,
        loader: SessionTimeoutSettingsLoader,
        scheduler: Scheduler,
        activity: ActivitySource,
        on_warning: Optional[Callable[[int], None]] = None,
        on_expired: Optional[Callable[[], None]] = None,
    ):
        self.auth_state = auth_state
        self.loader = loader
        self.scheduler = scheduler
        self.activity = activity
        self.on_warning = on_warning
        self.on_expired = on_expired

        self.state = MonitorState.IDLE
        self.policy: Optional[SessionTimeoutPolicy] = None
        self.last_activity_at: Optional[float] = None
        self.sign_out_task: Optional[asyncio.Task] = None

        self._warning_timer: Optional[TimerHandle] = None
        self._timeout_timer: Optional[TimerHandle] = None
        self._listening = False
        self._generation = 0
        self._unsubscribe = auth_state.subscribe(self._on_auth_event)

    # ---------------------------------------------------------
    # lifecycle
    # ---------------------------------------------------------
    async def start(self) -> None:
        if not self.auth_state.is_authenticated:
            return

        generation = self._generation
        policy = await self.loader.load()
        # stop() ran while the settings were loading
        if generation != self._generation or not self.auth_state.is_authenticated:
            return

        timeout, warning = normalize_timeout(policy.timeout_minutes, policy.warning_minutes)
        self.policy = SessionTimeoutPolicy(timeout_minutes=timeout, warning_minutes=warning)

        self._attach_listeners()
        self._arm()

    def stop(self) -> None:
        """
        Cancel timers and drop activity listeners. Safe to call repeatedly.
        """
        self._generation += 1
        self._cancel_timers()
        self._detach_listeners()
        if self.state is not MonitorState.EXPIRED:
            self.state = MonitorState.IDLE

    def close(self) -> None:
        self.stop()
        self._unsubscribe()

    def _on_auth_event(self, event: AuthEvent, _state: AuthState) -> None:
        if event is AuthEvent.SIGNED_OUT:
            self.stop()
        elif event is AuthEvent.SIGNED_IN:
            self.state = MonitorState.IDLE
            asyncio.get_running_loop().create_task(self.start())

    # ---------------------------------------------------------
    # activity
    # ---------------------------------------------------------
    def record_activity(self, _event_type: Optional[str] = None) -> None:
        if self.state not in (MonitorState.ACTIVE, MonitorState.WARNING_SHOWN):
            return
        self._arm()

    def time_remaining(self) -> float:
        """Seconds until forced sign-out (0 when not armed)."""
        if self.policy is None or self.last_activity_at is None:
            return 0.0
        elapsed = self.scheduler.now() - self.last_activity_at
        return max(0.0, self.policy.timeout_minutes * 60 - elapsed)

    def _attach_listeners(self) -> None:
        if self._listening:
            return
        for event_type in ACTIVITY_EVENTS:
            self.activity.add_listener(event_type, self.record_activity)
        self._listening = True

    def _detach_listeners(self) -> None:
        if not self._listening:
            return
        for event_type in ACTIVITY_EVENTS:
            self.activity.remove_listener(event_type, self.record_activity)
        self._listening = False

    # ---------------------------------------------------------
    # timers
    # ---------------------------------------------------------
    def _arm(self) -> None:
        self._cancel_timers()
        timeout = self.policy.timeout_minutes
        warning = self.policy.warning_minutes

        self.last_activity_at = self.scheduler.now()
        self.state = MonitorState.ACTIVE

        if warning > 0:
            self._warning_timer = self.scheduler.call_later((timeout - warning) * 60, self._fire_warning)
        self._timeout_timer = self.scheduler.call_later(timeout * 60, self._fire_timeout)

    def _cancel_timers(self) -> None:
        for timer in (self._warning_timer, self._timeout_timer):
            if timer is not None:
                timer.cancel()
        self._warning_timer = None
        self._timeout_timer = None

    def _fire_warning(self) -> None:
        self._warning_timer = None
        self.state = MonitorState.WARNING_SHOWN
        logger.info("Session expires in %d minute(s)", self.policy.warning_minutes)
        if self.on_warning is not None:
            self.on_warning(self.policy.warning_minutes)

    def _fire_timeout(self) -> None:
        self._timeout_timer = None
        self.state = MonitorState.EXPIRED
        self._cancel_timers()
        self._detach_listeners()

        logger.info("Session expired after inactivity, signing out")
        if self.on_expired is not None:
            self.on_expired()
        self.sign_out_task = asyncio.get_running_loop().create_task(self.auth_state.sign_out())
