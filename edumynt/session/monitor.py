"""Proactive session refresh.

The monitor reads the access token's `exp` claim and schedules a single
refresh `lead_seconds` before it. A successful refresh re-arms the timer from
the new token; a failed one is logged and ends the chain until the next
SIGNED_IN notification.
"""
import asyncio
import time
from enum import Enum
from typing import Awaitable, Callable

import structlog
from jose import JWTError, jwt

from ..application.errors import DecodeError
from ..config import settings
from .store import AuthChangeEvent, SessionStore

logger = structlog.get_logger(__name__)


class MonitorState(str, Enum):
    IDLE = "idle"
    ARMED = "armed"


def decode_token_expiry(access_token: str) -> float:
    """Reads `exp` (epoch seconds) without verifying the signature."""
    try:
        claims = jwt.get_unverified_claims(access_token)
    except JWTError as e:
        raise DecodeError(f"Unreadable access token: {e}") from e
    exp = claims.get("exp")
    if not isinstance(exp, (int, float)):
        raise DecodeError("Access token has no exp claim")
    return float(exp)


def compute_refresh_delay(expires_at: float, now: float, lead_seconds: float = 300) -> float:
    return max(expires_at - now - lead_seconds, 0)


class SessionMonitor:
    def __init__(
        self,
        store: SessionStore,
        refresh: Callable[[], Awaitable[bool]],
        lead_seconds: float | None = None,
        clock: Callable[[], float] = time.time,
        loop: asyncio.AbstractEventLoop | None = None,
    ):
        self.store = store
        self.refresh = refresh
        self.lead_seconds = settings.SESSION_REFRESH_LEAD_SECONDS if lead_seconds is None else lead_seconds
        self.clock = clock
        self.loop = loop
        self.state = MonitorState.IDLE
        self.delay: float | None = None
        self._handle: asyncio.TimerHandle | None = None
        self._task: asyncio.Task | None = None
        self._unsubscribe: Callable[[], None] | None = None

    def start(self) -> None:
        if self._unsubscribe is None:
            self._unsubscribe = self.store.on_auth_state_change(self._on_auth_change)
        self.arm()

    def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self.cancel()
        if self._task is not None and not self._task.done():
            self._task.cancel()
        self._task = None

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self.state = MonitorState.IDLE

    def arm(self) -> float | None:
        """Schedules the next refresh from the stored session; returns the delay."""
        self.cancel()
        session = self.store.get_session()
        if session is None:
            self.delay = None
            return None
        try:
            expires_at = decode_token_expiry(session.access_token)
        except DecodeError as e:
            logger.warning("session_monitor_decode_failed", error=str(e))
            self.delay = None
            return None

        if self.loop is None:
            self.loop = asyncio.get_running_loop()
        self.delay = compute_refresh_delay(expires_at, self.clock(), self.lead_seconds)
        self._handle = self.loop.call_later(self.delay, self._fire)
        self.state = MonitorState.ARMED
        logger.info("session_refresh_scheduled", delay_seconds=round(self.delay, 1))
        return self.delay

    def _fire(self) -> None:
        self._handle = None
        self.state = MonitorState.IDLE
        self._task = self.loop.create_task(self._refresh_and_rearm())

    async def _refresh_and_rearm(self) -> None:
        try:
            ok = await self.refresh()
        except Exception:
            logger.exception("session_refresh_error")
            return
        if not ok:
            logger.error("session_refresh_failed")
            return
        logger.info("session_refreshed")
        self.arm()

    def _on_auth_change(self, event: AuthChangeEvent, session) -> None:
        if event is AuthChangeEvent.SIGNED_IN:
            self.arm()
        elif event is AuthChangeEvent.SIGNED_OUT:
            self.cancel()
