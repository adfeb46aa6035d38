"""
Refresh cooldown policies.

Gate how often one caller session may start a new resolution, to keep a
tap-happy user from hammering upstream rate limits.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable


class SessionCooldownPolicy:
    """
    Allow at most one resolution per ``cooldown_seconds`` per session.

    Only allowed calls start a new cooldown window; denied calls do not
    extend it.

    Example:
        policy = SessionCooldownPolicy(cooldown_seconds=10)
        policy.allow("tab-1")      # True
        policy.allow("tab-1")      # False
        policy.remaining("tab-1")  # ~10.0
    """

    def __init__(
        self,
        cooldown_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if cooldown_seconds < 0:
            raise ValueError(f"cooldown_seconds must not be negative, got {cooldown_seconds}")
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._last_allowed: dict[str, float] = {}
        self._lock = threading.Lock()

    @property
    def cooldown_seconds(self) -> float:
        return self._cooldown

    def allow(self, session_id: str) -> bool:
        """Record and allow a call, or deny it while the session cools down."""
        with self._lock:
            now = self._clock()
            last = self._last_allowed.get(session_id)
            if last is not None and now - last < self._cooldown:
                return False
            self._last_allowed[session_id] = now
            return True

    def remaining(self, session_id: str) -> float:
        """Seconds until ``session_id`` may call again (0.0 when it may now)."""
        with self._lock:
            last = self._last_allowed.get(session_id)
            if last is None:
                return 0.0
            return max(0.0, self._cooldown - (self._clock() - last))

    def reset(self, session_id: str | None = None) -> None:
        """Forget one session, or all of them."""
        with self._lock:
            if session_id is None:
                self._last_allowed.clear()
            else:
                self._last_allowed.pop(session_id, None)


class AllowAllCooldownPolicy:
    """Policy that never denies a call."""

    def allow(self, session_id: str) -> bool:
        return True

    def remaining(self, session_id: str) -> float:
        return 0.0
