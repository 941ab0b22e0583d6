# Copyright (c) Arche.
# SPDX-License-Identifier: MIT
"""Fixed-window rate governor.

Summary:
    Enforces a single process-wide inbound request budget (default 10 requests
    per 1-second window) so the gateway's aggregate traffic stays inside the
    provider's fair-access policy.

Semantics:
    * The first call with no open window, or after the window elapsed, opens a
      new window with ``count=1`` and is admitted.
    * Within an open window calls are admitted while ``count < limit``.
    * Otherwise the call is denied immediately; there is no queueing.

Layer:
    application/services
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

__all__ = ["DEFAULT_LIMIT", "DEFAULT_WINDOW_S", "FixedWindowRateGovernor", "RateWindow"]

DEFAULT_LIMIT = 10
DEFAULT_WINDOW_S = 1.0


@dataclass(slots=True)
class RateWindow:
    """Mutable window state (owned by the governor)."""

    started_at: float
    count: int


class FixedWindowRateGovernor:
    """Process-wide fixed-window admission counter.

    Args:
        limit: Requests admitted per window.
        window_s: Window duration in seconds.
        clock: Monotonic clock; injectable for tests.
    """

    def __init__(
        self,
        limit: int = DEFAULT_LIMIT,
        window_s: float = DEFAULT_WINDOW_S,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_s <= 0:
            raise ValueError("window_s must be > 0")
        self.limit = int(limit)
        self.window_s = float(window_s)
        self._clock = clock
        self._window: RateWindow | None = None
        self._lock = threading.Lock()

    def admit(self) -> bool:
        """Return True if the request fits in the current window."""
        with self._lock:
            now = self._clock()
            window = self._window
            if window is None or now - window.started_at >= self.window_s:
                self._window = RateWindow(started_at=now, count=1)
                return True
            if window.count < self.limit:
                window.count += 1
                return True
            return False

    def remaining(self) -> int:
        """Admissions left in the current window."""
        with self._lock:
            window = self._window
            if window is None or self._clock() - window.started_at >= self.window_s:
                return self.limit
            return max(0, self.limit - window.count)

    def retry_after(self) -> float:
        """Seconds until the current window closes (0.0 if none is open)."""
        with self._lock:
            window = self._window
            if window is None:
                return 0.0
            return max(0.0, window.started_at + self.window_s - self._clock())
