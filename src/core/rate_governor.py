"""Sliding-window admission control for outgoing reactions (core domain)."""

from __future__ import annotations

from collections import deque
from typing import Deque, Optional

from core.config import RateLimitConfig


class RateGovernor:
    """Strict sliding window over admitted reaction timestamps.

    The window is recomputed from scratch on every call: entries older than
    the window are dropped, and the remaining count is compared against the
    limit. Admission and recording happen in one synchronous step so two
    callers can never both pass the check before either records.
    """

    def __init__(self, config: RateLimitConfig) -> None:
        self._window = config.window_seconds
        self._max = config.max_per_window
        self._timestamps: Deque[float] = deque()

    @property
    def max_per_window(self) -> int:
        return self._max

    def _prune(self, now: float) -> None:
        # Timestamps are appended in order, so expired entries sit at the left.
        while self._timestamps and now - self._timestamps[0] >= self._window:
            self._timestamps.popleft()

    def admit(self, now: float) -> bool:
        """Return True and record ``now`` if a reaction may be attempted."""

        self._prune(now)
        if len(self._timestamps) >= self._max:
            return False
        self._timestamps.append(now)
        return True

    def occupancy(self, now: Optional[float] = None) -> int:
        """Number of admissions inside the trailing window, without mutation."""

        if now is None:
            return len(self._timestamps)
        return sum(1 for ts in self._timestamps if now - ts < self._window)
