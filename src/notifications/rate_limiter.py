"""Sliding-window rate limiter shared by every notification category."""

from __future__ import annotations

import logging
import time
from collections import deque
from collections.abc import Callable

log = logging.getLogger(__name__)


class RateLimiter:
    """Allow at most *max_per_window* events in any rolling window.

    Only admitted events are recorded; a rejected event is dropped and does
    not push the window forward.
    """

    def __init__(self, max_per_window: int, window_sec: float = 60.0,
                 clock: Callable[[], float] = time.monotonic) -> None:
        if max_per_window < 1:
            raise ValueError("max_per_window must be >= 1")
        self.max_per_window = max_per_window
        self.window_sec = window_sec
        self._clock = clock
        self._admitted: deque[float] = deque()
        self.dropped = 0

    def _evict(self, now: float) -> None:
        while self._admitted and now - self._admitted[0] >= self.window_sec:
            self._admitted.popleft()

    @property
    def current(self) -> int:
        """Events admitted in the window ending now."""
        self._evict(self._clock())
        return len(self._admitted)

    def try_acquire(self) -> bool:
        now = self._clock()
        self._evict(now)
        if len(self._admitted) >= self.max_per_window:
            self.dropped += 1
            return False
        self._admitted.append(now)
        return True

    def reset(self) -> None:
        self._admitted.clear()
        self.dropped = 0
