"""Logical clock implementations."""
from __future__ import annotations

import threading


class CounterClock:
    """Block-height style counter; callers advance it between operations."""

    def __init__(self, start: int = 0) -> None:
        if start < 0:
            raise ValueError("clock start must not be negative")
        self._now = start
        self._lock = threading.Lock()

    def now(self) -> int:
        return self._now

    def tick(self, ticks: int = 1) -> int:
        """Advance the clock and return the new time."""
        if ticks < 0:
            raise ValueError("clock cannot move backwards")
        with self._lock:
            self._now += ticks
            return self._now
