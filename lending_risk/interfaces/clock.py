"""Logical clock protocol: opaque monotonically increasing time."""
from typing import Protocol


class LogicalClock(Protocol):
    """Source of timestamps; only advances between operations."""

    def now(self) -> int: ...
