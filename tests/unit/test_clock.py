"""Unit tests for the logical clock."""
from __future__ import annotations

import pytest

from lending_risk.clock import CounterClock


class TestCounterClock:
    def test_starts_at_given_height(self) -> None:
        assert CounterClock(7).now() == 7

    def test_tick_advances(self) -> None:
        clock = CounterClock()
        assert clock.tick() == 1
        assert clock.tick(5) == 6
        assert clock.now() == 6

    def test_cannot_move_backwards(self) -> None:
        with pytest.raises(ValueError):
            CounterClock().tick(-1)

    def test_negative_start_rejected(self) -> None:
        with pytest.raises(ValueError):
            CounterClock(-3)
