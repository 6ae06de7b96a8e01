"""Unit tests for data models."""
from __future__ import annotations

import pytest

from lending_risk.models import (
    BorrowerProfile,
    HealthStatus,
    LendingPosition,
    ProtocolState,
)


class TestBorrowerProfile:
    def test_neutral_defaults(self) -> None:
        p = BorrowerProfile(borrower="alice")
        assert p.credit_score == 50
        assert p.total_borrowed == 0
        assert p.collateral_value == 0
        assert p.liquidation_risk == 0
        assert p.default_history == 0

    def test_frozen(self) -> None:
        p = BorrowerProfile(borrower="alice")
        with pytest.raises(AttributeError):
            p.credit_score = 99  # type: ignore[misc]


class TestLendingPosition:
    def test_key_is_borrower_asset_pair(self) -> None:
        p = LendingPosition(
            borrower="alice",
            symbol="STX",
            borrowed_amount=10,
            collateral_amount=2000,
            ltv_ratio=0,
            health_factor=235,
            created_at=1,
        )
        assert p.key == ("alice", "STX")

    def test_equality(self, position_factory) -> None:
        assert position_factory("a", "X", 1, 100) == position_factory("a", "X", 1, 100)


class TestProtocolState:
    def test_starts_normal(self) -> None:
        state = ProtocolState()
        assert state.emergency_mode is False
        assert state.protocol_risk_score == 0


def test_health_status_values() -> None:
    assert HealthStatus.CRITICAL.value == "critical"
    assert HealthStatus("healthy") is HealthStatus.HEALTHY
