"""Integration tests for the risk engine: admission, monitoring and emergency state."""
from __future__ import annotations

import logging

import pytest

from lending_risk.clock import CounterClock
from lending_risk.config import AppConfig
from lending_risk.errors import RiskTooHigh
from lending_risk.models import Caller, HealthStatus, MonitoringReport
from lending_risk.services import RiskEngine
from lending_risk.storage import MemoryStore

SYSTEMIC_ONLY = dict(
    enable_liquidation_detection=False,
    enable_stress_testing=False,
    enable_correlation_analysis=False,
)


@pytest.fixture()
def hysteresis_engine(hysteresis_config: AppConfig, store: MemoryStore) -> RiskEngine:
    return RiskEngine(hysteresis_config, store=store, clock=CounterClock())


class TestBorrowingFlow:
    def test_stx_walkthrough(self, engine: RiskEngine, owner: Caller) -> None:
        """Only the smallest of three borrows against 2000 STX collateral passes."""
        engine.update_asset_price(owner, "STX", 200, 10)

        with pytest.raises(RiskTooHigh):
            engine.assess_borrowing_risk("alice", "STX", 1000, 2000)
        with pytest.raises(RiskTooHigh):
            engine.assess_borrowing_risk("alice", "STX", 100, 2000)

        quote = engine.assess_borrowing_risk("alice", "STX", 10, 2000)
        assert quote.approved
        assert quote.ltv_ratio == 0
        assert quote.health_factor == 235
        assert quote.risk_score == 25

    def test_registered_borrower_scores_higher(
        self, engine: RiskEngine, owner: Caller
    ) -> None:
        engine.update_asset_price(owner, "STX", 200, 10)
        engine.register_borrower(owner, "alice")
        quote = engine.assess_borrowing_risk("alice", "STX", 10, 2000)
        assert quote.risk_score == 50

    def test_health_factor_read(self, engine: RiskEngine) -> None:
        assert engine.health_factor(2000, 0) == 999
        assert engine.health_factor(2000, 10) == 235


class TestMonitoringCycle:
    def _build_sample_book(self, engine: RiskEngine, owner: Caller, clock) -> None:
        engine.update_asset_price(owner, "ETH", 2, 10)
        engine.update_asset_price(owner, "BTC", 3, 20)
        engine.assess_borrowing_risk("alice", "ETH", 10, 2000)
        engine.assess_borrowing_risk("alice", "BTC", 5, 1000)
        clock.tick(10)

    def test_sample_book_summary(
        self, engine: RiskEngine, owner: Caller, clock, seed, position_factory
    ) -> None:
        self._build_sample_book(engine, owner, clock)
        # Below the admission gates; written straight to the ledger.
        seed(position_factory("bob", "BTC", 100, 1000))

        summary = engine.execute_protocol_wide_risk_monitoring()

        assert summary.monitoring_complete is True
        assert summary.protocol_risk_level == 10
        assert summary.emergency_actions_needed is False
        assert summary.next_cycle_time == 10 + 144
        assert summary.status is HealthStatus.HEALTHY

        state = engine.protocol_state()
        assert state.total_borrowed == 115
        assert state.total_collateral_value == 10000
        assert state.protocol_risk_score == 10
        assert state.emergency_mode is False
        assert state.last_monitored == 10

    def test_skipped_blocks_change_the_score(
        self, engine: RiskEngine, owner: Caller, clock, seed, position_factory
    ) -> None:
        self._build_sample_book(engine, owner, clock)
        seed(position_factory("bob", "BTC", 100, 1000))

        summary = engine.execute_protocol_wide_risk_monitoring(**SYSTEMIC_ONLY)
        assert summary.protocol_risk_level == 2
        assert (
            engine.execute_protocol_wide_risk_monitoring(
                enable_liquidation_detection=False, enable_stress_testing=False
            ).protocol_risk_level
            == 16
        )

    def test_empty_protocol(self, engine: RiskEngine) -> None:
        report = engine.monitor.run(**SYSTEMIC_ONLY)
        assert report.liquidation is None
        assert report.stress is None
        assert report.correlation is None
        assert report.systemic.reserve_adequacy_ratio == 999.0
        assert report.summary.protocol_risk_level == 0
        assert report.summary.status is HealthStatus.HEALTHY

    def test_monitoring_leaves_book_untouched(
        self, engine: RiskEngine, owner: Caller, clock
    ) -> None:
        self._build_sample_book(engine, owner, clock)
        positions = engine.positions.all()
        assets = engine.assets.all()

        engine.execute_protocol_wide_risk_monitoring()

        assert engine.positions.all() == positions
        assert engine.assets.all() == assets

    def test_intensity_below_one_is_coerced(
        self, engine: RiskEngine, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.WARNING):
            report = engine.monitor.run(monitoring_intensity=0)
        assert report.monitoring_intensity == 1
        assert "monitoring_intensity" in caplog.text


class TestEmergencyMode:
    def test_high_score_enters_emergency(
        self, engine: RiskEngine, seed, position_factory
    ) -> None:
        seed(position_factory("alice", "ETH", 90, 100))
        summary = engine.execute_protocol_wide_risk_monitoring(**SYSTEMIC_ONLY)
        assert summary.protocol_risk_level == 90
        assert summary.emergency_actions_needed is True
        assert summary.status is HealthStatus.CRITICAL
        assert engine.is_emergency()

    def test_ltv_trigger_overrides_low_score(
        self, engine: RiskEngine, seed, position_factory
    ) -> None:
        # Unpriced collateral: contagion and cascade stay at 0 and dilute the score.
        seed(position_factory("alice", "ETH", 90, 100))
        report = engine.monitor.run()
        assert report.summary.protocol_risk_level == 30
        assert report.actions.emergency_mode_trigger is True
        assert report.emergency_mode is True
        assert report.summary.emergency_actions_needed is False
        assert report.summary.status is HealthStatus.CRITICAL

    def test_exits_without_margin(
        self, engine: RiskEngine, seed, position_factory
    ) -> None:
        seed(position_factory("alice", "ETH", 90, 100))
        engine.execute_protocol_wide_risk_monitoring(**SYSTEMIC_ONLY)

        seed(position_factory("alice", "ETH", 70, 100))
        summary = engine.execute_protocol_wide_risk_monitoring(**SYSTEMIC_ONLY)
        assert not engine.is_emergency()
        assert summary.status is HealthStatus.WARNING

    def test_exit_margin_holds_emergency(
        self, hysteresis_engine: RiskEngine, seed, position_factory
    ) -> None:
        seed(position_factory("alice", "ETH", 90, 100))
        hysteresis_engine.execute_protocol_wide_risk_monitoring(**SYSTEMIC_ONLY)
        assert hysteresis_engine.is_emergency()

        seed(position_factory("alice", "ETH", 70, 100))
        summary = hysteresis_engine.execute_protocol_wide_risk_monitoring(**SYSTEMIC_ONLY)
        assert hysteresis_engine.is_emergency()
        assert summary.status is HealthStatus.CRITICAL

        seed(position_factory("alice", "ETH", 60, 100))
        summary = hysteresis_engine.execute_protocol_wide_risk_monitoring(**SYSTEMIC_ONLY)
        assert not hysteresis_engine.is_emergency()
        assert summary.status is HealthStatus.WARNING

    def test_transitions_are_logged(
        self, engine: RiskEngine, seed, position_factory, caplog: pytest.LogCaptureFixture
    ) -> None:
        seed(position_factory("alice", "ETH", 90, 100))
        with caplog.at_level(logging.WARNING):
            engine.execute_protocol_wide_risk_monitoring(**SYSTEMIC_ONLY)
        assert "entered emergency mode" in caplog.text


class TestReportListeners:
    def test_listener_receives_report(self, engine: RiskEngine) -> None:
        received: list[MonitoringReport] = []
        engine.on_report(received.append)
        report = engine.monitor.run()
        assert received == [report]

    def test_failing_listener_does_not_break_cycle(
        self, engine: RiskEngine, caplog: pytest.LogCaptureFixture
    ) -> None:
        received: list[MonitoringReport] = []

        def broken(report: MonitoringReport) -> None:
            raise RuntimeError("listener down")

        engine.on_report(broken)
        engine.on_report(received.append)

        with caplog.at_level(logging.ERROR):
            summary = engine.execute_protocol_wide_risk_monitoring()

        assert summary.monitoring_complete is True
        assert len(received) == 1
        assert "listener down" in caplog.text
        assert engine.protocol_state().last_monitored == 0
