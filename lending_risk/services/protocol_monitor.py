"""Protocol-wide monitoring cycle: aggregates state, scores it, flags mitigations."""
from __future__ import annotations

import logging
from collections.abc import Callable

from ..analytics import (
    ProtocolSnapshot,
    compute_correlation_matrix,
    compute_liquidation_monitoring,
    compute_stress_scenarios,
    compute_systemic_indicators,
    derive_automated_actions,
    derive_recommendations,
    health_status,
    next_emergency_mode,
    protocol_risk_score,
)
from ..config import AppConfig
from ..interfaces.clock import LogicalClock
from ..interfaces.store import PROTOCOL, Store, Transaction
from ..models import MonitoringReport, MonitoringSummary, ProtocolState
from ..registries import AssetRegistry, BorrowerRegistry, PositionLedger

logger = logging.getLogger(__name__)

PROTOCOL_STATE_KEY = "state"

ReportListener = Callable[[MonitoringReport], None]


def read_protocol_state(reader: Store | Transaction) -> ProtocolState:
    return reader.get(PROTOCOL, PROTOCOL_STATE_KEY) or ProtocolState()


class ProtocolMonitor:
    """Runs monitoring cycles; the only writer of ``ProtocolState``."""

    def __init__(
        self,
        store: Store,
        clock: LogicalClock,
        config: AppConfig,
        borrowers: BorrowerRegistry,
        assets: AssetRegistry,
        positions: PositionLedger,
    ) -> None:
        self._store = store
        self._clock = clock
        self._config = config
        self._borrowers = borrowers
        self._assets = assets
        self._positions = positions
        self._listeners: list[ReportListener] = []

    def subscribe(self, listener: ReportListener) -> None:
        """Register a callback that receives every emitted report."""
        self._listeners.append(listener)

    def state(self) -> ProtocolState:
        return read_protocol_state(self._store)

    def _snapshot(self, txn: Transaction) -> ProtocolSnapshot:
        return ProtocolSnapshot(
            now=self._clock.now(),
            positions=tuple(self._positions.all(txn)),
            assets=self._assets.all(txn),
            borrowers=self._borrowers.all(txn),
        )

    def run(
        self,
        enable_liquidation_detection: bool = True,
        enable_stress_testing: bool = True,
        enable_correlation_analysis: bool = True,
        monitoring_intensity: int = 1,
    ) -> MonitoringReport:
        """Execute one monitoring cycle and persist the resulting protocol state.

        ``monitoring_intensity`` is recorded on the report but does not change
        how deep the analysis goes.
        """
        if monitoring_intensity < 1:
            logger.warning(
                "monitoring_intensity %s below 1, using 1", monitoring_intensity
            )
            monitoring_intensity = 1

        cfg = self._config
        logger.info(
            "Monitoring cycle: liquidation=%s stress=%s correlation=%s intensity=%d",
            enable_liquidation_detection, enable_stress_testing,
            enable_correlation_analysis, monitoring_intensity,
        )

        with self._store.transaction() as txn:
            snapshot = self._snapshot(txn)
            previous = read_protocol_state(txn)

            systemic = compute_systemic_indicators(snapshot, cfg.risk)
            liquidation = (
                compute_liquidation_monitoring(snapshot, cfg.monitor, cfg.liquidation)
                if enable_liquidation_detection
                else None
            )
            stress = (
                compute_stress_scenarios(snapshot, cfg.risk, cfg.stress)
                if enable_stress_testing
                else None
            )
            correlation = (
                compute_correlation_matrix(snapshot, cfg.risk, cfg.stress)
                if enable_correlation_analysis
                else None
            )

            actions = derive_automated_actions(systemic, liquidation, cfg.risk, cfg.monitor)
            recommendations = derive_recommendations(
                systemic, liquidation, stress, correlation, cfg.monitor
            )
            score = protocol_risk_score(systemic, liquidation, correlation)
            emergency = next_emergency_mode(
                previous.emergency_mode,
                score,
                actions.emergency_mode_trigger,
                cfg.risk,
                cfg.monitor,
            )

            txn.put(
                PROTOCOL,
                PROTOCOL_STATE_KEY,
                ProtocolState(
                    total_borrowed=snapshot.total_borrowed,
                    total_collateral_value=int(snapshot.total_value),
                    protocol_risk_score=score,
                    emergency_mode=emergency,
                    last_monitored=snapshot.now,
                ),
            )

        if emergency != previous.emergency_mode:
            logger.warning(
                "Protocol %s emergency mode (risk score %d, aggregate LTV %.2f%%)",
                "entered" if emergency else "left",
                score,
                systemic.aggregate_ltv,
            )

        report = MonitoringReport(
            timestamp=snapshot.now,
            monitoring_intensity=monitoring_intensity,
            systemic=systemic,
            liquidation=liquidation,
            stress=stress,
            correlation=correlation,
            actions=actions,
            recommendations=recommendations,
            emergency_mode=emergency,
            summary=MonitoringSummary(
                monitoring_complete=True,
                protocol_risk_level=score,
                emergency_actions_needed=score > cfg.risk.high_risk_threshold,
                next_cycle_time=snapshot.now + cfg.monitor.cycle_interval,
                status=health_status(emergency, score, cfg.monitor),
            ),
        )
        self._emit(report)
        return report

    def _emit(self, report: MonitoringReport) -> None:
        logger.info(
            "Monitoring report: TVL=%.2f LTV=%.2f%% risk=%d status=%s",
            report.systemic.total_value_locked,
            report.systemic.aggregate_ltv,
            report.summary.protocol_risk_level,
            report.summary.status.value,
        )
        for listener in self._listeners:
            try:
                listener(report)
            except Exception as e:
                logger.error("Monitoring report listener failed: %s", e)
