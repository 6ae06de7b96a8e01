"""Report formatting and notification dispatch for monitoring cycles."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from datetime import datetime, timezone

from ..config import NotificationsConfig
from ..interfaces.notifier import Notifier
from ..models import HealthStatus, MonitoringReport
from ..notifications import EmailNotifier, TelegramNotifier
from .engine import RiskEngine

logger = logging.getLogger(__name__)

_STATUS_LABELS = {
    HealthStatus.HEALTHY: "✅ Healthy",
    HealthStatus.WARNING: "⚠️ WARNING",
    HealthStatus.CRITICAL: "🚨 CRITICAL",
}

_ACTION_LABELS = {
    "emergency_mode_trigger": "Emergency mode trigger",
    "liquidation_bot_activation": "Activate liquidation bots",
    "reserve_rebalancing_needed": "Rebalance reserves",
    "risk_parameter_adjustment": "Adjust risk parameters",
    "market_maker_incentive_needed": "Add market-maker incentives",
}

_RECOMMENDATION_LABELS = {
    "diversify_collateral": "Diversify collateral",
    "increase_liquidation_incentives": "Increase liquidation incentives",
    "strengthen_oracle_redundancy": "Strengthen oracle redundancy",
    "strengthen_correlation_monitoring": "Strengthen correlation monitoring",
    "prepare_emergency_procedures": "Prepare emergency procedures",
}


def build_notifiers(config: NotificationsConfig) -> list[Notifier]:
    notifiers: list[Notifier] = []
    if config.telegram.enabled:
        notifiers.append(TelegramNotifier(config.telegram))
    if config.email.enabled:
        notifiers.append(EmailNotifier(config.email))
    return notifiers


class AlertService:
    """Turns monitoring reports into log messages and alerts."""

    def __init__(self, notifiers: list[Notifier]) -> None:
        self._notifiers = notifiers

    # ------------------------------------------------------------------
    # Formatting helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _now_str() -> str:
        return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

    @staticmethod
    def _raised_flags(flags: object, labels: dict[str, str]) -> list[str]:
        return [label for name, label in labels.items() if getattr(flags, name)]

    def build_log_message(self, report: MonitoringReport) -> str:
        summary = report.summary
        systemic = report.systemic
        lines = [
            f"📊 Protocol risk · t={report.timestamp}",
            "",
            _STATUS_LABELS[summary.status],
            "",
            f"TVL: ${systemic.total_value_locked:,.2f}",
            f"Aggregate LTV: {systemic.aggregate_ltv:.2f}% · "
            f"Utilization: {systemic.utilization_rate:.2f}%",
            f"Concentration: {systemic.collateral_concentration:.2f}% · "
            f"Reserve adequacy: {systemic.reserve_adequacy_ratio:.2f}%",
        ]
        if report.liquidation is not None:
            lines.append(
                f"At-risk positions: {report.liquidation.at_risk_positions} · "
                f"Cascade: {report.liquidation.cascade_probability:.2f}%"
            )
        if report.stress is not None:
            lines.append(f"Crash survival: {report.stress.survival_rate:.2f}%")
        if report.correlation is not None:
            lines.append(f"Contagion: {report.correlation.contagion_risk_score:.2f}")
        lines += [
            f"Risk score: {summary.protocol_risk_level} · "
            f"Next cycle: t={summary.next_cycle_time}",
            "",
            f"{self._now_str()} UTC",
        ]
        return "\n".join(lines)

    def build_alert(self, report: MonitoringReport) -> str:
        summary = report.summary
        actions = self._raised_flags(report.actions, _ACTION_LABELS)
        recommendations = self._raised_flags(
            report.recommendations, _RECOMMENDATION_LABELS
        )
        headline = (
            f"🚨 EMERGENCY MODE · risk score {summary.protocol_risk_level}"
            if report.emergency_mode
            else f"⚠️ Risk level {summary.protocol_risk_level}"
        )
        lines = [
            headline,
            "",
            f"Aggregate LTV: {report.systemic.aggregate_ltv:.2f}%",
            "",
            "Automated actions:",
        ]
        lines += [f"  • {a}" for a in actions] or ["  none"]
        lines += ["", "Recommendations:"]
        lines += [f"  • {r}" for r in recommendations] or ["  none"]
        lines += ["", f"{self._now_str()} UTC"]
        return "\n".join(lines)

    # ------------------------------------------------------------------
    # Notification dispatch
    # ------------------------------------------------------------------

    async def _send_log(self, message: str, silent: bool = True) -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_log(message, silent=silent)
            except Exception as e:
                logger.error("Notifier send_log failed: %s", e)

    async def _send_alert(self, message: str, subject: str = "") -> None:
        for notifier in self._notifiers:
            try:
                await notifier.send_alert(message, subject=subject)
            except Exception as e:
                logger.error("Notifier send_alert failed: %s", e)

    async def publish(self, report: MonitoringReport) -> None:
        """Send the cycle log, plus an alert when the protocol is not healthy."""
        await self._send_log(self.build_log_message(report), silent=True)

        if report.emergency_mode or report.summary.emergency_actions_needed:
            await self._send_alert(
                self.build_alert(report), subject="🚨 CRITICAL: Protocol emergency"
            )
        elif report.summary.status is HealthStatus.WARNING:
            await self._send_alert(
                self.build_alert(report), subject="⚠️ WARNING: Elevated protocol risk"
            )

    async def run_continuous(
        self,
        engine: RiskEngine,
        interval_minutes: int,
        advance_clock: Callable[[], object] | None = None,
    ) -> None:
        """Run monitoring cycles forever, publishing each report."""
        logger.info(
            "Starting continuous monitoring (every %d minutes)", interval_minutes
        )

        while True:
            try:
                report = engine.monitor.run()
                await self.publish(report)
                if advance_clock is not None:
                    advance_clock()
                await asyncio.sleep(interval_minutes * 60)
            except Exception as e:
                logger.error("Error in monitoring loop: %s", e)
                await asyncio.sleep(60)
