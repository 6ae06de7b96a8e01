"""Public entry points of the lending risk core, wired over one store and clock."""
from __future__ import annotations

import logging

from ..clock import CounterClock
from ..config import AppConfig
from ..interfaces.clock import LogicalClock
from ..interfaces.store import Store
from ..models import (
    BorrowerProfile,
    Caller,
    CollateralAsset,
    MonitoringSummary,
    PositionQuote,
    ProtocolState,
)
from ..registries import AssetRegistry, BorrowerRegistry, PositionLedger
from ..storage import MemoryStore
from .protocol_monitor import ProtocolMonitor, ReportListener
from .risk_scorer import RiskScorer

logger = logging.getLogger(__name__)


class RiskEngine:
    """Facade over the registries, the risk scorer and the protocol monitor."""

    def __init__(
        self,
        config: AppConfig,
        store: Store | None = None,
        clock: LogicalClock | None = None,
    ) -> None:
        self._config = config
        self.store = store if store is not None else MemoryStore()
        self.clock = clock if clock is not None else CounterClock()

        self.borrowers = BorrowerRegistry(self.store, self.clock, config.owner, config.risk)
        self.assets = AssetRegistry(self.store, self.clock, config.owner, config.risk)
        self.positions = PositionLedger(self.store)
        self.scorer = RiskScorer(
            self.store, self.clock, config.risk,
            self.borrowers, self.assets, self.positions,
        )
        self.monitor = ProtocolMonitor(
            self.store, self.clock, config,
            self.borrowers, self.assets, self.positions,
        )

    # ------------------------------------------------------------------
    # Owner-gated writes
    # ------------------------------------------------------------------

    def register_borrower(self, caller: Caller, borrower: str) -> BorrowerProfile:
        return self.borrowers.register(caller, borrower)

    def update_asset_price(
        self, caller: Caller, symbol: str, price: int, volatility: int
    ) -> CollateralAsset:
        return self.assets.update_asset(caller, symbol, price, volatility)

    # ------------------------------------------------------------------
    # Risk decisions
    # ------------------------------------------------------------------

    def assess_borrowing_risk(
        self, borrower: str, symbol: str, borrow_amount: int, collateral_amount: int
    ) -> PositionQuote:
        return self.scorer.assess_borrowing_risk(
            borrower, symbol, borrow_amount, collateral_amount
        )

    def execute_protocol_wide_risk_monitoring(
        self,
        enable_liquidation_detection: bool = True,
        enable_stress_testing: bool = True,
        enable_correlation_analysis: bool = True,
        monitoring_intensity: int = 1,
    ) -> MonitoringSummary:
        report = self.monitor.run(
            enable_liquidation_detection,
            enable_stress_testing,
            enable_correlation_analysis,
            monitoring_intensity,
        )
        return report.summary

    def on_report(self, listener: ReportListener) -> None:
        self.monitor.subscribe(listener)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def credit_score(self, borrower: str) -> int:
        return self.scorer.credit_score(borrower)

    def volatility_risk(self, symbol: str) -> int:
        return self.scorer.volatility_risk(symbol)

    def health_factor(self, collateral_value: int, borrowed_amount: int) -> int:
        return self.scorer.health_factor(collateral_value, borrowed_amount)

    def protocol_state(self) -> ProtocolState:
        return self.monitor.state()

    def is_emergency(self) -> bool:
        return self.protocol_state().emergency_mode
