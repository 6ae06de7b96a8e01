"""Data models, all frozen (immutable)."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

HEALTH_FACTOR_MAX = 999


@dataclass(frozen=True)
class Caller:
    """Credential presented at an owner-gated entry point."""

    identity: str


@dataclass(frozen=True)
class BorrowerProfile:
    """Credit and exposure profile of a registered borrower."""

    borrower: str
    credit_score: int = 50
    total_borrowed: int = 0
    collateral_value: int = 0
    liquidation_risk: int = 0
    last_assessment: int = 0
    default_history: int = 0


@dataclass(frozen=True)
class CollateralAsset:
    """Latest oracle snapshot for a collateral asset."""

    symbol: str
    price: int
    volatility: int
    liquidity_score: int
    risk_weight: int
    last_update: int


@dataclass(frozen=True)
class LendingPosition:
    """Open position for one (borrower, asset) pair."""

    borrower: str
    symbol: str
    borrowed_amount: int
    collateral_amount: int
    ltv_ratio: int
    health_factor: int
    created_at: int

    @property
    def key(self) -> tuple[str, str]:
        return (self.borrower, self.symbol)


@dataclass(frozen=True)
class ProtocolState:
    """Protocol-wide singleton written by the monitor."""

    total_borrowed: int = 0
    total_collateral_value: int = 0
    protocol_risk_score: int = 0
    emergency_mode: bool = False
    last_monitored: int = 0


@dataclass(frozen=True)
class PositionQuote:
    """Result of an approved borrowing-risk assessment."""

    risk_score: int
    ltv_ratio: int
    health_factor: int
    approved: bool = True


# ---------------------------------------------------------------------------
# Monitoring report blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SystemicRiskIndicators:
    total_value_locked: float
    aggregate_ltv: float
    liquidation_buffer_ratio: float
    market_depth_score: float
    collateral_concentration: float
    borrower_diversification: float
    utilization_rate: float
    reserve_adequacy_ratio: float


@dataclass(frozen=True)
class LiquidationMonitoring:
    at_risk_positions: int
    predicted_liquidation_volume: float
    cascade_probability: float
    emergency_liquidation_capacity: float
    liquidator_bot_readiness: float
    market_impact_assessment: float
    slippage_buffer: float
    incentive_adequacy: float


@dataclass(frozen=True)
class StressTestingScenarios:
    survival_rate: float
    flash_crash_resilience: float
    liquidity_crisis_preparedness: float
    correlation_breakdown_impact: float
    oracle_failure_contingency: float
    governance_attack_resistance: float
    contract_risk_coverage: float
    regulatory_shock_adaptation: float


@dataclass(frozen=True)
class CorrelationRiskMatrix:
    average_correlation: float
    contagion_risk_score: float
    diversification_effectiveness: float
    systemic_shock_propagation: float
    cross_collateral_dependency: float
    market_regime_stability: float
    volatility_clustering_risk: float
    tail_risk_exposure: float


@dataclass(frozen=True)
class AutomatedActions:
    emergency_mode_trigger: bool = False
    liquidation_bot_activation: bool = False
    reserve_rebalancing_needed: bool = False
    risk_parameter_adjustment: bool = False
    market_maker_incentive_needed: bool = False


@dataclass(frozen=True)
class RiskMitigationRecommendations:
    diversify_collateral: bool = False
    increase_liquidation_incentives: bool = False
    strengthen_oracle_redundancy: bool = False
    strengthen_correlation_monitoring: bool = False
    prepare_emergency_procedures: bool = False


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    WARNING = "warning"
    CRITICAL = "critical"


@dataclass(frozen=True)
class MonitoringSummary:
    monitoring_complete: bool
    protocol_risk_level: int
    emergency_actions_needed: bool
    next_cycle_time: int
    status: HealthStatus


@dataclass(frozen=True)
class MonitoringReport:
    """Everything a single monitoring cycle produced."""

    timestamp: int
    monitoring_intensity: int
    systemic: SystemicRiskIndicators
    actions: AutomatedActions
    recommendations: RiskMitigationRecommendations
    summary: MonitoringSummary
    emergency_mode: bool
    liquidation: LiquidationMonitoring | None = None
    stress: StressTestingScenarios | None = None
    correlation: CorrelationRiskMatrix | None = None
