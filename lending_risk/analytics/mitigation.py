"""Mitigation flags and the protocol risk score derived from the analytic blocks."""
from __future__ import annotations

from ..config import MonitorConfig, RiskParametersConfig
from ..models import (
    AutomatedActions,
    CorrelationRiskMatrix,
    HealthStatus,
    LiquidationMonitoring,
    RiskMitigationRecommendations,
    StressTestingScenarios,
    SystemicRiskIndicators,
)
from .snapshot import clamp


def derive_automated_actions(
    systemic: SystemicRiskIndicators,
    liquidation: LiquidationMonitoring | None,
    params: RiskParametersConfig,
    monitor: MonitorConfig,
) -> AutomatedActions:
    return AutomatedActions(
        emergency_mode_trigger=systemic.aggregate_ltv > params.max_ltv_ratio,
        liquidation_bot_activation=(
            liquidation is not None
            and liquidation.at_risk_positions > monitor.at_risk_bot_trigger
        ),
        reserve_rebalancing_needed=(
            systemic.reserve_adequacy_ratio < monitor.reserve_adequacy_floor
        ),
        risk_parameter_adjustment=systemic.utilization_rate > monitor.utilization_ceiling,
        market_maker_incentive_needed=systemic.market_depth_score < monitor.market_depth_floor,
    )


def derive_recommendations(
    systemic: SystemicRiskIndicators,
    liquidation: LiquidationMonitoring | None,
    stress: StressTestingScenarios | None,
    correlation: CorrelationRiskMatrix | None,
    monitor: MonitorConfig,
) -> RiskMitigationRecommendations:
    """Flags over whichever blocks ran; a skipped block never raises a flag."""
    return RiskMitigationRecommendations(
        diversify_collateral=(
            systemic.collateral_concentration > monitor.concentration_ceiling
        ),
        increase_liquidation_incentives=(
            liquidation is not None
            and liquidation.incentive_adequacy < monitor.incentive_adequacy_floor
        ),
        strengthen_oracle_redundancy=(
            stress is not None
            and stress.oracle_failure_contingency < monitor.oracle_contingency_floor
        ),
        strengthen_correlation_monitoring=(
            correlation is not None
            and correlation.average_correlation > monitor.correlation_ceiling
        ),
        prepare_emergency_procedures=(
            liquidation is not None
            and liquidation.cascade_probability > monitor.cascade_ceiling
        ),
    )


def protocol_risk_score(
    systemic: SystemicRiskIndicators,
    liquidation: LiquidationMonitoring | None,
    correlation: CorrelationRiskMatrix | None,
) -> int:
    """Mean of the risk terms that actually ran, clamped to [0, 100]."""
    terms = [systemic.aggregate_ltv]
    if liquidation is not None:
        terms.append(liquidation.cascade_probability)
    if correlation is not None:
        terms.append(correlation.contagion_risk_score)
    return int(clamp(sum(terms) / len(terms)))


def next_emergency_mode(
    currently_emergency: bool,
    score: int,
    trigger: bool,
    params: RiskParametersConfig,
    monitor: MonitorConfig,
) -> bool:
    """NORMAL/EMERGENCY transition with an optional exit margin."""
    if score > params.high_risk_threshold or trigger:
        return True
    if currently_emergency:
        return score > params.high_risk_threshold - monitor.emergency_exit_margin
    return False


def health_status(emergency: bool, score: int, monitor: MonitorConfig) -> HealthStatus:
    if emergency:
        return HealthStatus.CRITICAL
    if score >= monitor.warning_risk_level:
        return HealthStatus.WARNING
    return HealthStatus.HEALTHY
