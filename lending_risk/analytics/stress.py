"""Stress scenarios replayed against the live position book."""
from __future__ import annotations

from collections.abc import Callable

from ..config import RiskParametersConfig, StressConfig
from ..models import LendingPosition, StressTestingScenarios
from .liquidation import LIQUIDATION_LINE
from .snapshot import ProtocolSnapshot, clamp, safe_pct, shares, shocked_health_factor


def survives(position: LendingPosition, drop_pct: float) -> bool:
    return shocked_health_factor(position.health_factor, drop_pct) > LIQUIDATION_LINE


def surviving_count_pct(
    snapshot: ProtocolSnapshot, drop: Callable[[LendingPosition], float]
) -> float:
    if not snapshot.positions:
        return 100.0
    alive = sum(1 for p in snapshot.positions if survives(p, drop(p)))
    return alive * 100.0 / len(snapshot.positions)


def surviving_debt_pct(
    snapshot: ProtocolSnapshot, drop: Callable[[LendingPosition], float]
) -> float:
    total = snapshot.total_borrowed
    alive = sum(p.borrowed_amount for p in snapshot.positions if survives(p, drop(p)))
    return safe_pct(alive, total, default=100.0)


def value_pct(snapshot: ProtocolSnapshot, keep: Callable[[str], bool]) -> float:
    """Percent of locked value sitting in assets accepted by ``keep``."""
    values = snapshot.value_by_asset()
    total = sum(values.values())
    kept = sum(v for s, v in values.items() if keep(s))
    return safe_pct(kept, total, default=100.0)


def compute_stress_scenarios(
    snapshot: ProtocolSnapshot,
    params: RiskParametersConfig,
    stress: StressConfig,
) -> StressTestingScenarios:
    assets = snapshot.assets

    def own_volatility(position: LendingPosition) -> float:
        asset = assets.get(position.symbol)
        return float(asset.volatility) if asset is not None else 100.0

    def liquid_after_shock(symbol: str) -> bool:
        asset = assets.get(symbol)
        if asset is None:
            return False
        stressed = asset.liquidity_score * (100 - stress.liquidity_shock_pct) / 100.0
        return stressed >= stress.liquidity_floor

    def fresh_price(symbol: str) -> bool:
        asset = assets.get(symbol)
        if asset is None:
            return False
        return snapshot.now - asset.last_update <= stress.oracle_staleness_limit

    borrowed = snapshot.total_borrowed
    debt_shares = shares({k: float(v) for k, v in snapshot.debt_by_borrower().items()})
    largest_borrower = max(debt_shares.values(), default=0.0) * 100.0

    haircut_collateral = snapshot.total_collateral * (100 - stress.severe_crash_pct) / 100.0
    ltv_cap = params.max_ltv_ratio - stress.regulatory_ltv_cut

    if snapshot.positions:
        compliant = sum(1 for p in snapshot.positions if p.ltv_ratio < ltv_cap)
        regulatory = compliant * 100.0 / len(snapshot.positions)
    else:
        regulatory = 100.0

    return StressTestingScenarios(
        survival_rate=surviving_count_pct(snapshot, lambda p: stress.severe_crash_pct),
        flash_crash_resilience=surviving_debt_pct(snapshot, lambda p: stress.flash_crash_pct),
        liquidity_crisis_preparedness=value_pct(snapshot, liquid_after_shock),
        correlation_breakdown_impact=100.0 - surviving_debt_pct(snapshot, own_volatility),
        oracle_failure_contingency=value_pct(snapshot, fresh_price),
        governance_attack_resistance=100.0 - largest_borrower,
        contract_risk_coverage=clamp(
            safe_pct(haircut_collateral, borrowed, default=100.0)
        ),
        regulatory_shock_adaptation=regulatory,
    )
