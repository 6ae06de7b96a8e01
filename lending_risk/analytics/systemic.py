"""Always-on systemic indicators over every open position."""
from __future__ import annotations

from ..config import RiskParametersConfig
from ..models import HEALTH_FACTOR_MAX, SystemicRiskIndicators
from .snapshot import ProtocolSnapshot, clamp, safe_pct, shares

NEUTRAL_MARKET_DEPTH = 100.0


def aggregate_ltv(snapshot: ProtocolSnapshot) -> float:
    return safe_pct(snapshot.total_borrowed, snapshot.total_collateral)


def market_depth_score(snapshot: ProtocolSnapshot) -> float:
    """Collateral-weighted mean liquidity score.

    Falls back to the plain mean over registered assets when nothing is
    locked, and to a neutral 100 when no asset exists at all.
    """
    values = snapshot.value_by_asset()
    total = sum(values.values())
    if total > 0:
        return sum(
            snapshot.assets[symbol].liquidity_score * value
            for symbol, value in values.items()
            if symbol in snapshot.assets
        ) / total
    if snapshot.assets:
        scores = [a.liquidity_score for a in snapshot.assets.values()]
        return sum(scores) / len(scores)
    return NEUTRAL_MARKET_DEPTH


def collateral_concentration(snapshot: ProtocolSnapshot) -> float:
    """Share of locked value held by the single largest asset, in percent."""
    asset_shares = shares(snapshot.value_by_asset())
    return max(asset_shares.values(), default=0.0) * 100.0


def borrower_diversification(snapshot: ProtocolSnapshot) -> float:
    debt_shares = shares({k: float(v) for k, v in snapshot.debt_by_borrower().items()})
    if not debt_shares:
        return 0.0
    return 100.0 * (1.0 - sum(s * s for s in debt_shares.values()))


def compute_systemic_indicators(
    snapshot: ProtocolSnapshot, params: RiskParametersConfig
) -> SystemicRiskIndicators:
    borrowed = snapshot.total_borrowed
    collateral = snapshot.total_collateral
    ltv = aggregate_ltv(snapshot)
    threshold = params.liquidation_threshold

    borrow_capacity = collateral * params.max_ltv_ratio / 100.0

    return SystemicRiskIndicators(
        total_value_locked=snapshot.total_value,
        aggregate_ltv=ltv,
        liquidation_buffer_ratio=max(0.0, (threshold - ltv) * 100.0 / threshold),
        market_depth_score=market_depth_score(snapshot),
        collateral_concentration=collateral_concentration(snapshot),
        borrower_diversification=borrower_diversification(snapshot),
        utilization_rate=clamp(safe_pct(borrowed, borrow_capacity)),
        reserve_adequacy_ratio=safe_pct(
            collateral, borrowed, default=float(HEALTH_FACTOR_MAX)
        ),
    )
