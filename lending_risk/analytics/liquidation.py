"""Liquidation proximity, volume prediction and cascade estimation."""
from __future__ import annotations

from collections import defaultdict

from ..config import LiquidationConfig, MonitorConfig
from ..models import LendingPosition, LiquidationMonitoring
from .snapshot import ProtocolSnapshot, clamp, safe_pct, shocked_health_factor

LIQUIDATION_LINE = 100


def at_risk_positions(
    snapshot: ProtocolSnapshot, proximity_band: int
) -> list[LendingPosition]:
    """Positions whose health factor sits inside the near-liquidation band."""
    return [p for p in snapshot.positions if p.health_factor < proximity_band]


def price_impact_by_asset(
    snapshot: ProtocolSnapshot, at_risk: list[LendingPosition]
) -> dict[str, float]:
    """Percent price drop expected from dumping the at-risk collateral.

    Impact grows with the at-risk share of an asset's locked amount and with
    the asset's illiquidity (100 - liquidity score).
    """
    totals = snapshot.amount_by_asset()
    dumped: dict[str, int] = defaultdict(int)
    for position in at_risk:
        dumped[position.symbol] += position.collateral_amount

    impacts: dict[str, float] = {}
    for symbol, amount in dumped.items():
        asset = snapshot.assets.get(symbol)
        liquidity = asset.liquidity_score if asset is not None else 0
        share = amount / totals[symbol] if totals.get(symbol) else 0.0
        impacts[symbol] = clamp(share * (100 - liquidity))
    return impacts


def cascade_probability(
    snapshot: ProtocolSnapshot,
    at_risk: list[LendingPosition],
    impacts: dict[str, float],
) -> float:
    """Share of healthy debt pushed to liquidation by the at-risk price impact."""
    at_risk_keys = {p.key for p in at_risk}
    survivors = [p for p in snapshot.positions if p.key not in at_risk_keys]
    exposed = sum(p.borrowed_amount for p in survivors)
    toppled = sum(
        p.borrowed_amount
        for p in survivors
        if shocked_health_factor(p.health_factor, impacts.get(p.symbol, 0.0))
        <= LIQUIDATION_LINE
    )
    return safe_pct(toppled, exposed)


def compute_liquidation_monitoring(
    snapshot: ProtocolSnapshot,
    monitor: MonitorConfig,
    liquidation: LiquidationConfig,
) -> LiquidationMonitoring:
    at_risk = at_risk_positions(snapshot, monitor.liquidation_proximity_band)
    impacts = price_impact_by_asset(snapshot, at_risk)
    volume = float(sum(p.borrowed_amount for p in at_risk))

    at_risk_value: dict[str, float] = defaultdict(float)
    for position in at_risk:
        at_risk_value[position.symbol] += snapshot.collateral_value(position)
    weight = sum(at_risk_value.values())
    market_impact = 0.0
    if weight > 0:
        market_impact = sum(impacts[s] * v for s, v in at_risk_value.items()) / weight

    bonus = liquidation.liquidation_bonus

    return LiquidationMonitoring(
        at_risk_positions=len(at_risk),
        predicted_liquidation_volume=volume,
        cascade_probability=cascade_probability(snapshot, at_risk, impacts),
        emergency_liquidation_capacity=clamp(
            safe_pct(liquidation.liquidator_capacity, volume, default=100.0)
        ),
        liquidator_bot_readiness=clamp(
            safe_pct(liquidation.liquidator_batch_size, len(at_risk), default=100.0)
        ),
        market_impact_assessment=market_impact,
        slippage_buffer=max(0.0, bonus - market_impact),
        incentive_adequacy=clamp(safe_pct(bonus, market_impact, default=100.0)),
    )
