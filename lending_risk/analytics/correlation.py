"""Cross-asset correlation and contagion estimates.

Only the latest snapshot per asset is stored, so correlation is proxied by
how close two assets' volatilities are: assets in the same volatility regime
are assumed to move together under stress.
"""
from __future__ import annotations

from collections import defaultdict
from itertools import combinations

from ..config import RiskParametersConfig, StressConfig
from ..models import CollateralAsset, CorrelationRiskMatrix
from .liquidation import LIQUIDATION_LINE
from .snapshot import ProtocolSnapshot, clamp, herfindahl, safe_pct, shocked_health_factor
from .systemic import collateral_concentration

VOLATILITY_BUCKET_WIDTH = 10


def pair_correlation(a: CollateralAsset, b: CollateralAsset) -> float:
    """Volatility-proximity correlation proxy in [0, 100]."""
    high = max(a.volatility, b.volatility)
    if high == 0:
        return 100.0
    return 100.0 - abs(a.volatility - b.volatility) * 100.0 / high


def average_correlation(assets: list[CollateralAsset]) -> float:
    if not assets:
        return 0.0
    if len(assets) == 1:
        return 100.0
    pairs = [pair_correlation(a, b) for a, b in combinations(assets, 2)]
    return sum(pairs) / len(pairs)


def weighted_volatility(snapshot: ProtocolSnapshot) -> float:
    values = snapshot.value_by_asset()
    total = sum(values.values())
    if total <= 0:
        return 0.0
    return sum(
        snapshot.assets[s].volatility * v for s, v in values.items() if s in snapshot.assets
    ) / total


def volatility_clustering(snapshot: ProtocolSnapshot) -> float:
    """Largest share of locked value falling in one volatility bucket."""
    buckets: dict[int, float] = defaultdict(float)
    for symbol, value in snapshot.value_by_asset().items():
        asset = snapshot.assets.get(symbol)
        if asset is not None:
            buckets[asset.volatility // VOLATILITY_BUCKET_WIDTH] += value
    total = sum(buckets.values())
    return safe_pct(max(buckets.values(), default=0.0), total)


def cross_collateral_dependency(snapshot: ProtocolSnapshot) -> float:
    assets_by_borrower: dict[str, set[str]] = defaultdict(set)
    for position in snapshot.positions:
        assets_by_borrower[position.borrower].add(position.symbol)
    multi = sum(1 for held in assets_by_borrower.values() if len(held) > 1)
    return safe_pct(multi, len(assets_by_borrower))


def tail_risk_exposure(snapshot: ProtocolSnapshot, tail_sigma: int) -> float:
    """Percent of debt liquidated by a ``tail_sigma`` x volatility move."""
    failing = 0
    for position in snapshot.positions:
        asset = snapshot.assets.get(position.symbol)
        move = asset.volatility * tail_sigma if asset is not None else 100
        if shocked_health_factor(position.health_factor, move) <= LIQUIDATION_LINE:
            failing += position.borrowed_amount
    return safe_pct(failing, snapshot.total_borrowed)


def compute_correlation_matrix(
    snapshot: ProtocolSnapshot,
    params: RiskParametersConfig,
    stress: StressConfig,
) -> CorrelationRiskMatrix:
    held = snapshot.collateral_assets()
    correlation = average_correlation(held)
    concentration = collateral_concentration(snapshot)

    values = snapshot.value_by_asset()
    volatile_share = safe_pct(
        sum(
            v for s, v in values.items()
            if s in snapshot.assets and snapshot.assets[s].volatility > params.volatility_limit
        ),
        sum(values.values()),
    )
    spread = 100.0 - herfindahl(values) if values else 0.0

    return CorrelationRiskMatrix(
        average_correlation=correlation,
        contagion_risk_score=correlation * concentration / 100.0,
        diversification_effectiveness=spread * (100.0 - correlation) / 100.0,
        systemic_shock_propagation=volatile_share * correlation / 100.0,
        cross_collateral_dependency=cross_collateral_dependency(snapshot),
        market_regime_stability=clamp(100.0 - weighted_volatility(snapshot)),
        volatility_clustering_risk=volatility_clustering(snapshot),
        tail_risk_exposure=tail_risk_exposure(snapshot, stress.tail_sigma),
    )
