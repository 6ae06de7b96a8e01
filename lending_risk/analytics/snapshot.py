"""Point-in-time view of the protocol plus shared aggregation helpers, no I/O."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field

from ..models import BorrowerProfile, CollateralAsset, LendingPosition


@dataclass(frozen=True)
class ProtocolSnapshot:
    """Everything one monitoring cycle reads, captured under a single lock."""

    now: int
    positions: tuple[LendingPosition, ...] = ()
    assets: dict[str, CollateralAsset] = field(default_factory=dict)
    borrowers: dict[str, BorrowerProfile] = field(default_factory=dict)

    @property
    def total_borrowed(self) -> int:
        return sum(p.borrowed_amount for p in self.positions)

    @property
    def total_collateral(self) -> int:
        return sum(p.collateral_amount for p in self.positions)

    def price(self, symbol: str) -> int:
        asset = self.assets.get(symbol)
        return asset.price if asset is not None else 0

    def collateral_value(self, position: LendingPosition) -> float:
        return float(position.collateral_amount * self.price(position.symbol))

    @property
    def total_value(self) -> float:
        return sum(self.collateral_value(p) for p in self.positions)

    def value_by_asset(self) -> dict[str, float]:
        values: dict[str, float] = defaultdict(float)
        for position in self.positions:
            values[position.symbol] += self.collateral_value(position)
        return dict(values)

    def amount_by_asset(self) -> dict[str, int]:
        amounts: dict[str, int] = defaultdict(int)
        for position in self.positions:
            amounts[position.symbol] += position.collateral_amount
        return dict(amounts)

    def debt_by_borrower(self) -> dict[str, int]:
        debts: dict[str, int] = defaultdict(int)
        for position in self.positions:
            debts[position.borrower] += position.borrowed_amount
        return dict(debts)

    def collateral_assets(self) -> list[CollateralAsset]:
        """Registered assets that currently back at least one position."""
        held = {p.symbol for p in self.positions}
        return [self.assets[s] for s in sorted(held) if s in self.assets]


def safe_pct(numerator: float, denominator: float, default: float = 0.0) -> float:
    """``numerator`` as a percentage of ``denominator``."""
    if denominator <= 0:
        return default
    return numerator * 100.0 / denominator


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def shocked_health_factor(health_factor: int, drop_pct: float) -> float:
    """Health factor after collateral loses ``drop_pct`` percent of its value."""
    return health_factor * (100.0 - clamp(drop_pct)) / 100.0


def shares(values: dict[str, float]) -> dict[str, float]:
    """Fractions of the total (0..1) keyed like ``values``."""
    total = sum(values.values())
    if total <= 0:
        return {}
    return {k: v / total for k, v in values.items()}


def herfindahl(values: dict[str, float]) -> float:
    """Herfindahl index of ``values`` in percent (100 = fully concentrated)."""
    return sum(s * s for s in shares(values).values()) * 100.0
