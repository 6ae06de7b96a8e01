"""Collateral asset registry: latest price/volatility snapshot per symbol."""
from __future__ import annotations

import logging

from ..config import RiskParametersConfig
from ..interfaces.clock import LogicalClock
from ..interfaces.store import ASSETS, Store, Transaction
from ..models import Caller, CollateralAsset
from .access import require_owner

logger = logging.getLogger(__name__)

MAX_SYMBOL_LENGTH = 10

VOLATILITY_RISK_LOW = 0
VOLATILITY_RISK_HIGH = 100


class AssetRegistry:
    """Owner-written asset records; every update replaces the full record."""

    def __init__(
        self,
        store: Store,
        clock: LogicalClock,
        owner: str,
        params: RiskParametersConfig,
    ) -> None:
        self._store = store
        self._clock = clock
        self._owner = owner
        self._params = params

    def risk_weight(self, volatility: int) -> int:
        if volatility > self._params.volatility_limit:
            return self._params.penalized_risk_weight
        return self._params.neutral_risk_weight

    def update_asset(
        self, caller: Caller, symbol: str, price: int, volatility: int
    ) -> CollateralAsset:
        """Overwrite the asset snapshot for ``symbol``."""
        require_owner(caller, self._owner, "update_asset")

        if not symbol or len(symbol) > MAX_SYMBOL_LENGTH:
            raise ValueError(
                f"Asset symbol must be 1-{MAX_SYMBOL_LENGTH} characters, got '{symbol}'"
            )
        if price < 0 or volatility < 0:
            raise ValueError("Price and volatility must not be negative")

        asset = CollateralAsset(
            symbol=symbol,
            price=price,
            volatility=volatility,
            liquidity_score=self._params.default_liquidity_score,
            risk_weight=self.risk_weight(volatility),
            last_update=self._clock.now(),
        )
        with self._store.transaction() as txn:
            txn.put(ASSETS, symbol, asset)

        logger.info(
            "Asset %s updated: price=%s volatility=%s%% risk_weight=%s",
            symbol, price, volatility, asset.risk_weight,
        )
        return asset

    def get(self, symbol: str, txn: Transaction | None = None) -> CollateralAsset | None:
        return (txn or self._store).get(ASSETS, symbol)

    def all(self, txn: Transaction | None = None) -> dict[str, CollateralAsset]:
        return dict((txn or self._store).items(ASSETS))

    def volatility_risk(self, symbol: str, txn: Transaction | None = None) -> int:
        """Classify ``symbol`` as 0 (calm), 100 (volatile) or the unknown default."""
        asset = self.get(symbol, txn)
        if asset is None:
            return self._params.default_volatility_risk
        if asset.volatility > self._params.volatility_limit:
            return VOLATILITY_RISK_HIGH
        return VOLATILITY_RISK_LOW
