"""Borrower credit scoring and admit/reject gating for lending positions."""
from __future__ import annotations

import dataclasses
import logging

from ..config import RiskParametersConfig
from ..errors import InsufficientCollateral, InvalidBorrower, MarketVolatility, RiskTooHigh
from ..interfaces.clock import LogicalClock
from ..interfaces.store import Store, Transaction
from ..models import HEALTH_FACTOR_MAX, BorrowerProfile, LendingPosition, PositionQuote
from ..registries import AssetRegistry, BorrowerRegistry, PositionLedger

logger = logging.getLogger(__name__)

# Moderate (unknown asset) risk already blocks admission.
VOLATILITY_RISK_CEILING = 50


def health_factor(collateral_value: int, borrowed_amount: int, liquidation_threshold: int = 85) -> int:
    """Collateral-to-debt ratio scaled by the liquidation threshold.

    Debt-free positions return ``HEALTH_FACTOR_MAX``. A zero collateral value
    with outstanding debt is the caller's problem; it is not special-cased.
    """
    if borrowed_amount == 0:
        return HEALTH_FACTOR_MAX
    return collateral_value * 100 // (borrowed_amount * liquidation_threshold)


def ltv_ratio(borrowed_amount: int, collateral_amount: int) -> int:
    """Integer loan-to-value percentage."""
    return borrowed_amount * 100 // collateral_amount


class RiskScorer:
    """Pure computations over the registries plus the single position write path."""

    def __init__(
        self,
        store: Store,
        clock: LogicalClock,
        params: RiskParametersConfig,
        borrowers: BorrowerRegistry,
        assets: AssetRegistry,
        positions: PositionLedger,
    ) -> None:
        self._store = store
        self._clock = clock
        self._params = params
        self._borrowers = borrowers
        self._assets = assets
        self._positions = positions

    # ------------------------------------------------------------------
    # Scores
    # ------------------------------------------------------------------

    def score_profile(self, profile: BorrowerProfile) -> int:
        utilization = 0
        if profile.collateral_value > 0:
            utilization = profile.total_borrowed * 100 // profile.collateral_value
        penalty = profile.default_history * self._params.default_penalty
        return max(0, min(100, 100 - penalty - utilization))

    def credit_score(self, borrower: str, txn: Transaction | None = None) -> int:
        """Score in [0, 100]; unregistered borrowers get the neutral default."""
        profile = self._borrowers.get(borrower, txn)
        if profile is None:
            return self._params.default_credit_score
        return self.score_profile(profile)

    def volatility_risk(self, symbol: str, txn: Transaction | None = None) -> int:
        return self._assets.volatility_risk(symbol, txn)

    def health_factor(self, collateral_value: int, borrowed_amount: int) -> int:
        return health_factor(
            collateral_value, borrowed_amount, self._params.liquidation_threshold
        )

    # ------------------------------------------------------------------
    # Admission
    # ------------------------------------------------------------------

    def assess_borrowing_risk(
        self,
        borrower: str,
        symbol: str,
        borrow_amount: int,
        collateral_amount: int,
    ) -> PositionQuote:
        """Gate a new or updated position and record it if every check passes.

        Raises:
            InvalidBorrower: empty borrower identity.
            InsufficientCollateral: no collateral, or LTV at/above the cap.
            RiskTooHigh: health factor at/below the minimum.
            MarketVolatility: the asset is volatile or unknown.
        """
        if not borrower:
            raise InvalidBorrower("Borrower identity must not be empty")
        if collateral_amount <= 0:
            raise InsufficientCollateral("Collateral amount must be positive")
        if borrow_amount < 0:
            raise ValueError("Borrow amount must not be negative")

        with self._store.transaction() as txn:
            credit = self.credit_score(borrower, txn)
            volatility = self.volatility_risk(symbol, txn)
            ltv = ltv_ratio(borrow_amount, collateral_amount)
            hf = self.health_factor(collateral_amount, borrow_amount)

            if ltv >= self._params.max_ltv_ratio:
                self._reject(borrower, symbol, "ltv", ltv)
                raise InsufficientCollateral(
                    f"LTV {ltv}% reaches the {self._params.max_ltv_ratio}% cap"
                )
            if hf <= self._params.min_health_factor:
                self._reject(borrower, symbol, "health factor", hf)
                raise RiskTooHigh(
                    f"Health factor {hf} is not above {self._params.min_health_factor}"
                )
            if volatility >= VOLATILITY_RISK_CEILING:
                self._reject(borrower, symbol, "volatility risk", volatility)
                raise MarketVolatility(f"Volatility risk {volatility} for {symbol}")

            position = LendingPosition(
                borrower=borrower,
                symbol=symbol,
                borrowed_amount=borrow_amount,
                collateral_amount=collateral_amount,
                ltv_ratio=ltv,
                health_factor=hf,
                created_at=self._clock.now(),
            )
            self._positions.stage(txn, position)
            self._refresh_exposure(txn, borrower)

        quote = PositionQuote(
            risk_score=(credit + volatility) // 2,
            ltv_ratio=ltv,
            health_factor=hf,
        )
        logger.info(
            "Position approved: %s/%s borrow=%s collateral=%s LTV=%d%% HF=%d risk=%d",
            borrower, symbol, borrow_amount, collateral_amount,
            ltv, hf, quote.risk_score,
        )
        return quote

    def _refresh_exposure(self, txn: Transaction, borrower: str) -> None:
        """Restage a registered borrower's exposure from their positions."""
        profile = self._borrowers.get(borrower, txn)
        if profile is None:
            return

        positions = self._positions.for_borrower(borrower, txn)
        max_ltv = max((p.ltv_ratio for p in positions), default=0)
        refreshed = dataclasses.replace(
            profile,
            total_borrowed=sum(p.borrowed_amount for p in positions),
            collateral_value=sum(p.collateral_amount for p in positions),
            liquidation_risk=min(100, max_ltv * 100 // self._params.liquidation_threshold),
            last_assessment=self._clock.now(),
        )
        refreshed = dataclasses.replace(refreshed, credit_score=self.score_profile(refreshed))
        self._borrowers.stage(txn, refreshed)

    @staticmethod
    def _reject(borrower: str, symbol: str, reason: str, value: int) -> None:
        logger.warning(
            "Position rejected: %s/%s failed %s check (%d)", borrower, symbol, reason, value
        )
