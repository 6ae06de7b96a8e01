"""Risk error kinds raised by registry, scorer and engine operations."""
from __future__ import annotations


class RiskError(Exception):
    """Base class for every recoverable risk decision failure."""

    kind = "risk-error"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.kind)
        self.message = message or self.kind


class Unauthorized(RiskError):
    kind = "unauthorized"


class InvalidBorrower(RiskError):
    kind = "invalid-borrower"


class InsufficientCollateral(RiskError):
    kind = "insufficient-collateral"


class RiskTooHigh(RiskError):
    kind = "risk-too-high"


class MarketVolatility(RiskError):
    kind = "market-volatility"
