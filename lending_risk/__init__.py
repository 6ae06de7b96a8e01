"""Risk assessment core for a collateralized lending protocol."""
from .config import AppConfig, load_config
from .errors import (
    InsufficientCollateral,
    InvalidBorrower,
    MarketVolatility,
    RiskError,
    RiskTooHigh,
    Unauthorized,
)
from .models import Caller
from .services import RiskEngine

__all__ = [
    "AppConfig",
    "Caller",
    "InsufficientCollateral",
    "InvalidBorrower",
    "MarketVolatility",
    "RiskEngine",
    "RiskError",
    "RiskTooHigh",
    "Unauthorized",
    "load_config",
]
