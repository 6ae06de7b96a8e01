"""Pure aggregate computations behind the protocol monitor."""
from .correlation import compute_correlation_matrix
from .liquidation import compute_liquidation_monitoring
from .mitigation import (
    derive_automated_actions,
    derive_recommendations,
    health_status,
    next_emergency_mode,
    protocol_risk_score,
)
from .snapshot import ProtocolSnapshot
from .stress import compute_stress_scenarios
from .systemic import compute_systemic_indicators

__all__ = [
    "ProtocolSnapshot",
    "compute_systemic_indicators",
    "compute_liquidation_monitoring",
    "compute_stress_scenarios",
    "compute_correlation_matrix",
    "derive_automated_actions",
    "derive_recommendations",
    "protocol_risk_score",
    "next_emergency_mode",
    "health_status",
]
