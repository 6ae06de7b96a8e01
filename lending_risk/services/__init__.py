"""Service modules"""
from .alerts import AlertService
from .engine import RiskEngine
from .protocol_monitor import ProtocolMonitor
from .risk_scorer import RiskScorer

__all__ = ["AlertService", "RiskEngine", "ProtocolMonitor", "RiskScorer"]
