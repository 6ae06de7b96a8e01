"""Configuration loader: reads config.yaml, interpolates env vars, validates."""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Frozen config dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RiskParametersConfig:
    max_ltv_ratio: int = 80
    liquidation_threshold: int = 85
    volatility_limit: int = 30
    high_risk_threshold: int = 75
    min_health_factor: int = 100
    default_credit_score: int = 50
    default_volatility_risk: int = 50
    default_liquidity_score: int = 80
    neutral_risk_weight: int = 100
    penalized_risk_weight: int = 150
    default_penalty: int = 10


@dataclass(frozen=True)
class MonitorConfig:
    cycle_interval: int = 144
    check_interval_minutes: int = 15
    warning_risk_level: int = 50
    emergency_exit_margin: int = 0
    liquidation_proximity_band: int = 120
    at_risk_bot_trigger: int = 20
    reserve_adequacy_floor: int = 120
    utilization_ceiling: int = 75
    market_depth_floor: int = 70
    concentration_ceiling: int = 40
    incentive_adequacy_floor: int = 80
    oracle_contingency_floor: int = 85
    correlation_ceiling: int = 60
    cascade_ceiling: int = 25


@dataclass(frozen=True)
class LiquidationConfig:
    liquidator_capacity: int = 1_000_000
    liquidator_batch_size: int = 20
    liquidation_bonus: int = 5


@dataclass(frozen=True)
class StressConfig:
    severe_crash_pct: int = 50
    flash_crash_pct: int = 20
    liquidity_shock_pct: int = 30
    liquidity_floor: int = 50
    regulatory_ltv_cut: int = 10
    tail_sigma: int = 3
    oracle_staleness_limit: int = 720


@dataclass(frozen=True)
class StorageConfig:
    path: str = "state.json"


@dataclass(frozen=True)
class TelegramConfig:
    enabled: bool = False
    alert_bot_token: str = ""
    log_bot_token: str = ""
    chat_id: str = ""


@dataclass(frozen=True)
class EmailConfig:
    enabled: bool = False
    alert_email: str = ""
    smtp_server: str = "smtp.gmail.com"
    smtp_port: int = 587
    sender_email: str = ""
    sender_password: str = ""


@dataclass(frozen=True)
class NotificationsConfig:
    telegram: TelegramConfig = field(default_factory=TelegramConfig)
    email: EmailConfig = field(default_factory=EmailConfig)


@dataclass(frozen=True)
class AppConfig:
    owner: str = ""
    risk: RiskParametersConfig = field(default_factory=RiskParametersConfig)
    monitor: MonitorConfig = field(default_factory=MonitorConfig)
    liquidation: LiquidationConfig = field(default_factory=LiquidationConfig)
    stress: StressConfig = field(default_factory=StressConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    notifications: NotificationsConfig = field(default_factory=NotificationsConfig)


# ---------------------------------------------------------------------------
# Env interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_RE = re.compile(r"\$\{([^}]+)}")


def _interpolate_env(value: Any) -> Any:
    """Recursively replace ${VAR} references with environment variable values."""
    if isinstance(value, str):
        return _ENV_VAR_RE.sub(lambda m: os.environ.get(m.group(1), ""), value)
    if isinstance(value, dict):
        return {k: _interpolate_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_interpolate_env(item) for item in value]
    return value


# ---------------------------------------------------------------------------
# YAML → dataclass builders
# ---------------------------------------------------------------------------


def _build_int_section(cls: type, raw: dict[str, Any]) -> Any:
    """Build an all-int section, rejecting keys the dataclass does not know."""
    known = {f.name for f in fields(cls)}
    unknown = set(raw) - known
    if unknown:
        raise ValueError(
            f"Unknown key(s) in '{cls.__name__}': {', '.join(sorted(unknown))}"
        )
    return cls(**{k: int(v) for k, v in raw.items()})


def _build_storage(raw: dict[str, Any]) -> StorageConfig:
    return StorageConfig(path=str(raw.get("path", StorageConfig.path)))


def _build_notifications(raw: dict[str, Any]) -> NotificationsConfig:
    tg = raw.get("telegram") or {}
    em = raw.get("email") or {}
    return NotificationsConfig(
        telegram=TelegramConfig(
            enabled=bool(tg.get("enabled", False)),
            alert_bot_token=tg.get("alert_bot_token", ""),
            log_bot_token=tg.get("log_bot_token", ""),
            chat_id=str(tg.get("chat_id", "")),
        ),
        email=EmailConfig(
            enabled=bool(em.get("enabled", False)),
            alert_email=em.get("alert_email", ""),
            smtp_server=em.get("smtp_server", "smtp.gmail.com"),
            smtp_port=int(em.get("smtp_port", 587)),
            sender_email=em.get("sender_email", ""),
            sender_password=em.get("sender_password", ""),
        ),
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def load_config(config_path: str | Path | None = None) -> AppConfig:
    """Load and validate application configuration from YAML + .env.

    Args:
        config_path: Path to config.yaml. Defaults to ``config.yaml`` in the
            project root (one level up from this package).
    """
    load_dotenv()

    if config_path is None:
        config_path = Path(__file__).resolve().parent.parent / "config.yaml"
    config_path = Path(config_path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    raw = _interpolate_env(raw)

    cfg = AppConfig(
        owner=str(raw.get("owner", "")),
        risk=_build_int_section(RiskParametersConfig, raw.get("risk") or {}),
        monitor=_build_int_section(MonitorConfig, raw.get("monitor") or {}),
        liquidation=_build_int_section(LiquidationConfig, raw.get("liquidation") or {}),
        stress=_build_int_section(StressConfig, raw.get("stress") or {}),
        storage=_build_storage(raw.get("storage") or {}),
        notifications=_build_notifications(raw.get("notifications") or {}),
    )

    validate(cfg)
    logger.info("Configuration loaded from %s", config_path)
    return cfg


def validate(cfg: AppConfig) -> None:
    """Raise on invalid configuration."""
    if not cfg.owner:
        raise ValueError("An owner identity must be configured")

    risk = cfg.risk
    if not 0 < risk.max_ltv_ratio <= 100:
        raise ValueError(f"max_ltv_ratio must be in (0, 100], got {risk.max_ltv_ratio}")
    if risk.liquidation_threshold <= 0:
        raise ValueError("liquidation_threshold must be positive")
    if cfg.monitor.cycle_interval <= 0:
        raise ValueError("cycle_interval must be positive")
    if cfg.monitor.emergency_exit_margin < 0:
        raise ValueError("emergency_exit_margin must not be negative")

    for name in ("severe_crash_pct", "flash_crash_pct", "liquidity_shock_pct"):
        pct = getattr(cfg.stress, name)
        if not 0 <= pct <= 100:
            raise ValueError(f"{name} must be within [0, 100], got {pct}")
