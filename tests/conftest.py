"""Shared test fixtures and sample data."""
from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from lending_risk.analytics import ProtocolSnapshot
from lending_risk.clock import CounterClock
from lending_risk.config import AppConfig, MonitorConfig
from lending_risk.interfaces.store import POSITIONS
from lending_risk.models import Caller, CollateralAsset, LendingPosition
from lending_risk.services import RiskEngine
from lending_risk.services.risk_scorer import health_factor, ltv_ratio
from lending_risk.storage import MemoryStore

OWNER = "owner"


def make_position(
    borrower: str, symbol: str, borrowed: int, collateral: int, created_at: int = 0
) -> LendingPosition:
    """Build a position with derived LTV/health factor, bypassing admission gates."""
    return LendingPosition(
        borrower=borrower,
        symbol=symbol,
        borrowed_amount=borrowed,
        collateral_amount=collateral,
        ltv_ratio=ltv_ratio(borrowed, collateral),
        health_factor=health_factor(collateral, borrowed),
        created_at=created_at,
    )


def make_asset(symbol: str, price: int, volatility: int, last_update: int = 0) -> CollateralAsset:
    return CollateralAsset(
        symbol=symbol,
        price=price,
        volatility=volatility,
        liquidity_score=80,
        risk_weight=150 if volatility > 30 else 100,
        last_update=last_update,
    )


def seed_positions(store: MemoryStore, *positions: LendingPosition) -> None:
    with store.transaction() as txn:
        for position in positions:
            txn.put(POSITIONS, position.key, position)


# ---------------------------------------------------------------------------
# Config / engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def owner() -> Caller:
    return Caller(OWNER)


@pytest.fixture()
def stranger() -> Caller:
    return Caller("mallory")


@pytest.fixture()
def app_config() -> AppConfig:
    return AppConfig(owner=OWNER)


@pytest.fixture()
def hysteresis_config() -> AppConfig:
    return AppConfig(owner=OWNER, monitor=MonitorConfig(emergency_exit_margin=10))


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def clock() -> CounterClock:
    return CounterClock()


@pytest.fixture()
def engine(app_config: AppConfig, store: MemoryStore, clock: CounterClock) -> RiskEngine:
    return RiskEngine(app_config, store=store, clock=clock)


# ---------------------------------------------------------------------------
# Snapshot fixture
# ---------------------------------------------------------------------------
#
# alice/ETH  borrow 10  collateral 2000  hf 235   value 4000
# bob/BTC    borrow 100 collateral 1000  hf 11    value 3000  (near liquidation)
# alice/BTC  borrow 5   collateral 1000  hf 235   value 3000


@pytest.fixture()
def sample_positions() -> tuple[LendingPosition, ...]:
    return (
        make_position("alice", "ETH", 10, 2000),
        make_position("bob", "BTC", 100, 1000),
        make_position("alice", "BTC", 5, 1000),
    )


@pytest.fixture()
def sample_assets() -> dict[str, CollateralAsset]:
    return {
        "ETH": make_asset("ETH", price=2, volatility=10),
        "BTC": make_asset("BTC", price=3, volatility=20),
    }


@pytest.fixture()
def sample_snapshot(sample_positions, sample_assets) -> ProtocolSnapshot:
    return ProtocolSnapshot(now=10, positions=sample_positions, assets=sample_assets)


@pytest.fixture()
def empty_snapshot() -> ProtocolSnapshot:
    return ProtocolSnapshot(now=0)


# ---------------------------------------------------------------------------
# Config YAML fixture
# ---------------------------------------------------------------------------

SAMPLE_YAML = textwrap.dedent("""\
    owner: "owner"
    risk:
      max_ltv_ratio: 80
      liquidation_threshold: 85
      volatility_limit: 30
      high_risk_threshold: 75
    monitor:
      cycle_interval: 144
      check_interval_minutes: 5
      emergency_exit_margin: 5
    liquidation:
      liquidation_bonus: 7
    stress:
      severe_crash_pct: 40
    storage:
      path: "state.json"
    notifications:
      telegram:
        enabled: true
        alert_bot_token: "tok1"
        log_bot_token: "tok2"
        chat_id: 999
      email:
        enabled: false
""")


@pytest.fixture()
def sample_yaml_path(tmp_path: Path) -> Path:
    cfg_file = tmp_path / "config.yaml"
    cfg_file.write_text(SAMPLE_YAML)
    return cfg_file


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def position_factory():
    return make_position


@pytest.fixture()
def asset_factory():
    return make_asset


@pytest.fixture()
def seed(store: MemoryStore):
    """Write positions straight into the ledger table of ``store``."""

    def _seed(*positions: LendingPosition) -> None:
        seed_positions(store, *positions)

    return _seed
