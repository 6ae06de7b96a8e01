"""Command-line interface for the lending risk core."""
from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import sys
from typing import Any

from .clock import CounterClock
from .config import load_config
from .errors import RiskError
from .interfaces.store import META
from .logging_setup import configure_logging
from .models import Caller
from .services import AlertService, RiskEngine
from .services.alerts import build_notifiers
from .storage import FileStore

CLOCK_KEY = "clock"


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="lending-risk",
        description="Risk assessment and protocol monitoring for collateralized lending",
    )
    parser.add_argument(
        "--config",
        default=None,
        help="Path to config.yaml (default: config.yaml in project root)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: INFO)",
    )
    parser.add_argument(
        "--state",
        default=None,
        help="Path to the JSON state file (overrides storage.path)",
    )

    sub = parser.add_subparsers(dest="command")

    register = sub.add_parser("register", help="Register (or reset) a borrower")
    register.add_argument("borrower")
    register.add_argument("--caller", required=True, help="Caller identity")

    update = sub.add_parser("update-asset", help="Publish an asset price snapshot")
    update.add_argument("symbol")
    update.add_argument("price", type=int)
    update.add_argument("volatility", type=int)
    update.add_argument("--caller", required=True, help="Caller identity")

    assess = sub.add_parser("assess", help="Assess and record a borrowing position")
    assess.add_argument("borrower")
    assess.add_argument("symbol")
    assess.add_argument("borrow_amount", type=int)
    assess.add_argument("collateral_amount", type=int)

    monitor = sub.add_parser("monitor", help="Run one protocol monitoring cycle")
    monitor.add_argument("--no-liquidation", action="store_true")
    monitor.add_argument("--no-stress", action="store_true")
    monitor.add_argument("--no-correlation", action="store_true")
    monitor.add_argument("--intensity", type=int, default=1)

    watch = sub.add_parser("watch", help="Continuous monitoring loop")
    watch.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Check interval in minutes (overrides config)",
    )

    return parser


def _print_json(obj: Any) -> None:
    print(json.dumps(dataclasses.asdict(obj), indent=2, sort_keys=True))


def _advance_clock(store: FileStore, clock: CounterClock) -> None:
    """Tick past the newest persisted time; other processes share the file."""
    with store.transaction() as txn:
        persisted = txn.get(META, CLOCK_KEY) or 0
        if persisted > clock.now():
            clock.tick(persisted - clock.now())
        txn.put(META, CLOCK_KEY, clock.tick())


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    store = FileStore(args.state or config.storage.path)
    clock = CounterClock(store.get(META, CLOCK_KEY) or 0)
    engine = RiskEngine(config, store=store, clock=clock)

    if args.command == "register":
        _print_json(engine.register_borrower(Caller(args.caller), args.borrower))
    elif args.command == "update-asset":
        _print_json(
            engine.update_asset_price(
                Caller(args.caller), args.symbol, args.price, args.volatility
            )
        )
    elif args.command == "assess":
        _print_json(
            engine.assess_borrowing_risk(
                args.borrower, args.symbol, args.borrow_amount, args.collateral_amount
            )
        )
    elif args.command == "monitor":
        report = engine.monitor.run(
            enable_liquidation_detection=not args.no_liquidation,
            enable_stress_testing=not args.no_stress,
            enable_correlation_analysis=not args.no_correlation,
            monitoring_intensity=args.intensity,
        )
        _print_json(report)
        await AlertService(build_notifiers(config.notifications)).publish(report)
    elif args.command == "watch":
        alerts = AlertService(build_notifiers(config.notifications))
        interval = args.interval or config.monitor.check_interval_minutes
        await alerts.run_continuous(
            engine, interval, advance_clock=lambda: _advance_clock(store, clock)
        )
    else:
        build_parser().print_help()
        sys.exit(1)

    _advance_clock(store, clock)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    try:
        asyncio.run(_run(args))
    except RiskError as e:
        print(f"error: {e.kind}: {e.message}", file=sys.stderr)
        sys.exit(2)
