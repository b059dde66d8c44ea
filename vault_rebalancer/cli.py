"""Command-line interface for the vault rebalancer."""
from __future__ import annotations

import argparse
import asyncio
import importlib
import sys
from typing import Callable

from .config import AppConfig, load_config
from .interfaces import ConfigurationSource, Ledger
from .logging_setup import configure_logging
from .models import SchedulerState
from .services import create_keeper

LedgerFactory = Callable[[AppConfig], tuple[Ledger, ConfigurationSource]]


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="vault-rebalancer",
        description="Keeps a collateral vault between a minimum and a maximum ratio",
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
        "--ledger",
        default=None,
        metavar="MODULE:FACTORY",
        help="Callable returning (Ledger, ConfigurationSource) for a loaded config",
    )

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("tick", help="Analyse the vault once for the current block")

    run_parser = sub.add_parser("run", help="Continuous rebalancing loop")
    run_parser.add_argument(
        "interval",
        nargs="?",
        type=int,
        default=None,
        help="Tick interval in seconds (overrides config)",
    )

    return parser


def load_factory(path: str) -> LedgerFactory:
    """Resolve ``package.module:callable``.

    Raises:
        ValueError: if ``path`` is not in ``module:callable`` form or the
            attribute is not callable.
    """
    module_name, sep, attr = path.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"Ledger factory must look like 'module:callable', got {path!r}")
    module = importlib.import_module(module_name)
    factory = getattr(module, attr, None)
    if not callable(factory):
        raise ValueError(f"{path} is not callable")
    return factory


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    ledger, configuration_source = load_factory(args.ledger)(config)
    keeper = create_keeper(config, ledger, configuration_source)

    if args.command == "tick":
        await keeper.tick(SchedulerState())
    elif args.command == "run":
        interval = args.interval or config.engine.tick_interval_seconds
        await keeper.run_continuous(interval)
    else:
        build_parser().print_help()
        sys.exit(1)


def main() -> None:
    """Entry point."""
    parser = build_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)
    if not args.ledger:
        parser.error("--ledger is required to reach the ledger")

    asyncio.run(_run(args))
