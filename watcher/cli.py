"""Command-line interface for the liquidation watcher."""
from __future__ import annotations

import argparse
import asyncio
import sys

from .config import load_config
from .logging_setup import configure_logging
from .services import Watcher


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="liquidation-watcher",
        description="Lending-protocol liquidation and arbitrage watcher",
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

    sub = parser.add_subparsers(dest="command")

    sub.add_parser("run", help="Scanner, liquidator and arbitrage loops")
    sub.add_parser("scan", help="Scanner and liquidator loops only")
    sub.add_parser("arbitrage", help="Arbitrage loop only")
    sub.add_parser("check", help="One AMM/oracle price comparison, no trade")

    return parser


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    watcher = Watcher(config, record_stats=args.command != "check")

    if args.command == "run":
        await watcher.run()
    elif args.command == "scan":
        await watcher.run(arbitrage=False)
    elif args.command == "arbitrage":
        await watcher.run(scan=False, liquidate=False)
    elif args.command == "check":
        prices, delta = await watcher.check_prices()
        print(f"AMM: {prices.amm}")
        print(f"Oracle: {prices.oracle}")
        print(f"Delta: {delta}%" if delta is not None else "Delta: unavailable")
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

    asyncio.run(_run(args))
