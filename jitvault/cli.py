"""Command-line interface for the JIT liquidity vault simulator."""
from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from .config import WAD, load_config, to_wei
from .logging_setup import configure_logging
from .services import Simulator

logger = logging.getLogger(__name__)

DEPOSITOR = "depositor"
TRADER = "trader"


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse CLI parser."""
    parser = argparse.ArgumentParser(
        prog="jit-vault",
        description="Leveraged JIT liquidity vault simulator",
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

    sub.add_parser("report", help="Show vault and pool state")
    sub.add_parser("prices", help="Fetch and show oracle answers")

    simulate_parser = sub.add_parser(
        "simulate", help="Deposit, swap through the JIT hook, then redeem"
    )
    simulate_parser.add_argument(
        "--deposit",
        default="10",
        help="Base-asset amount to deposit, in whole units (default: 10)",
    )
    simulate_parser.add_argument(
        "--swap",
        default="1",
        help="Exact-input swap amount, in whole units (default: 1)",
    )
    simulate_parser.add_argument(
        "--one-for-zero",
        action="store_true",
        help="Swap currency1 for currency0 instead of the default 0 -> 1",
    )

    return parser


async def _simulate(sim: Simulator, args: argparse.Namespace) -> None:
    await sim.refresh_prices()
    shares = sim.deposit(DEPOSITOR, to_wei(args.deposit))
    logger.info("Minted %.6f shares to %s", shares / WAD, DEPOSITOR)
    sim.log_report()

    delta = sim.swap(TRADER, to_wei(args.swap), zero_for_one=not args.one_for_zero)
    logger.info(
        "Trader delta: %s %.6f, %s %.6f",
        sim.key.currency0, delta.amount0 / WAD,
        sim.key.currency1, delta.amount1 / WAD,
    )
    sim.log_report()

    assets = sim.redeem(DEPOSITOR)
    logger.info("Redeemed for %.6f common units", assets / WAD)
    sim.log_report()


async def _run(args: argparse.Namespace) -> None:
    """Execute the selected command."""
    configure_logging(args.log_level)
    config = load_config(args.config)
    sim = Simulator(config)

    if args.command == "report":
        sim.log_report()
    elif args.command == "prices":
        answers = await sim.refresh_prices()
        for feed, round_data in sorted(answers.items()):
            logger.info("%s: %d (round %d)", feed, round_data.answer, round_data.round_id)
    elif args.command == "simulate":
        await _simulate(sim, args)
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
