#!/usr/bin/env python3
"""
Main entry point for the matching engine.

Runs the interactive console by default, or the REST API server with
``serve``. Trades are appended to the configured trade log file in
both modes.
"""

import argparse
import signal
import sys
from typing import List, Optional

from hft_engine.api.rest_api import run_server
from hft_engine.config.settings import get_settings
from hft_engine.console import TradingConsole
from hft_engine.core.matching_engine import MatchingEngine
from hft_engine.core.trade_sink import TradeLogger
from hft_engine.utils.logger import setup_logging, get_logger
from hft_engine.utils.order_generator import OrderGenerator
from hft_engine.utils.performance import get_performance_monitor

logger = get_logger(__name__)


def signal_handler(signum, frame):
    """Handle shutdown signals."""
    logger.info(f"Received signal {signum}, shutting down...")
    sys.exit(0)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Single-instrument limit order matching engine")
    parser.add_argument(
        "mode",
        nargs="?",
        choices=("console", "serve"),
        default="console",
        help="console: interactive menu (default); serve: REST API server",
    )
    parser.add_argument("--trade-log", help="Trade log file (overrides TRADE_LOG_FILE)")
    parser.add_argument("--log-level", help="Logging level (overrides LOG_LEVEL)")
    parser.add_argument("--seed", type=int, help="Seed for random order generation")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    settings = get_settings()
    trade_log_file = args.trade_log or settings.trade_log_file
    seed = args.seed if args.seed is not None else settings.random_seed

    # The console prints its own trade lines; keep application logging quiet there
    default_level = settings.log_level if args.mode == "serve" else "WARNING"
    setup_logging(level=args.log_level or default_level, log_file=settings.log_file)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    sink = TradeLogger(trade_log_file, echo=args.mode == "serve")
    try:
        with MatchingEngine(
            trade_sink=sink,
            max_quantity=settings.max_order_quantity,
            performance_monitor=get_performance_monitor(),
        ) as engine:
            if args.mode == "serve":
                run_server(engine=engine, settings=settings)
            else:
                console = TradingConsole(
                    engine,
                    generator=OrderGenerator(seed=seed),
                    trade_log_file=trade_log_file,
                    display_depth=settings.book_display_depth,
                    max_random_orders=settings.max_random_orders,
                )
                console.run()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt, shutting down...")
    except OSError as e:
        logger.error(f"Fatal error: {str(e)}")
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
