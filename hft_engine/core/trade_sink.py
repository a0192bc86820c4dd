"""
Trade sinks: the output port through which the engine reports executions.

The engine calls ``log_trade`` synchronously once per execution, in
execution order. Sinks never touch engine state and a failing sink does
not undo a trade.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from .order import Trade
from ..utils.logger import create_trade_logger

logger = logging.getLogger(__name__)

SESSION_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"


class TradeSink(ABC):
    """Base class for trade sinks."""

    def open_session(self) -> None:
        """Called once when the engine acquires the sink."""

    @abstractmethod
    def log_trade(self, buy_order_id: int, sell_order_id: int, price: Decimal, quantity: int) -> None:
        """Record one execution."""

    def close_session(self) -> None:
        """Called once when the engine releases the sink."""


class TradeRecorder(TradeSink):
    """
    Keeps every trade in memory.

    Useful for tests and for callers that want the trade tape as objects.
    """

    def __init__(self):
        self.trades: List[Trade] = []
        self.session_open = False
        self.sessions = 0

    def open_session(self) -> None:
        self.session_open = True
        self.sessions += 1

    def log_trade(self, buy_order_id: int, sell_order_id: int, price: Decimal, quantity: int) -> None:
        self.trades.append(Trade(buy_order_id, sell_order_id, price, quantity))

    def close_session(self) -> None:
        self.session_open = False

    def clear(self) -> None:
        self.trades.clear()

    def __len__(self) -> int:
        return len(self.trades)


class TradeLogger(TradeSink):
    """
    Appends trades to a log file and echoes them to the console logger.

    File lines look like::

        2024-01-01 12:00:00 - Trade executed: BuyOrderID 1 SellOrderID 2 at price $100.00 for quantity 50

    Session start and end markers are written without the timestamp
    prefix. Write errors are handled by ``logging`` (reported on stderr)
    and never propagate to the engine.
    """

    def __init__(self, log_file: str = "trades.log", echo: bool = True):
        """
        Initialize the trade logger.

        Args:
            log_file: Path of the trade log, opened in append mode
            echo: Also log each trade message through the module logger
        """
        self.log_file = log_file
        self.echo = echo
        self._trade_logger: Optional[logging.Logger] = None

    @staticmethod
    def _now() -> str:
        return datetime.now().strftime(SESSION_TIME_FORMAT)

    def _write_marker(self, text: str) -> None:
        self._trade_logger.info(text, extra={"session_marker": True})

    def open_session(self) -> None:
        if self._trade_logger is not None:
            return
        self._trade_logger = create_trade_logger(self.log_file)
        self._write_marker(f"\n========== Trading Session Started at {self._now()} ==========")
        logger.info(f"Trade log opened: {self.log_file}")

    def log_trade(self, buy_order_id: int, sell_order_id: int, price: Decimal, quantity: int) -> None:
        message = Trade(buy_order_id, sell_order_id, price, quantity).describe()
        if self.echo:
            logger.info(message)
        if self._trade_logger is not None:
            self._trade_logger.info(message)
        else:
            logger.warning(f"Trade log {self.log_file} is not open, trade not persisted")

    def close_session(self) -> None:
        if self._trade_logger is None:
            return
        self._write_marker(f"========== Trading Session Ended at {self._now()} ==========\n")
        for handler in list(self._trade_logger.handlers):
            self._trade_logger.removeHandler(handler)
            try:
                handler.close()
            except (OSError, ValueError) as e:
                logger.error(f"Error closing trade log {self.log_file}: {str(e)}")
        self._trade_logger = None
        logger.info(f"Trade log closed: {self.log_file}")

    @property
    def is_open(self) -> bool:
        return self._trade_logger is not None
