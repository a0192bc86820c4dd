"""
Core matching engine components.

This module contains the order and trade records, the two-sided order
book, the trade sinks and the matching engine.
"""

from .order import Order, Trade
from .order_types import OrderSide, OrderOutcome, RejectionReason, ProcessingState
from .order_book import OrderBook, OrderQueue, BookSnapshot, EmptyBookError
from .trade_sink import TradeSink, TradeRecorder, TradeLogger
from .matching_engine import MatchingEngine, ExecutionReport, DEFAULT_MAX_QUANTITY

__all__ = [
    "Order",
    "Trade",
    "OrderSide",
    "OrderOutcome",
    "RejectionReason",
    "ProcessingState",
    "OrderBook",
    "OrderQueue",
    "BookSnapshot",
    "EmptyBookError",
    "TradeSink",
    "TradeRecorder",
    "TradeLogger",
    "MatchingEngine",
    "ExecutionReport",
    "DEFAULT_MAX_QUANTITY",
]
