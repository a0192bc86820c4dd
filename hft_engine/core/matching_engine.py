"""
Continuous double-auction matching engine for a single instrument.

Incoming limit orders pass an admission check, are matched against the
opposite side of the book in price-time priority, and any remainder rests
on the book. Every execution is reported to the trade sink in the order
it happens, at the resting order's price.
"""

import logging
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Any

from .order import Order, Trade, format_price
from .order_book import OrderBook, BookSnapshot
from .order_types import OrderSide, OrderOutcome, ProcessingState, RejectionReason
from .trade_sink import TradeSink, TradeRecorder
from ..utils.performance import PerformanceMonitor, measure_latency

logger = logging.getLogger(__name__)

DEFAULT_MAX_QUANTITY = 1000


@dataclass
class ExecutionReport:
    """What happened to one submitted order."""

    order_id: int
    outcome: OrderOutcome
    trades: List[Trade] = field(default_factory=list)
    remaining_quantity: int = 0
    reason: Optional[RejectionReason] = None
    message: str = ""

    @property
    def filled_quantity(self) -> int:
        return sum(trade.quantity for trade in self.trades)

    @property
    def rejected(self) -> bool:
        return self.outcome is OrderOutcome.REJECTED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "order_id": self.order_id,
            "outcome": self.outcome.value,
            "filled_quantity": self.filled_quantity,
            "remaining_quantity": self.remaining_quantity,
            "reason": self.reason.value if self.reason else None,
            "message": self.message,
            "trades": [trade.to_dict() for trade in self.trades],
        }


class MatchingEngine:
    """
    Price-time priority matching engine.

    Features:
    - Admission control: field validation and a per-order quantity limit
    - Trades at the resting order's price (price improvement to the aggressor)
    - Partial fills, with residual resting orders keeping their time priority
    - Synchronous trade emission to a sink, in execution order

    The engine is single-threaded: ``process_order`` must not be called
    concurrently on the same instance.
    """

    def __init__(
        self,
        trade_sink: Optional[TradeSink] = None,
        max_quantity: int = DEFAULT_MAX_QUANTITY,
        performance_monitor: Optional[PerformanceMonitor] = None,
    ):
        """
        Initialize the matching engine and open the trade sink session.

        Args:
            trade_sink: Where executions are reported; defaults to an
                in-memory TradeRecorder
            max_quantity: Largest quantity a single order may carry
            performance_monitor: Optional monitor for order latency
        """
        if max_quantity <= 0:
            raise ValueError(f"Max quantity must be positive: {max_quantity}")

        self.order_book = OrderBook()
        self.trade_sink = trade_sink if trade_sink is not None else TradeRecorder()
        self.max_quantity = max_quantity
        self.performance_monitor = performance_monitor
        self.state = ProcessingState.IDLE

        self.trade_callbacks: List[Callable[[Trade], None]] = []

        # Statistics
        self.total_orders_processed = 0
        self.total_orders_rejected = 0
        self.total_trades_executed = 0
        self.total_volume = 0
        self.total_notional = Decimal('0')
        self.last_trade_price: Optional[Decimal] = None
        self.last_timestamp: Optional[int] = None

        self._closed = False
        self.trade_sink.open_session()
        logger.info(f"Matching engine initialized (max order quantity {max_quantity})")

    # --------- Lifecycle ---------

    def close(self) -> None:
        """Release the trade sink. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self.trade_sink.close_session()
        logger.info(
            f"Matching engine closed: {self.total_orders_processed} orders, "
            f"{self.total_trades_executed} trades"
        )

    @property
    def closed(self) -> bool:
        return self._closed

    def __enter__(self) -> "MatchingEngine":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # --------- Submission ---------

    def process_order(self, order: Order) -> OrderOutcome:
        """
        Submit an order and return its outcome.

        Args:
            order: The order to submit; it is copied, not mutated

        Returns:
            The OrderOutcome of this submission
        """
        return self.submit_order(order).outcome

    def submit_order(self, order: Order) -> ExecutionReport:
        """
        Submit an order and return a full execution report.

        Args:
            order: The order to submit; it is copied, not mutated

        Returns:
            ExecutionReport with the outcome and the trades of this call
        """
        if self._closed:
            raise RuntimeError("Matching engine is closed")
        if self.state is not ProcessingState.IDLE:
            raise RuntimeError("process_order is not re-entrant")

        with measure_latency(self.performance_monitor, "process_order"):
            try:
                report = self._process(order)
            finally:
                self.state = ProcessingState.IDLE

        if self.performance_monitor is not None:
            self.performance_monitor.increment_counter(f"orders_{report.outcome.value}")
        return report

    def _transition(self, state: ProcessingState) -> None:
        logger.debug(f"Engine state {self.state.value} -> {state.value}")
        self.state = state

    def _process(self, order: Order) -> ExecutionReport:
        reason, message = self._validate_order(order)
        if reason is not None:
            self._transition(ProcessingState.REJECTED)
            self.total_orders_rejected += 1
            logger.warning(f"Order rejected: {message}")
            self._transition(ProcessingState.DONE)
            return ExecutionReport(
                order_id=order.order_id,
                outcome=OrderOutcome.REJECTED,
                reason=reason,
                message=message,
            )

        if self.last_timestamp is not None and order.timestamp < self.last_timestamp:
            logger.warning(
                f"Order {order.order_id} timestamp {order.timestamp} precedes "
                f"previous timestamp {self.last_timestamp}"
            )
        self.last_timestamp = order.timestamp

        self.total_orders_processed += 1
        logger.info(f"Processing new order: {order.display()}")

        working = replace(order, sequence=None)
        self._transition(ProcessingState.MATCHING)
        if working.side is OrderSide.BUY:
            trades = self._match_buy_order(working)
        else:
            trades = self._match_sell_order(working)

        if working.quantity > 0:
            self._transition(ProcessingState.RESTING)
            self.order_book.add(working)
            outcome = OrderOutcome.ACCEPTED_PARTIAL_RESTED if trades else OrderOutcome.ACCEPTED_RESTED
        else:
            outcome = OrderOutcome.ACCEPTED_FILLED
        self._transition(ProcessingState.DONE)

        logger.debug(f"Order {order.order_id}: {outcome.value}, {len(trades)} trades")
        return ExecutionReport(
            order_id=order.order_id,
            outcome=outcome,
            trades=trades,
            remaining_quantity=working.quantity,
        )

    def _validate_order(self, order: Order):
        """
        Admission check.

        Returns:
            (reason, message); reason is None when the order is admitted
        """
        if not isinstance(order.side, OrderSide):
            return RejectionReason.INVALID_SIDE, f"Invalid order side {order.side!r}"

        if order.price is None or not order.price.is_finite() or order.price <= 0:
            return RejectionReason.INVALID_PRICE, f"Price must be positive, got {order.price}"

        quantity = order.quantity
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return RejectionReason.INVALID_QUANTITY, f"Quantity must be a positive integer, got {quantity}"

        if quantity > self.max_quantity:
            return (
                RejectionReason.MAX_QUANTITY_EXCEEDED,
                f"Quantity {quantity} exceeds maximum allowed ({self.max_quantity})",
            )

        return None, ""

    # --------- Matching ---------

    def _match_buy_order(self, buy_order: Order) -> List[Trade]:
        """
        Match an incoming buy order against resting asks.

        Args:
            buy_order: Working copy of the incoming order; its quantity is
                reduced in place

        Returns:
            Trades in execution order
        """
        trades = []
        book = self.order_book

        while buy_order.quantity > 0 and book.has_sells():
            best_ask = book.peek_top_sell()
            if buy_order.price_ticks < best_ask.price_ticks:
                break

            resting = book.pop_top_sell()
            trade_quantity = min(buy_order.quantity, resting.quantity)
            trade = Trade(
                buy_order_id=buy_order.order_id,
                sell_order_id=resting.order_id,
                price=resting.price,
                quantity=trade_quantity,
                aggressor_side=OrderSide.BUY,
            )

            buy_order.quantity -= trade_quantity
            resting.quantity -= trade_quantity
            if resting.quantity > 0:
                book.add_sell(resting)

            self._emit_trade(trade)
            trades.append(trade)

        return trades

    def _match_sell_order(self, sell_order: Order) -> List[Trade]:
        """
        Match an incoming sell order against resting bids.

        Args:
            sell_order: Working copy of the incoming order; its quantity is
                reduced in place

        Returns:
            Trades in execution order
        """
        trades = []
        book = self.order_book

        while sell_order.quantity > 0 and book.has_buys():
            best_bid = book.peek_top_buy()
            if sell_order.price_ticks > best_bid.price_ticks:
                break

            resting = book.pop_top_buy()
            trade_quantity = min(sell_order.quantity, resting.quantity)
            trade = Trade(
                buy_order_id=resting.order_id,
                sell_order_id=sell_order.order_id,
                price=resting.price,
                quantity=trade_quantity,
                aggressor_side=OrderSide.SELL,
            )

            sell_order.quantity -= trade_quantity
            resting.quantity -= trade_quantity
            if resting.quantity > 0:
                book.add_buy(resting)

            self._emit_trade(trade)
            trades.append(trade)

        return trades

    def _emit_trade(self, trade: Trade) -> None:
        """Record statistics and report the trade to the sink and callbacks."""
        self.total_trades_executed += 1
        self.total_volume += trade.quantity
        self.total_notional += trade.notional_value
        self.last_trade_price = trade.price

        try:
            self.trade_sink.log_trade(trade.buy_order_id, trade.sell_order_id, trade.price, trade.quantity)
        except Exception as e:
            logger.error(f"Trade sink failed for {trade.describe()}: {str(e)}")

        for callback in self.trade_callbacks:
            try:
                callback(trade)
            except Exception as e:
                logger.error(f"Error in trade callback: {str(e)}")

    # --------- Inspection ---------

    def add_trade_callback(self, callback: Callable[[Trade], None]) -> None:
        """Add callback for trade executions."""
        self.trade_callbacks.append(callback)

    def get_order_book(self) -> OrderBook:
        return self.order_book

    def snapshot(self, depth: Optional[int] = None) -> BookSnapshot:
        """Get the top ``depth`` resting orders per side and resting totals."""
        return self.order_book.snapshot(depth)

    def display_order_book(self, limit: int = 5) -> str:
        return self.order_book.render(limit)

    def get_statistics(self) -> Dict[str, Any]:
        """Get engine statistics."""
        stats = {
            "total_orders_processed": self.total_orders_processed,
            "total_orders_rejected": self.total_orders_rejected,
            "total_trades_executed": self.total_trades_executed,
            "total_volume": self.total_volume,
            "total_notional": format_price(self.total_notional),
            "last_trade_price": format_price(self.last_trade_price) if self.last_trade_price is not None else None,
            "max_order_quantity": self.max_quantity,
        }
        stats.update(self.order_book.get_statistics())
        return stats
