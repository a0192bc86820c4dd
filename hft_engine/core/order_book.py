"""
Order book implementation with price-time priority.

Each side of the book is an ``OrderQueue``: a binary heap keyed by
price, then timestamp, then insertion sequence. The book itself is a
passive pair of queues; all matching logic lives in the engine.
"""

import copy
import heapq
import itertools
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Tuple, Optional, Any
import logging

from .order import Order, format_price
from .order_types import OrderSide

logger = logging.getLogger(__name__)


class EmptyBookError(IndexError):
    """Raised when peeking or popping an empty side of the book."""


class OrderQueue:
    """
    Resting orders of one side, ordered by price-time priority.

    For bids the best order has the highest price; for asks the lowest.
    Equal prices are ordered by timestamp and then by the sequence in
    which orders first entered the queue.
    """

    def __init__(self, side: OrderSide):
        """
        Initialize an empty queue.

        Args:
            side: The side whose orders this queue holds
        """
        self.side = side
        self._heap: List[Tuple[int, int, int, Order]] = []
        self._sequence = itertools.count()

    def _key(self, order: Order) -> Tuple[int, int, int]:
        price_key = -order.price_ticks if self.side is OrderSide.BUY else order.price_ticks
        return price_key, order.timestamp, order.sequence

    def insert(self, order: Order) -> None:
        """
        Insert an order respecting price-time priority.

        Args:
            order: The order to rest; must be of this queue's side with
                positive quantity
        """
        if order.side is not self.side:
            raise ValueError(f"Cannot rest {order.side.value} order {order.order_id} on {self.side.value} side")
        if order.quantity <= 0:
            raise ValueError(f"Cannot rest order {order.order_id} with quantity {order.quantity}")

        if order.sequence is None:
            order.sequence = next(self._sequence)
        heapq.heappush(self._heap, (*self._key(order), order))
        logger.debug(f"Rested {self.side.value} order {order.order_id} at {order.price} x {order.quantity}")

    def peek_best(self) -> Order:
        """
        Return the best order without removing it.

        Raises:
            EmptyBookError: If the queue is empty
        """
        if not self._heap:
            raise EmptyBookError(f"No resting {self.side.value} orders")
        return self._heap[0][-1]

    def pop_best(self) -> Order:
        """
        Remove and return the best order.

        Raises:
            EmptyBookError: If the queue is empty
        """
        if not self._heap:
            raise EmptyBookError(f"No resting {self.side.value} orders")
        return heapq.heappop(self._heap)[-1]

    def size(self) -> int:
        return len(self._heap)

    def total_quantity(self) -> int:
        return sum(entry[-1].quantity for entry in self._heap)

    def snapshot(self, limit: Optional[int] = None) -> List[Order]:
        """
        Get up to ``limit`` orders in priority order.

        Args:
            limit: Maximum number of orders; ``None`` returns all of them

        Returns:
            Copies of the resting orders, best first
        """
        if limit is None:
            entries = sorted(self._heap)
        else:
            entries = heapq.nsmallest(max(limit, 0), self._heap)
        return [copy.copy(entry[-1]) for entry in entries]

    def is_empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def __repr__(self) -> str:
        return f"OrderQueue(side={self.side.value}, orders={len(self._heap)})"


@dataclass(frozen=True)
class BookSnapshot:
    """Point-in-time view of the book for observational use."""

    bids: List[Order]
    asks: List[Order]
    buy_total: int
    sell_total: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bids": [order.to_dict() for order in self.bids],
            "asks": [order.to_dict() for order in self.asks],
            "buy_total": self.buy_total,
            "sell_total": self.sell_total,
        }


class OrderBook:
    """
    Two-sided order book for a single instrument.

    A thin composition of a bid queue and an ask queue with inspection
    helpers. Callers are expected to inspect it only between orders.
    """

    def __init__(self):
        self.bids = OrderQueue(OrderSide.BUY)
        self.asks = OrderQueue(OrderSide.SELL)

    def add_buy(self, order: Order) -> None:
        self.bids.insert(order)

    def add_sell(self, order: Order) -> None:
        self.asks.insert(order)

    def add(self, order: Order) -> None:
        """Rest an order on its own side."""
        if order.side is OrderSide.BUY:
            self.add_buy(order)
        else:
            self.add_sell(order)

    def has_buys(self) -> bool:
        return not self.bids.is_empty()

    def has_sells(self) -> bool:
        return not self.asks.is_empty()

    def peek_top_buy(self) -> Order:
        return self.bids.peek_best()

    def peek_top_sell(self) -> Order:
        return self.asks.peek_best()

    def pop_top_buy(self) -> Order:
        return self.bids.pop_best()

    def pop_top_sell(self) -> Order:
        return self.asks.pop_best()

    def buy_count(self) -> int:
        return self.bids.size()

    def sell_count(self) -> int:
        return self.asks.size()

    def snapshot(self, depth: Optional[int] = None) -> BookSnapshot:
        """
        Get the top ``depth`` orders of each side plus resting totals.

        Args:
            depth: Orders per side; ``None`` returns every resting order

        Returns:
            BookSnapshot with totals in units of quantity
        """
        return BookSnapshot(
            bids=self.bids.snapshot(depth),
            asks=self.asks.snapshot(depth),
            buy_total=self.bids.total_quantity(),
            sell_total=self.asks.total_quantity(),
        )

    def get_bbo(self) -> Tuple[Optional[Decimal], Optional[Decimal]]:
        """
        Get Best Bid and Offer (BBO).

        Returns:
            Tuple of (best_bid, best_ask) prices
        """
        best_bid = self.peek_top_buy().price if self.has_buys() else None
        best_ask = self.peek_top_sell().price if self.has_sells() else None
        return best_bid, best_ask

    def is_crossed(self) -> bool:
        """True when the best bid is at or above the best ask."""
        if not (self.has_buys() and self.has_sells()):
            return False
        return self.peek_top_buy().price_ticks >= self.peek_top_sell().price_ticks

    def get_statistics(self) -> Dict[str, Any]:
        """Get order book statistics."""
        best_bid, best_ask = self.get_bbo()
        spread = best_ask - best_bid if best_bid is not None and best_ask is not None else None

        return {
            "best_bid": format_price(best_bid) if best_bid is not None else None,
            "best_ask": format_price(best_ask) if best_ask is not None else None,
            "spread": format_price(spread) if spread is not None else None,
            "total_bid_quantity": self.bids.total_quantity(),
            "total_ask_quantity": self.asks.total_quantity(),
            "bid_orders": self.buy_count(),
            "ask_orders": self.sell_count(),
        }

    def render(self, limit: int = 5) -> str:
        """
        Render the book as the console display text.

        Args:
            limit: Orders shown per side

        Returns:
            Multi-line string
        """
        lines = ["", "========== ORDER BOOK =========="]
        sections = (
            ("BUY ORDERS (Highest price first):", self.bids, "buy"),
            ("SELL ORDERS (Lowest price first):", self.asks, "sell"),
        )
        for index, (title, queue, label) in enumerate(sections):
            if index:
                lines.append("")
            lines.append(title)
            if queue.is_empty():
                lines.append(f"  No {label} orders")
                continue
            for order in queue.snapshot(limit):
                lines.append(f"  {order.display()}")
            if len(queue) > limit:
                lines.append(f"  ... and {len(queue) - limit} more {label} orders")
        lines.append("===============================")
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"OrderBook(bids={self.buy_count()}, asks={self.sell_count()})"
