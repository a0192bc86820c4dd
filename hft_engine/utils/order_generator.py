"""
Order construction helpers for the console, the REST API and load tests.

The engine never reads the clock; these helpers stamp orders with ids
and monotonically non-decreasing millisecond timestamps before they are
submitted.
"""

import random
import threading
import time
from decimal import Decimal
from typing import Any, Callable, List, Optional

from ..core.order import Order, normalize_price
from ..core.order_types import OrderSide

MANUAL_ORDER_START_ID = 1
RANDOM_ORDER_START_ID = 10000

RANDOM_PRICE_RANGE = (50.0, 150.0)
RANDOM_QUANTITY_RANGE = (10, 500)


class TimestampSource:
    """
    Wall-clock milliseconds that never go backwards.

    If the underlying clock steps back, the last value handed out is
    repeated until the clock catches up.
    """

    def __init__(self, clock: Optional[Callable[[], float]] = None):
        self._clock = clock or time.time
        self._last = 0
        self._lock = threading.Lock()

    def now(self) -> int:
        with self._lock:
            current = int(self._clock() * 1000)
            if current < self._last:
                current = self._last
            self._last = current
            return current

    def __call__(self) -> int:
        return self.now()


class OrderGenerator:
    """
    Builds orders with session-unique ids.

    Orders entered by hand are numbered from 1; randomly generated
    orders are numbered from 10000.
    """

    def __init__(
        self,
        seed: Optional[int] = None,
        timestamps: Optional[TimestampSource] = None,
        manual_start_id: int = MANUAL_ORDER_START_ID,
        random_start_id: int = RANDOM_ORDER_START_ID,
    ):
        self.rng = random.Random(seed)
        self.timestamps = timestamps or TimestampSource()
        self._next_manual_id = manual_start_id
        self._next_random_id = random_start_id
        self._lock = threading.Lock()

    def _take_manual_id(self) -> int:
        with self._lock:
            order_id = self._next_manual_id
            self._next_manual_id += 1
            return order_id

    def _take_random_id(self) -> int:
        with self._lock:
            order_id = self._next_random_id
            self._next_random_id += 1
            return order_id

    def create(
        self,
        side: OrderSide,
        price: Any,
        quantity: int,
        order_id: Optional[int] = None,
        timestamp: Optional[int] = None,
    ) -> Order:
        """
        Create an order stamped with the current timestamp.

        Args:
            side: Order side
            price: Limit price, anything ``Decimal`` accepts
            quantity: Order quantity
            order_id: Explicit id; a manual id is assigned when omitted
            timestamp: Explicit timestamp; the clock is read when omitted

        Returns:
            New Order
        """
        if order_id is None:
            order_id = self._take_manual_id()
        if timestamp is None:
            timestamp = self.timestamps.now()
        return Order(
            order_id=order_id,
            side=side,
            price=price,
            quantity=quantity,
            timestamp=timestamp,
        )

    def random_order(self) -> Order:
        """Create one random order: uniform side, price in [50, 150], quantity in [10, 500]."""
        side = self.rng.choice((OrderSide.BUY, OrderSide.SELL))
        price: Decimal = normalize_price(round(self.rng.uniform(*RANDOM_PRICE_RANGE), 2))
        quantity = self.rng.randint(*RANDOM_QUANTITY_RANGE)
        return Order(
            order_id=self._take_random_id(),
            side=side,
            price=price,
            quantity=quantity,
            timestamp=self.timestamps.now(),
        )

    def random_orders(self, count: int) -> List[Order]:
        return [self.random_order() for _ in range(count)]
