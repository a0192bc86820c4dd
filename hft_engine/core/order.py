"""
Order and Trade data structures for the matching engine.

Prices are carried as ``Decimal`` values normalised to cents, and every
ordering comparison goes through the scaled integer ``price_ticks`` so that
equal prices always compare equal.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Dict, Any

from .order_types import OrderSide

PRICE_QUANTUM = Decimal('0.01')
TICKS_PER_UNIT = 100


def normalize_price(price: Any) -> Optional[Decimal]:
    """
    Convert a price to a ``Decimal`` with two fractional digits.

    Floats go through ``str`` first so that ``100.1`` becomes ``100.10``
    rather than its binary expansion. Returns ``None`` for infinities and
    for values too large to carry two fractional digits, so that admission
    rejects them as invalid prices.

    Raises:
        decimal.InvalidOperation: If the value is not numeric
    """
    if price is None:
        return None
    if not isinstance(price, Decimal):
        price = Decimal(str(price))
    try:
        return price.quantize(PRICE_QUANTUM, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return None


def format_price(price: Decimal) -> str:
    return f"{price:.2f}"


@dataclass
class Order:
    """
    A limit order submitted to the engine.

    ``quantity`` is the working quantity: the engine decreases it as the
    order is filled. ``sequence`` is assigned by the order queue the first
    time the order rests and is kept across re-insertion.
    """

    order_id: int
    side: OrderSide
    price: Optional[Decimal]
    quantity: int
    timestamp: int = 0
    sequence: Optional[int] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        self.price = normalize_price(self.price)

    @property
    def price_ticks(self) -> int:
        """Price in hundredths of a currency unit."""
        return int(self.price * TICKS_PER_UNIT)

    def display(self) -> str:
        side = self.side.value if isinstance(self.side, OrderSide) else str(self.side)
        price = format_price(self.price) if self.price is not None else "N/A"
        return (
            f"Order ID: {self.order_id}, Type: {side}, Price: ${price}, "
            f"Quantity: {self.quantity}, Timestamp: {self.timestamp}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert order to dictionary for serialization."""
        return {
            "order_id": self.order_id,
            "side": self.side.value if isinstance(self.side, OrderSide) else str(self.side),
            "price": format_price(self.price) if self.price is not None else None,
            "quantity": self.quantity,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class Trade:
    """
    A single execution between a buy order and a sell order.

    Trades execute at the resting order's price. ``aggressor_side`` is the
    side of the incoming order, when known.
    """

    buy_order_id: int
    sell_order_id: int
    price: Decimal
    quantity: int
    aggressor_side: Optional[OrderSide] = None

    @property
    def notional_value(self) -> Decimal:
        """Calculate notional value of the trade."""
        return self.price * self.quantity

    def describe(self) -> str:
        return (
            f"Trade executed: BuyOrderID {self.buy_order_id} SellOrderID {self.sell_order_id} "
            f"at price ${format_price(self.price)} for quantity {self.quantity}"
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert trade to dictionary for serialization."""
        return {
            "buy_order_id": self.buy_order_id,
            "sell_order_id": self.sell_order_id,
            "price": format_price(self.price),
            "quantity": self.quantity,
            "aggressor_side": self.aggressor_side.value if self.aggressor_side else None,
            "notional_value": format_price(self.notional_value),
        }
