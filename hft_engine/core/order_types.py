"""
Order side, outcome and state enums for the matching engine.

This module defines the vocabulary shared by the order book, the
matching engine and the outer layers (console, REST API).
"""

from enum import Enum


class OrderSide(Enum):
    """
    Order sides for buy and sell orders.

    - BUY: Orders to purchase the asset
    - SELL: Orders to sell the asset
    """
    BUY = "buy"
    SELL = "sell"


class OrderOutcome(Enum):
    """
    Result of a single ``process_order`` call.

    - ACCEPTED_FILLED: Order fully executed, nothing rested
    - ACCEPTED_PARTIAL_RESTED: Order partially executed, residual rested
    - ACCEPTED_RESTED: No execution, whole order rested
    - REJECTED: Order failed admission, book untouched
    """
    ACCEPTED_FILLED = "accepted_filled"
    ACCEPTED_PARTIAL_RESTED = "accepted_partial_rested"
    ACCEPTED_RESTED = "accepted_rested"
    REJECTED = "rejected"


class RejectionReason(Enum):
    """Why an order failed admission."""
    INVALID_SIDE = "invalid_side"
    INVALID_PRICE = "invalid_price"
    INVALID_QUANTITY = "invalid_quantity"
    MAX_QUANTITY_EXCEEDED = "max_quantity_exceeded"

    @property
    def is_risk(self) -> bool:
        return self is RejectionReason.MAX_QUANTITY_EXCEEDED


class ProcessingState(Enum):
    """States traversed by the engine while handling one order."""
    IDLE = "idle"
    MATCHING = "matching"
    RESTING = "resting"
    REJECTED = "rejected"
    DONE = "done"
