"""
Input validation utilities for the API layer.

Each validator returns a tuple whose first two members are
``(is_valid, error_message)``; validators that parse a value return it
as the third member.
"""

from decimal import Decimal, InvalidOperation
from typing import Dict, Any, Optional, Tuple
import logging

from ..core.order import normalize_price
from ..core.order_types import OrderSide

logger = logging.getLogger(__name__)

DEFAULT_DEPTH = 5
MAX_DEPTH = 100
MAX_RANDOM_ORDERS = 100


def _parse_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value.strip())
    return None


def validate_order_side(side: Any) -> Tuple[bool, Optional[str], Optional[OrderSide]]:
    """
    Validate order side.

    Args:
        side: Order side to validate ("buy" or "sell")

    Returns:
        Tuple of (is_valid, error_message, parsed_order_side)
    """
    if not side:
        return False, "Order side is required", None

    if not isinstance(side, str):
        return False, "Order side must be a string", None

    try:
        parsed = OrderSide(side.strip().lower())
    except ValueError:
        valid_sides = [s.value for s in OrderSide]
        return False, f"Invalid order side: {side}. Must be one of: {valid_sides}", None

    return True, None, parsed


def validate_price(price: Any) -> Tuple[bool, Optional[str], Optional[Decimal]]:
    """
    Validate order price.

    Args:
        price: Price to validate

    Returns:
        Tuple of (is_valid, error_message, parsed_price)
    """
    if price is None:
        return False, "Price is required", None

    if isinstance(price, bool):
        return False, f"Invalid price format: {price}", None

    try:
        parsed = normalize_price(price)
    except (InvalidOperation, ValueError, TypeError):
        return False, f"Invalid price format: {price}", None

    if parsed is None or not parsed.is_finite():
        return False, f"Invalid price format: {price}", None

    if parsed <= 0:
        return False, "Price must be positive", None

    return True, None, parsed


def validate_quantity(quantity: Any) -> Tuple[bool, Optional[str], Optional[int]]:
    """
    Validate order quantity.

    The per-order maximum is enforced by the engine, not here.

    Args:
        quantity: Quantity to validate (whole units)

    Returns:
        Tuple of (is_valid, error_message, parsed_quantity)
    """
    if quantity is None:
        return False, "Quantity is required", None

    parsed = _parse_int(quantity)
    if parsed is None:
        return False, f"Invalid quantity format: {quantity}. Must be a whole number", None

    if parsed <= 0:
        return False, "Quantity must be positive", None

    return True, None, parsed


def validate_order_request(data: Dict[str, Any]) -> Tuple[bool, Optional[str], Optional[Dict[str, Any]]]:
    """
    Validate complete order request.

    Args:
        data: Order request data with side, price, quantity and optional
            order_id and timestamp

    Returns:
        Tuple of (is_valid, error_message, parsed_data)
    """
    if not isinstance(data, dict):
        return False, "Request body must be a JSON object", None

    for field in ('side', 'price', 'quantity'):
        if field not in data:
            return False, f"Missing required field: {field}", None

    is_valid, error, side = validate_order_side(data['side'])
    if not is_valid:
        return False, error, None

    is_valid, error, price = validate_price(data['price'])
    if not is_valid:
        return False, error, None

    is_valid, error, quantity = validate_quantity(data['quantity'])
    if not is_valid:
        return False, error, None

    validated_data: Dict[str, Any] = {
        'side': side,
        'price': price,
        'quantity': quantity,
        'order_id': None,
        'timestamp': None,
    }

    for field in ('order_id', 'timestamp'):
        if data.get(field) is None:
            continue
        value = _parse_int(data[field])
        if value is None or value < 0:
            return False, f"Invalid {field}: {data[field]}. Must be a non-negative integer", None
        validated_data[field] = value

    return True, None, validated_data


def validate_depth_request(depth: Any, max_depth: int = MAX_DEPTH) -> Tuple[bool, Optional[str], Optional[int]]:
    """
    Validate order book depth request.

    Args:
        depth: Depth parameter, None for the default
        max_depth: Largest depth accepted

    Returns:
        Tuple of (is_valid, error_message, parsed_depth)
    """
    if depth is None:
        return True, None, DEFAULT_DEPTH

    parsed = _parse_int(depth)
    if parsed is None:
        return False, f"Invalid depth format: {depth}. Must be an integer", None

    if parsed <= 0:
        return False, "Depth must be positive", None

    if parsed > max_depth:
        return False, f"Depth too large. Maximum: {max_depth}", None

    return True, None, parsed


def validate_random_count(count: Any, max_count: int = MAX_RANDOM_ORDERS) -> Tuple[bool, Optional[str], Optional[int]]:
    """
    Validate the number of random orders to generate.

    Args:
        count: Requested number of orders
        max_count: Largest batch accepted

    Returns:
        Tuple of (is_valid, error_message, parsed_count)
    """
    parsed = _parse_int(count)
    if parsed is None or not (1 <= parsed <= max_count):
        return False, f"Please enter a number between 1 and {max_count}.", None

    return True, None, parsed
