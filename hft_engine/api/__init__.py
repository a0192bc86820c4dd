"""
API layer for the matching engine.

This module provides the REST front-end for order entry and order book
inspection.
"""

from .rest_api import create_app, run_server
from .validators import validate_order_request, validate_depth_request, validate_random_count

__all__ = [
    "create_app",
    "run_server",
    "validate_order_request",
    "validate_depth_request",
    "validate_random_count",
]
