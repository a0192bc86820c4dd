"""
Utility modules for the matching engine.

This module provides logging, performance monitoring and order
generation helpers.
"""

from .logger import setup_logging, get_logger, create_trade_logger
from .performance import PerformanceMonitor, LatencyTracker, measure_latency, get_performance_monitor

__all__ = [
    "setup_logging",
    "get_logger",
    "create_trade_logger",
    "PerformanceMonitor",
    "LatencyTracker",
    "measure_latency",
    "get_performance_monitor",
]
