"""
Performance monitoring for the matching engine.

Tracks order latency, outcome counters and process resource usage
(through psutil) for the statistics endpoint and the load tester.
"""

import time
import psutil
import threading
from collections import deque
from contextlib import contextmanager
from typing import Deque, Dict, Any, Optional, Iterator
import logging

logger = logging.getLogger(__name__)


class LatencyTracker:
    """
    Track latency percentiles over a bounded window of samples.
    """

    def __init__(self, max_samples: int = 10000):
        """
        Initialize latency tracker.

        Args:
            max_samples: Maximum number of samples to keep
        """
        self.max_samples = max_samples
        self.samples: Deque[float] = deque(maxlen=max_samples)
        self.lock = threading.Lock()

    def record(self, latency_ms: float) -> None:
        with self.lock:
            self.samples.append(latency_ms)

    def get_percentiles(self) -> Dict[str, float]:
        """
        Get latency percentiles.

        Returns:
            Dictionary with p50, p90, p99 percentiles
        """
        with self.lock:
            if not self.samples:
                return {"p50": 0.0, "p90": 0.0, "p99": 0.0}

            ordered = sorted(self.samples)
            n = len(ordered)
            return {
                "p50": ordered[min(int(0.5 * n), n - 1)],
                "p90": ordered[min(int(0.9 * n), n - 1)],
                "p99": ordered[min(int(0.99 * n), n - 1)],
            }

    def get_stats(self) -> Dict[str, float]:
        with self.lock:
            if not self.samples:
                return {"min": 0.0, "max": 0.0, "avg": 0.0, "count": 0}

            return {
                "min": min(self.samples),
                "max": max(self.samples),
                "avg": sum(self.samples) / len(self.samples),
                "count": len(self.samples),
            }

    def reset(self) -> None:
        with self.lock:
            self.samples.clear()


class PerformanceMonitor:
    """
    Performance monitoring for the matching engine.

    Keeps named latency trackers and counters, and reports memory and
    CPU usage of the current process.
    """

    def __init__(self, max_samples: int = 10000):
        self.max_samples = max_samples
        self.latencies: Dict[str, LatencyTracker] = {}
        self.counters: Dict[str, int] = {}
        self.start_time = time.time()
        self.lock = threading.Lock()

        self.process = psutil.Process()
        self.initial_memory = self.process.memory_info().rss

        logger.debug("Performance monitor initialized")

    def record_latency(self, name: str, latency_ms: float) -> None:
        with self.lock:
            tracker = self.latencies.get(name)
            if tracker is None:
                tracker = self.latencies[name] = LatencyTracker(self.max_samples)
        tracker.record(latency_ms)

    def increment_counter(self, name: str, value: int = 1) -> None:
        with self.lock:
            self.counters[name] = self.counters.get(name, 0) + value

    def get_counter(self, name: str) -> int:
        with self.lock:
            return self.counters.get(name, 0)

    def get_latency(self, name: str) -> Optional[LatencyTracker]:
        with self.lock:
            return self.latencies.get(name)

    def get_system_stats(self) -> Dict[str, Any]:
        """Get current process statistics."""
        try:
            memory_info = self.process.memory_info()
            return {
                "memory_rss_mb": memory_info.rss / 1024 / 1024,
                "memory_growth_mb": (memory_info.rss - self.initial_memory) / 1024 / 1024,
                "cpu_percent": self.process.cpu_percent(),
                "thread_count": self.process.num_threads(),
                "uptime_seconds": time.time() - self.start_time,
            }
        except psutil.Error as e:
            logger.error(f"Error getting system stats: {str(e)}")
            return {}

    def get_summary(self) -> Dict[str, Any]:
        """Get counters, latency statistics and process statistics."""
        with self.lock:
            counters = dict(self.counters)
            trackers = dict(self.latencies)

        summary: Dict[str, Any] = {"counters": counters, "latency_ms": {}}
        for name, tracker in trackers.items():
            stats = tracker.get_stats()
            stats.update(tracker.get_percentiles())
            summary["latency_ms"][name] = stats
        summary.update(self.get_system_stats())
        return summary

    def reset(self) -> None:
        """Reset all metrics and counters."""
        with self.lock:
            self.latencies.clear()
            self.counters.clear()
            self.start_time = time.time()
            self.initial_memory = self.process.memory_info().rss


@contextmanager
def measure_latency(monitor: Optional[PerformanceMonitor], operation_name: str) -> Iterator[None]:
    """
    Context manager to measure operation latency.

    Does nothing when ``monitor`` is None.

    Args:
        monitor: Performance monitor instance
        operation_name: Name of the operation being measured
    """
    if monitor is None:
        yield
        return
    start_time = time.perf_counter()
    try:
        yield
    finally:
        monitor.record_latency(operation_name, (time.perf_counter() - start_time) * 1000)


_performance_monitor: Optional[PerformanceMonitor] = None


def get_performance_monitor() -> PerformanceMonitor:
    """Get the global performance monitor instance."""
    global _performance_monitor
    if _performance_monitor is None:
        _performance_monitor = PerformanceMonitor()
    return _performance_monitor
