"""
Load testing and benchmarking for the matching engine.

Drives random limit orders through an engine and reports throughput,
latency and process resource usage.
"""

import time
from typing import List, Dict, Any, Optional
import statistics

from hft_engine.core.matching_engine import MatchingEngine
from hft_engine.core.order import Order
from hft_engine.utils.order_generator import OrderGenerator, TimestampSource
from hft_engine.utils.performance import PerformanceMonitor


class _Counter:
    """Deterministic timestamps: one tick per order."""

    def __init__(self):
        self.value = 0.0

    def __call__(self) -> float:
        self.value += 0.001
        return self.value


class LoadTester:
    """
    Load testing utility for the matching engine.
    """

    def __init__(self, seed: Optional[int] = 42, max_quantity: int = 1000):
        """
        Initialize load tester.

        Args:
            seed: Random seed for the order stream
            max_quantity: Risk limit passed to each engine
        """
        self.seed = seed
        self.max_quantity = max_quantity
        self.performance_monitor = PerformanceMonitor()
        self.results: List[Dict[str, Any]] = []

    def generate_orders(self, count: int) -> List[Order]:
        generator = OrderGenerator(seed=self.seed, timestamps=TimestampSource(_Counter()))
        return generator.random_orders(count)

    def benchmark_order_processing(self, order_count: int) -> Dict[str, Any]:
        """
        Benchmark order processing performance on a fresh engine.

        Args:
            order_count: Number of orders to process

        Returns:
            Performance metrics
        """
        print(f"Benchmarking {order_count} orders...")

        orders = self.generate_orders(order_count)
        self.performance_monitor.reset()

        with MatchingEngine(max_quantity=self.max_quantity, performance_monitor=self.performance_monitor) as engine:
            start_time = time.perf_counter()
            total_trades = 0
            for order in orders:
                report = engine.submit_order(order)
                total_trades += len(report.trades)
            total_time = time.perf_counter() - start_time
            resting = engine.order_book.buy_count() + engine.order_book.sell_count()

        latency = self.performance_monitor.get_latency("process_order")
        percentiles = latency.get_percentiles() if latency else {}
        system_stats = self.performance_monitor.get_system_stats()

        results = {
            "order_count": order_count,
            "total_time_seconds": total_time,
            "orders_per_second": order_count / total_time if total_time else 0.0,
            "trades_executed": total_trades,
            "trades_per_second": total_trades / total_time if total_time else 0.0,
            "filled_orders": self.performance_monitor.get_counter("orders_accepted_filled"),
            "rejected_orders": self.performance_monitor.get_counter("orders_rejected"),
            "resting_orders": resting,
            "average_latency_ms": (total_time / order_count) * 1000 if order_count else 0.0,
            "p99_latency_ms": percentiles.get("p99", 0.0),
            "memory_usage_mb": system_stats.get("memory_rss_mb", 0),
            "cpu_percent": system_stats.get("cpu_percent", 0),
        }

        self.results.append(results)
        return results

    def stress_test(self, max_orders: int = 100000) -> Dict[str, Any]:
        """
        Stress test with one large order stream.

        Args:
            max_orders: Number of orders to process

        Returns:
            Stress test results including memory growth
        """
        print(f"Stress testing with {max_orders} orders...")
        results = self.benchmark_order_processing(max_orders)
        results["memory_growth_mb"] = self.performance_monitor.get_system_stats().get("memory_growth_mb", 0)
        return results

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of all benchmark results."""
        if not self.results:
            return {"message": "No benchmark results available"}

        orders_per_second = [r["orders_per_second"] for r in self.results]
        latencies = [r["average_latency_ms"] for r in self.results]

        return {
            "total_benchmarks": len(self.results),
            "orders_per_second": {
                "min": min(orders_per_second),
                "max": max(orders_per_second),
                "avg": statistics.mean(orders_per_second),
            },
            "latency_ms": {
                "min": min(latencies),
                "max": max(latencies),
                "avg": statistics.mean(latencies),
            },
            "results": self.results,
        }


def run_benchmarks():
    """Run the benchmark suite and print a summary."""
    print("Starting matching engine benchmarks...")

    tester = LoadTester()

    print("\n=== Order Processing Benchmarks ===")
    for count in (1000, 10000, 50000):
        tester.benchmark_order_processing(count)

    print("\n=== Stress Test ===")
    tester.stress_test(100000)

    print("\n=== Benchmark Summary ===")
    summary = tester.get_summary()
    print(f"Total benchmarks: {summary['total_benchmarks']}")
    print(f"Orders per second - Min: {summary['orders_per_second']['min']:.2f}, "
          f"Max: {summary['orders_per_second']['max']:.2f}, "
          f"Avg: {summary['orders_per_second']['avg']:.2f}")
    print(f"Latency (ms) - Min: {summary['latency_ms']['min']:.4f}, "
          f"Max: {summary['latency_ms']['max']:.4f}, "
          f"Avg: {summary['latency_ms']['avg']:.4f}")

    return summary


if __name__ == "__main__":
    run_benchmarks()
