"""
Randomized invariant checks for the matching engine.

Each test replays seeded order streams and checks the book and trade
tape after every submission.
"""

import random
import unittest
from decimal import Decimal
from typing import Dict, List, Tuple

from hft_engine.core.matching_engine import MatchingEngine, ExecutionReport
from hft_engine.core.order import Order
from hft_engine.core.order_types import OrderSide, OrderOutcome

SEEDS = (1, 7, 42, 2024)
ORDERS_PER_RUN = 400


def order_stream(seed: int, count: int = ORDERS_PER_RUN) -> List[Order]:
    """
    Orders priced on a narrow grid so that crossing is frequent.

    Some quantities exceed the risk limit and some timestamps repeat.
    """
    rng = random.Random(seed)
    orders = []
    timestamp = 0
    for order_id in range(1, count + 1):
        if rng.random() < 0.7:
            timestamp += 1
        side = rng.choice((OrderSide.BUY, OrderSide.SELL))
        price = Decimal(95) + Decimal(rng.randint(0, 20)) / 2
        quantity = rng.randint(1, 1200) if rng.random() < 0.1 else rng.randint(1, 100)
        orders.append(Order(order_id, side, price, quantity, timestamp))
    return orders


def run_stream(orders: List[Order]) -> Tuple[MatchingEngine, List[Tuple[Order, ExecutionReport, list, list]]]:
    """Submit every order, capturing both sides of the book just before each one."""
    engine = MatchingEngine()
    history = []
    for order in orders:
        bids_before = engine.order_book.bids.snapshot()
        asks_before = engine.order_book.asks.snapshot()
        report = engine.submit_order(order)
        history.append((order, report, bids_before, asks_before))
    engine.close()
    return engine, history


class TestMatchingProperties(unittest.TestCase):
    """Invariant checks over random order streams."""

    @classmethod
    def setUpClass(cls):
        cls.runs = {seed: run_stream(order_stream(seed)) for seed in SEEDS}

    def test_book_uncrossed_after_every_order(self):
        for seed in SEEDS:
            engine = MatchingEngine()
            for order in order_stream(seed):
                engine.process_order(order)
                book = engine.order_book
                if book.has_buys() and book.has_sells():
                    self.assertLess(
                        book.peek_top_buy().price_ticks,
                        book.peek_top_sell().price_ticks,
                        f"crossed book after order {order.order_id} (seed {seed})",
                    )
            engine.close()

    def test_quantity_conservation(self):
        for seed, (engine, history) in self.runs.items():
            admitted = {OrderSide.BUY: 0, OrderSide.SELL: 0}
            traded = 0
            for order, report, _, _ in history:
                if report.outcome is not OrderOutcome.REJECTED:
                    admitted[order.side] += order.quantity
                traded += sum(trade.quantity for trade in report.trades)

            snapshot = engine.snapshot()
            with self.subTest(seed=seed):
                self.assertEqual(admitted[OrderSide.BUY], traded + snapshot.buy_total)
                self.assertEqual(admitted[OrderSide.SELL], traded + snapshot.sell_total)

    def test_resting_orders_consumed_in_priority_order(self):
        for seed, (_, history) in self.runs.items():
            for order, report, bids_before, asks_before in history:
                if not report.trades:
                    continue
                if order.side is OrderSide.BUY:
                    consumed = [trade.sell_order_id for trade in report.trades]
                    expected = [resting.order_id for resting in asks_before]
                else:
                    consumed = [trade.buy_order_id for trade in report.trades]
                    expected = [resting.order_id for resting in bids_before]
                with self.subTest(seed=seed, order_id=order.order_id):
                    self.assertEqual(consumed, expected[:len(consumed)])

    def test_aggressor_limit_and_resting_price(self):
        for seed, (_, history) in self.runs.items():
            for order, report, bids_before, asks_before in history:
                resting_prices: Dict[int, Decimal] = {
                    resting.order_id: resting.price for resting in bids_before + asks_before
                }
                for trade in report.trades:
                    with self.subTest(seed=seed, order_id=order.order_id):
                        self.assertEqual(trade.aggressor_side, order.side)
                        if order.side is OrderSide.BUY:
                            self.assertEqual(trade.buy_order_id, order.order_id)
                            self.assertLessEqual(trade.price, order.price)
                            self.assertEqual(trade.price, resting_prices[trade.sell_order_id])
                        else:
                            self.assertEqual(trade.sell_order_id, order.order_id)
                            self.assertGreaterEqual(trade.price, order.price)
                            self.assertEqual(trade.price, resting_prices[trade.buy_order_id])

    def test_rejected_orders_never_trade_or_rest(self):
        for seed, (engine, history) in self.runs.items():
            rejected = {order.order_id for order, report, _, _ in history if report.rejected}
            self.assertTrue(rejected, f"seed {seed} produced no rejections")

            traded_ids = set()
            for _, report, _, _ in history:
                for trade in report.trades:
                    traded_ids.update((trade.buy_order_id, trade.sell_order_id))
            snapshot = engine.snapshot()
            resting_ids = {o.order_id for o in snapshot.bids + snapshot.asks}

            with self.subTest(seed=seed):
                self.assertFalse(rejected & traded_ids)
                self.assertFalse(rejected & resting_ids)
                for order, report, _, _ in history:
                    if order.quantity > engine.max_quantity:
                        self.assertEqual(report.outcome, OrderOutcome.REJECTED)

    def test_outcome_matches_report(self):
        for _, history in self.runs.values():
            for order, report, _, _ in history:
                if report.rejected:
                    self.assertEqual(report.trades, [])
                elif report.remaining_quantity == 0:
                    self.assertEqual(report.outcome, OrderOutcome.ACCEPTED_FILLED)
                    self.assertEqual(report.filled_quantity, order.quantity)
                elif report.trades:
                    self.assertEqual(report.outcome, OrderOutcome.ACCEPTED_PARTIAL_RESTED)
                else:
                    self.assertEqual(report.outcome, OrderOutcome.ACCEPTED_RESTED)

    def test_deterministic_replay(self):
        for seed in SEEDS:
            first_engine, first = run_stream(order_stream(seed))
            second_engine, second = run_stream(order_stream(seed))

            first_trades = [trade for _, report, _, _ in first for trade in report.trades]
            second_trades = [trade for _, report, _, _ in second for trade in report.trades]
            with self.subTest(seed=seed):
                self.assertTrue(first_trades)
                self.assertEqual(first_trades, second_trades)
                self.assertEqual(first_engine.snapshot().to_dict(), second_engine.snapshot().to_dict())


if __name__ == '__main__':
    unittest.main()
