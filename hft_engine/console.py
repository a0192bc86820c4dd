"""
Interactive console for the matching engine.

Presents the menu-driven shell: place an order, show the book,
generate random orders, exit. Input and output functions are injectable
so the shell can be driven from a script.
"""

import logging
from typing import Callable, Optional

from .api.validators import validate_price
from .core.matching_engine import MatchingEngine
from .core.order_types import OrderOutcome, OrderSide
from .utils.order_generator import OrderGenerator

logger = logging.getLogger(__name__)

MENU = """
========== MAIN MENU ==========
1. Place new order
2. Show current order book
3. Generate random orders
4. Exit
=============================="""


class TradingConsole:
    """Menu loop around a MatchingEngine."""

    def __init__(
        self,
        engine: MatchingEngine,
        generator: Optional[OrderGenerator] = None,
        input_func: Callable[[str], str] = input,
        output_func: Callable[[str], None] = print,
        trade_log_file: str = "trades.log",
        display_depth: int = 5,
        max_random_orders: int = 100,
    ):
        self.engine = engine
        self.generator = generator or OrderGenerator()
        self.input = input_func
        self.output = output_func
        self.trade_log_file = trade_log_file
        self.display_depth = display_depth
        self.max_random_orders = max_random_orders

    def run(self) -> None:
        """Run the menu loop until the user exits or input ends."""
        self.output("=== High-Frequency Trading Engine ===")
        self.output("Welcome to the Order Matching System!")

        while True:
            self.output(MENU)
            try:
                choice = self.input("Enter your choice (1-4): ").strip()
            except EOFError:
                self._farewell()
                return

            try:
                if choice == "1":
                    self.place_order()
                elif choice == "2":
                    self.show_order_book()
                elif choice == "3":
                    self.generate_random_orders()
                elif choice == "4":
                    self._farewell()
                    return
                else:
                    self.output("Invalid choice! Please enter a number between 1 and 4.")
            except EOFError:
                self._farewell()
                return

    def place_order(self) -> None:
        self.output("\n--- Place New Order ---")
        side_text = self.input("Enter order type (buy/sell): ").strip().lower()
        try:
            side = OrderSide(side_text)
        except ValueError:
            self.output("Invalid order type! Please enter 'buy' or 'sell'.")
            return

        price_text = self.input("Enter price: $").strip()
        price_ok, _, price = validate_price(price_text)
        if not price_ok:
            self.output("Invalid price! Price must be positive.")
            return

        quantity_text = self.input("Enter quantity: ").strip()
        try:
            quantity = int(quantity_text)
        except ValueError:
            quantity = 0
        if quantity <= 0:
            self.output("Invalid quantity! Quantity must be positive.")
            return

        order = self.generator.create(side, price, quantity)
        self._submit(order)

    def show_order_book(self) -> None:
        self.output(self.engine.display_order_book(self.display_depth))

    def generate_random_orders(self) -> None:
        count_text = self.input("Enter number of random orders to generate: ").strip()
        try:
            count = int(count_text)
        except ValueError:
            count = 0
        if not (1 <= count <= self.max_random_orders):
            self.output(f"Please enter a number between 1 and {self.max_random_orders}.")
            return

        self.output(f"\nGenerating {count} random orders...")
        for order in self.generator.random_orders(count):
            self._submit(order)

    def _submit(self, order) -> None:
        report = self.engine.submit_order(order)
        if report.outcome is OrderOutcome.REJECTED:
            self.output(f"Order rejected: {report.message}")
            return

        self.output("\nProcessing new order:")
        self.output(order.display())
        for trade in report.trades:
            self.output(trade.describe())
        if report.remaining_quantity:
            self.output(f"Order {order.order_id} resting with quantity {report.remaining_quantity}")

    def _farewell(self) -> None:
        self.output("\nThank you for using the High-Frequency Trading Engine!")
        self.output(f"All trades have been logged to '{self.trade_log_file}'.")
        self.output("Goodbye!")
