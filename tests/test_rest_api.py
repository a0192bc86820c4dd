"""
Tests for the REST API, using the Flask test client.
"""

import os
import unittest
from unittest import mock

from hft_engine.api.rest_api import create_app
from hft_engine.config.settings import Settings
from hft_engine.core.matching_engine import MatchingEngine
from hft_engine.utils.order_generator import OrderGenerator


class TestRestApi(unittest.TestCase):
    """Test cases for the HTTP endpoints."""

    def setUp(self):
        with mock.patch.dict(os.environ, {}, clear=True):
            self.settings = Settings()
        self.engine = MatchingEngine()
        self.app = create_app(
            engine=self.engine,
            generator=OrderGenerator(seed=11),
            settings=self.settings,
        )
        self.client = self.app.test_client()

    def tearDown(self):
        self.engine.close()

    def post_order(self, **body):
        return self.client.post('/orders', json=body)

    def test_health(self):
        response = self.client.get('/health')
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()['status'], 'healthy')

    def test_submit_matching_orders(self):
        first = self.post_order(side='sell', price='100.00', quantity=50)
        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.get_json()['outcome'], 'accepted_rested')

        second = self.post_order(side='buy', price=101, quantity=50)
        data = second.get_json()
        self.assertEqual(data['outcome'], 'accepted_filled')
        self.assertEqual(data['filled_quantity'], 50)
        self.assertEqual(data['remaining_quantity'], 0)
        self.assertEqual(len(data['trades']), 1)
        trade = data['trades'][0]
        self.assertEqual(trade['buy_order_id'], 2)
        self.assertEqual(trade['sell_order_id'], 1)
        self.assertEqual(trade['price'], '100.00')
        self.assertEqual(trade['aggressor_side'], 'buy')

    def test_explicit_id_and_timestamp(self):
        response = self.post_order(side='buy', price='99.50', quantity=10, order_id=77, timestamp=5)
        data = response.get_json()
        self.assertEqual(data['order']['order_id'], 77)
        self.assertEqual(data['order']['timestamp'], 5)

    def test_risk_rejection_is_reported(self):
        response = self.post_order(side='buy', price='100.00', quantity=1500)
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['outcome'], 'rejected')
        self.assertEqual(data['reason'], 'max_quantity_exceeded')
        self.assertEqual(data['trades'], [])
        self.assertFalse(self.engine.order_book.has_buys())

    def test_malformed_orders(self):
        cases = [
            {'side': 'buy', 'price': '100.00'},
            {'side': 'hold', 'price': '100.00', 'quantity': 1},
            {'side': 'buy', 'price': 'abc', 'quantity': 1},
            {'side': 'buy', 'price': '-1', 'quantity': 1},
            {'side': 'buy', 'price': '1e30', 'quantity': 1},
            {'side': 'buy', 'price': 'Infinity', 'quantity': 1},
            {'side': 'buy', 'price': '100', 'quantity': 0},
            {'side': 'buy', 'price': '100', 'quantity': 2.5},
            {'side': 'buy', 'price': '100', 'quantity': 1, 'timestamp': 'soon'},
        ]
        for body in cases:
            with self.subTest(body=body):
                response = self.client.post('/orders', json=body)
                self.assertEqual(response.status_code, 400)
                self.assertIn('error', response.get_json())

        response = self.client.post('/orders', data='not json', content_type='text/plain')
        self.assertEqual(response.status_code, 400)
        self.assertEqual(self.engine.total_orders_processed, 0)

    def test_order_book(self):
        self.post_order(side='buy', price='99.00', quantity=10)
        self.post_order(side='buy', price='98.00', quantity=20)
        self.post_order(side='sell', price='101.00', quantity=5)

        response = self.client.get('/orderbook?depth=1')
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['depth'], 1)
        self.assertEqual([o['price'] for o in data['bids']], ['99.00'])
        self.assertEqual([o['price'] for o in data['asks']], ['101.00'])
        self.assertEqual(data['buy_total'], 30)
        self.assertEqual(data['sell_total'], 5)
        self.assertEqual(data['statistics']['spread'], '2.00')

    def test_order_book_depth_validation(self):
        for depth in ('0', 'abc', '101'):
            with self.subTest(depth=depth):
                response = self.client.get(f'/orderbook?depth={depth}')
                self.assertEqual(response.status_code, 400)

    def test_random_orders(self):
        response = self.client.post('/orders/random', json={'count': 5})
        self.assertEqual(response.status_code, 200)
        data = response.get_json()
        self.assertEqual(data['count'], 5)
        self.assertEqual(len(data['reports']), 5)
        self.assertEqual(data['reports'][0]['order_id'], 10000)
        self.assertEqual(self.engine.total_orders_processed, 5)

        for count in (0, 101, 'many', None):
            with self.subTest(count=count):
                response = self.client.post('/orders/random', json={'count': count})
                self.assertEqual(response.status_code, 400)

    def test_recent_trades(self):
        self.post_order(side='sell', price='100.00', quantity=10)
        self.post_order(side='sell', price='100.50', quantity=10)
        self.post_order(side='buy', price='101.00', quantity=15)

        data = self.client.get('/trades').get_json()
        self.assertEqual(data['count'], 2)
        self.assertEqual([t['price'] for t in data['trades']], ['100.00', '100.50'])

        data = self.client.get('/trades?limit=1').get_json()
        self.assertEqual([t['price'] for t in data['trades']], ['100.50'])

        self.assertEqual(self.client.get('/trades?limit=0').status_code, 400)

    def test_statistics(self):
        self.post_order(side='sell', price='100.00', quantity=10)
        self.post_order(side='buy', price='100.00', quantity=10)

        data = self.client.get('/statistics').get_json()
        self.assertEqual(data['total_orders_processed'], 2)
        self.assertEqual(data['total_trades_executed'], 1)
        self.assertEqual(data['total_volume'], 10)

    def test_unknown_endpoint_and_method(self):
        response = self.client.get('/nope')
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.get_json()['error'], 'Endpoint not found')

        response = self.client.get('/orders')
        self.assertEqual(response.status_code, 405)

    def test_default_engine(self):
        app = create_app(settings=self.settings)
        client = app.test_client()
        client.post('/orders', json={'side': 'buy', 'price': '10', 'quantity': 1})

        data = client.get('/statistics').get_json()
        self.assertEqual(data['total_orders_processed'], 1)
        self.assertIn('performance', data)
        app.extensions['exchange'].engine.close()


if __name__ == '__main__':
    unittest.main()
