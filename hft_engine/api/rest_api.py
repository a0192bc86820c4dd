"""
REST API for the matching engine.

A thin HTTP front-end for order entry and book inspection. All requests
are served against one engine; Flask's development server handles them
one at a time and a lock serialises access for threaded servers.
"""

import logging
import threading
from collections import deque
from datetime import datetime, timezone
from typing import Any, Deque, Dict, Optional

from flask import Flask, request, jsonify
from flask_cors import CORS

from .. import __version__
from ..config.settings import Settings, get_settings
from ..core.matching_engine import MatchingEngine
from ..core.order import Trade
from ..utils.order_generator import OrderGenerator
from ..utils.performance import PerformanceMonitor, get_performance_monitor
from .validators import (
    validate_order_request,
    validate_depth_request,
    validate_random_count,
)

logger = logging.getLogger(__name__)

RECENT_TRADES_LIMIT = 1000


class ExchangeService:
    """
    Everything the HTTP handlers share: the engine, the order id and
    timestamp source, and a bounded tape of recent trades.
    """

    def __init__(
        self,
        engine: MatchingEngine,
        generator: OrderGenerator,
        settings: Settings,
        performance_monitor: Optional[PerformanceMonitor] = None,
    ):
        self.engine = engine
        self.generator = generator
        self.settings = settings
        self.performance_monitor = performance_monitor
        self.recent_trades: Deque[Trade] = deque(maxlen=RECENT_TRADES_LIMIT)
        self.lock = threading.Lock()
        engine.add_trade_callback(self.recent_trades.append)


def create_app(
    engine: Optional[MatchingEngine] = None,
    generator: Optional[OrderGenerator] = None,
    settings: Optional[Settings] = None,
) -> Flask:
    """
    Create and configure the Flask application.

    Args:
        engine: Engine to serve; a new in-memory engine when omitted
        generator: Id and timestamp source for submitted orders
        settings: Application settings; the global settings when omitted

    Returns:
        Configured Flask application
    """
    settings = settings or get_settings()
    monitor = None
    if engine is None:
        monitor = get_performance_monitor()
        engine = MatchingEngine(
            max_quantity=settings.max_order_quantity,
            performance_monitor=monitor,
        )
    else:
        monitor = engine.performance_monitor
    generator = generator or OrderGenerator(seed=settings.random_seed)

    app = Flask(__name__)
    if settings.enable_cors:
        CORS(app, origins=settings.cors_origins)

    service = ExchangeService(engine, generator, settings, monitor)
    app.extensions['exchange'] = service

    register_routes(app, service)

    logger.info("REST API initialized")
    return app


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')


def register_routes(app: Flask, service: ExchangeService) -> None:
    """Register all API routes."""

    @app.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        return jsonify({
            'status': 'healthy',
            'timestamp': _timestamp(),
            'version': __version__,
        })

    @app.route('/orders', methods=['POST'])
    def submit_order():
        """
        Submit a new limit order.

        Request body:
        {
            "side": "buy",
            "price": "100.50",
            "quantity": 25
        }
        """
        data = request.get_json(silent=True)
        if data is None:
            return jsonify({'error': 'Request body must be JSON'}), 400

        is_valid, error, validated = validate_order_request(data)
        if not is_valid:
            return jsonify({'error': error}), 400

        with service.lock:
            order = service.generator.create(
                validated['side'],
                validated['price'],
                validated['quantity'],
                order_id=validated['order_id'],
                timestamp=validated['timestamp'],
            )
            report = service.engine.submit_order(order)

        response_data = report.to_dict()
        response_data['order'] = order.to_dict()
        response_data['timestamp'] = _timestamp()
        return jsonify(response_data), 200

    @app.route('/orders/random', methods=['POST'])
    def generate_random_orders():
        """
        Generate and submit random orders.

        Request body:
        {
            "count": 10
        }
        """
        data = request.get_json(silent=True) or {}
        is_valid, error, count = validate_random_count(
            data.get('count'), service.settings.max_random_orders
        )
        if not is_valid:
            return jsonify({'error': error}), 400

        with service.lock:
            reports = [
                service.engine.submit_order(order)
                for order in service.generator.random_orders(count)
            ]

        return jsonify({
            'count': count,
            'trades_executed': sum(len(report.trades) for report in reports),
            'rejected': sum(1 for report in reports if report.rejected),
            'reports': [report.to_dict() for report in reports],
        }), 200

    @app.route('/orderbook', methods=['GET'])
    def get_order_book():
        """
        Get the resting orders on both sides.

        Query parameters:
        - depth: Orders per side (default: 5, max: settings.max_book_depth)
        """
        is_valid, error, depth = validate_depth_request(
            request.args.get('depth'), service.settings.max_book_depth
        )
        if not is_valid:
            return jsonify({'error': error}), 400

        with service.lock:
            snapshot = service.engine.snapshot(depth)
            statistics = service.engine.get_order_book().get_statistics()

        response_data = snapshot.to_dict()
        response_data.update({
            'depth': depth,
            'timestamp': _timestamp(),
            'statistics': statistics,
        })
        return jsonify(response_data), 200

    @app.route('/trades', methods=['GET'])
    def get_trades():
        """
        Get the most recent trades, oldest first.

        Query parameters:
        - limit: Number of trades (default: 50)
        """
        limit = request.args.get('limit', 50)
        try:
            limit = int(limit)
        except (TypeError, ValueError):
            return jsonify({'error': f'Invalid limit: {limit}'}), 400
        if limit <= 0:
            return jsonify({'error': 'Limit must be positive'}), 400

        with service.lock:
            trades = list(service.recent_trades)[-limit:]

        return jsonify({
            'trades': [trade.to_dict() for trade in trades],
            'count': len(trades),
        }), 200

    @app.route('/statistics', methods=['GET'])
    def get_statistics():
        """Get engine statistics."""
        with service.lock:
            stats: Dict[str, Any] = service.engine.get_statistics()
        if service.performance_monitor is not None:
            stats['performance'] = service.performance_monitor.get_summary()
        return jsonify(stats), 200

    @app.errorhandler(404)
    def not_found(error):
        return jsonify({'error': 'Endpoint not found'}), 404

    @app.errorhandler(405)
    def method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {str(error)}")
        return jsonify({'error': 'Internal server error'}), 500


def run_server(
    engine: Optional[MatchingEngine] = None,
    settings: Optional[Settings] = None,
) -> None:
    """
    Run the REST API server.

    Args:
        engine: Engine to serve
        settings: Host, port and debug flag come from here
    """
    settings = settings or get_settings()
    app = create_app(engine=engine, settings=settings)
    logger.info(f"Starting REST API server on {settings.rest_host}:{settings.rest_port}")
    app.run(
        host=settings.rest_host,
        port=settings.rest_port,
        debug=settings.debug,
        use_reloader=False,
    )
