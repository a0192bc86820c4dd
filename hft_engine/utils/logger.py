"""
Logging configuration for the matching engine.

This module sets up console and rotating file logging for the
application, and builds the dedicated logger behind the trade log file.
"""

import logging
import logging.handlers
import os
import sys
from typing import Optional

TRADE_LOG_FORMAT = '%(asctime)s - %(message)s'
TRADE_LOG_DATEFMT = '%Y-%m-%d %H:%M:%S'


def setup_logging(
    level: str = "INFO",
    log_file: Optional[str] = None,
    max_file_size: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 5
) -> None:
    """
    Set up logging configuration for the matching engine.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (optional)
        max_file_size: Maximum log file size in bytes
        backup_count: Number of backup files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    detailed_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    simple_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)

    # Clear existing handlers
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(simple_formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        _ensure_parent_dir(log_file)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size,
            backupCount=backup_count
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(detailed_formatter)
        root_logger.addHandler(file_handler)

    logging.getLogger('werkzeug').setLevel(logging.WARNING)

    logger = logging.getLogger(__name__)
    logger.info(f"Logging initialized - Level: {level}, File: {log_file or 'Console only'}")


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a specific module.

    Args:
        name: Logger name (usually __name__)

    Returns:
        Logger instance
    """
    return logging.getLogger(name)


def _ensure_parent_dir(path: str) -> None:
    log_dir = os.path.dirname(path)
    if log_dir and not os.path.exists(log_dir):
        os.makedirs(log_dir)


class TradeLogFormatter(logging.Formatter):
    """
    Prefixes trade lines with a wall-clock timestamp.

    Records logged with ``extra={"session_marker": True}`` are written
    verbatim.
    """

    def __init__(self):
        super().__init__(TRADE_LOG_FORMAT, datefmt=TRADE_LOG_DATEFMT)

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, "session_marker", False):
            return record.getMessage()
        return super().format(record)


def create_trade_logger(log_file: str = "trades.log", name: str = "hft_engine.trades") -> logging.Logger:
    """
    Create a dedicated logger that appends to the trade log file.

    The logger is not registered with the logging manager and does not
    propagate, so trade lines never reach the application log handlers and
    each call gets its own logger, released once the caller drops it.

    Args:
        log_file: Path to trade log file
        name: Logger name used in records

    Returns:
        Trade logger instance
    """
    _ensure_parent_dir(log_file)

    trade_logger = logging.Logger(name)
    trade_logger.setLevel(logging.INFO)
    trade_logger.propagate = False

    handler = logging.FileHandler(log_file, mode='a', encoding='utf-8')
    handler.setFormatter(TradeLogFormatter())
    trade_logger.addHandler(handler)

    return trade_logger
