"""
Configuration settings for the matching engine application.

Settings come from environment variables with sensible defaults. Only
the outer layers (console, REST server, entry point) read them; the
engine receives the values it needs as constructor arguments.
"""

import os
from typing import Optional, Dict, Any


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() == "true"


class Settings:
    """
    Configuration settings for the matching engine application.
    """

    def __init__(self):
        """Initialize settings from environment variables."""
        # Server configuration
        self.rest_host = os.getenv("REST_HOST", "127.0.0.1")
        self.rest_port = int(os.getenv("REST_PORT", "5000"))

        # Logging configuration
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        self.log_file = os.getenv("LOG_FILE") or None
        self.trade_log_file = os.getenv("TRADE_LOG_FILE", "trades.log")

        # Risk limit
        self.max_order_quantity = int(os.getenv("MAX_ORDER_QUANTITY", "1000"))

        # Order book display
        self.book_display_depth = int(os.getenv("BOOK_DISPLAY_DEPTH", "5"))
        self.max_book_depth = int(os.getenv("MAX_BOOK_DEPTH", "100"))

        # Random order generation
        self.max_random_orders = int(os.getenv("MAX_RANDOM_ORDERS", "100"))
        seed = os.getenv("RANDOM_SEED")
        self.random_seed: Optional[int] = int(seed) if seed else None

        # Security
        self.enable_cors = _env_bool("ENABLE_CORS", "true")
        self.cors_origins = os.getenv("CORS_ORIGINS", "*").split(",")

        # Debug mode
        self.debug = _env_bool("DEBUG", "false")

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary."""
        return {
            "rest_host": self.rest_host,
            "rest_port": self.rest_port,
            "log_level": self.log_level,
            "log_file": self.log_file,
            "trade_log_file": self.trade_log_file,
            "max_order_quantity": self.max_order_quantity,
            "book_display_depth": self.book_display_depth,
            "max_book_depth": self.max_book_depth,
            "max_random_orders": self.max_random_orders,
            "random_seed": self.random_seed,
            "enable_cors": self.enable_cors,
            "cors_origins": self.cors_origins,
            "debug": self.debug,
        }

    def validate(self) -> None:
        """Validate configuration settings."""
        errors = []

        if not (1 <= self.rest_port <= 65535):
            errors.append(f"Invalid REST port: {self.rest_port}")

        if self.log_level.upper() not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            errors.append(f"Invalid log level: {self.log_level}")

        if not self.trade_log_file:
            errors.append("Trade log file cannot be empty")

        if self.max_order_quantity <= 0:
            errors.append(f"Max order quantity must be positive: {self.max_order_quantity}")

        if self.book_display_depth <= 0:
            errors.append(f"Book display depth must be positive: {self.book_display_depth}")

        if self.max_book_depth < self.book_display_depth:
            errors.append(
                f"Max book depth must be at least the display depth: "
                f"{self.max_book_depth} < {self.book_display_depth}"
            )

        if self.max_random_orders <= 0:
            errors.append(f"Max random orders must be positive: {self.max_random_orders}")

        if errors:
            raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get the global settings instance.

    Returns:
        Settings instance
    """
    global _settings
    if _settings is None:
        _settings = Settings()
        _settings.validate()
    return _settings


def reload_settings() -> Settings:
    """
    Reload settings from environment variables.

    Returns:
        New settings instance
    """
    global _settings
    _settings = Settings()
    _settings.validate()
    return _settings
