"""Configuration module."""

from src.config.logging import (
    bind_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
)
from src.config.settings import (
    FulfillmentSettings,
    Settings,
    get_settings,
    reset_settings,
)

__all__ = [
    "Settings",
    "FulfillmentSettings",
    "get_settings",
    "reset_settings",
    "configure_logging",
    "get_logger",
    "bind_request_context",
    "clear_request_context",
]
