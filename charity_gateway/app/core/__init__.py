"""Core utilities for the gateway application."""

from charity_gateway.app.core.config import CharityAPIConfig, Settings, settings
from charity_gateway.app.core.logging import get_log_context, get_logger, setup_logging
from charity_gateway.app.core.utils import format_epoch_ms, now_ms

__all__ = [
    "CharityAPIConfig",
    "Settings",
    "settings",
    "get_logger",
    "get_log_context",
    "setup_logging",
    "format_epoch_ms",
    "now_ms",
]
