"""
Telemetry module for poe-client-python.

Provides structured logging with credential masking.
"""

from poe_client.telemetry.logger import (
    JsonFormatter,
    LogContext,
    LogLevel,
    PoeLogger,
    SensitiveDataMasker,
    TextFormatter,
    clear_log_context,
    get_log_context,
    get_logger,
    set_log_context,
)

__all__ = [
    "JsonFormatter",
    "LogContext",
    "LogLevel",
    "PoeLogger",
    "SensitiveDataMasker",
    "TextFormatter",
    "clear_log_context",
    "get_log_context",
    "get_logger",
    "set_log_context",
]
