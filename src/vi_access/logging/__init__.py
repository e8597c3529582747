"""
Structured logging module.

Provides JSON and console logging with operation-scoped context.
"""

from vi_access.logging.context import (
    clear_log_context,
    generate_operation_id,
    get_log_context,
    set_log_context,
)
from vi_access.logging.context_managers import LogContext
from vi_access.logging.formatters import ConsoleFormatter, JSONFormatter
from vi_access.logging.setup import setup_logging

__all__ = [
    # Setup
    "setup_logging",
    # Formatters
    "JSONFormatter",
    "ConsoleFormatter",
    # Context
    "set_log_context",
    "get_log_context",
    "clear_log_context",
    "generate_operation_id",
    "LogContext",
]
