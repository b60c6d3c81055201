"""Utility modules for the scaffold generator.

Provides:
- Structured logging configuration
"""

from .logging import LogContext, configure_logging, get_logger, log_operation

__all__ = [
    # Logging
    "configure_logging",
    "get_logger",
    "LogContext",
    "log_operation",
]
