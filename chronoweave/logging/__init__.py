"""
Logging infrastructure for chronoweave.

Provides structured logging and decorators for tracking history operations.
"""

from .logger import (
    ChronoLogger,
    get_chrono_logger,
    initialize_logging,
    initialize_logging_from_config,
    get_logger_instance,
    log_history_operation,
)

from .decorators import (
    track_history_operation,
    performance_monitor,
)

__all__ = [
    # Logger
    "ChronoLogger",
    "get_chrono_logger",
    "initialize_logging",
    "initialize_logging_from_config",
    "get_logger_instance",
    "log_history_operation",
    # Decorators
    "track_history_operation",
    "performance_monitor",
]
