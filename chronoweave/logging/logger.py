"""
Logging infrastructure for chronoweave.

Provides structured logging with:
- Component-specific loggers (timeline, branching, recorder, codec)
- Log rotation and retention for optional file sinks
- A dedicated history log capturing every commit, fork and travel event
"""

import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from loguru import logger

HISTORY_COMPONENTS = ("timeline", "branching", "recorder", "codec")


class ChronoLogger:
    """
    Logger setup for chronoweave with component-specific sinks.

    Features:
    - Structured logging with bound component context
    - Console sink on stderr
    - Optional rotating file sinks (main, history, errors)
    """

    def __init__(
        self,
        log_dir: Optional[Path] = None,
        rotation: str = "100 MB",
        retention: str = "1 month",
        level: str = "INFO",
        format_string: Optional[str] = None,
        enable_file_logging: bool = False,
        enable_console_logging: bool = True,
    ):
        """
        Initialize the chronoweave logger.

        Args:
            log_dir: Directory for log files
            rotation: When to rotate log files
            retention: How long to keep old logs
            level: Default log level
            format_string: Custom format string
            enable_file_logging: Whether to log to files
            enable_console_logging: Whether to log to console
        """
        self.log_dir = log_dir or Path("logs")
        self.rotation = rotation
        self.retention = retention
        self.level = level

        self.format_string = format_string or (
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
            "<level>{message}</level>"
        )

        # Remove default handler
        logger.remove()

        # Records logged without a bound component still need one for the format
        logger.configure(extra={"component": "system"})

        if enable_console_logging:
            logger.add(
                sys.stderr,
                format=self.format_string,
                level=level,
                colorize=True,
            )

        if enable_file_logging:
            self.log_dir.mkdir(parents=True, exist_ok=True)
            self._add_file_handlers()

        self.logger = logger.bind(component="system")

    def _add_file_handlers(self) -> None:
        """Add file handlers for the main, history and error logs."""

        # Main log file
        logger.add(
            self.log_dir / "chronoweave.log",
            format=self.format_string,
            level=self.level,
            rotation=self.rotation,
            retention=self.retention,
            compression="zip",
        )

        # History operations log (always DEBUG for full capture)
        logger.add(
            self.log_dir / "history.log",
            format=self.format_string,
            level="DEBUG",
            rotation=self.rotation,
            retention=self.retention,
            compression="zip",
            filter=lambda record: record["extra"].get("component")
            in HISTORY_COMPONENTS,
        )

        # Error log (ERROR and above only)
        logger.add(
            self.log_dir / "errors.log",
            format=self.format_string,
            level="ERROR",
            rotation=self.rotation,
            retention=self.retention,
            compression="zip",
        )

    def get_logger(self, component: str) -> Any:
        """
        Get a logger bound to a specific component.

        Args:
            component: Component name (e.g., "timeline", "branching")

        Returns:
            Logger instance bound to the component
        """
        return logger.bind(component=component)


def get_chrono_logger(component: str = "system") -> Any:
    """
    Get a component-specific logger.

    Args:
        component: Component name

    Returns:
        Logger instance

    Example:
        >>> log = get_chrono_logger("timeline")
        >>> log.debug("Pushed patch", index=3)
    """
    return logger.bind(component=component)


def log_history_operation(logger_instance: Any, operation: str, **kwargs: Any) -> None:
    """
    Log a history operation (commit, fork, travel, truncate).

    Args:
        logger_instance: Logger to use
        operation: Operation type
        **kwargs: Additional context
    """
    logger_instance.debug(
        f"History operation: {operation}",
        operation=operation,
        timestamp=datetime.now(timezone.utc).isoformat(),
        **kwargs,
    )


# Global logger instance
_chrono_logger: Optional[ChronoLogger] = None


def initialize_logging(
    log_dir: Optional[Path] = None, level: str = "INFO", **kwargs: Any
) -> ChronoLogger:
    """
    Initialize the chronoweave logging system.

    This should be called once at application startup.

    Args:
        log_dir: Directory for log files
        level: Default log level
        **kwargs: Additional configuration for ChronoLogger

    Returns:
        Configured ChronoLogger instance
    """
    global _chrono_logger
    _chrono_logger = ChronoLogger(log_dir=log_dir, level=level, **kwargs)
    return _chrono_logger


def initialize_logging_from_config() -> ChronoLogger:
    """Initialize logging from the global configuration."""
    from chronoweave.config import config

    settings = config.logging
    return initialize_logging(
        log_dir=settings.log_path,
        level=settings.level,
        rotation=settings.rotation,
        retention=settings.retention,
        enable_file_logging=settings.enable_file_logging,
        enable_console_logging=settings.enable_console_logging,
    )


def get_logger_instance() -> Optional[ChronoLogger]:
    """Get the global logger instance."""
    return _chrono_logger
