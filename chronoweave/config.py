"""
Configuration management for chronoweave.

This module provides centralized configuration for the versioning engine:
- Timeline storage mode and checkpoint spacing
- History topology (linear undo/redo or branching)
- Logging settings
"""

import os
from pathlib import Path
from typing import Literal, cast

from dotenv import load_dotenv
from pydantic import BaseModel, Field

# Load environment variables from .env file
load_dotenv()


class HistoryConfig(BaseModel):
    """Default options for timelines and time machines."""

    mode: Literal["full", "patch", "hybrid"] = Field(
        default="patch",
        description="Storage mode: full snapshots, patches only, or patches with checkpoints",
    )
    checkpoint_interval: int = Field(
        default=10,
        gt=0,
        description="Spacing between stored snapshots in hybrid mode",
    )
    topology: Literal["linear", "branching"] = Field(
        default="linear",
        description="Whether committing from the past discards redo history or forks a branch",
    )


class LogConfig(BaseModel):
    """Configuration for logging system."""

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    format: str = Field(
        default="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan> - "
        "<level>{message}</level>",
        description="Log message format",
    )
    rotation: str = Field(default="100 MB", description="Log file rotation size")
    retention: str = Field(default="1 month", description="Log file retention period")
    log_dir: str = Field(default="logs", description="Directory for log files")
    enable_file_logging: bool = Field(
        default=False, description="Whether to enable file logging"
    )
    enable_console_logging: bool = Field(
        default=True, description="Whether to enable console logging"
    )

    @property
    def log_path(self) -> Path:
        """Get absolute path to the log directory."""
        return Path(self.log_dir).resolve()


class Config(BaseModel):
    """Main configuration object for chronoweave."""

    history: HistoryConfig = Field(default_factory=HistoryConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "Config":
        """Create configuration from environment variables."""
        return cls(
            history=HistoryConfig(
                mode=cast(
                    Literal["full", "patch", "hybrid"],
                    os.getenv("CHRONOWEAVE_MODE", "patch"),
                ),
                checkpoint_interval=int(
                    os.getenv("CHRONOWEAVE_CHECKPOINT_INTERVAL", "10")
                ),
                topology=cast(
                    Literal["linear", "branching"],
                    os.getenv("CHRONOWEAVE_TOPOLOGY", "linear"),
                ),
            ),
            logging=LogConfig(
                level=cast(
                    Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
                    os.getenv("CHRONOWEAVE_LOG_LEVEL", "INFO"),
                ),
                log_dir=os.getenv("CHRONOWEAVE_LOG_DIR", "logs"),
                enable_file_logging=os.getenv(
                    "CHRONOWEAVE_FILE_LOGGING", "false"
                ).lower()
                in ("1", "true", "yes"),
            ),
        )


# Global configuration instance
# This can be imported throughout the codebase
config = Config.from_env()
