"""
Logging configuration and utilities.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

from rich.console import Console
from rich.logging import RichHandler

ROOT_LOGGER_NAME = "equity_screener"


class LogFormatter(logging.Formatter):
    """Pipe-separated log formatter."""

    SIMPLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
    DETAILED_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None):
        if fmt is None:
            fmt = self.SIMPLE_FORMAT
        super().__init__(fmt, datefmt)


class LoggingManager:
    """Configure and manage logging for the screener components."""

    def __init__(self, config: Optional[dict[str, Any]] = None):
        self.config = config or {}
        self._loggers: dict[str, logging.Logger] = {}

    def setup(self) -> None:
        """Configure handlers on the package root logger."""
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.setLevel(getattr(logging, self.config.get("level", "INFO").upper()))
        root_logger.handlers = []
        root_logger.propagate = False

        console_config = self.config.get("console", {})
        if console_config.get("enabled", True):
            self._setup_console_handler(root_logger, console_config)

        file_config = self.config.get("file", {})
        if file_config.get("enabled", False):
            self._setup_file_handler(root_logger, file_config)

        for component, level in self.config.get("components", {}).items():
            logger = logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")
            logger.setLevel(getattr(logging, level.upper()))

    def _setup_console_handler(self, logger: logging.Logger, config: dict) -> None:
        level = getattr(logging, config.get("level", "INFO").upper())

        if config.get("colors", True) and sys.stderr.isatty():
            handler: logging.Handler = RichHandler(
                console=Console(stderr=True),
                show_time=True,
                show_path=False,
                rich_tracebacks=True,
            )
        else:
            handler = logging.StreamHandler(sys.stderr)
            fmt = LogFormatter.DETAILED_FORMAT if config.get("format") == "detailed" else None
            handler.setFormatter(LogFormatter(fmt=fmt, datefmt="%H:%M:%S"))

        handler.setLevel(level)
        logger.addHandler(handler)

    def _setup_file_handler(self, logger: logging.Logger, config: dict) -> None:
        log_path = Path(config.get("path") or "equity_screener.log")
        log_path.parent.mkdir(parents=True, exist_ok=True)

        handler = RotatingFileHandler(
            log_path,
            maxBytes=config.get("max_size_mb", 100) * 1024 * 1024,
            backupCount=config.get("backup_count", 5),
        )
        handler.setLevel(getattr(logging, config.get("level", "DEBUG").upper()))
        handler.setFormatter(
            LogFormatter(
                fmt=LogFormatter.DETAILED_FORMAT,
                datefmt="%Y-%m-%d %H:%M:%S",
            )
        )

        logger.addHandler(handler)

    def get_logger(self, name: str) -> logging.Logger:
        """Get or create a component logger."""
        full_name = f"{ROOT_LOGGER_NAME}.{name}"

        if full_name not in self._loggers:
            self._loggers[full_name] = logging.getLogger(full_name)

        return self._loggers[full_name]


_logging_manager: Optional[LoggingManager] = None


def setup_logging(config: Optional[dict[str, Any]] = None) -> None:
    """Setup logging from the `logging` section of the configuration."""
    global _logging_manager
    _logging_manager = LoggingManager(config)
    _logging_manager.setup()


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a component."""
    if _logging_manager:
        return _logging_manager.get_logger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
