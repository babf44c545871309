"""Logging configuration and utilities for TidyFS."""

import copy
import logging
import logging.handlers
import sys
from typing import Optional

from .config import LoggingConfig, get_config


class ColoredFormatter(logging.Formatter):
    """Custom formatter that adds colors to console output."""

    # ANSI color codes
    COLORS = {
        'DEBUG': '\033[36m',      # Cyan
        'INFO': '\033[32m',       # Green
        'WARNING': '\033[33m',    # Yellow
        'ERROR': '\033[31m',      # Red
        'CRITICAL': '\033[35m',   # Magenta
        'RESET': '\033[0m'        # Reset
    }

    def format(self, record):
        """Format log record with colors."""
        # Copy so the file handler still sees the plain level name
        record = copy.copy(record)
        if record.levelname in self.COLORS:
            record.levelname = f"{self.COLORS[record.levelname]}{record.levelname}{self.COLORS['RESET']}"

        return super().format(record)


class StderrHandler(logging.StreamHandler):
    """Stream handler that always writes to the current sys.stderr."""

    @property
    def stream(self):
        return sys.stderr

    @stream.setter
    def stream(self, value):
        pass


class LoggingManager:
    """Manages logging configuration and setup."""

    def __init__(self, config: Optional[LoggingConfig] = None):
        """
        Initialize logging manager.

        Args:
            config: Logging configuration. If None, uses global config.
        """
        self.config = config or get_config().logging
        self.handlers = {}
        self._setup_root_logger()

    def _setup_root_logger(self):
        """Set up the tidyfs logger with configured handlers."""
        logger = logging.getLogger("tidyfs")
        self.set_level(self.config.level)

        if self.config.console_enabled:
            console_handler = self._create_console_handler()
            logger.addHandler(console_handler)
            self.handlers['console'] = console_handler

        if self.config.file_enabled and self.config.file_path:
            file_handler = self._create_file_handler()
            if file_handler:
                logger.addHandler(file_handler)
                self.handlers['file'] = file_handler

    def _create_console_handler(self) -> logging.Handler:
        """Create and configure console handler."""
        handler = StderrHandler()

        if sys.stderr.isatty():
            handler.setFormatter(ColoredFormatter(self.config.format))
        else:
            handler.setFormatter(logging.Formatter(self.config.format))

        return handler

    def _create_file_handler(self) -> Optional[logging.Handler]:
        """Create and configure rotating file handler."""
        try:
            self.config.file_path.parent.mkdir(parents=True, exist_ok=True)

            max_bytes = self.config.file_max_size_mb * 1024 * 1024
            handler = logging.handlers.RotatingFileHandler(
                self.config.file_path,
                maxBytes=max_bytes,
                backupCount=self.config.file_backup_count
            )
            handler.setFormatter(logging.Formatter(self.config.format))

            return handler

        except OSError as e:
            # If file handler creation fails, log to console
            logging.getLogger(__name__).error(f"Failed to create file handler: {e}")
            return None

    def set_level(self, level: str):
        """
        Set the logging level for tidyfs loggers.

        Args:
            level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        """
        log_level = getattr(logging, str(level).upper(), None)
        logger = logging.getLogger("tidyfs")
        if not isinstance(log_level, int):
            logger.setLevel(logging.WARNING)
            logger.warning(f"Invalid log level '{level}', using WARNING")
            return
        logger.setLevel(log_level)

    def close(self):
        """Detach and close the handlers this manager installed."""
        logger = logging.getLogger("tidyfs")
        for handler in self.handlers.values():
            logger.removeHandler(handler)
            handler.close()
        self.handlers.clear()


# Global logging manager instance
_logging_manager = None


def setup_logging(config: Optional[LoggingConfig] = None) -> LoggingManager:
    """
    Set up global logging configuration.

    Args:
        config: Optional logging configuration

    Returns:
        LoggingManager instance
    """
    global _logging_manager
    if _logging_manager is not None:
        _logging_manager.close()
    _logging_manager = LoggingManager(config)
    return _logging_manager

