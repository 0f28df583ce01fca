"""
Logging utilities for formulafun.

Provides structured logging with configurable levels, formats, and outputs.
"""

import functools
import logging
import sys
import time
from pathlib import Path
from typing import Optional, Union
from ..config.settings import get_default_config, LogLevel


class ColoredFormatter(logging.Formatter):
    """Console formatter that colours the level name."""

    LEVEL_COLORS = {
        logging.DEBUG: '\033[36m',
        logging.INFO: '\033[32m',
        logging.WARNING: '\033[33m',
        logging.ERROR: '\033[31m',
        logging.CRITICAL: '\033[35m',
    }
    RESET = '\033[0m'

    def format(self, record):
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None:
            return super().format(record)

        levelname = record.levelname
        record.levelname = f"{color}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Records are shared between handlers; keep the file handler uncolored.
            record.levelname = levelname


class FormulaFunLogger:
    """Logger wrapper for formulafun with lazy configuration and context."""

    def __init__(self, name: str, config=None):
        self.name = name
        self._config = config
        self.logger = logging.getLogger(name)
        self._configured = False

    @property
    def config(self):
        return self._config or get_default_config()

    def _ensure_configured(self):
        """Ensure logger is configured."""
        if not self._configured:
            self._configure()
            self._configured = True

    def _configure(self):
        """Configure the logger based on settings."""
        settings = self.config.logging
        level = getattr(settings.level, "value", settings.level)
        self.logger.setLevel(getattr(logging, str(level).upper()))

        self.logger.handlers.clear()

        if settings.console_logging:
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setFormatter(ColoredFormatter(settings.format_string))
            self.logger.addHandler(console_handler)

        if settings.file_logging and settings.log_file:
            settings.log_file.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(settings.log_file)
            file_handler.setFormatter(logging.Formatter(settings.format_string))
            self.logger.addHandler(file_handler)

        # Prevent propagation to avoid duplicate messages
        self.logger.propagate = False

    def _log(self, level: int, message: str, **context):
        self._ensure_configured()
        if self.logger.isEnabledFor(level):
            if context:
                message = " | ".join([message] + [f"{k}={v}" for k, v in context.items()])
            self.logger.log(level, message)

    def debug(self, message: str, **context):
        """Log a debug message with optional key=value context."""
        self._log(logging.DEBUG, message, **context)

    def info(self, message: str, **context):
        self._log(logging.INFO, message, **context)

    def error(self, message: str, **context):
        self._log(logging.ERROR, message, **context)


# Global logger registry
_loggers = {}


def get_logger(name: str = "formulafun") -> FormulaFunLogger:
    """
    Get a logger instance.

    Args:
        name: Logger name (defaults to 'formulafun')

    Returns:
        Lazily configured logger instance
    """
    if name not in _loggers:
        _loggers[name] = FormulaFunLogger(name)
    return _loggers[name]


def setup_logging(
    level: Optional[Union[str, LogLevel]] = None,
    console: Optional[bool] = None,
    file_path: Optional[Union[str, Path]] = None,
    format_string: Optional[str] = None
) -> None:
    """
    Setup global logging configuration.

    Args:
        level: Logging level
        console: Enable console logging
        file_path: Path for file logging
        format_string: Custom format string
    """
    config = get_default_config()

    if level is not None:
        config.logging.level = LogLevel(level.upper()) if isinstance(level, str) else level

    if console is not None:
        config.logging.console_logging = console

    if file_path is not None:
        config.logging.file_logging = True
        config.logging.log_file = Path(file_path)

    if format_string is not None:
        config.logging.format_string = format_string

    # Reconfigure all existing loggers
    for logger in _loggers.values():
        logger._configured = False


def log_performance(func):
    """Decorator to log function performance."""

    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        started = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            logger.error(f"{func.__name__} failed: {e}", seconds=f"{time.perf_counter() - started:.2f}")
            raise
        logger.info(f"{func.__name__} completed", seconds=f"{time.perf_counter() - started:.4f}")
        return result
    return wrapper
