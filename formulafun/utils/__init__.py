"""Utility functions and classes for formulafun."""

from .logging import get_logger, setup_logging
from .validation import is_numeric, validate_identifier

__all__ = [
    "get_logger",
    "setup_logging",
    "is_numeric",
    "validate_identifier",
]
