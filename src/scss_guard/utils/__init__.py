"""Utility modules for scss-guard."""

from .errors import (
    ScssGuardError,
    ParseError,
    UnsupportedSyntaxError,
    ConfigurationError,
    ToolExecutionError,
)
from .logging_config import setup_logging, get_logger
from .cache import LRUCache, content_key

__all__ = [
    "ScssGuardError",
    "ParseError",
    "UnsupportedSyntaxError",
    "ConfigurationError",
    "ToolExecutionError",
    "setup_logging",
    "get_logger",
    "LRUCache",
    "content_key",
]
