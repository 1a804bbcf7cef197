"""
Utilities package for tinyrecord.

Exports shared helpers for cross-cutting concerns such as logging.
Keep this package free of mapping logic.
"""

from tinyrecord.utils.logging import JsonFormatter, configure_logging, get_logger

__all__ = [
    "configure_logging",
    "get_logger",
    "JsonFormatter",
]
