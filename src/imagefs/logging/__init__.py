"""Structured logging module for imagefs.

Provides configurable logging with JSON format support and file rotation.
Includes scan context support so records carry the image being scanned.
"""

from imagefs.logging.config import configure_logging
from imagefs.logging.context import (
    ScanContextFilter,
    clear_scan_context,
    get_scan_context,
    scan_context,
    set_scan_context,
)
from imagefs.logging.handlers import JSONFormatter

__all__ = [
    "JSONFormatter",
    "ScanContextFilter",
    "clear_scan_context",
    "configure_logging",
    "get_scan_context",
    "scan_context",
    "set_scan_context",
]
