"""Scan context for structured logging.

Uses contextvars so that every log record emitted while scanning an image
carries the image reference and the path being scanned, including records
from concurrently running asyncio tasks.
"""

from __future__ import annotations

import contextvars
import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Generator

_image: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "image", default=None
)
_scan_path: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "scan_path", default=None
)


def set_scan_context(image: str, scan_path: str | None = None) -> None:
    """Set the current scan context."""
    _image.set(image)
    _scan_path.set(scan_path)


def clear_scan_context() -> None:
    """Clear the current scan context."""
    _image.set(None)
    _scan_path.set(None)


def get_scan_context() -> tuple[str | None, str | None]:
    """Get current scan context as (image, scan_path)."""
    return _image.get(), _scan_path.get()


@contextmanager
def scan_context(
    image: str, scan_path: str | None = None
) -> Generator[None, None, None]:
    """Context manager for scan logging context.

    Sets the context on entry and restores the previous one on exit.

    Example:
        with scan_context("alpine:3.19", "/usr"):
            logger.info("Listing directory")  # Tagged [alpine:3.19:/usr]
    """
    old_image = _image.get()
    old_scan_path = _scan_path.get()
    try:
        set_scan_context(image, scan_path)
        yield
    finally:
        _image.set(old_image)
        _scan_path.set(old_scan_path)


class ScanContextFilter(logging.Filter):
    """Logging filter that injects scan context into log records.

    Adds image and scan_path attributes for JSON output, and a compact
    scan_tag like ``[alpine:3.19:/usr] `` for text output.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Inject scan context into log record. Never filters records out."""
        image, scan_path = get_scan_context()

        record.image = image
        record.scan_path = scan_path

        if image:
            if scan_path:
                record.scan_tag = f"[{image}:{scan_path}] "
            else:
                record.scan_tag = f"[{image}] "
        else:
            record.scan_tag = ""

        return True
