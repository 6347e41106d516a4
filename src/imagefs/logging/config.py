"""Root logger setup for imagefs.

configure_logging() installs at most two handlers on the root logger: a
rotating log file and stderr. Both share one formatter and the scan context
filter, so every record is tagged with the image being scanned.
"""

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING

from imagefs.logging.context import ScanContextFilter
from imagefs.logging.handlers import JSONFormatter

if TYPE_CHECKING:
    from imagefs.config.models import LoggingConfig

TEXT_FORMAT = "%(asctime)s - %(scan_tag)s%(name)s - %(levelname)s - %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S%z"

# asyncio reports every slow callback at debug level, which drowns out
# listing and hashing messages on large images
_NOISY_LOGGERS = ("asyncio",)


def _make_formatter(config: LoggingConfig) -> logging.Formatter:
    if config.format.casefold() == "json":
        return JSONFormatter()
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)


def _open_log_file(config: LoggingConfig) -> logging.Handler | None:
    """Open the rotating log file, or return None if it cannot be opened."""
    file_path = Path(config.file).expanduser()
    try:
        file_path.parent.mkdir(parents=True, exist_ok=True)
        return RotatingFileHandler(
            file_path,
            maxBytes=config.max_bytes,
            backupCount=config.backup_count,
            encoding="utf-8",
        )
    except OSError as e:
        sys.stderr.write(f"Warning: Could not open log file {file_path}: {e}\n")
        return None


def configure_logging(config: LoggingConfig) -> None:
    """Replace the root logger's handlers according to config.

    Logs go to the configured file, and to stderr when include_stderr is set
    or the file is unset or cannot be opened.

    Args:
        config: Logging configuration.
    """
    level = logging.getLevelName(config.level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    handlers: list[logging.Handler] = []
    if config.file:
        file_handler = _open_log_file(config)
        if file_handler is not None:
            handlers.append(file_handler)
    if config.include_stderr or not handlers:
        handlers.append(logging.StreamHandler(sys.stderr))

    formatter = _make_formatter(config)
    context_filter = ScanContextFilter()
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(context_filter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    for handler in handlers:
        root_logger.addHandler(handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))
