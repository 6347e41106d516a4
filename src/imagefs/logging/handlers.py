"""Log formatters for imagefs.

JSONFormatter emits one JSON object per record so scan logs can be shipped
to a log pipeline and filtered by image or scanned path.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

# Attributes every LogRecord carries, plus the ones ScanContextFilter adds.
# Anything else on a record came from extra= and is reported as context.
_RESERVED_ATTRS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "image", "scan_path", "scan_tag"}


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Return the fields a caller attached to a record with extra=."""
    return {
        key: value
        for key, value in vars(record).items()
        if key not in _RESERVED_ATTRS and not key.startswith("_")
    }


class JSONFormatter(logging.Formatter):
    """Format log records as JSON objects.

    Keys, in order:
    - timestamp: ISO-8601 UTC time of the record
    - level: Level name
    - logger: Logger name (omitted for the root logger)
    - image / scan_path: Scan context, when set
    - message: Formatted message
    - context: Fields passed with extra=, when any
    - exception: Formatted traceback, when the record has one
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
        }
        if record.name != "root":
            entry["logger"] = record.name

        # set by ScanContextFilter; absent when the filter is not installed
        for field in ("image", "scan_path"):
            value = getattr(record, field, None)
            if value:
                entry[field] = value

        entry["message"] = record.getMessage()

        context = record_context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)
