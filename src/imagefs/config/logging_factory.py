"""Apply --log-* command line options on top of the configured logging."""

from __future__ import annotations

import dataclasses
from pathlib import Path

from imagefs.config.models import LoggingConfig


def build_logging_config(
    base: LoggingConfig,
    *,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> LoggingConfig:
    """Return a copy of base with every non-None override applied.

    The copy goes through LoggingConfig validation again, so a bad level or
    format raises ValueError here.
    """
    overrides = {
        "level": level,
        "file": file,
        "format": format,
        "include_stderr": include_stderr,
    }
    return dataclasses.replace(
        base, **{key: value for key, value in overrides.items() if value is not None}
    )


def configure_logging_from_cli(
    *,
    config_path: Path | None = None,
    level: str | None = None,
    file: Path | None = None,
    format: str | None = None,
    include_stderr: bool | None = None,
) -> None:
    from imagefs.config import get_config
    from imagefs.logging import configure_logging

    logging_config = build_logging_config(
        get_config(config_path=config_path).logging,
        level=level,
        file=file,
        format=format,
        include_stderr=include_stderr,
    )
    configure_logging(logging_config)
