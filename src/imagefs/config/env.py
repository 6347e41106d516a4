"""Typed access to IMAGEFS_* environment variables.

EnvReader reads from os.environ unless given a mapping, which is how the
config loader tests feed it variables.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRUTHY = frozenset({"1", "true", "yes", "on"})


class EnvReader:
    """Read environment variables and convert them to typed values.

    A missing variable always yields the caller's default. Values that fail
    to convert are logged and also yield the default, so a typo in the
    environment never aborts a scan.
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def _convert(
        self, var: str, convert: Callable[[str], T], default: T | None, kind: str
    ) -> T | None:
        raw = self._env.get(var)
        if raw is None:
            return default
        try:
            return convert(raw)
        except ValueError:
            logger.warning("Ignoring %s=%r: not a valid %s", var, raw, kind)
            return default

    def get_str(self, var: str, default: str | None = None) -> str | None:
        return self._env.get(var, default)

    def get_int(self, var: str, default: int | None = None) -> int | None:
        return self._convert(var, int, default, "integer")

    def get_float(self, var: str, default: float | None = None) -> float | None:
        return self._convert(var, float, default, "number")

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """Anything outside 1/true/yes/on (any case) reads as False."""
        return self._convert(
            var, lambda raw: raw.strip().lower() in _TRUTHY, default, "flag"
        )

    def get_path(self, var: str, default: Path | None = None) -> Path | None:
        return self._convert(
            var, lambda raw: Path(raw).expanduser(), default, "path"
        )

    def get_list(
        self, var: str, separator: str = ",", default: list[str] | None = None
    ) -> list[str] | None:
        """Split on separator, dropping blank items."""

        def split(raw: str) -> list[str]:
            items = (item.strip() for item in raw.split(separator))
            return [item for item in items if item]

        return self._convert(var, split, default, "list")
