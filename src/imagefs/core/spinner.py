"""Cooperative yield checkpoint for long synchronous work on the event loop.

Parsing and walking the listing of a large image happens in plain Python
loops. LoopSpinner lets those loops hand control back to the asyncio
scheduler whenever they have held it for too long, so other pending work
in the process is not starved.
"""

from __future__ import annotations

import asyncio
import time

DEFAULT_THRESHOLD_MS = 10


class LoopSpinner:
    """Tracks time since the last yield to the event loop.

    Example:
        spinner = LoopSpinner()
        for line in lines:
            ...
            if spinner.is_starving():
                await spinner.spin()
    """

    def __init__(self, threshold_ms: float = DEFAULT_THRESHOLD_MS) -> None:
        if threshold_ms < 0:
            raise ValueError(f"threshold_ms must be >= 0, got {threshold_ms}")
        self._threshold = threshold_ms / 1000.0
        self._last_spin = time.monotonic()
        self.spins = 0

    def is_starving(self) -> bool:
        """Return True when the loop has been held longer than the threshold."""
        return time.monotonic() - self._last_spin >= self._threshold

    async def spin(self) -> None:
        """Yield control to the event loop once."""
        await asyncio.sleep(0)
        self._last_spin = time.monotonic()
        self.spins += 1

    async def checkpoint(self) -> None:
        """Yield only if the loop is starving."""
        if self.is_starving():
            await self.spin()
