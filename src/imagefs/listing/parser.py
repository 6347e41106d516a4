"""Parsing of ``ls -lan[R]`` output into directory trees.

Listing output comes from a container we do not control, so parsing is
lenient: any line that is not a recognizable entry or recursion header is
skipped, and truncated output simply yields a partial tree.
"""

from __future__ import annotations

import logging
import posixpath
import re

from imagefs.core.spinner import LoopSpinner
from imagefs.listing.models import DiscoveredDirectory, DiscoveredEntry, EntryKind

logger = logging.getLogger(__name__)

# mode, link count, owner, group, size (or "major, minor" for devices)
_ENTRY_RE = re.compile(
    r"^(?P<type>[-bcdlps])[-rwxsStTlL]{9}[.+@]?\s+"
    r"\d+\s+\S+\s+\S+\s+"
    r"(?:\d+,\s*)?\d+\s"
    r"(?P<rest>.*)$"
)

# "Jan  1 12:34", "Jan  1  2020" or "2024-01-31 12:34[:56[.123]] [+0000]"
_TIMESTAMP_RE = re.compile(
    r"^\s*(?:"
    r"[A-Z][a-z]{2}\s+\d{1,2}\s+(?:\d{1,2}:\d{2}|\d{4})"
    r"|\d{4}-\d{2}-\d{2}(?:\s+\d{2}:\d{2}(?::\d{2}(?:\.\d+)?)?(?:\s+[+-]\d{4})?)?"
    r")\s"
)

_PSEUDO_ENTRIES = frozenset({".", ".."})
_FILE_TYPES = frozenset({"-", "l"})
_DIRECTORY_TYPE = "d"


def normalize_root(root: str) -> str:
    """Normalize a listing root to an absolute path without trailing slash."""
    return posixpath.normpath("/" + root.strip().lstrip("/"))


def relative_header_path(header: str, root: str) -> str | None:
    """Map a recursion header path to a path relative to the listing root.

    Args:
        header: Path announced by a ``<path>:`` header line.
        root: Normalized listing root.

    Returns:
        Relative path starting with "/", or None if the header lies outside
        the root.
    """
    header = normalize_root(header)
    if header == root:
        return "/"
    if root == "/":
        return header
    if header.startswith(root + "/"):
        return header[len(root) :]
    return None


def _split_name(entry_type: str, rest: str) -> str:
    match = _TIMESTAMP_RE.match(rest)
    name = rest[match.end() :] if match else rest.lstrip()
    if entry_type == "l" and " -> " in name:
        name = name.split(" -> ", 1)[0]
    return name


class ListingBuilder:
    """Incrementally builds a DiscoveredDirectory from listing lines."""

    def __init__(self, root: str = "/") -> None:
        self.root_path = normalize_root(root)
        self.root = DiscoveredDirectory()
        self._directories: dict[str, DiscoveredDirectory] = {"/": self.root}
        self._current: DiscoveredDirectory | None = self.root
        self._current_path: str | None = "/"
        self.skipped_lines = 0

    def _ensure_directory(self, relative: str) -> DiscoveredDirectory:
        missing: list[str] = []
        while relative not in self._directories:
            missing.append(relative)
            relative = posixpath.dirname(relative)

        directory = self._directories[relative]
        for path in reversed(missing):
            parent_path, name = posixpath.split(path)
            child = DiscoveredDirectory(name=name, path=parent_path)
            directory.sub_dirs.append(child)
            self._directories[path] = child
            directory = child
        return directory

    def _enter(self, header: str) -> None:
        relative = relative_header_path(header, self.root_path)
        if relative is None:
            logger.debug(
                "Ignoring listing section outside %s: %s", self.root_path, header
            )
            self._current = None
            self._current_path = None
            return
        self._current = self._ensure_directory(relative)
        self._current_path = relative

    def feed(self, line: str) -> None:
        """Consume one line of listing output."""
        line = line.rstrip("\r\n")
        if not line.strip():
            return

        match = _ENTRY_RE.match(line)
        if match is None:
            if line.endswith(":"):
                self._enter(line[:-1])
            elif not line.startswith("total "):
                self.skipped_lines += 1
            return

        if self._current is None or self._current_path is None:
            return

        entry_type = match.group("type")
        name = _split_name(entry_type, match.group("rest"))
        if not name or name in _PSEUDO_ENTRIES or "/" in name:
            return

        if entry_type == _DIRECTORY_TYPE:
            self._ensure_directory(posixpath.join(self._current_path, name))
        elif entry_type in _FILE_TYPES:
            self._current.files.append(
                DiscoveredEntry(name=name, path=self._current_path, kind=EntryKind.FILE)
            )


def parse_listing(output: str, root: str = "/") -> DiscoveredDirectory:
    """Parse the output of one ``ls -lan`` or ``ls -lanR`` invocation.

    Args:
        output: Raw listing text.
        root: The path that was listed. Recursion headers are interpreted
            relative to it.

    Returns:
        Tree rooted at the listed path. Entry paths are relative to the root
        (the root's own entries have path "/").
    """
    builder = ListingBuilder(root)
    for line in output.splitlines():
        builder.feed(line)
    if builder.skipped_lines:
        logger.debug(
            "Skipped %d unrecognized listing lines under %s",
            builder.skipped_lines,
            builder.root_path,
        )
    return builder.root


async def parse_listing_async(
    output: str,
    root: str = "/",
    spinner: LoopSpinner | None = None,
) -> DiscoveredDirectory:
    """Parse listing output, yielding to the event loop on large inputs.

    Same result as parse_listing().
    """
    spinner = spinner or LoopSpinner()
    builder = ListingBuilder(root)
    for line in output.splitlines():
        builder.feed(line)
        if spinner.is_starving():
            await spinner.spin()
    if builder.skipped_lines:
        logger.debug(
            "Skipped %d unrecognized listing lines under %s",
            builder.skipped_lines,
            builder.root_path,
        )
    return builder.root
