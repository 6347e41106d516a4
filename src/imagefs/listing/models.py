"""Data models for directory trees discovered from listing output."""

from __future__ import annotations

import posixpath
from dataclasses import dataclass, field
from enum import Enum


class EntryKind(Enum):
    """Kind of a discovered filesystem entry."""

    FILE = "file"
    DIRECTORY = "directory"


@dataclass
class DiscoveredEntry:
    """A single entry found in a directory listing.

    Attributes:
        name: Entry name without any directory component.
        path: Parent directory, relative to the listing root. Always starts
            with "/" and uses "/" as separator.
        kind: Whether the entry is a file or a directory.
    """

    name: str
    path: str
    kind: EntryKind = EntryKind.FILE

    @property
    def full_path(self) -> str:
        """Path of the entry itself (parent path joined with the name)."""
        return posixpath.join(self.path, self.name)


@dataclass
class DiscoveredDirectory:
    """A directory node of a discovered tree.

    A directory exclusively owns its files and sub-directories. The root of a
    parsed listing has an empty name and path "/".
    """

    name: str = ""
    path: str = "/"
    files: list[DiscoveredEntry] = field(default_factory=list)
    sub_dirs: list[DiscoveredDirectory] = field(default_factory=list)

    @property
    def full_path(self) -> str:
        """Path of the directory itself."""
        return posixpath.join(self.path, self.name) if self.name else self.path

    def get_sub_dir(self, name: str) -> DiscoveredDirectory | None:
        """Return the direct sub-directory with the given name, if any."""
        for sub_dir in self.sub_dirs:
            if sub_dir.name == name:
                return sub_dir
        return None
