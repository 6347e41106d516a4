"""Listing module for imagefs.

Turns the text output of directory listings run inside a container into
directory trees and walks them:

- parse_listing / parse_listing_async: Listing text to DiscoveredDirectory
- iter_files / walk_files: Depth-first file traversal
- reroot: Copy a tree under a new parent path
"""

from imagefs.listing.models import DiscoveredDirectory, DiscoveredEntry, EntryKind
from imagefs.listing.parser import parse_listing, parse_listing_async
from imagefs.listing.walker import count_files, iter_files, reroot, walk_files

__all__ = [
    "DiscoveredDirectory",
    "DiscoveredEntry",
    "EntryKind",
    "count_files",
    "iter_files",
    "parse_listing",
    "parse_listing_async",
    "reroot",
    "walk_files",
]
