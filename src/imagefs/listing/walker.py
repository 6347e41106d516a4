"""Traversal and re-rooting of discovered directory trees."""

from __future__ import annotations

from collections import deque
from collections.abc import AsyncIterator, Iterator

from imagefs.core.spinner import LoopSpinner
from imagefs.listing.models import DiscoveredDirectory, DiscoveredEntry


def iter_files(directory: DiscoveredDirectory) -> Iterator[DiscoveredEntry]:
    """Yield every file entry of a tree, depth first.

    A directory's files come before its sub-directories, and sub-directories
    are visited in listing order. Each file is yielded exactly once.
    """
    stack = [directory]
    while stack:
        current = stack.pop()
        yield from current.files
        stack.extend(reversed(current.sub_dirs))


async def walk_files(
    directory: DiscoveredDirectory,
    spinner: LoopSpinner | None = None,
) -> AsyncIterator[DiscoveredEntry]:
    """Async variant of iter_files() that yields to the event loop.

    Args:
        directory: Root of the tree to walk.
        spinner: Yield checkpoint to use. A default one is created if omitted.
    """
    spinner = spinner or LoopSpinner()
    for entry in iter_files(directory):
        yield entry
        if spinner.is_starving():
            await spinner.spin()


def count_files(directory: DiscoveredDirectory) -> int:
    """Count the file entries of a tree."""
    return sum(1 for _ in iter_files(directory))


def prefix_path(prefix: str, path: str) -> str:
    """Prefix a root-relative path ("/", "/a/b") with a directory."""
    base = prefix.rstrip("/")
    if path == "/":
        return base or "/"
    return base + path


def _shallow_copy(directory: DiscoveredDirectory, prefix: str) -> DiscoveredDirectory:
    return DiscoveredDirectory(
        name=directory.name,
        path=prefix_path(prefix, directory.path),
        files=[
            DiscoveredEntry(
                name=entry.name,
                path=prefix_path(prefix, entry.path),
                kind=entry.kind,
            )
            for entry in directory.files
        ],
    )


def _iter_reroot(
    directory: DiscoveredDirectory, prefix: str
) -> Iterator[DiscoveredDirectory]:
    # Yields every copied directory, the copy of the root first. The copy is
    # only complete once the iterator is exhausted.
    root = _shallow_copy(directory, prefix)
    yield root
    stack = [(directory, root)]
    while stack:
        source, target = stack.pop()
        for sub_dir in source.sub_dirs:
            copy = _shallow_copy(sub_dir, prefix)
            target.sub_dirs.append(copy)
            stack.append((sub_dir, copy))
            yield copy


def reroot(directory: DiscoveredDirectory, prefix: str) -> DiscoveredDirectory:
    """Return a copy of a tree with every path moved under ``prefix``.

    Used to splice a listing of a sub-directory into the tree of its parent:
    a listing of ``/usr`` reports ``/usr/bin/env`` as path "/bin", which
    rerooting with prefix "/usr" turns into "/usr/bin". The input tree is
    left untouched, and nesting depth is not limited by the recursion limit.

    Args:
        directory: Tree to copy.
        prefix: Absolute directory to place the tree under.

    Returns:
        New tree with rewritten paths.
    """
    copies = _iter_reroot(directory, prefix)
    root = next(copies)
    deque(copies, maxlen=0)
    return root


async def reroot_async(
    directory: DiscoveredDirectory,
    prefix: str,
    spinner: LoopSpinner | None = None,
) -> DiscoveredDirectory:
    """Async variant of reroot() with a yield checkpoint per directory."""
    spinner = spinner or LoopSpinner()
    copies = _iter_reroot(directory, prefix)
    root = next(copies)
    for _ in copies:
        await spinner.checkpoint()
    return root
