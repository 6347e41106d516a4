"""Node.js manifest collection.

Reads manifest files found in an image and pairs each npm or yarn lockfile
with the package.json next to it. Contents are handed to downstream
analyzers untouched; nothing here parses them.
"""

from __future__ import annotations

import logging
import posixpath
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from imagefs.docker.interface import CommandRunner

logger = logging.getLogger(__name__)

PACKAGE_JSON = "package.json"

LOCKFILE_TYPES: dict[str, str] = {
    "package-lock.json": "npm",
    "yarn.lock": "yarn",
}


@dataclass(frozen=True)
class NodeManifestPair:
    """A lockfile and the package.json from the same directory."""

    directory: str
    manifest: str
    lockfile: str
    lockfile_type: str

    @property
    def manifest_path(self) -> str:
        return posixpath.join(self.directory, PACKAGE_JSON)


async def read_manifest_files(
    runner: CommandRunner,
    paths: Iterable[str],
) -> dict[str, str]:
    """Read text manifests from the image.

    Files that no longer exist are left out of the result.

    Args:
        runner: Command runner bound to the target image.
        paths: Absolute paths of manifest files.

    Returns:
        Mapping of path to file content.

    Raises:
        CommandError: If reading a file fails for a reason other than the
            file being missing.
    """
    contents: dict[str, str] = {}
    for path in paths:
        result = await runner.cat_safe(path)
        if result.stderr and not result.stdout:
            logger.debug("Manifest not readable: %s", path)
            continue
        contents[path] = result.stdout
    return contents


def pair_node_lockfiles(
    file_contents: Mapping[str, str],
) -> list[NodeManifestPair]:
    """Pair lockfiles with the package.json in the same directory.

    Lockfiles without a sibling package.json are skipped.

    Args:
        file_contents: Mapping of absolute path to file content.

    Returns:
        One pair per lockfile that has a package.json, ordered by path.
    """
    pairs: list[NodeManifestPair] = []
    for path in sorted(file_contents):
        directory, name = posixpath.split(path)
        lockfile_type = LOCKFILE_TYPES.get(name)
        if lockfile_type is None:
            continue

        manifest = file_contents.get(posixpath.join(directory, PACKAGE_JSON))
        if manifest is None:
            logger.debug("Skipping %s: no package.json alongside", path)
            continue

        pairs.append(
            NodeManifestPair(
                directory=directory,
                manifest=manifest,
                lockfile=file_contents[path],
                lockfile_type=lockfile_type,
            )
        )
    return pairs
