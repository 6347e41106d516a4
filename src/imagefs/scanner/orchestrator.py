"""Scanner orchestrator that discovers manifest and binary files in an image."""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from dataclasses import dataclass, replace
from enum import Enum

from imagefs.config.models import ScanConfig
from imagefs.core.globs import is_excluded, matches
from imagefs.core.spinner import LoopSpinner
from imagefs.docker.interface import CommandRunner
from imagefs.exceptions import CommandError
from imagefs.listing.models import DiscoveredDirectory
from imagefs.listing.parser import normalize_root, parse_listing_async
from imagefs.listing.walker import count_files, reroot_async, walk_files
from imagefs.logging.context import scan_context

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Globs:
    """Glob patterns that classify discovered files."""

    manifest_globs: tuple[str, ...] = ()
    binary_globs: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "manifest_globs", tuple(self.manifest_globs))
        object.__setattr__(self, "binary_globs", tuple(self.binary_globs))


@dataclass(frozen=True)
class FindGlobsResult:
    """Absolute paths of the files matched by find_globs().

    A path appears in at most one of the two lists.
    """

    manifest_files: tuple[str, ...] = ()
    binary_files: tuple[str, ...] = ()


class FileCategory(Enum):
    """Outcome of classifying a discovered file."""

    EXCLUDED = "excluded"
    MANIFEST = "manifest"
    BINARY = "binary"
    UNMATCHED = "unmatched"


def classify_path(
    file_path: str,
    globs: Globs,
    exclusion_globs: Iterable[str] = (),
) -> FileCategory:
    """Classify one absolute path.

    Exclusion is checked first, then manifest globs, then binary globs; the
    first match wins.
    """
    if is_excluded(file_path, exclusion_globs):
        return FileCategory.EXCLUDED
    if matches(file_path, globs.manifest_globs):
        return FileCategory.MANIFEST
    if matches(file_path, globs.binary_globs):
        return FileCategory.BINARY
    return FileCategory.UNMATCHED


class ImageScanner:
    """Finds files of interest in an image by listing it through a runner."""

    def __init__(
        self,
        runner: CommandRunner,
        config: ScanConfig | None = None,
        image: str | None = None,
    ) -> None:
        """Initialize the scanner.

        Args:
            runner: Command runner bound to the target image.
            config: Scan configuration.
            image: Image reference used in log context. Defaults to the
                runner's target_image attribute when it has one.
        """
        self.runner = runner
        self.config = config or ScanConfig()
        self.image = image or getattr(runner, "target_image", None) or "image"

    def _spinner(self) -> LoopSpinner:
        return LoopSpinner(self.config.spinner_threshold_ms)

    async def _list(
        self, path: str, recursive: bool, spinner: LoopSpinner
    ) -> DiscoveredDirectory:
        output = await self.runner.ls_safe(path, recursive)
        if spinner.is_starving():
            await spinner.spin()
        return await parse_listing_async(output.stdout, path, spinner)

    async def _list_root(
        self,
        exclude_root_directories: Iterable[str],
        spinner: LoopSpinner,
    ) -> DiscoveredDirectory:
        # Listing the whole image in one recursive call would descend into
        # /proc and /sys, so list the top level and recurse per directory.
        excluded = set(exclude_root_directories)
        root = await self._list("/", False, spinner)

        sub_dirs: list[DiscoveredDirectory] = []
        for sub_dir in root.sub_dirs:
            if sub_dir.name in excluded:
                logger.debug("Skipping excluded root directory /%s", sub_dir.name)
                sub_dirs.append(sub_dir)
                continue

            sub_path = "/" + sub_dir.name
            with scan_context(self.image, sub_path):
                try:
                    listed = await self._list(sub_path, True, spinner)
                except CommandError as e:
                    logger.warning("Failed to list %s, skipping: %s", sub_path, e)
                    sub_dirs.append(sub_dir)
                    continue

            spliced = await reroot_async(listed, sub_path, spinner)
            sub_dirs.append(
                replace(sub_dir, files=spliced.files, sub_dirs=spliced.sub_dirs)
            )
            if logger.isEnabledFor(logging.DEBUG):
                logger.debug("Listed %s: %d files", sub_path, count_files(spliced))

        return replace(root, sub_dirs=sub_dirs)

    async def list_tree(
        self,
        path: str = "/",
        recursive: bool = True,
        exclude_root_directories: Iterable[str] | None = None,
    ) -> DiscoveredDirectory:
        """List an image path into a tree with absolute entry paths.

        Args:
            path: Directory to list.
            recursive: Whether to descend into sub-directories.
            exclude_root_directories: Top-level directories that are never
                listed recursively when scanning from "/". Defaults to the
                configured set.

        Returns:
            Tree whose entry paths are absolute within the image.
        """
        if exclude_root_directories is None:
            exclude_root_directories = self.config.exclude_root_directories

        spinner = self._spinner()
        path = normalize_root(path)
        if recursive and path == "/":
            return await self._list_root(exclude_root_directories, spinner)

        tree = await self._list(path, recursive, spinner)
        return await reroot_async(tree, path, spinner)

    async def find_globs(
        self,
        globs: Globs,
        exclusion_globs: Iterable[str] = (),
        path: str = "/",
        recursive: bool = True,
        exclude_root_directories: Iterable[str] | None = None,
    ) -> FindGlobsResult:
        """Find files in the image matching manifest or binary globs.

        Args:
            globs: Manifest and binary glob patterns.
            exclusion_globs: Paths matching any of these are dropped before
                classification.
            path: Directory to scan.
            recursive: Whether to scan sub-directories.
            exclude_root_directories: Top-level directories to skip when
                scanning recursively from "/". Defaults to dev, proc and sys.

        Returns:
            FindGlobsResult with absolute paths. Empty lists if nothing
            matched or the path does not exist.

        Raises:
            CommandError: If listing the scanned path itself fails with an
                error that is not tolerated.
        """
        exclusion_globs = tuple(exclusion_globs)
        start_time = time.monotonic()

        with scan_context(self.image, path):
            tree = await self.list_tree(path, recursive, exclude_root_directories)

            manifest_files: list[str] = []
            binary_files: list[str] = []
            excluded = 0
            async for entry in walk_files(tree, self._spinner()):
                file_path = entry.full_path
                category = classify_path(file_path, globs, exclusion_globs)
                if category is FileCategory.MANIFEST:
                    manifest_files.append(file_path)
                elif category is FileCategory.BINARY:
                    binary_files.append(file_path)
                elif category is FileCategory.EXCLUDED:
                    excluded += 1

            logger.info(
                "Found %d manifest and %d binary files",
                len(manifest_files),
                len(binary_files),
                extra={
                    "excluded_files": excluded,
                    "elapsed_seconds": round(time.monotonic() - start_time, 3),
                },
            )

        return FindGlobsResult(
            manifest_files=tuple(manifest_files),
            binary_files=tuple(binary_files),
        )
