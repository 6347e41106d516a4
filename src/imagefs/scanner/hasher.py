"""Streaming content hashes for binary files inside an image."""

from __future__ import annotations

import asyncio
import logging
import posixpath
import time
from collections.abc import Sequence
from dataclasses import dataclass, field

from imagefs.config.models import ScanConfig
from imagefs.core.digests import new_digest
from imagefs.core.subprocess_utils import StreamChunk
from imagefs.docker.interface import CommandRunner
from imagefs.exceptions import CommandError, DockerNotAvailableError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BinaryFileData:
    """Content hash of one file in the image."""

    name: str
    path: str
    hash_type: str
    hash: str

    @property
    def full_path(self) -> str:
        """Absolute path of the hashed file."""
        return posixpath.join(self.path, self.name)


@dataclass
class HashReport:
    """Outcome of hashing a batch of files.

    Files whose stream did not complete successfully have no record; their
    paths are listed in ``dropped`` instead.
    """

    records: list[BinaryFileData] = field(default_factory=list)
    dropped: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def dropped_count(self) -> int:
        """Number of files that could not be hashed."""
        return len(self.dropped)


class _StreamDigest:
    """Stream callback that feeds a digest and remembers the exit code."""

    def __init__(self, hash_type: str) -> None:
        self._digest = new_digest(hash_type)
        self.exit_code: int | None = None
        self.error: str | None = None
        self.bytes_read = 0

    def __call__(self, chunk: StreamChunk) -> None:
        if chunk.data and not chunk.error:
            self._digest.update(chunk.data)
            self.bytes_read += len(chunk.data)
        if chunk.error:
            self.error = chunk.error
        if chunk.exit_code is not None:
            self.exit_code = chunk.exit_code

    def hexdigest(self) -> str:
        return self._digest.hexdigest()


class BinaryHasher:
    """Computes content hashes by streaming files out of an image."""

    def __init__(
        self,
        runner: CommandRunner,
        config: ScanConfig | None = None,
    ) -> None:
        """Initialize the hasher.

        Args:
            runner: Command runner bound to the target image.
            config: Scan configuration (default hash type, concurrency).
        """
        self.runner = runner
        self.config = config or ScanConfig()

    async def hash_file(self, file_path: str, hash_type: str) -> BinaryFileData | None:
        """Hash one file.

        Returns:
            The record, or None if the stream did not finish with exit code 0
            or could not be started.

        Raises:
            DockerNotAvailableError: If the docker executable is missing.
        """
        stream = _StreamDigest(hash_type)
        try:
            await self.runner.cat_binary_safe(file_path, stream)
        except DockerNotAvailableError:
            raise
        except (CommandError, OSError) as e:
            logger.debug("Failed to stream %s: %s", file_path, e)
            return None

        if stream.exit_code != 0:
            logger.debug(
                "Dropping %s: stream ended with exit code %s",
                file_path,
                stream.exit_code,
                extra={"stream_error": (stream.error or "").strip()},
            )
            return None

        return BinaryFileData(
            name=posixpath.basename(file_path),
            path=posixpath.dirname(file_path),
            hash_type=hash_type,
            hash=stream.hexdigest(),
        )

    async def hash_files(
        self,
        file_paths: Sequence[str],
        hash_type: str | None = None,
    ) -> HashReport:
        """Hash files, one stream per file.

        Files are processed in the given order, one at a time unless
        hash_concurrency is raised in the config. Records keep input order.

        A file that cannot be read completely (it vanished, is unreadable,
        or its stream failed part way) gets no record. This is an expected
        outcome, not an error: such paths are reported in HashReport.dropped.

        Args:
            file_paths: Absolute paths inside the image.
            hash_type: Digest algorithm. Defaults to the configured one.

        Returns:
            HashReport with one record per successfully hashed file.

        Raises:
            ValueError: If the hash type is not supported.
            DockerNotAvailableError: If the docker executable is missing.
        """
        hash_type = (hash_type or self.config.hash_type).lower()
        # fail before any command runs
        new_digest(hash_type)

        start_time = time.monotonic()
        if self.config.hash_concurrency <= 1:
            results = [await self.hash_file(path, hash_type) for path in file_paths]
        else:
            semaphore = asyncio.Semaphore(self.config.hash_concurrency)

            async def bounded(path: str) -> BinaryFileData | None:
                async with semaphore:
                    return await self.hash_file(path, hash_type)

            results = await asyncio.gather(*(bounded(path) for path in file_paths))

        report = HashReport(elapsed_seconds=round(time.monotonic() - start_time, 3))
        for path, record in zip(file_paths, results):
            if record is None:
                report.dropped.append(path)
            else:
                report.records.append(record)

        logger.info(
            "Hashed %d of %d binary files",
            len(report.records),
            len(file_paths),
            extra={
                "hash_type": hash_type,
                "dropped_files": report.dropped_count,
                "elapsed_seconds": report.elapsed_seconds,
            },
        )
        return report

    async def calc_hash_of_binary_files(
        self,
        file_paths: Sequence[str],
        hash_type: str | None = None,
    ) -> list[BinaryFileData]:
        """Hash files and return only the successful records.

        See hash_files() for the handling of unreadable files.
        """
        report = await self.hash_files(file_paths, hash_type)
        return report.records
