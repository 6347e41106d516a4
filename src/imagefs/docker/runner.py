"""Docker CLI implementation of the CommandRunner protocol."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Sequence

from imagefs.config.models import ScanConfig
from imagefs.core import subprocess_utils
from imagefs.core.subprocess_utils import CommandResult, StreamCallback
from imagefs.docker.interface import (
    DEFAULT_IGNORE_ERRORS,
    LS_IGNORE_ERRORS,
    DockerOptions,
)
from imagefs.exceptions import CommandError, DockerNotAvailableError

logger = logging.getLogger(__name__)


class DockerRunner:
    """Runs commands inside throwaway containers of a target image.

    Every command starts a fresh container with the image's entrypoint
    cleared and networking disabled, so nothing in the image runs except the
    command itself.
    """

    def __init__(
        self,
        target_image: str,
        options: DockerOptions | None = None,
        config: ScanConfig | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            target_image: Image reference (name:tag, digest or ID).
            options: Docker connection options.
            config: Scan configuration (docker path, timeouts, chunk size).
        """
        self.target_image = target_image
        self.options = options or DockerOptions()
        self.config = config or ScanConfig()
        self._options_list = self.options.to_args()

    @staticmethod
    def is_available(docker_path: str = "docker") -> bool:
        """Check if the docker executable can be found."""
        return shutil.which(docker_path) is not None

    @staticmethod
    async def run_docker(
        args: Sequence[str],
        options: DockerOptions | None = None,
        config: ScanConfig | None = None,
    ) -> CommandResult:
        """Run a docker CLI command that does not start a container.

        Raises:
            CommandError: If docker exits with a non-zero code.
            DockerNotAvailableError: If the docker executable is missing.
        """
        config = config or ScanConfig()
        options = options or DockerOptions()
        try:
            return await subprocess_utils.run_command(
                [config.docker_path, *options.to_args(), *args],
                timeout=config.command_timeout,
            )
        except FileNotFoundError as e:
            raise DockerNotAvailableError(
                f"docker executable not found: {config.docker_path}"
            ) from e

    def _container_args(self, cmd: str, args: Sequence[str]) -> list[str]:
        return [
            self.config.docker_path,
            *self._options_list,
            "run",
            "--rm",
            "--entrypoint",
            "",
            "--network",
            "none",
            self.target_image,
            cmd,
            *args,
        ]

    async def run(self, cmd: str, args: Sequence[str] = ()) -> CommandResult:
        """Run a command in a container of the target image.

        Raises:
            CommandError: If the command exits with a non-zero code.
            DockerNotAvailableError: If the docker executable is missing.
        """
        try:
            return await subprocess_utils.run_command(
                self._container_args(cmd, args),
                timeout=self.config.command_timeout,
            )
        except FileNotFoundError as e:
            raise DockerNotAvailableError(
                f"docker executable not found: {self.config.docker_path}"
            ) from e

    async def run_safe(
        self,
        cmd: str,
        args: Sequence[str] = (),
        ignore_errors: Sequence[str] = DEFAULT_IGNORE_ERRORS,
    ) -> CommandResult:
        """Run a command, returning expected errors as a normal result.

        If the command fails and its stderr contains any of the
        ``ignore_errors`` substrings, the (possibly partial) output is
        returned instead of raising.

        Raises:
            CommandError: For any other failure.
        """
        try:
            return await self.run(cmd, args)
        except CommandError as e:
            if any(message in e.stderr for message in ignore_errors):
                logger.debug(
                    "Ignoring expected error from %s %s: %s",
                    cmd,
                    " ".join(args),
                    e.stderr.strip(),
                )
                return CommandResult(stdout=e.stdout, stderr=e.stderr)
            raise

    async def run_as_stream(
        self,
        cmd: str,
        args: Sequence[str],
        callback: StreamCallback,
    ) -> int:
        """Run a command, streaming its stdout to ``callback``.

        Returns:
            The command's exit code (also delivered as the last chunk).

        Raises:
            DockerNotAvailableError: If the docker executable is missing.
        """
        try:
            return await subprocess_utils.stream_command(
                self._container_args(cmd, args),
                callback,
                chunk_size=self.config.stream_chunk_size,
                timeout=self.config.stream_timeout,
            )
        except FileNotFoundError as e:
            raise DockerNotAvailableError(
                f"docker executable not found: {self.config.docker_path}"
            ) from e

    async def pull(self, image: str | None = None) -> CommandResult:
        """Pull an image (defaults to the target image)."""
        return await self.run_docker(
            ["pull", image or self.target_image], self.options, self.config
        )

    async def save(self, destination: str, image: str | None = None) -> CommandResult:
        """Save an image to a tar archive."""
        return await self.run_docker(
            ["save", image or self.target_image, "-o", destination],
            self.options,
            self.config,
        )

    async def inspect_image(self, image: str | None = None) -> CommandResult:
        """Return ``docker inspect`` output for an image."""
        return await self.run_docker(
            ["inspect", image or self.target_image], self.options, self.config
        )

    async def cat_safe(self, path: str) -> CommandResult:
        """Read a small file as text. A missing file yields empty stdout."""
        return await self.run_safe("cat", [path])

    async def cat_binary_safe(self, path: str, callback: StreamCallback) -> int:
        """Stream a file's bytes to ``callback`` without buffering it."""
        return await self.run_as_stream("cat", [path], callback)

    async def ls_safe(self, path: str, recursive: bool = False) -> CommandResult:
        """List a path in long numeric format.

        Missing paths and permission errors are tolerated; whatever ls could
        print before failing is returned. The path gets a trailing slash so a
        symlink to a directory lists the directory it points to.
        """
        params = "-lan"
        if recursive:
            params += "R"
        target = path.rstrip("/") + "/"
        return await self.run_safe("ls", [params, target], LS_IGNORE_ERRORS)
