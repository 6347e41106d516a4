"""Container command runner interface."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from imagefs.core.subprocess_utils import CommandResult, StreamCallback

DEFAULT_IGNORE_ERRORS: tuple[str, ...] = ("No such file", "file not found")
"""stderr substrings that run_safe() treats as an empty result."""

LS_IGNORE_ERRORS: tuple[str, ...] = (*DEFAULT_IGNORE_ERRORS, "Permission denied")


@dataclass(frozen=True)
class DockerOptions:
    """Connection options passed to every docker invocation.

    All fields are optional; unset fields fall back to the docker CLI's own
    defaults (DOCKER_HOST and friends).
    """

    host: str | None = None
    tls_verify: str | None = None
    tls_cert: str | None = None
    tls_ca_cert: str | None = None
    tls_key: str | None = None

    def to_args(self) -> list[str]:
        """Convert to global docker CLI flags."""
        args: list[str] = []
        if self.host:
            args.append(f"--host={self.host}")
        if self.tls_cert:
            args.append(f"--tlscert={self.tls_cert}")
        if self.tls_ca_cert:
            args.append(f"--tlscacert={self.tls_ca_cert}")
        if self.tls_key:
            args.append(f"--tlskey={self.tls_key}")
        if self.tls_verify:
            args.append(f"--tlsverify={self.tls_verify}")
        return args


class CommandRunner(Protocol):
    """Protocol for running commands against a container image.

    DockerRunner is the production implementation. The scanner and hasher
    depend only on this protocol, so tests can serve canned output.
    """

    async def ls_safe(self, path: str, recursive: bool = False) -> CommandResult:
        """List a path, tolerating missing and unreadable paths."""
        ...

    async def cat_safe(self, path: str) -> CommandResult:
        """Read a file as text, tolerating a missing file."""
        ...

    async def cat_binary_safe(self, path: str, callback: StreamCallback) -> int:
        """Stream a file's bytes to the callback. Returns the exit code."""
        ...

    async def run_safe(
        self,
        cmd: str,
        args: Sequence[str] = (),
        ignore_errors: Sequence[str] = DEFAULT_IGNORE_ERRORS,
    ) -> CommandResult:
        """Run a command, downgrading expected errors to a normal result."""
        ...
