"""Exception hierarchy for imagefs."""

from __future__ import annotations

from collections.abc import Sequence


class ImageFsError(Exception):
    """Base exception for imagefs errors."""

    pass


class CommandError(ImageFsError):
    """Raised when an external command exits with a non-zero code.

    Attributes:
        args_list: The command and arguments that were executed.
        returncode: Exit code of the command.
        stdout: Captured standard output (may be partial).
        stderr: Captured standard error.
    """

    def __init__(
        self,
        args_list: Sequence[str],
        returncode: int | None,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.args_list = list(args_list)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        command = self.args_list[0] if self.args_list else "command"
        detail = stderr.strip().splitlines()[-1] if stderr.strip() else ""
        message = f"{command} exited with code {returncode}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class CommandTimeoutError(CommandError):
    """Raised when an external command exceeds its timeout."""

    def __init__(self, args_list: Sequence[str], timeout: float | None) -> None:
        self.timeout = timeout
        super().__init__(args_list, None, stderr=f"timed out after {timeout}s")


class DockerNotAvailableError(ImageFsError):
    """Raised when the docker executable cannot be found."""

    pass
