"""asyncio wrappers around the docker CLI process.

This module provides the asyncio subprocess wrappers used to invoke the
docker CLI: one that captures output, and one that streams stdout in
chunks to a callback so large files never have to be held in memory.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from imagefs.exceptions import CommandError, CommandTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


@dataclass(frozen=True)
class CommandResult:
    """Captured output of a command that exited successfully."""

    stdout: str
    stderr: str


@dataclass(frozen=True)
class StreamChunk:
    """One event of a streamed command.

    Exactly one field is set: a block of stdout data, the collected stderr
    text, or the exit code (always the last chunk of a stream).
    """

    data: bytes | None = None
    error: str | None = None
    exit_code: int | None = None


StreamCallback = Callable[[StreamChunk], None]


def _command_name(str_args: list[str]) -> str:
    return str_args[0].split("/")[-1] if str_args else "unknown"


def _describe(str_args: list[str]) -> str:
    return " ".join(str_args[:3]) + ("..." if len(str_args) > 3 else "")


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        process.kill()
        await process.wait()


async def run_command(
    args: Sequence[str | Path],
    timeout: float | None = 300,
    errors: str = "replace",
) -> CommandResult:
    """Run external command and capture its output.

    Args:
        args: Command and arguments. Path objects are converted to strings.
        timeout: Timeout in seconds (default 300). None disables the timeout.
        errors: Error handling mode for text decoding (default "replace").

    Returns:
        CommandResult with decoded stdout and stderr.

    Raises:
        CommandError: If the command exits with a non-zero code.
        CommandTimeoutError: If the command times out. The child process is
            killed before the exception is raised.
        FileNotFoundError: If the executable does not exist.

    Example:
        >>> result = await run_command(["docker", "version"])
        >>> print(result.stdout)
    """
    str_args = [str(arg) for arg in args]
    command_name = _command_name(str_args)

    logger.debug(
        "Executing command: %s",
        " ".join(str_args),
        extra={"command": command_name, "arg_count": len(str_args)},
    )

    start_time = time.monotonic()
    process = await asyncio.create_subprocess_exec(
        *str_args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    try:
        stdout_bytes, stderr_bytes = await asyncio.wait_for(
            process.communicate(), timeout=timeout
        )
    except asyncio.TimeoutError as e:
        await _kill(process)
        elapsed = time.monotonic() - start_time
        logger.warning(
            "Command timed out after %ss: %s",
            timeout,
            _describe(str_args),
            extra={
                "command": command_name,
                "timeout_seconds": timeout,
                "elapsed_seconds": round(elapsed, 3),
            },
        )
        raise CommandTimeoutError(str_args, timeout) from e
    except asyncio.CancelledError:
        await _kill(process)
        raise

    elapsed = time.monotonic() - start_time
    logger.debug(
        "Command completed",
        extra={
            "command": command_name,
            "elapsed_seconds": round(elapsed, 3),
            "returncode": process.returncode,
        },
    )

    stdout = (stdout_bytes or b"").decode("utf-8", errors=errors)
    stderr = (stderr_bytes or b"").decode("utf-8", errors=errors)

    if process.returncode != 0:
        raise CommandError(
            str_args, process.returncode, stdout=stdout, stderr=stderr
        )

    return CommandResult(stdout=stdout, stderr=stderr)


async def stream_command(
    args: Sequence[str | Path],
    callback: StreamCallback,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    timeout: float | None = None,
) -> int:
    """Run external command, delivering stdout to a callback in chunks.

    The callback receives one StreamChunk per block of stdout data. Anything
    written to stderr is delivered afterwards as a single chunk with the
    error field set. The last chunk always carries the exit code.

    Args:
        args: Command and arguments.
        callback: Called with each StreamChunk.
        chunk_size: Maximum bytes per data chunk.
        timeout: Overall timeout in seconds. None waits indefinitely.

    Returns:
        The command's exit code.

    Raises:
        CommandTimeoutError: If the command times out.
        FileNotFoundError: If the executable does not exist.
    """
    str_args = [str(arg) for arg in args]
    command_name = _command_name(str_args)

    logger.debug(
        "Streaming command: %s",
        " ".join(str_args),
        extra={"command": command_name, "arg_count": len(str_args)},
    )

    start_time = time.monotonic()
    process = await asyncio.create_subprocess_exec(
        *str_args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )

    async def pump() -> bytes:
        # stderr is drained concurrently so a chatty child cannot block on a
        # full pipe while we wait on stdout
        stderr_task = asyncio.create_task(process.stderr.read())
        try:
            while True:
                data = await process.stdout.read(chunk_size)
                if not data:
                    break
                callback(StreamChunk(data=data))
            await process.wait()
            return await stderr_task
        finally:
            if not stderr_task.done():
                stderr_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await stderr_task

    try:
        stderr_bytes = await asyncio.wait_for(pump(), timeout=timeout)
    except asyncio.TimeoutError as e:
        await _kill(process)
        logger.warning(
            "Streaming command timed out after %ss: %s",
            timeout,
            _describe(str_args),
            extra={"command": command_name, "timeout_seconds": timeout},
        )
        raise CommandTimeoutError(str_args, timeout) from e
    except BaseException:
        await _kill(process)
        raise

    if stderr_bytes:
        callback(StreamChunk(error=stderr_bytes.decode("utf-8", errors="replace")))

    returncode = process.returncode
    callback(StreamChunk(exit_code=returncode))

    logger.debug(
        "Streaming command completed",
        extra={
            "command": command_name,
            "elapsed_seconds": round(time.monotonic() - start_time, 3),
            "returncode": returncode,
        },
    )
    return returncode
