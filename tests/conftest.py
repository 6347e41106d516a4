"""Shared test fixtures for imagefs."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping, Sequence

import pytest

from imagefs.config import clear_config_cache
from imagefs.core.subprocess_utils import CommandResult, StreamCallback, StreamChunk
from imagefs.docker.interface import DEFAULT_IGNORE_ERRORS


class FakeRunner:
    """CommandRunner serving canned listing output and file contents.

    Attributes:
        listings: Mapping of (path, recursive) to ls stdout.
        files: Mapping of path to file bytes for cat.
        failing_streams: Mapping of path to the exit code its stream ends with.
        ls_calls: Every (path, recursive) ls_safe was called with.
        cat_calls: Every path cat_binary_safe was called with.
    """

    def __init__(
        self,
        listings: Mapping[tuple[str, bool], str] | None = None,
        files: Mapping[str, bytes] | None = None,
        failing_streams: Mapping[str, int] | None = None,
        target_image: str = "test/image:latest",
    ) -> None:
        self.listings = dict(listings or {})
        self.files = dict(files or {})
        self.failing_streams = dict(failing_streams or {})
        self.target_image = target_image
        self.ls_calls: list[tuple[str, bool]] = []
        self.cat_calls: list[str] = []
        self.ls_errors: dict[str, Exception] = {}

    async def ls_safe(self, path: str, recursive: bool = False) -> CommandResult:
        self.ls_calls.append((path, recursive))
        if path in self.ls_errors:
            raise self.ls_errors[path]
        return CommandResult(stdout=self.listings.get((path, recursive), ""), stderr="")

    async def cat_safe(self, path: str) -> CommandResult:
        if path not in self.files:
            return CommandResult(
                stdout="", stderr=f"cat: can't open '{path}': No such file or directory"
            )
        return CommandResult(stdout=self.files[path].decode("utf-8"), stderr="")

    async def cat_binary_safe(self, path: str, callback: StreamCallback) -> int:
        self.cat_calls.append(path)
        if path in self.failing_streams:
            exit_code = self.failing_streams[path]
            callback(StreamChunk(data=b"partial"))
            callback(StreamChunk(error=f"cat: read error: {path}"))
            callback(StreamChunk(exit_code=exit_code))
            return exit_code
        if path not in self.files:
            callback(StreamChunk(error=f"cat: can't open '{path}': No such file"))
            callback(StreamChunk(exit_code=1))
            return 1
        data = self.files[path]
        for start in range(0, len(data), 4):
            callback(StreamChunk(data=data[start : start + 4]))
        callback(StreamChunk(exit_code=0))
        return 0

    async def run_safe(
        self,
        cmd: str,
        args: Sequence[str] = (),
        ignore_errors: Sequence[str] = DEFAULT_IGNORE_ERRORS,
    ) -> CommandResult:
        return CommandResult(stdout="", stderr="")


@pytest.fixture
def fake_runner_factory() -> Callable[..., FakeRunner]:
    """Return the FakeRunner class for building runners with canned output."""
    return FakeRunner


def _nested_listing(root: str, depth: int, leaf: str = "package.json") -> str:
    lines = []
    header = root.rstrip("/") or "/"
    for level in range(depth + 1):
        lines += [
            f"{header}:",
            "total 8",
            "drwxr-xr-x    3 0        0             4096 Jan  1 12:34 .",
            "drwxr-xr-x    3 0        0             4096 Jan  1 12:34 ..",
        ]
        if level < depth:
            lines.append("drwxr-xr-x    3 0        0             4096 Jan  1 12:34 d")
        else:
            lines.append(f"-rw-r--r--    1 0        0      120 Jan  1 12:34 {leaf}")
        lines.append("")
        header = f"{header.rstrip('/')}/d"
    return "\n".join(lines)


@pytest.fixture
def nested_listing() -> Callable[..., str]:
    """Return a builder for ``ls -lanR`` output of a single directory chain."""
    return _nested_listing


@pytest.fixture(autouse=True)
def isolated_config(monkeypatch: pytest.MonkeyPatch, tmp_path):
    """Keep tests away from the user's config file and IMAGEFS_* variables."""
    for var in list(os.environ):
        if var.startswith("IMAGEFS_"):
            monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("IMAGEFS_CONFIG_PATH", str(tmp_path / "missing.toml"))
    clear_config_cache()
    yield
    clear_config_cache()
