"""Tests for the find, hash and scan commands."""

import hashlib
import json
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from imagefs.cli import main
from imagefs.config.models import ImageFsConfig
from imagefs.docker.interface import DockerOptions
from imagefs.exceptions import CommandError, DockerNotAvailableError

APP_LISTING = """\
/app:
-rw-r--r-- 1 0 0 120 Jan  1 00:00 package.json
drwxr-xr-x 2 0 0 4096 Jan  1 00:00 bin

/app/bin:
-rwxr-xr-x 1 0 0 9000 Jan  1 00:00 server
-rwxr-xr-x 1 0 0 9000 Jan  1 00:00 worker
"""

SERVER_BYTES = b"server binary"


@pytest.fixture(autouse=True)
def no_logging_setup():
    """Keep CLI invocations from reconfiguring the root logger."""
    with patch("imagefs.cli._configure_logging"):
        yield


@pytest.fixture
def fake_runner(fake_runner_factory):
    """Fake runner for an image with an /app directory."""
    return fake_runner_factory(
        listings={("/app", True): APP_LISTING},
        files={"/app/bin/server": SERVER_BYTES},
        failing_streams={"/app/bin/worker": 1},
    )


@pytest.fixture
def docker_runner(fake_runner):
    """Patch DockerRunner to build the fake runner, keeping its arguments."""
    calls = []

    def build(image, options, config):
        calls.append((image, options))
        fake_runner.config = config
        return fake_runner

    with patch("imagefs.cli.image.DockerRunner", side_effect=build):
        yield calls


def invoke(args):
    return CliRunner().invoke(main, args, obj={"config": ImageFsConfig()})


class TestMainGroup:
    """Tests for the main command group."""

    def test_help_lists_commands(self):
        """--help shows the image commands."""
        result = invoke(["--help"])

        assert result.exit_code == 0
        for command in ("find", "hash", "scan"):
            assert command in result.output

    def test_invalid_environment_config(self):
        """Invalid configuration exits with CONFIG_ERROR."""
        result = CliRunner().invoke(
            main,
            ["find", "alpine"],
            env={"IMAGEFS_HASH_CONCURRENCY": "0"},
        )

        assert result.exit_code == 11
        assert "Invalid configuration" in result.output


class TestFindCommand:
    """Tests for imagefs find."""

    def test_human_output(self, docker_runner, fake_runner):
        """Matches are printed one per line with their kind."""
        result = invoke(
            [
                "find",
                "myapp:1.0",
                "--path",
                "/app",
                "--manifest-glob",
                "**/package.json",
                "--binary-glob",
                "/app/bin/*",
            ]
        )

        assert result.exit_code == 0, result.output
        assert "manifest  /app/package.json" in result.output
        assert "binary    /app/bin/server" in result.output
        assert fake_runner.ls_calls == [("/app", True)]

    def test_json_output(self, docker_runner):
        """--json prints the file lists."""
        result = invoke(
            [
                "find",
                "myapp:1.0",
                "--path",
                "/app",
                "--binary-glob",
                "/app/bin/*",
                "--exclude",
                "**/worker",
                "--json",
            ]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["status"] == "completed"
        assert data["manifest_files"] == []
        assert data["binary_files"] == ["/app/bin/server"]

    def test_no_matches(self, docker_runner):
        """A scan without matches says so."""
        result = invoke(["find", "myapp:1.0", "--path", "/app"])

        assert result.exit_code == 0
        assert "No matching files found." in result.output

    def test_docker_options_passed(self, docker_runner):
        """Connection options reach the runner."""
        invoke(
            [
                "find",
                "myapp:1.0",
                "--path",
                "/app",
                "--host",
                "tcp://docker:2376",
                "--tlsverify",
                "1",
            ]
        )

        image, options = docker_runner[0]
        assert image == "myapp:1.0"
        assert options == DockerOptions(host="tcp://docker:2376", tls_verify="1")

    def test_docker_not_available(self):
        """A missing docker executable exits with TOOL_NOT_AVAILABLE."""
        with patch(
            "imagefs.scanner.orchestrator.ImageScanner.find_globs",
            side_effect=DockerNotAvailableError("docker executable not found: docker"),
        ):
            result = invoke(["find", "myapp:1.0"])

        assert result.exit_code == 30
        assert "docker executable not found" in result.output

    def test_command_failure(self):
        """A failed listing exits with OPERATION_FAILED."""
        with patch(
            "imagefs.scanner.orchestrator.ImageScanner.find_globs",
            side_effect=CommandError(["docker"], 125, stderr="No such image"),
        ):
            result = invoke(["find", "myapp:1.0", "--json"])

        assert result.exit_code == 40
        assert "OPERATION_FAILED" in result.output


class TestHashCommand:
    """Tests for imagefs hash."""

    def test_hashes_and_warns_about_dropped(self, docker_runner):
        """Hashes are printed sha1sum-style, dropped files produce a warning."""
        result = invoke(["hash", "myapp:1.0", "/app/bin/server", "/app/bin/worker"])

        assert result.exit_code == 0
        digest = hashlib.sha1(SERVER_BYTES).hexdigest()
        assert f"{digest}  /app/bin/server" in result.output
        assert "  /app/bin/worker" not in result.output
        assert "Warning: 1 file(s) could not be hashed" in result.output

    def test_json_output(self, docker_runner):
        """--json lists records and dropped files."""
        result = invoke(
            [
                "hash",
                "myapp:1.0",
                "/app/bin/server",
                "/app/bin/worker",
                "--hash-type",
                "md5",
                "--json",
            ]
        )

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["binary_files"] == [
            {
                "name": "server",
                "path": "/app/bin",
                "hash_type": "md5",
                "hash": hashlib.md5(SERVER_BYTES).hexdigest(),
            }
        ]
        assert data["dropped_files"] == ["/app/bin/worker"]

    def test_unsupported_hash_type(self, docker_runner, fake_runner):
        """An unknown algorithm exits with CONFIG_ERROR before reading files."""
        result = invoke(["hash", "myapp:1.0", "/app/bin/server", "--hash-type", "nope"])

        assert result.exit_code == 11
        assert fake_runner.cat_calls == []

    def test_requires_files(self):
        """At least one file is required."""
        result = invoke(["hash", "myapp:1.0"])

        assert result.exit_code != 0


class TestScanCommand:
    """Tests for imagefs scan."""

    def test_json_output(self, docker_runner, fake_runner):
        """Scan finds files and hashes the binaries."""
        result = invoke(
            [
                "scan",
                "myapp:1.0",
                "--path",
                "/app",
                "--manifest-glob",
                "**/package.json",
                "--binary-glob",
                "/app/bin/*",
                "--json",
            ]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["manifest_files"] == ["/app/package.json"]
        assert data["binary_files"] == ["/app/bin/server", "/app/bin/worker"]
        assert [h["name"] for h in data["hashes"]] == ["server"]
        assert data["dropped_files"] == ["/app/bin/worker"]
        assert fake_runner.cat_calls == ["/app/bin/server", "/app/bin/worker"]

    def test_human_output(self, docker_runner):
        """Human output shows matches, hashes and the dropped count."""
        result = invoke(
            ["scan", "myapp:1.0", "--path", "/app", "--binary-glob", "/app/bin/*"]
        )

        assert result.exit_code == 0
        assert "binary    /app/bin/server" in result.output
        assert hashlib.sha1(SERVER_BYTES).hexdigest() in result.output
        assert "1 binary file(s) could not be hashed" in result.output
