"""Tests for configuration loading."""

import os
from pathlib import Path

import pytest

from imagefs.config.env import EnvReader
from imagefs.config.loader import (
    DEFAULT_CONFIG_FILE,
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)

CONFIG_TOML = """\
[scan]
docker_path = "/usr/bin/docker"
command_timeout = 60
hash_type = "sha256"
hash_concurrency = 4
exclude_root_directories = ["proc", "sys"]

[logging]
level = "debug"
format = "json"
file = "/tmp/imagefs.log"
"""


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Write a config file and return its path."""
    path = tmp_path / "config.toml"
    path.write_text(CONFIG_TOML)
    return path


class TestConfigPath:
    """Tests for get_default_config_path()."""

    def test_default(self):
        """Without IMAGEFS_CONFIG_PATH the home config is used."""
        assert get_default_config_path(EnvReader({})) == DEFAULT_CONFIG_FILE

    def test_env_override(self, tmp_path: Path):
        """IMAGEFS_CONFIG_PATH overrides the location."""
        reader = EnvReader({"IMAGEFS_CONFIG_PATH": str(tmp_path / "c.toml")})

        assert get_default_config_path(reader) == tmp_path / "c.toml"


class TestLoadConfigFile:
    """Tests for load_config_file()."""

    def test_missing_file(self, tmp_path: Path):
        """A missing file yields an empty dict."""
        assert load_config_file(tmp_path / "nope.toml") == {}

    def test_invalid_toml(self, tmp_path: Path):
        """An unparsable file yields an empty dict."""
        path = tmp_path / "bad.toml"
        path.write_text("[scan\n")

        assert load_config_file(path) == {}

    def test_parses_file(self, config_file: Path):
        """Sections are parsed into nested dicts."""
        data = load_config_file(config_file)

        assert data["scan"]["hash_concurrency"] == 4
        assert data["logging"]["level"] == "debug"

    def test_cache_reloads_on_change(self, config_file: Path):
        """A changed mtime causes the file to be read again."""
        load_config_file(config_file)
        config_file.write_text('[scan]\nhash_type = "md5"\n')
        stat = config_file.stat()
        os.utime(config_file, (stat.st_atime, stat.st_mtime + 10))

        assert load_config_file(config_file)["scan"]["hash_type"] == "md5"

    def test_clear_cache(self, config_file: Path):
        """clear_config_cache forgets parsed files."""
        first = load_config_file(config_file)
        clear_config_cache()

        assert load_config_file(config_file) is not first


class TestGetConfig:
    """Tests for get_config()."""

    def test_defaults_without_file(self, tmp_path: Path):
        """Missing file and environment give defaults."""
        config = get_config(tmp_path / "missing.toml", env={})

        assert config.scan.docker_path == "docker"
        assert config.scan.hash_type == "sha1"
        assert config.logging.level == "info"

    def test_file_values(self, config_file: Path):
        """Values from the file are applied."""
        config = get_config(config_file, env={})

        assert config.scan.docker_path == "/usr/bin/docker"
        assert config.scan.command_timeout == 60
        assert config.scan.hash_type == "sha256"
        assert config.scan.hash_concurrency == 4
        assert config.scan.exclude_root_directories == ("proc", "sys")
        assert config.logging.level == "debug"
        assert config.logging.format == "json"
        assert config.logging.file == Path("/tmp/imagefs.log")

    def test_env_overrides_file(self, config_file: Path):
        """Environment variables take precedence over the file."""
        config = get_config(
            config_file,
            env={
                "IMAGEFS_HASH_TYPE": "xxh64",
                "IMAGEFS_HASH_CONCURRENCY": "2",
                "IMAGEFS_COMMAND_TIMEOUT": "10",
                "IMAGEFS_STREAM_TIMEOUT": "120",
                "IMAGEFS_EXCLUDE_ROOT_DIRS": "dev,proc,sys,tmp",
                "IMAGEFS_LOG_LEVEL": "warning",
                "IMAGEFS_LOG_STDERR": "true",
            },
        )

        assert config.scan.hash_type == "xxh64"
        assert config.scan.hash_concurrency == 2
        assert config.scan.command_timeout == 10.0
        assert config.scan.stream_timeout == 120.0
        assert config.scan.exclude_root_directories == ("dev", "proc", "sys", "tmp")
        assert config.logging.level == "warning"
        assert config.logging.include_stderr is True

    def test_config_path_from_env(self, config_file: Path):
        """IMAGEFS_CONFIG_PATH selects the file when no path is given."""
        config = get_config(env={"IMAGEFS_CONFIG_PATH": str(config_file)})

        assert config.scan.hash_concurrency == 4

    def test_invalid_value_raises(self, tmp_path: Path):
        """Invalid resulting values raise ValueError."""
        with pytest.raises(ValueError, match="hash_concurrency"):
            get_config(
                tmp_path / "missing.toml", env={"IMAGEFS_HASH_CONCURRENCY": "0"}
            )

    def test_non_table_section_ignored(self, tmp_path: Path):
        """A scalar where a section is expected is ignored."""
        path = tmp_path / "config.toml"
        path.write_text('scan = "fast"\n')

        config = get_config(path, env={})

        assert config.scan.hash_type == "sha1"
