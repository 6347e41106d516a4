"""Build ImageFsConfig from defaults, a TOML file and IMAGEFS_* variables.

Later sources win: built-in defaults, then the config file
(~/.imagefs/config.toml or IMAGEFS_CONFIG_PATH), then the environment.
Command line options are applied afterwards by the CLI.

Recognized variables:
- IMAGEFS_CONFIG_PATH: config file to read
- IMAGEFS_DOCKER_PATH: docker executable
- IMAGEFS_COMMAND_TIMEOUT: seconds allowed for a captured docker command
- IMAGEFS_STREAM_TIMEOUT: seconds allowed for a streamed file read
- IMAGEFS_HASH_TYPE: digest algorithm for binary files
- IMAGEFS_HASH_CONCURRENCY: number of files hashed at once
- IMAGEFS_EXCLUDE_ROOT_DIRS: comma-separated top-level directories to skip
- IMAGEFS_LOG_LEVEL, IMAGEFS_LOG_FORMAT, IMAGEFS_LOG_FILE, IMAGEFS_LOG_STDERR
"""

from __future__ import annotations

import logging
import threading
import tomllib
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from imagefs.config.env import EnvReader
from imagefs.config.models import ImageFsConfig, LoggingConfig, ScanConfig

logger = logging.getLogger(__name__)

_CONFIG_HOME = Path.home() / ".imagefs"
DEFAULT_CONFIG_FILE = _CONFIG_HOME / "config.toml"

# parsed TOML keyed by path, reused while the file mtime is unchanged
_config_cache: dict[Path, tuple[dict, float]] = {}
_config_cache_lock = threading.Lock()


def get_default_config_path(env: EnvReader | None = None) -> Path:
    """Return IMAGEFS_CONFIG_PATH if set, else ~/.imagefs/config.toml."""
    reader = env or EnvReader()
    return reader.get_path("IMAGEFS_CONFIG_PATH", DEFAULT_CONFIG_FILE)


def load_config_file(path: Path | None = None) -> dict[str, Any]:
    """Load configuration from a TOML file.

    Parsed files are cached by path and reloaded when their mtime changes.

    Args:
        path: Path to config file. If None, uses default location.

    Returns:
        Parsed configuration dict. Empty dict if the file doesn't exist or
        cannot be parsed.
    """
    if path is None:
        path = get_default_config_path()

    try:
        mtime = path.stat().st_mtime
    except OSError:
        logger.debug("Config file not found: %s", path)
        return {}

    with _config_cache_lock:
        cached = _config_cache.get(path)
        if cached is not None and cached[1] == mtime:
            return cached[0]

    try:
        with path.open("rb") as f:
            config = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning("Failed to load config file %s: %s", path, e)
        return {}

    logger.debug("Loaded config from %s", path)
    with _config_cache_lock:
        _config_cache[path] = (config, mtime)
    return config


def clear_config_cache() -> None:
    """Forget all cached config files."""
    with _config_cache_lock:
        _config_cache.clear()


def _section(data: Mapping[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        logger.warning("Ignoring config section [%s]: not a table", name)
        return {}
    return section


def _build_scan_config(file_section: Mapping[str, Any], env: EnvReader) -> ScanConfig:
    defaults = ScanConfig()
    exclude = env.get_list("IMAGEFS_EXCLUDE_ROOT_DIRS")
    if exclude is None:
        exclude = file_section.get(
            "exclude_root_directories", defaults.exclude_root_directories
        )
    return ScanConfig(
        docker_path=env.get_str(
            "IMAGEFS_DOCKER_PATH",
            file_section.get("docker_path", defaults.docker_path),
        ),
        command_timeout=env.get_float(
            "IMAGEFS_COMMAND_TIMEOUT",
            file_section.get("command_timeout", defaults.command_timeout),
        ),
        stream_timeout=env.get_float(
            "IMAGEFS_STREAM_TIMEOUT",
            file_section.get("stream_timeout", defaults.stream_timeout),
        ),
        stream_chunk_size=file_section.get(
            "stream_chunk_size", defaults.stream_chunk_size
        ),
        hash_type=env.get_str(
            "IMAGEFS_HASH_TYPE", file_section.get("hash_type", defaults.hash_type)
        ),
        hash_concurrency=env.get_int(
            "IMAGEFS_HASH_CONCURRENCY",
            file_section.get("hash_concurrency", defaults.hash_concurrency),
        ),
        exclude_root_directories=tuple(exclude),
        spinner_threshold_ms=file_section.get(
            "spinner_threshold_ms", defaults.spinner_threshold_ms
        ),
    )


def _build_logging_config(
    file_section: Mapping[str, Any], env: EnvReader
) -> LoggingConfig:
    defaults = LoggingConfig()
    file_value = file_section.get("file")
    return LoggingConfig(
        level=env.get_str(
            "IMAGEFS_LOG_LEVEL", file_section.get("level", defaults.level)
        ),
        file=env.get_path(
            "IMAGEFS_LOG_FILE",
            Path(file_value).expanduser() if file_value else defaults.file,
        ),
        format=env.get_str(
            "IMAGEFS_LOG_FORMAT", file_section.get("format", defaults.format)
        ),
        include_stderr=bool(
            env.get_bool(
                "IMAGEFS_LOG_STDERR",
                file_section.get("include_stderr", defaults.include_stderr),
            )
        ),
        max_bytes=file_section.get("max_bytes", defaults.max_bytes),
        backup_count=file_section.get("backup_count", defaults.backup_count),
    )


def get_config(
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ImageFsConfig:
    """Build the effective configuration.

    Args:
        config_path: Config file to read. None uses the default location.
        env: Environment mapping to read instead of os.environ.

    Returns:
        ImageFsConfig with environment overrides applied on top of the file.

    Raises:
        ValueError: If a resulting value fails validation.
    """
    reader = EnvReader(env)
    if config_path is None:
        config_path = get_default_config_path(reader)
    data = load_config_file(config_path)

    return ImageFsConfig(
        scan=_build_scan_config(_section(data, "scan"), reader),
        logging=_build_logging_config(_section(data, "logging"), reader),
    )
