"""Dataclasses holding imagefs settings after file and environment merging."""

from dataclasses import dataclass, field
from pathlib import Path

from imagefs.core.digests import DEFAULT_HASH_TYPE, is_supported

SYSTEM_DIRECTORIES: tuple[str, ...] = ("dev", "proc", "sys")
"""Pseudo-filesystems skipped when scanning from the image root."""


@dataclass
class ScanConfig:
    """Configuration for scanning and hashing image contents."""

    # docker executable (name on PATH or absolute path)
    docker_path: str = "docker"

    # Timeout in seconds for captured commands (None = no timeout)
    command_timeout: float | None = 300.0

    # Timeout in seconds for streamed file reads (None = no timeout)
    stream_timeout: float | None = None

    # Bytes per chunk when streaming file contents
    stream_chunk_size: int = 64 * 1024

    # Digest algorithm for binary files
    hash_type: str = DEFAULT_HASH_TYPE

    # Files hashed at the same time; 1 keeps hashing strictly sequential
    hash_concurrency: int = 1

    # Top-level directories never listed during a root scan
    exclude_root_directories: tuple[str, ...] = SYSTEM_DIRECTORIES

    # Longest stretch of synchronous work before yielding to the event loop
    spinner_threshold_ms: float = 10.0

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.docker_path:
            raise ValueError("docker_path must not be empty")
        if self.command_timeout is not None and self.command_timeout <= 0:
            raise ValueError(
                f"command_timeout must be positive, got {self.command_timeout}"
            )
        if self.stream_timeout is not None and self.stream_timeout <= 0:
            raise ValueError(
                f"stream_timeout must be positive, got {self.stream_timeout}"
            )
        if self.stream_chunk_size < 1:
            raise ValueError(
                f"stream_chunk_size must be >= 1, got {self.stream_chunk_size}"
            )
        if not is_supported(self.hash_type):
            raise ValueError(f"Unsupported hash type: {self.hash_type}")
        if self.hash_concurrency < 1:
            raise ValueError(
                f"hash_concurrency must be >= 1, got {self.hash_concurrency}"
            )
        if self.spinner_threshold_ms < 0:
            raise ValueError(
                f"spinner_threshold_ms must be >= 0, got {self.spinner_threshold_ms}"
            )
        self.exclude_root_directories = tuple(self.exclude_root_directories)


LOG_LEVELS: tuple[str, ...] = ("debug", "info", "warning", "error")
LOG_FORMATS: tuple[str, ...] = ("text", "json")


@dataclass
class LoggingConfig:
    """Where imagefs writes its own log records, and in which shape."""

    level: str = "info"
    # None logs to stderr
    file: Path | None = None
    format: str = "text"
    # also copy records to stderr when file is set
    include_stderr: bool = False
    # the log file rotates at 10 MiB, keeping five old files
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    def __post_init__(self) -> None:
        if self.level.lower() not in LOG_LEVELS:
            raise ValueError(
                f"log level {self.level!r} is not one of {', '.join(LOG_LEVELS)}"
            )
        if self.format.lower() not in LOG_FORMATS:
            raise ValueError(
                f"log format {self.format!r} is not one of {', '.join(LOG_FORMATS)}"
            )
        if self.max_bytes < 0 or self.backup_count < 0:
            raise ValueError("log rotation sizes must not be negative")


@dataclass
class ImageFsConfig:
    """Top-level imagefs configuration."""

    scan: ScanConfig = field(default_factory=ScanConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
