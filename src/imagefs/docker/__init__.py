"""Docker module for imagefs.

- CommandRunner: Protocol for running commands against an image
- DockerRunner: Production implementation using the docker CLI
- DockerOptions: Docker connection options (host, TLS)
"""

from imagefs.docker.interface import (
    DEFAULT_IGNORE_ERRORS,
    LS_IGNORE_ERRORS,
    CommandRunner,
    DockerOptions,
)
from imagefs.docker.runner import DockerRunner

__all__ = [
    "DEFAULT_IGNORE_ERRORS",
    "LS_IGNORE_ERRORS",
    "CommandRunner",
    "DockerOptions",
    "DockerRunner",
]
