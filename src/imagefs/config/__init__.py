"""Configuration module for imagefs.

Dataclass models, an environment reader and a loader that merges the TOML
config file, environment variables and defaults.
"""

from imagefs.config.env import EnvReader
from imagefs.config.loader import (
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
from imagefs.config.models import (
    SYSTEM_DIRECTORIES,
    ImageFsConfig,
    LoggingConfig,
    ScanConfig,
)

__all__ = [
    "SYSTEM_DIRECTORIES",
    "EnvReader",
    "ImageFsConfig",
    "LoggingConfig",
    "ScanConfig",
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
]
