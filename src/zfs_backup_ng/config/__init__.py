"""Configuration system for zfs-backup-ng.

This module provides TOML-based configuration loading, validation,
and schema definitions for snapshot, replication and backup jobs.
"""

from .loader import ConfigError, find_config_file, load_config
from .schema import (
    BorgVolumeConfig,
    CloneVolumeConfig,
    Config,
    ConventionConfig,
    GlobalConfig,
    ResticVolumeConfig,
    SnapVolumeConfig,
)

__all__ = [
    "BorgVolumeConfig",
    "CloneVolumeConfig",
    "Config",
    "ConventionConfig",
    "GlobalConfig",
    "ResticVolumeConfig",
    "SnapVolumeConfig",
    "load_config",
    "find_config_file",
    "ConfigError",
]
