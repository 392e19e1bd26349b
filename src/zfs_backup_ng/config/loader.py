"""TOML configuration loading and validation.

Handles config file discovery, parsing, and validation with helpful error messages.
"""

import tomllib
from pathlib import Path
from typing import Any

from .schema import (
    BorgVolumeConfig,
    CloneVolumeConfig,
    Config,
    ConventionConfig,
    GlobalConfig,
    ResticVolumeConfig,
    SnapVolumeConfig,
)


class ConfigError(Exception):
    """Configuration loading or validation error."""

    pass


# Config file search paths in priority order
CONFIG_PATHS = [
    Path.home() / ".config" / "zfs-backup-ng" / "config.toml",
    Path("/etc/zfs-backup-ng/config.toml"),
]

TIERS = ("immediate", "hourly", "daily", "weekly", "monthly", "yearly")


def find_config_file(explicit_path: str | None = None) -> Path | None:
    """Find configuration file.

    Args:
        explicit_path: Explicitly specified config path (highest priority)

    Returns:
        Path to config file, or None if not found
    """
    if explicit_path:
        path = Path(explicit_path)
        if path.exists():
            return path
        raise ConfigError(f"Config file not found: {explicit_path}")

    for path in CONFIG_PATHS:
        if path.exists():
            return path

    return None


def _require(data: dict[str, Any], key: str, what: str) -> Any:
    if key not in data:
        raise ConfigError(f"{what} missing required '{key}' field")
    return data[key]


def _parse_convention(data: dict[str, Any]) -> ConventionConfig:
    """Parse a retention convention from dict."""
    name = _require(data, "name", "Convention")
    budgets = {}
    for tier in TIERS:
        value = data.get(tier, 0)
        if not isinstance(value, int) or isinstance(value, bool):
            raise ConfigError(
                f"Convention '{name}': '{tier}' must be an integer, got {value!r}"
            )
        if value < 0:
            raise ConfigError(f"Convention '{name}': '{tier}' must not be negative")
        budgets[tier] = value
    return ConventionConfig(name=name, **budgets)


def _parse_volume(data: dict[str, Any]) -> SnapVolumeConfig:
    """Parse snapshot volume configuration from dict."""
    return SnapVolumeConfig(
        name=_require(data, "name", "Volume"),
        zfs=_require(data, "zfs", "Volume"),
        convention=_require(data, "convention", "Volume"),
        enabled=data.get("enabled", True),
    )


def _parse_clone(data: dict[str, Any]) -> CloneVolumeConfig:
    """Parse clone job configuration from dict."""
    return CloneVolumeConfig(
        name=_require(data, "name", "Clone"),
        source=_require(data, "source", "Clone"),
        dest=_require(data, "dest", "Clone"),
        enabled=data.get("enabled", True),
    )


def _parse_borg(data: dict[str, Any]) -> BorgVolumeConfig:
    """Parse borg volume configuration from dict."""
    name = _require(data, "name", "Borg volume")
    if "-" in name:
        # Archive names are split at the first '-' to recover the volume.
        raise ConfigError(f"Borg volume name '{name}' must not contain '-'")
    return BorgVolumeConfig(
        name=name,
        zfs=_require(data, "zfs", "Borg volume"),
        bind=_require(data, "bind", "Borg volume"),
        repo=_require(data, "repo", "Borg volume"),
        enabled=data.get("enabled", True),
    )


def _parse_restic(data: dict[str, Any]) -> ResticVolumeConfig:
    """Parse restic volume configuration from dict."""
    return ResticVolumeConfig(
        name=_require(data, "name", "Restic volume"),
        zfs=_require(data, "zfs", "Restic volume"),
        bind=_require(data, "bind", "Restic volume"),
        repo=_require(data, "repo", "Restic volume"),
        password_file=data.get("password_file"),
        enabled=data.get("enabled", True),
    )


def _parse_global(data: dict[str, Any]) -> GlobalConfig:
    """Parse global configuration from dict."""
    backup_limit = data.get("backup_limit", 0)
    if (
        not isinstance(backup_limit, int)
        or isinstance(backup_limit, bool)
        or backup_limit < 0
    ):
        raise ConfigError("'backup_limit' must be a non-negative integer")

    return GlobalConfig(
        transaction_log=data.get("transaction_log"),
        lock_file=data.get("lock_file"),
        backup_limit=backup_limit,
        zfs_command=data.get("zfs_command", "zfs"),
        borg_command=data.get("borg_command", "borg"),
        restic_command=data.get("restic_command", "restic"),
        ssh_opts=list(data.get("ssh_opts", [])),
        show_progress=data.get("show_progress", True),
    )


def _duplicates(names: list[str]) -> list[str]:
    seen = set()
    dups = []
    for name in names:
        if name in seen and name not in dups:
            dups.append(name)
        seen.add(name)
    return dups


def _validate_config(config: Config) -> list[str]:
    """Validate configuration and return list of warnings."""
    warnings = []

    if not (config.volumes or config.clones or config.borg or config.restic):
        warnings.append("No volumes configured")

    for name in _duplicates([c.name for c in config.conventions]):
        warnings.append(f"Convention '{name}' is defined more than once")

    known = config.convention_map()
    for volume in config.volumes:
        if volume.convention not in known:
            warnings.append(
                f"Volume '{volume.name}' has unknown convention "
                f"'{volume.convention}' and will be skipped"
            )

    for section, entries in (
        ("volumes", config.volumes),
        ("clone", config.clones),
        ("borg", config.borg),
        ("restic", config.restic),
    ):
        for name in _duplicates([e.name for e in entries]):
            warnings.append(f"Duplicate {section} name '{name}'")

    for clone in config.clones:
        if clone.source == clone.dest:
            warnings.append(f"Clone '{clone.name}' has identical source and dest")

    return warnings


def load_config(path: Path | str) -> tuple[Config, list[str]]:
    """Load and validate configuration from TOML file.

    Args:
        path: Path to configuration file

    Returns:
        Tuple of (Config object, list of warnings)

    Raises:
        ConfigError: If config is invalid or cannot be parsed
    """
    path = Path(path)

    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax: {e}")
    except OSError as e:
        raise ConfigError(f"Cannot read config file: {e}")

    return parse_config(data)


def parse_config(data: dict[str, Any]) -> tuple[Config, list[str]]:
    """Build a Config from already decoded TOML data."""
    config = Config(
        global_config=_parse_global(data.get("global", {})),
        conventions=[_parse_convention(c) for c in data.get("conventions", [])],
        volumes=[_parse_volume(v) for v in data.get("volumes", [])],
        clones=[_parse_clone(c) for c in data.get("clone", [])],
        borg=[_parse_borg(b) for b in data.get("borg", [])],
        restic=[_parse_restic(r) for r in data.get("restic", [])],
    )

    # Validate and collect warnings
    warnings = _validate_config(config)

    return config, warnings


def generate_example_config() -> str:
    """Generate example configuration file content."""
    return """# zfs-backup-ng configuration
# See documentation for full options

[global]
# transaction_log = "/var/log/zfs-backup-ng/transactions.jsonl"
# lock_file = "/run/zfs-backup-ng.lock"
backup_limit = 0    # Max borg/restic captures per run (0 = unlimited)

# Snapshots are named <convention>-<YYYYmmddHHMMSS>
[[conventions]]
name = "auto"
immediate = 4       # Always keep the 4 most recent snapshots
hourly = 24         # Then keep 24 hourly snapshots
daily = 7           # Then keep 7 daily snapshots
weekly = 4          # Then keep 4 weekly snapshots
monthly = 12        # Then keep 12 monthly snapshots
yearly = 0          # Don't keep yearly (0 = disabled)

[[volumes]]
name = "home"
zfs = "tank/home"
convention = "auto"

# Incremental replication to another pool (host:dataset for remote)
# [[clone]]
# name = "home"
# source = "tank/home"
# dest = "backup.example.com:vault/home"

# Capture snapshots into a borg repository
# [[borg]]
# name = "home"
# zfs = "tank/home"
# bind = "/mnt/borg-bind"
# repo = "/srv/borg/home"

# Capture snapshots into a restic repository
# [[restic]]
# name = "home"
# zfs = "tank/home"
# bind = "/mnt/restic-bind"
# repo = "/srv/restic/home"
# password_file = "/root/.restic-pass"
"""
