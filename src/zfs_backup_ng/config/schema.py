"""Configuration schema definitions using dataclasses.

Defines the structure for TOML configuration with sensible defaults.
"""

from dataclasses import dataclass, field
from typing import Optional

from ..retention import RetentionPolicy


@dataclass
class ConventionConfig:
    """Snapshot naming convention and its retention policy.

    Snapshots taken under a convention are named ``<name>-<timestamp>``,
    and pruning only ever considers snapshots carrying that prefix.

    Attributes:
        name: Convention name, also the snapshot name prefix
        immediate: Number of most recent snapshots to keep unconditionally
        hourly: Number of hourly snapshots to keep
        daily: Number of daily snapshots to keep
        weekly: Number of weekly snapshots to keep
        monthly: Number of monthly snapshots to keep
        yearly: Number of yearly snapshots to keep
    """

    name: str
    immediate: int = 0
    hourly: int = 0
    daily: int = 0
    weekly: int = 0
    monthly: int = 0
    yearly: int = 0

    def to_policy(self) -> RetentionPolicy:
        """Return the tier budgets of this convention."""
        return RetentionPolicy(
            immediate=self.immediate,
            hourly=self.hourly,
            daily=self.daily,
            weekly=self.weekly,
            monthly=self.monthly,
            yearly=self.yearly,
        )


@dataclass
class SnapVolumeConfig:
    """A dataset that is snapshotted and pruned under a convention.

    Attributes:
        name: Short name of the volume, used in log output
        zfs: Dataset specification (``pool/fs`` or ``host:pool/fs``)
        convention: Name of the convention to apply
        enabled: Whether this volume is processed
    """

    name: str
    zfs: str
    convention: str
    enabled: bool = True


@dataclass
class CloneVolumeConfig:
    """A dataset tree replicated incrementally to another pool.

    Attributes:
        name: Short name of the clone job
        source: Source dataset specification
        dest: Destination dataset specification
        enabled: Whether this job is processed
    """

    name: str
    source: str
    dest: str
    enabled: bool = True


@dataclass
class BorgVolumeConfig:
    """Snapshots of a dataset captured into a borg repository.

    Archives are named ``<name>-<snapshot>``.

    Attributes:
        name: Volume name, the archive name prefix
        zfs: Dataset whose snapshots are captured
        bind: Directory the snapshot is bind-mounted on while captured
        repo: Borg repository location
        enabled: Whether this volume is processed
    """

    name: str
    zfs: str
    bind: str
    repo: str
    enabled: bool = True


@dataclass
class ResticVolumeConfig:
    """Snapshots of a dataset captured into a restic repository.

    Each capture is tagged with the snapshot name and records the bind
    path, which together identify what has already been captured.

    Attributes:
        name: Volume name
        zfs: Dataset whose snapshots are captured
        bind: Directory the snapshot is bind-mounted on while captured
        repo: Restic repository location
        password_file: File holding the repository password
        enabled: Whether this volume is processed
    """

    name: str
    zfs: str
    bind: str
    repo: str
    password_file: Optional[str] = None
    enabled: bool = True


@dataclass
class GlobalConfig:
    """Global configuration settings.

    Attributes:
        transaction_log: Path of the JSON-lines transaction log (None disables)
        lock_file: Path of the lock file serializing mutating runs
        backup_limit: Max captures per borg/restic run (0 = unlimited)
        zfs_command: Name or path of the zfs binary
        borg_command: Name or path of the borg binary
        restic_command: Name or path of the restic binary
        ssh_opts: Extra options passed to ssh for remote datasets
        show_progress: Render a progress bar during transfers
    """

    transaction_log: Optional[str] = None
    lock_file: Optional[str] = None
    backup_limit: int = 0
    zfs_command: str = "zfs"
    borg_command: str = "borg"
    restic_command: str = "restic"
    ssh_opts: list[str] = field(default_factory=list)
    show_progress: bool = True


@dataclass
class Config:
    """Root configuration object."""

    global_config: GlobalConfig = field(default_factory=GlobalConfig)
    conventions: list[ConventionConfig] = field(default_factory=list)
    volumes: list[SnapVolumeConfig] = field(default_factory=list)
    clones: list[CloneVolumeConfig] = field(default_factory=list)
    borg: list[BorgVolumeConfig] = field(default_factory=list)
    restic: list[ResticVolumeConfig] = field(default_factory=list)

    def convention_map(self) -> dict[str, ConventionConfig]:
        """Map convention names to their configuration."""
        return {conv.name: conv for conv in self.conventions}

    def get_convention(self, name: str) -> Optional[ConventionConfig]:
        """Look up a convention by name, None if it is not defined."""
        return self.convention_map().get(name)

    def get_enabled_volumes(self) -> list[SnapVolumeConfig]:
        """Get list of enabled snapshot volumes."""
        return [v for v in self.volumes if v.enabled]

    def get_enabled_clones(self) -> list[CloneVolumeConfig]:
        """Get list of enabled clone jobs."""
        return [c for c in self.clones if c.enabled]

    def endpoint_options(self) -> dict:
        """Common endpoint configuration derived from the global settings."""
        return {
            "zfs_command": self.global_config.zfs_command,
            "ssh_opts": list(self.global_config.ssh_opts),
        }
