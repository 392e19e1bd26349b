"""Pytest configuration and shared fixtures."""

import pytest

from zfs_backup_ng.inventory import Dataset
from zfs_backup_ng.transaction import set_transaction_log


@pytest.fixture
def tmp_config_dir(tmp_path):
    """Create a temporary config directory."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def sample_config_toml():
    """Return a sample valid TOML configuration string."""
    return """
[global]
transaction_log = "/var/log/zfs-backup-ng/transactions.jsonl"
lock_file = "/run/zfs-backup-ng.lock"
backup_limit = 5
ssh_opts = ["Compression=yes"]

[[conventions]]
name = "hourly"
immediate = 4
hourly = 24
daily = 7
weekly = 4
monthly = 12
yearly = 2

[[conventions]]
name = "daily"
daily = 14

[[volumes]]
name = "home"
zfs = "tank/home"
convention = "hourly"

[[volumes]]
name = "media"
zfs = "tank/media"
convention = "daily"
enabled = false

[[clone]]
name = "home"
source = "tank/home"
dest = "backup.example.com:vault/home"

[[borg]]
name = "home"
zfs = "tank/home"
bind = "/mnt/borg-bind"
repo = "/srv/borg/home"

[[restic]]
name = "home"
zfs = "tank/home"
bind = "/mnt/restic-bind"
repo = "/srv/restic/home"
password_file = "/root/.restic-pass"
"""


@pytest.fixture
def minimal_config_toml():
    """Return a minimal valid TOML configuration string."""
    return """
[[conventions]]
name = "auto"
immediate = 1

[[volumes]]
name = "home"
zfs = "tank/home"
convention = "auto"
"""


@pytest.fixture
def config_file(tmp_config_dir, sample_config_toml):
    """Create a temporary config file with sample content."""
    config_path = tmp_config_dir / "config.toml"
    config_path.write_text(sample_config_toml)
    return config_path


@pytest.fixture
def minimal_config_file(tmp_config_dir, minimal_config_toml):
    """Create a temporary config file with minimal content."""
    config_path = tmp_config_dir / "minimal.toml"
    config_path.write_text(minimal_config_toml)
    return config_path


@pytest.fixture
def make_dataset():
    """Factory for datasets with given snapshot and bookmark names."""

    def _make(name, snapshots=(), bookmarks=(), endpoint=None):
        return Dataset(
            name=name,
            endpoint=endpoint,
            snapshots=list(snapshots),
            bookmarks=list(bookmarks),
        )

    return _make


@pytest.fixture
def transaction_log(tmp_path):
    """Enable the transaction log for one test."""
    path = tmp_path / "transactions.jsonl"
    set_transaction_log(path)
    yield path
    set_transaction_log(None)
