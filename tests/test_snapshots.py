"""Tests for taking and pruning convention snapshots."""

from datetime import datetime
from unittest.mock import MagicMock, call

import pytest

from zfs_backup_ng.__util__ import CommandError
from zfs_backup_ng.core.snapshots import prune_dataset, snapshot_name, take_snapshot
from zfs_backup_ng.retention import RetentionPolicy
from zfs_backup_ng.transaction import read_transaction_log

NOW = datetime(2024, 3, 4, 5, 6, 7)


def endpoint(listing=""):
    ep = MagicMock()
    ep.name = "tank/home"
    ep.list_all.return_value = listing
    return ep


class TestTakeSnapshot:
    """Tests for take_snapshot."""

    def test_name(self):
        """Test snapshot names carry convention and timestamp."""
        assert snapshot_name("auto", NOW) == "auto-20240304050607"

    def test_creates_snapshot(self, transaction_log):
        """Test the snapshot is created and logged."""
        ep = endpoint()
        assert take_snapshot(ep, "auto", NOW) == "auto-20240304050607"
        ep.snapshot.assert_called_once_with("auto-20240304050607")
        records = read_transaction_log(transaction_log)
        assert records[-1]["snapshot"] == "tank/home@auto-20240304050607"
        assert records[-1]["status"] == "completed"

    def test_dry_run(self):
        """Test nothing is created in a dry run."""
        ep = endpoint()
        take_snapshot(ep, "auto", NOW, dry_run=True)
        ep.snapshot.assert_not_called()

    def test_failure_propagates(self):
        """Test a failing zfs snapshot aborts."""
        ep = endpoint()
        ep.snapshot.side_effect = CommandError(["zfs", "snapshot"], 1)
        with pytest.raises(CommandError):
            take_snapshot(ep, "auto", NOW)


class TestPruneDataset:
    """Tests for prune_dataset."""

    LISTING = "\n".join(
        [
            "tank/home",
            "tank/home@auto-20240101000000",
            "tank/home@manual",
            "tank/home@auto-20240102000000",
            "tank/home@auto-20240103000000",
        ]
    )

    def test_deletes_expired(self):
        """Test expired snapshots are deleted oldest first."""
        ep = endpoint(self.LISTING)
        keep, deleted = prune_dataset(ep, "auto", RetentionPolicy(immediate=1))
        assert keep == ["auto-20240103000000"]
        assert deleted == ["auto-20240101000000", "auto-20240102000000"]
        assert ep.delete_snapshot.call_args_list == [
            call("auto-20240101000000", dataset="tank/home"),
            call("auto-20240102000000", dataset="tank/home"),
        ]

    def test_dry_run(self):
        """Test a dry run deletes nothing."""
        ep = endpoint(self.LISTING)
        _, deleted = prune_dataset(ep, "auto", RetentionPolicy(), dry_run=True)
        assert len(deleted) == 3
        ep.delete_snapshot.assert_not_called()

    def test_stops_on_failure(self):
        """Test the first failing deletion aborts the prune."""
        ep = endpoint(self.LISTING)
        ep.delete_snapshot.side_effect = CommandError(["zfs", "bookmark"], 1)
        with pytest.raises(CommandError):
            prune_dataset(ep, "auto", RetentionPolicy())
        assert ep.delete_snapshot.call_count == 1
