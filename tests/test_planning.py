"""Tests for the incremental sync planner."""

import pytest

from zfs_backup_ng.__util__ import NoCommonSnapshotError, SnapshotTransferError
from zfs_backup_ng.core.planning import ReferenceKind, TransferMode, plan_transfer


class TestPlanTransfer:
    """Tests for plan_transfer."""

    def test_fresh_sends_oldest(self, make_dataset):
        """Test an empty destination first receives the oldest snapshot."""
        src = make_dataset("tank/fs", ["s1", "s2", "s3"])
        dst = make_dataset("vault/fs")
        plan = plan_transfer(src, dst)
        assert plan.mode is TransferMode.FRESH
        assert plan.end == "s1"
        assert plan.send_args() == ["tank/fs@s1"]

    def test_fresh_then_incremental(self, make_dataset):
        """Test the second plan covers the rest in one incremental stream."""
        src = make_dataset("tank/fs", ["s1", "s2", "s3"])
        dst = make_dataset("vault/fs", ["s1"])
        plan = plan_transfer(src, dst)
        assert plan.mode is TransferMode.INCREMENTAL
        assert plan.start == "s1"
        assert plan.start_kind is ReferenceKind.SNAPSHOT
        assert plan.end == "s3"
        assert plan.send_args() == ["-I", "@s1", "tank/fs@s3"]

    def test_bookmark_fallback(self, make_dataset):
        """Test a pruned start point is used through its bookmark."""
        src = make_dataset("tank/fs", ["s2", "s3"], bookmarks=["s1"])
        dst = make_dataset("vault/fs", ["s1"])
        plan = plan_transfer(src, dst)
        assert plan.mode is TransferMode.INCREMENTAL
        assert plan.start_kind is ReferenceKind.BOOKMARK
        assert plan.start_reference == "#s1"
        assert plan.send_args() == ["-I", "#s1", "tank/fs@s3"]

    def test_snapshot_preferred_over_bookmark(self, make_dataset):
        """Test a live snapshot wins over a bookmark of the same name."""
        src = make_dataset("tank/fs", ["s1", "s2"], bookmarks=["s1"])
        dst = make_dataset("vault/fs", ["s1"])
        assert plan_transfer(src, dst).start_kind is ReferenceKind.SNAPSHOT

    def test_up_to_date(self, make_dataset):
        """Test matching newest snapshots need no transfer."""
        src = make_dataset("tank/fs", ["s1", "s2"])
        dst = make_dataset("vault/fs", ["s1", "s2"])
        plan = plan_transfer(src, dst)
        assert plan.mode is TransferMode.NOOP
        assert plan.send_args() == []
        assert "up to date" in plan.describe()

    def test_diverged(self, make_dataset):
        """Test a destination whose newest snapshot is gone is rejected."""
        src = make_dataset("tank/fs", ["s2", "s3"])
        dst = make_dataset("vault/fs", ["s1"])
        with pytest.raises(NoCommonSnapshotError, match="tank/fs"):
            plan_transfer(src, dst)

    def test_empty_source(self, make_dataset):
        """Test a source without snapshots cannot be planned."""
        with pytest.raises(SnapshotTransferError):
            plan_transfer(make_dataset("tank/fs"), make_dataset("vault/fs"))

    def test_describe(self, make_dataset):
        """Test human readable plan descriptions."""
        src = make_dataset("tank/fs", ["s1", "s2"])
        fresh = plan_transfer(src, make_dataset("vault/fs"))
        assert fresh.describe() == "fresh tank/fs@s1 -> vault/fs"
        incr = plan_transfer(src, make_dataset("vault/fs", ["s1"]))
        assert incr.describe() == "incremental tank/fs@s1..@s2 -> vault/fs"
