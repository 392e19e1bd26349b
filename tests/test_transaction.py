"""Tests for transaction logging."""

import json
import threading
from pathlib import Path

from zfs_backup_ng.transaction import (
    get_transaction_log,
    log_transaction,
    read_transaction_log,
    set_transaction_log,
)


class TestSetTransactionLog:
    """Tests for set_transaction_log function."""

    def test_set_path(self, tmp_path):
        """Test setting transaction log path."""
        log_path = tmp_path / "transactions.log"
        set_transaction_log(log_path)

        log_transaction(action="test", status="completed")

        assert log_path.exists()
        assert get_transaction_log() == log_path

        set_transaction_log(None)

    def test_set_none_disables_logging(self, tmp_path):
        """Test setting None disables logging."""
        log_path = tmp_path / "transactions.log"
        set_transaction_log(log_path)
        set_transaction_log(None)

        log_transaction(action="test", status="completed")

        assert not log_path.exists()

    def test_creates_parent_directories(self, tmp_path):
        """Test creates parent directories if needed."""
        log_path = tmp_path / "deep" / "nested" / "dir" / "transactions.log"
        set_transaction_log(log_path)

        assert log_path.parent.exists()

        set_transaction_log(None)

    def test_accepts_string_path(self, tmp_path):
        """Test accepts string path."""
        log_path = str(tmp_path / "transactions.log")
        set_transaction_log(log_path)

        log_transaction(action="test", status="completed")

        assert Path(log_path).exists()

        set_transaction_log(None)


class TestLogTransaction:
    """Tests for log_transaction function."""

    def test_logs_basic_transaction(self, transaction_log):
        """Test logging a basic transaction."""
        log_transaction(action="prune", status="completed")

        record = json.loads(transaction_log.read_text().splitlines()[0])
        assert record["action"] == "prune"
        assert record["status"] == "completed"
        assert "timestamp" in record
        assert "pid" in record

    def test_optional_fields(self, transaction_log):
        """Test only given optional fields are written."""
        log_transaction(
            action="transfer",
            status="failed",
            source="tank/fs",
            destination="vault/fs",
            snapshot="tank/fs@s2",
            parent="tank/fs#s1",
            size_bytes=100,
            duration_seconds=1.5,
            error="broken pipe",
            details={"attempt": 1},
        )
        log_transaction(action="transfer", status="started")

        first, second = read_transaction_log(transaction_log)
        assert first["parent"] == "tank/fs#s1"
        assert first["details"] == {"attempt": 1}
        assert "parent" not in second
        assert "error" not in second

    def test_concurrent_writers(self, transaction_log):
        """Test records from several threads are not interleaved."""

        def work(n):
            for i in range(50):
                log_transaction(action="capture", status="completed", details={"n": n, "i": i})

        threads = [threading.Thread(target=work, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(read_transaction_log(transaction_log)) == 200


class TestReadTransactionLog:
    """Tests for read_transaction_log function."""

    def test_missing_file(self, tmp_path):
        """Test a missing log reads as empty."""
        assert read_transaction_log(tmp_path / "none.log") == []

    def test_limit(self, transaction_log):
        """Test only the newest records are returned."""
        for i in range(5):
            log_transaction(action="snapshot", status="completed", details={"i": i})

        records = read_transaction_log(transaction_log, limit=2)
        assert [r["details"]["i"] for r in records] == [3, 4]
        assert read_transaction_log(transaction_log, limit=0) == []

    def test_malformed_lines_skipped(self, transaction_log):
        """Test corrupt lines do not break reading."""
        log_transaction(action="snapshot", status="completed")
        with open(transaction_log, "a") as f:
            f.write("{not json\n\n")
        log_transaction(action="prune", status="completed")

        assert [r["action"] for r in read_transaction_log(transaction_log)] == [
            "snapshot",
            "prune",
        ]

    def test_defaults_to_configured_log(self, transaction_log):
        """Test the configured log is read without a path."""
        log_transaction(action="snapshot", status="completed")
        assert len(read_transaction_log()) == 1
