"""Transaction log: an append-only JSON-lines record of what a run changed.

Every transfer, prune, snapshot and capture is logged with its status
(``started``, ``completed``, ``failed``). Logging is disabled until a path
is configured with :func:`set_transaction_log`.
"""

import json
import logging
import os
import threading
import time
from pathlib import Path
from typing import Any, Optional

from filelock import FileLock

logger = logging.getLogger(__name__)

_log_path: Optional[Path] = None
_lock = threading.Lock()


def set_transaction_log(path: Optional[Path | str]) -> None:
    """Enable logging to ``path``, or disable it with None."""
    global _log_path

    with _lock:
        if path is None:
            _log_path = None
            return
        _log_path = Path(path)
        _log_path.parent.mkdir(parents=True, exist_ok=True)


def get_transaction_log() -> Optional[Path]:
    return _log_path


def log_transaction(
    action: str,
    status: str,
    source: Optional[str] = None,
    destination: Optional[str] = None,
    snapshot: Optional[str] = None,
    parent: Optional[str] = None,
    size_bytes: Optional[int] = None,
    duration_seconds: Optional[float] = None,
    error: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> None:
    """Append one record; a write failure is logged, never raised."""
    path = _log_path
    if path is None:
        return

    record: dict[str, Any] = {
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%S%z"),
        "pid": os.getpid(),
        "action": action,
        "status": status,
    }
    optional = {
        "source": source,
        "destination": destination,
        "snapshot": snapshot,
        "parent": parent,
        "size_bytes": size_bytes,
        "duration_seconds": duration_seconds,
        "error": error,
        "details": details,
    }
    record.update({k: v for k, v in optional.items() if v is not None})

    try:
        with FileLock(str(path) + ".lock"):
            with open(path, "a", encoding="utf-8") as f:
                f.write(json.dumps(record) + "\n")
    except OSError as e:
        logger.warning("Could not write transaction log %s: %s", path, e)


def read_transaction_log(
    path: Optional[Path | str] = None, limit: Optional[int] = None
) -> list[dict[str, Any]]:
    """Return logged records, oldest first; the last ``limit`` if given."""
    path = Path(path) if path is not None else _log_path
    if path is None or not path.exists():
        return []

    records = []
    with open(path, encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                records.append(json.loads(line))
            except json.JSONDecodeError:
                logger.debug("Skipping malformed transaction record: %r", line)

    if limit is not None:
        records = records[-limit:] if limit > 0 else []
    return records
