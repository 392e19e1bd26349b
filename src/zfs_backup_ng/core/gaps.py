"""Find snapshots that a backup repository has not captured yet.

Two ways of recognising a capture are supported. Borg archives carry the
volume and snapshot in their name (``<volume>-<snapshot>``); restic
snapshots record the captured path and are tagged with the snapshot name.
Either way the result keeps the snapshot order, so catching up always
proceeds oldest first.
"""

import logging
import threading
from typing import Iterable

logger = logging.getLogger(__name__)


def structured_gaps(snapshots: Iterable[str], archives, volume: str) -> list[str]:
    """Snapshots of ``volume`` without an archive named ``<volume>-<snapshot>``.

    Archives whose name cannot be split are skipped.
    """
    covered = set()
    for archive in archives:
        parts = archive.split_name()
        if parts is None:
            logger.debug("Skipping archive with invalid name %r", archive.name)
            continue
        name, suffix = parts
        if name == volume:
            covered.add(suffix)

    return [snap for snap in snapshots if snap not in covered]


def tagged_gaps(snapshots: Iterable[str], archives, path: str) -> list[str]:
    """Snapshots not carried as a tag by any archive that captured ``path``."""
    covered = set()
    for archive in archives:
        if archive.has_path(path):
            covered.update(archive.tags)

    return [snap for snap in snapshots if snap not in covered]


class RunTally:
    """Count of captures made during one invocation, against an optional cap.

    One tally is created per run and handed to every volume, so the cap
    applies across all of them.
    """

    def __init__(self, limit: int = 0) -> None:
        self.limit = limit
        self.count = 0
        self._lock = threading.Lock()

    def record(self) -> bool:
        """Count one capture; return True once the cap has been reached."""
        with self._lock:
            self.count += 1
            return self._reached()

    def _reached(self) -> bool:
        return self.limit > 0 and self.count >= self.limit

    @property
    def exhausted(self) -> bool:
        with self._lock:
            return self._reached()
