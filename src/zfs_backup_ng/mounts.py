"""Mount helpers used while capturing snapshots into backup repositories.

Backup tools capture a directory, so a snapshot is reached through the
``.zfs/snapshot`` directory of its mounted filesystem and bind-mounted on a
fixed path; the fixed path lets the repository deduplicate between runs.
"""

import logging
import os
from pathlib import Path

from . import __util__

logger = logging.getLogger(__name__)

PROC_MOUNTS = "/proc/mounts"


def find_mount(name: str, kind: str = "zfs", mounts_file: str = PROC_MOUNTS) -> str:
    """Return the mount point of filesystem ``name`` of type ``kind``.

    Mount points containing spaces are not supported.

    Raises:
        AbortError: If the filesystem is not mounted.
    """
    try:
        with open(mounts_file, encoding="utf-8") as f:
            for line in f:
                fields = line.split(" ")
                if len(fields) < 3:
                    continue
                if fields[0] == name and fields[2] == kind:
                    return fields[1]
    except OSError as e:
        raise __util__.AbortError(f"Cannot read {mounts_file}: {e}") from e

    raise __util__.AbortError(
        f"Unable to find mountpoint for {name!r} of type {kind!r}"
    )


def snapshot_dir(mount: str, snap: str) -> Path:
    """Path of a snapshot's contents below its filesystem's mount point.

    Stats inside the directory so the zfs automounter mounts it.
    """
    path = Path(mount) / ".zfs" / "snapshot" / snap
    try:
        # Path() drops a trailing "/.", which is exactly what must be stat'ed.
        os.lstat(f"{path}/.")
    except OSError as e:
        raise __util__.AbortError(f"Snapshot {snap} not reachable at {path}: {e}") from e
    return path


class BindMount:
    """Bind ``source`` on ``target`` for the lifetime of a ``with`` block."""

    def __init__(self, source, target) -> None:
        self.source = str(source)
        self.target = str(target)
        self.mounted = False

    def __enter__(self):
        logger.debug("Binding %s on %s", self.source, self.target)
        __util__.exec_subprocess(
            ["mount", "--bind", self.source, self.target],
            check=True,
            capture_output=True,
        )
        self.mounted = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
            return
        try:
            self.close()
        except __util__.AbortError as e:
            logger.error("Could not unmount %s: %s", self.target, e)

    def close(self) -> None:
        if not self.mounted:
            return
        logger.debug("Unmounting %s", self.target)
        __util__.exec_subprocess(
            ["umount", self.target], check=True, capture_output=True
        )
        self.mounted = False
