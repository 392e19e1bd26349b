# pyright: standard

"""zfs-backup-ng: zfs_backup_ng/__util__.py
Common utility code shared among the modules.
"""

import contextlib
import getpass
import os
import shlex
import subprocess
from pathlib import Path

from filelock import FileLock, Timeout

from .__logger__ import logger

DATE_FORMAT = "%Y%m%d%H%M%S"


class AbortError(Exception):
    """Exception where the current operation should be aborted."""


class EndpointSpecError(AbortError, ValueError):
    """A dataset specification names no usable endpoint."""


class CommandError(AbortError):
    """An external command exited with a non-zero status."""

    def __init__(self, cmd, returncode, stderr="", operation=None) -> None:
        self.cmd = list(cmd)
        self.returncode = returncode
        self.stderr = stderr or ""
        self.operation = operation
        what = operation or shlex.join(self.cmd)
        message = f"{what}: command {shlex.join(self.cmd)!r} exited {returncode}"
        if self.stderr.strip():
            message += f": {self.stderr.strip()}"
        super().__init__(message)


class InventoryError(AbortError):
    """The snapshot listing of a dataset could not be interpreted."""


class SnapshotTransferError(AbortError):
    """A snapshot could not be transferred to its destination."""

    def __init__(self, message, dataset=None) -> None:
        self.dataset = dataset
        if dataset:
            message = f"{dataset}: {message}"
        super().__init__(message)


class TransferProtocolError(SnapshotTransferError):
    """The dry-run of a transfer did not report the stream size."""


class NoCommonSnapshotError(SnapshotTransferError):
    """Source and destination share no snapshot or bookmark to start from."""


def exec_subprocess(command, method="run", **kwargs):
    """Execute ``command`` via the given subprocess ``method``.

    ``method`` is one of ``run``, ``check_output``, ``check_call`` or
    ``Popen``. A failing ``run`` with ``check=True`` is translated into a
    ``CommandError`` carrying the captured stderr.
    """
    logger.debug("Executing: %s", shlex.join(str(c) for c in command))
    func = getattr(subprocess, method)
    try:
        return func(command, **kwargs)
    except FileNotFoundError as e:
        raise CommandError(command, 127, str(e)) from e
    except subprocess.CalledProcessError as e:
        stderr = e.stderr
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        raise CommandError(command, e.returncode, stderr or "") from e


def log_heading(caption) -> str:
    """Formatted heading for logging output sections."""
    return f"{f'--[ {caption} ]':-<50}"


def default_lock_file() -> str:
    """Per-user run lock path, keyed by uid when there is no user name."""
    try:
        user = getpass.getuser()
    except (KeyError, OSError):
        user = str(os.getuid())
    return f"/tmp/.zfs-backup-ng.{user}.lock"


@contextlib.contextmanager
def run_lock(lock_file=None, timeout=-1):
    """Hold an exclusive lock for the duration of a mutating command.

    Raises ``AbortError`` if the lock cannot be taken within ``timeout``
    seconds (``-1`` waits forever).
    """
    path = Path(lock_file or default_lock_file())
    path.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(str(path), timeout=timeout)
    try:
        with lock:
            logger.debug("Acquired run lock %s", path)
            yield lock
    except Timeout as e:
        raise AbortError(f"Another run holds the lock {path}") from e


def humanize_size(size) -> str:
    """Render a byte count with a binary unit suffix."""
    value = float(size)
    unit = "B"
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if abs(value) < 1024 or unit == "TiB":
            break
        value /= 1024
    if unit == "B":
        return f"{int(value)} B"
    return f"{value:.1f} {unit}"
