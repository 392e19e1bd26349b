"""Command line interface of zfs-backup-ng."""

from .dispatcher import main

__all__ = ["main"]
