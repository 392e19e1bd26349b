"""Backup repositories that snapshots are captured into."""

from .borg import BorgRepo
from .models import Archive, TaggedArchive
from .restic import ResticRepo

__all__ = ["Archive", "BorgRepo", "ResticRepo", "TaggedArchive"]
