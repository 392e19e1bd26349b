"""Records of completed captures as reported by backup repositories."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Archive:
    """A borg archive, named ``<volume>-<snapshot>``."""

    name: str
    time: str = ""
    id: str = ""

    def split_name(self) -> Optional[tuple[str, str]]:
        """Return ``(volume, snapshot)``, None if the name has no ``-``."""
        volume, sep, suffix = self.name.partition("-")
        if not sep:
            return None
        return volume, suffix

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> Archive:
        return cls(
            name=data.get("name") or data.get("archive", ""),
            time=data.get("time") or data.get("start", ""),
            id=data.get("id", ""),
        )


@dataclass(frozen=True)
class TaggedArchive:
    """A restic snapshot: the captured paths and the tags it carries."""

    time: str = ""
    paths: tuple[str, ...] = field(default_factory=tuple)
    tags: tuple[str, ...] = field(default_factory=tuple)
    short_id: str = ""

    def has_path(self, path: str) -> bool:
        """True if ``path`` is one of the paths captured by this archive."""
        return path in self.paths

    @classmethod
    def from_json(cls, data: dict[str, Any]) -> TaggedArchive:
        return cls(
            time=data.get("time", ""),
            paths=tuple(data.get("paths") or ()),
            tags=tuple(data.get("tags") or ()),
            short_id=data.get("short_id", ""),
        )
