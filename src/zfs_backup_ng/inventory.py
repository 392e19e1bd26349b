"""Snapshot inventory of a zfs dataset tree.

``zfs list -H -t all -o name -r`` prints every dataset followed by its
snapshots (``fs@snap``) and bookmarks (``fs#mark``) in creation order. The
listing is folded into one :class:`Dataset` per filesystem, keeping that
order untouched; everything downstream relies on it being oldest first.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from .__util__ import InventoryError

logger = logging.getLogger(__name__)


@dataclass
class Dataset:
    """A zfs filesystem with its snapshot and bookmark names."""

    name: str
    endpoint: Optional[object] = None
    snapshots: list[str] = field(default_factory=list)
    bookmarks: list[str] = field(default_factory=list)

    @property
    def latest(self) -> Optional[str]:
        """Newest snapshot name, None if there are none."""
        return self.snapshots[-1] if self.snapshots else None

    @property
    def oldest(self) -> Optional[str]:
        return self.snapshots[0] if self.snapshots else None

    def has_snapshot(self, name: str) -> bool:
        return name in self.snapshots

    def has_bookmark(self, name: str) -> bool:
        return name in self.bookmarks

    def snapshot_name(self, snap: str) -> str:
        """Full name ``dataset@snap``."""
        return f"{self.name}@{snap}"

    def bookmark_name(self, mark: str) -> str:
        """Full name ``dataset#mark``."""
        return f"{self.name}#{mark}"

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "snapshots": list(self.snapshots),
            "bookmarks": list(self.bookmarks),
        }


def parse_listing(text: str, endpoint=None) -> list[Dataset]:
    """Fold ``zfs list -t all`` output into datasets.

    Raises:
        InventoryError: If a snapshot or bookmark does not follow the
            dataset it belongs to.
    """
    datasets: list[Dataset] = []

    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue

        if "@" in line:
            owner, suffix = line.split("@", 1)
            kind = "snapshot"
        elif "#" in line:
            owner, suffix = line.split("#", 1)
            kind = "bookmark"
        else:
            datasets.append(Dataset(name=line, endpoint=endpoint))
            continue

        if not datasets or datasets[-1].name != owner:
            raise InventoryError(
                f"zfs list output has {kind} {line!r} out of order"
            )
        if kind == "snapshot":
            datasets[-1].snapshots.append(suffix)
        else:
            datasets[-1].bookmarks.append(suffix)

    return datasets


def get_datasets(endpoint, name=None) -> list[Dataset]:
    """List the dataset tree rooted at the endpoint's dataset.

    The first entry describes the root dataset itself.
    """
    name = name or endpoint.name
    logger.debug("Listing snapshots of %s", endpoint)
    datasets = parse_listing(endpoint.list_all(name), endpoint=endpoint)
    if not datasets:
        raise InventoryError(f"{name}: zfs list returned no datasets")
    logger.debug(
        "%s: %d dataset(s), %d snapshot(s) on the root",
        name,
        len(datasets),
        len(datasets[0].snapshots),
    )
    return datasets


def get_dataset(endpoint, name=None) -> Dataset:
    """Return only the root dataset of the endpoint."""
    return get_datasets(endpoint, name)[0]


def short_name(root: str, name: str) -> str:
    """Name of ``name`` relative to ``root``: ``""`` or ``"/child/..."``.

    Raises:
        InventoryError: If ``name`` is not ``root`` or one of its descendants.
    """
    root = root.rstrip("/")
    if name == root:
        return ""
    if name.startswith(root + "/"):
        return name[len(root):]
    raise InventoryError(f"Dataset {name!r} is not below {root!r}")
