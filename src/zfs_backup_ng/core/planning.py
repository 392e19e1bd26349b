"""Plan the next transfer that brings a replica closer to its source.

Only the newest source snapshot is ever targeted. An empty replica first
receives the oldest source snapshot on its own, because a full stream
cannot carry the intermediate snapshots along; the next plan then covers
the rest with a single incremental stream.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .. import __util__
from ..inventory import Dataset

logger = logging.getLogger(__name__)


class TransferMode(Enum):
    """Kind of transfer needed."""

    FRESH = "fresh"
    INCREMENTAL = "incremental"
    NOOP = "noop"


class ReferenceKind(Enum):
    """What the start point of an incremental transfer is."""

    SNAPSHOT = "@"
    BOOKMARK = "#"


@dataclass(frozen=True)
class TransferPlan:
    """One transfer between a source dataset and its replica."""

    mode: TransferMode
    source: str
    destination: str
    end: Optional[str] = None
    start: Optional[str] = None
    start_kind: Optional[ReferenceKind] = None

    @property
    def start_reference(self) -> Optional[str]:
        """Start point as ``zfs send -I`` expects it (``@snap`` or ``#mark``)."""
        if self.start is None or self.start_kind is None:
            return None
        return f"{self.start_kind.value}{self.start}"

    def send_args(self) -> list[str]:
        """Arguments selecting the stream for ``zfs send``."""
        if self.mode is TransferMode.NOOP:
            return []
        end = f"{self.source}@{self.end}"
        if self.mode is TransferMode.FRESH:
            return [end]
        return ["-I", self.start_reference, end]

    def describe(self) -> str:
        if self.mode is TransferMode.NOOP:
            return f"{self.destination} is up to date"
        if self.mode is TransferMode.FRESH:
            return f"fresh {self.source}@{self.end} -> {self.destination}"
        return (
            f"incremental {self.source}{self.start_reference}"
            f"..@{self.end} -> {self.destination}"
        )


def plan_transfer(source: Dataset, destination: Dataset) -> TransferPlan:
    """Decide how to bring ``destination`` up to date with ``source``.

    Raises:
        SnapshotTransferError: If the source has no snapshots at all.
        NoCommonSnapshotError: If the replica's newest snapshot is neither a
            snapshot nor a bookmark of the source any more.
    """
    if not source.snapshots:
        raise __util__.SnapshotTransferError(
            "source has no snapshots, cannot plan transfer", dataset=source.name
        )

    if not destination.snapshots:
        return TransferPlan(
            mode=TransferMode.FRESH,
            source=source.name,
            destination=destination.name,
            end=source.oldest,
        )

    last_dest = destination.latest
    last_src = source.latest

    if last_dest == last_src:
        return TransferPlan(
            mode=TransferMode.NOOP,
            source=source.name,
            destination=destination.name,
            end=last_src,
        )

    if source.has_snapshot(last_dest):
        kind = ReferenceKind.SNAPSHOT
    elif source.has_bookmark(last_dest):
        kind = ReferenceKind.BOOKMARK
    else:
        raise __util__.NoCommonSnapshotError(
            f"no snapshot or bookmark matching {destination.name}@{last_dest}; "
            "source and destination have diverged",
            dataset=source.name,
        )

    return TransferPlan(
        mode=TransferMode.INCREMENTAL,
        source=source.name,
        destination=destination.name,
        end=last_src,
        start=last_dest,
        start_kind=kind,
    )
