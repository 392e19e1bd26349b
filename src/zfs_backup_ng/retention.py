"""Tiered retention: decide which snapshots of a convention to keep.

Snapshots are walked from newest to oldest. Each of the six tiers owns a
budget and remembers the calendar period it granted last; the first snapshot
seen in a new period is kept by that tier until its budget runs out. A
snapshot survives if any tier claims it.

Only names of the form ``<prefix><digits>-<timestamp>`` take part. The
discriminator digits are optional and the timestamp is local wall-clock time
written as ``YYYYmmddHHMM`` or ``YYYYmmddHHMMSS``. Anything else is treated
as a foreign snapshot and left alone.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Iterable, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIMESTAMP_FORMATS = {12: "%Y%m%d%H%M", 14: "%Y%m%d%H%M%S"}


@dataclass(frozen=True)
class RetentionPolicy:
    """Keep-count budgets of the six retention tiers (0 disables a tier)."""

    immediate: int = 0
    hourly: int = 0
    daily: int = 0
    weekly: int = 0
    monthly: int = 0
    yearly: int = 0

    def budgets(self) -> list[tuple[str, int]]:
        return [
            ("immediate", self.immediate),
            ("hourly", self.hourly),
            ("daily", self.daily),
            ("weekly", self.weekly),
            ("monthly", self.monthly),
            ("yearly", self.yearly),
        ]


def snapshot_pattern(prefix: str) -> re.Pattern:
    """Compile the name grammar for snapshots taken under ``prefix``."""
    return re.compile("^" + re.escape(prefix) + r"(\d*)-(\d{12}|\d{14})$")


def parse_snapshot_time(name: str, prefix: str, tz=None) -> Optional[datetime]:
    """Return the creation time encoded in ``name``, or None if it is foreign."""
    match = snapshot_pattern(prefix).match(name)
    if match is None:
        return None
    stamp = match.group(2)
    try:
        when = datetime.strptime(stamp, TIMESTAMP_FORMATS[len(stamp)])
    except ValueError:
        logger.debug("Invalid time in snapshot name %r", name)
        return None
    return when.replace(tzinfo=tz) if tz is not None else when


def _hour_key(when: datetime, _nr: int) -> int:
    return when.year * 1000000 + when.month * 10000 + when.day * 100 + when.hour


def _day_key(when: datetime, _nr: int) -> int:
    return when.year * 10000 + when.month * 100 + when.day


def _week_key(when: datetime, _nr: int) -> int:
    year, week, _ = when.isocalendar()
    return year * 100 + week


def _month_key(when: datetime, _nr: int) -> int:
    return when.year * 100 + when.month


def _year_key(when: datetime, _nr: int) -> int:
    return when.year


def _unique_key(_when: datetime, nr: int) -> int:
    return nr


BUCKET_KEYS: dict[str, Callable[[datetime, int], int]] = {
    "immediate": _unique_key,
    "hourly": _hour_key,
    "daily": _day_key,
    "weekly": _week_key,
    "monthly": _month_key,
    "yearly": _year_key,
}


class _Bucket:
    """Remaining budget of one tier and the period it granted last."""

    __slots__ = ("name", "remaining", "key", "last")

    def __init__(self, name: str, count: int) -> None:
        self.name = name
        self.remaining = count
        self.key = BUCKET_KEYS[name]
        self.last: Optional[int] = None

    def claim(self, when: datetime, nr: int) -> bool:
        if self.remaining <= 0:
            return False
        value = self.key(when, nr)
        if value == self.last:
            return False
        self.last = value
        self.remaining -= 1
        return True


def apply_retention(
    snapshots: Iterable[T],
    policy: RetentionPolicy,
    get_name: Callable[[T], str] = str,
    prefix: str = "",
) -> tuple[list[T], list[T]]:
    """Partition snapshots into those to keep and those to delete.

    Args:
        snapshots: Snapshots ordered oldest to newest
        policy: Tier budgets to apply
        get_name: Accessor returning the snapshot name of an item
        prefix: Convention name the snapshot names must start with

    Returns:
        Tuple of (to_keep, to_delete), both ordered oldest to newest.
        Snapshots whose name does not follow the convention appear in
        neither list.
    """
    # One zone for the whole pass; DST transitions are not accounted for.
    tz = datetime.now().astimezone().tzinfo
    buckets = [_Bucket(name, count) for name, count in policy.budgets()]

    to_keep: list[T] = []
    to_delete: list[T] = []

    for nr, snapshot in enumerate(reversed(list(snapshots))):
        name = get_name(snapshot)
        when = parse_snapshot_time(name, prefix, tz)
        if when is None:
            logger.debug("Ignoring snapshot %r (not of convention %r)", name, prefix)
            continue

        claimed_by = [b.name for b in buckets if b.claim(when, nr)]
        if claimed_by:
            logger.debug("Keep %s (%s)", name, ", ".join(claimed_by))
            to_keep.append(snapshot)
        else:
            to_delete.append(snapshot)

    to_keep.reverse()
    to_delete.reverse()
    return to_keep, to_delete


def format_retention_summary(policy: RetentionPolicy) -> str:
    """Describe a policy in one line, e.g. ``immediate=4, daily=7``."""
    active = [f"{name}={count}" for name, count in policy.budgets() if count > 0]
    return ", ".join(active) if active else "nothing (all tiers disabled)"
