"""Take and prune convention snapshots of configured volumes."""

import logging
from datetime import datetime
from typing import Optional

from .. import __util__
from ..inventory import get_dataset
from ..retention import RetentionPolicy, apply_retention
from ..transaction import log_transaction

logger = logging.getLogger(__name__)


def snapshot_name(convention: str, now: Optional[datetime] = None) -> str:
    """Name of a snapshot taken under ``convention`` at ``now``."""
    now = now or datetime.now()
    return f"{convention}-{now.strftime(__util__.DATE_FORMAT)}"


def take_snapshot(endpoint, convention: str, now: datetime, dry_run: bool = False) -> str:
    """Create ``<dataset>@<convention>-<timestamp>`` and return the snapshot name.

    Callers pass one ``now`` for all volumes of a run so that their
    snapshots share a name.
    """
    snap = snapshot_name(convention, now)
    full = f"{endpoint.name}@{snap}"
    if dry_run:
        logger.info("Would snapshot %s", full)
        return snap

    logger.info("Snapshot %s", full)
    try:
        endpoint.snapshot(snap)
    except __util__.AbortError as e:
        log_transaction(action="snapshot", status="failed", source=endpoint.name,
                        snapshot=full, error=str(e))
        raise
    log_transaction(action="snapshot", status="completed", source=endpoint.name,
                    snapshot=full)
    return snap


def prune_dataset(
    endpoint, convention: str, policy: RetentionPolicy, dry_run: bool = False
) -> tuple[list[str], list[str]]:
    """Apply ``policy`` to the convention's snapshots of the endpoint's dataset.

    Expired snapshots are replaced by bookmarks of the same name, so they
    can still serve as incremental start points.

    Returns:
        ``(kept, deleted)`` snapshot names, oldest first.
    """
    dataset = get_dataset(endpoint)
    logger.info("%s: %d snapshot(s)", dataset.name, len(dataset.snapshots))

    keep, expire = apply_retention(dataset.snapshots, policy, prefix=convention)
    logger.info("Keep %d, prune %d", len(keep), len(expire))

    if dry_run:
        for snap in expire:
            logger.info("  Would remove %s", dataset.snapshot_name(snap))
        return keep, expire

    for snap in expire:
        full = dataset.snapshot_name(snap)
        logger.info("  Remove %s", full)
        try:
            endpoint.delete_snapshot(snap, dataset=dataset.name)
        except __util__.AbortError as e:
            log_transaction(action="prune", status="failed", source=dataset.name,
                            snapshot=full, error=str(e))
            raise
        log_transaction(action="prune", status="completed", source=dataset.name,
                        snapshot=full)

    return keep, expire
