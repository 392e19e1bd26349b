"""Catch backup repositories up with a volume's snapshots.

Each snapshot not yet captured is bind-mounted on the volume's fixed bind
directory and handed to the backup tool, oldest first. A run-wide
:class:`~.gaps.RunTally` bounds the total number of captures; every volume
still gets at least one capture before the cap is checked.
"""

import logging

from .. import __util__
from ..inventory import get_dataset
from ..mounts import BindMount, find_mount, snapshot_dir
from ..transaction import log_transaction
from .gaps import RunTally, structured_gaps, tagged_gaps

logger = logging.getLogger(__name__)


def _capture_all(volume, endpoint, gaps, tally: RunTally, capture, dry_run) -> int:
    if not gaps:
        logger.info("%s is up to date with %s", volume.zfs, volume.repo)
        return 0

    logger.info("%d snapshot(s) of %s to back up", len(gaps), volume.zfs)
    mount = None if dry_run else find_mount(endpoint.name, "zfs")

    done = 0
    for i, snap in enumerate(gaps, 1):
        logger.info(__util__.log_heading(f"Backup {i} of {len(gaps)}"))
        if dry_run:
            logger.info("Would back up %s@%s to %s", volume.zfs, snap, volume.repo)
        else:
            logger.info("Back up %s@%s to %s", volume.zfs, snap, volume.repo)
            source = snapshot_dir(mount, snap)
            try:
                with BindMount(source, volume.bind):
                    capture(snap)
            except __util__.AbortError as e:
                log_transaction(action="capture", status="failed",
                                source=f"{volume.zfs}@{snap}",
                                destination=volume.repo, error=str(e))
                raise
            log_transaction(action="capture", status="completed",
                            source=f"{volume.zfs}@{snap}", destination=volume.repo)
        done += 1

        if tally.record():
            logger.info("Reached limit of %d backup(s), stopping", tally.limit)
            break
    return done


def borg_sync(volume, endpoint, repo, tally: RunTally, dry_run: bool = False) -> int:
    """Capture the snapshots of ``volume`` missing from its borg repository.

    Returns:
        The number of snapshots captured (or that would be).
    """
    dataset = get_dataset(endpoint)
    archives = repo.list_archives()
    logger.info(
        "%s: %d snapshot(s), %d borg archive(s)",
        dataset.name, len(dataset.snapshots), len(archives),
    )
    gaps = structured_gaps(dataset.snapshots, archives, volume.name)
    return _capture_all(
        volume,
        endpoint,
        gaps,
        tally,
        lambda snap: repo.run_backup(volume.bind, f"{volume.name}-{snap}"),
        dry_run,
    )


def restic_sync(volume, endpoint, repo, tally: RunTally, dry_run: bool = False) -> int:
    """Capture the snapshots of ``volume`` missing from its restic repository."""
    dataset = get_dataset(endpoint)
    archives = repo.list_snapshots()
    logger.info(
        "%s: %d snapshot(s), %d restic snapshot(s)",
        dataset.name, len(dataset.snapshots), len(archives),
    )
    gaps = tagged_gaps(dataset.snapshots, archives, volume.bind)
    return _capture_all(
        volume,
        endpoint,
        gaps,
        tally,
        lambda snap: repo.run_backup(volume.bind, [snap]),
        dry_run,
    )
