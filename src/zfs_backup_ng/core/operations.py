"""Core replication operations: run_transfer, sync_dataset, clone_volume."""

import logging
import time
from typing import Optional

from .. import __util__
from ..inventory import Dataset, get_datasets, short_name
from ..transaction import log_transaction
from .pipeline import (
    NullReporter,
    RichProgressReporter,
    build_transfer_pipeline,
    parse_send_size,
)
from .planning import TransferMode, TransferPlan, plan_transfer

logger = logging.getLogger(__name__)


def run_transfer(
    plan: TransferPlan,
    source_endpoint,
    destination_endpoint,
    show_progress: bool = False,
    dry_run: bool = False,
) -> int:
    """Execute one planned transfer and return the stream size in bytes.

    The size comes from a dry run of the send, which must report it before
    any data is moved.

    Args:
        plan: Transfer to execute, not NOOP
        source_endpoint: Endpoint running ``zfs send``
        destination_endpoint: Endpoint running ``zfs receive``
        show_progress: Render a progress bar while streaming
        dry_run: Only estimate, don't transfer

    Raises:
        TransferProtocolError: If the dry run reports no size.
        AbortError: If any stage of the transfer fails.
    """
    send_args = plan.send_args()
    report = source_endpoint.send_size_report(send_args)
    size = parse_send_size(report)
    if size is None:
        raise __util__.TransferProtocolError(
            f"dry run of 'zfs send {' '.join(send_args)}' reported no stream size",
            dataset=plan.source,
        )

    if dry_run:
        logger.info("Would transfer %s (%s)", plan.describe(), __util__.humanize_size(size))
        return size

    logger.info("Transferring %s (%s)", plan.describe(), __util__.humanize_size(size))

    snapshot = f"{plan.source}@{plan.end}"
    parent = f"{plan.source}{plan.start_reference}" if plan.start else None
    log_transaction(
        action="transfer",
        status="started",
        source=plan.source,
        destination=plan.destination,
        snapshot=snapshot,
        parent=parent,
        size_bytes=size,
    )

    reporter_class = RichProgressReporter if show_progress else NullReporter
    reporter = reporter_class(f"{plan.source}@{plan.end}")
    pipeline = build_transfer_pipeline(
        source_endpoint,
        destination_endpoint,
        send_args,
        plan.destination,
        size=size,
        reporter=reporter,
    )

    transfer_start = time.monotonic()
    try:
        pipeline.run()
    except __util__.AbortError as e:
        log_transaction(
            action="transfer",
            status="failed",
            source=plan.source,
            destination=plan.destination,
            snapshot=snapshot,
            parent=parent,
            duration_seconds=time.monotonic() - transfer_start,
            error=str(e),
        )
        raise

    duration = time.monotonic() - transfer_start
    log_transaction(
        action="transfer",
        status="completed",
        source=plan.source,
        destination=plan.destination,
        snapshot=snapshot,
        parent=parent,
        size_bytes=size,
        duration_seconds=duration,
    )
    logger.info("Transfer of %s completed in %.1fs", snapshot, duration)
    return size


def sync_dataset(
    source: Dataset,
    destination: Dataset,
    show_progress: bool = False,
    dry_run: bool = False,
) -> int:
    """Bring ``destination`` up to the newest snapshot of ``source``.

    An empty destination takes two transfers: a full stream of the oldest
    snapshot, then one incremental stream up to the newest. The
    destination's snapshot list is updated as transfers complete.

    Returns:
        The number of transfers performed.
    """
    transfers = 0
    while True:
        plan = plan_transfer(source, destination)
        if plan.mode is TransferMode.NOOP:
            logger.info("%s", plan.describe())
            return transfers

        run_transfer(
            plan,
            source.endpoint,
            destination.endpoint,
            show_progress=show_progress,
            dry_run=dry_run,
        )
        transfers += 1
        destination.snapshots.append(plan.end)


def clone_volume(
    source_endpoint,
    destination_endpoint,
    show_progress: bool = False,
    dry_run: bool = False,
) -> tuple[int, int]:
    """Replicate every dataset below the source root to the destination.

    Datasets are paired by their name relative to the two roots; a
    dataset missing on the destination is created by its first transfer.
    A dataset that shares no snapshot with its replica is skipped.

    Returns:
        ``(transfers, failures)`` for the whole tree.
    """
    sources = get_datasets(source_endpoint)
    destinations = get_datasets(destination_endpoint)
    dest_root = destinations[0].name

    by_short = {
        short_name(destination_endpoint.name, d.name): d for d in destinations
    }

    transfers = 0
    failures = 0
    for src in sources:
        sn = short_name(source_endpoint.name, src.name)
        dest: Optional[Dataset] = by_short.get(sn)
        if dest is None:
            name = dest_root + sn
            logger.debug("%s does not exist yet, it will be received fresh", name)
            dest = Dataset(name=name, endpoint=destination_endpoint.for_dataset(name))

        logger.info(__util__.log_heading(f"Clone {src.name} -> {dest.name}"))
        if not src.snapshots:
            logger.warning("%s has no snapshots, skipping", src.name)
            continue

        try:
            transfers += sync_dataset(
                src, dest, show_progress=show_progress, dry_run=dry_run
            )
        except __util__.NoCommonSnapshotError as e:
            logger.error("Skipping %s: %s", dest.name, e)
            failures += 1

    return transfers, failures
