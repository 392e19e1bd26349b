"""Prune command: apply retention conventions."""

import argparse
import logging
import time

from .. import __util__
from ..__logger__ import create_logger
from ..core.snapshots import prune_dataset
from ..retention import format_retention_summary
from .common import get_log_level, load_cli_config, volume_endpoint

logger = logging.getLogger(__name__)


def execute_prune(args: argparse.Namespace) -> int:
    """Execute the prune command.

    Each expired snapshot is bookmarked before it is destroyed. The first
    failing zfs command aborts the run.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(level=get_log_level(args))

    config = load_cli_config(args)
    if config is None:
        return 1

    volumes = config.get_enabled_volumes()
    if not volumes:
        logger.error("No volumes configured")
        return 1

    dry_run = getattr(args, "dry_run", False)
    if dry_run:
        logger.info("Dry run mode - showing what would be deleted")

    logger.info(__util__.log_heading(f"Pruning snapshots at {time.ctime()}"))

    total_deleted = 0
    total_kept = 0
    try:
        with __util__.run_lock(config.global_config.lock_file):
            for volume in volumes:
                convention = config.get_convention(volume.convention)
                if convention is None:
                    logger.warning(
                        "Volume %s has unknown convention %r, skipping",
                        volume.name,
                        volume.convention,
                    )
                    continue

                policy = convention.to_policy()
                logger.info("Volume: %s (%s)", volume.name, volume.zfs)
                logger.info("  Retention: %s", format_retention_summary(policy))

                ep = volume_endpoint(volume.name, volume.zfs, config.endpoint_options())
                kept, deleted = prune_dataset(
                    ep, convention.name, policy, dry_run=dry_run
                )
                total_kept += len(kept)
                total_deleted += len(deleted)
    except __util__.AbortError as e:
        logger.error("Error: %s", e)
        return 1

    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))

    if dry_run:
        logger.info("Dry run: would delete %d, keep %d", total_deleted, total_kept)
    else:
        logger.info("Deleted %d snapshot(s), kept %d", total_deleted, total_kept)

    return 0
