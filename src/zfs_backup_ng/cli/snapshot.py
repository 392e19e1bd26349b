"""Snap command: take one snapshot of every configured volume."""

import argparse
import logging
import time
from datetime import datetime

from .. import __util__
from ..__logger__ import create_logger
from ..core.snapshots import take_snapshot
from .common import get_log_level, load_cli_config, volume_endpoint

logger = logging.getLogger(__name__)


def execute_snap(args: argparse.Namespace) -> int:
    """Execute the snap command.

    All snapshots of one run share the same timestamp. Volumes with an
    unknown convention are skipped.

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
    now = datetime.now()

    logger.info(__util__.log_heading(f"Snapshots at {time.ctime()}"))
    try:
        with __util__.run_lock(config.global_config.lock_file):
            for volume in volumes:
                if config.get_convention(volume.convention) is None:
                    logger.warning(
                        "Snap %s has unknown convention %r, skipping",
                        volume.name,
                        volume.convention,
                    )
                    continue
                ep = volume_endpoint(volume.name, volume.zfs, config.endpoint_options())
                take_snapshot(ep, volume.convention, now, dry_run=dry_run)
    except __util__.AbortError as e:
        logger.error("Error: %s", e)
        return 1

    return 0
