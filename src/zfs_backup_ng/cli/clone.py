"""Clone command: replicate configured volumes incrementally."""

import argparse
import logging
import time

from .. import __util__
from ..__logger__ import create_logger
from ..core.operations import clone_volume
from .common import get_log_level, load_cli_config, volume_endpoint

logger = logging.getLogger(__name__)


def execute_clone(args: argparse.Namespace) -> int:
    """Execute the clone command.

    A dataset whose replica has diverged is skipped and makes the command
    exit non-zero; any other failure aborts the run.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(level=get_log_level(args))

    config = load_cli_config(args)
    if config is None:
        return 1

    clones = config.get_enabled_clones()
    if not clones:
        logger.error("No clone volumes configured")
        return 1

    dry_run = getattr(args, "dry_run", False)
    show_progress = config.global_config.show_progress and not getattr(
        args, "no_progress", False
    )
    options = config.endpoint_options()

    logger.info(__util__.log_heading(f"Cloning at {time.ctime()}"))

    transfers = 0
    failures = 0
    try:
        with __util__.run_lock(config.global_config.lock_file):
            for clone in clones:
                logger.info("Clone %s: %s -> %s", clone.name, clone.source, clone.dest)
                source = volume_endpoint(clone.name, clone.source, options)
                dest = volume_endpoint(clone.name, clone.dest, options)
                done, failed = clone_volume(
                    source, dest, show_progress=show_progress, dry_run=dry_run
                )
                transfers += done
                failures += failed
    except __util__.AbortError as e:
        logger.error("Error: %s", e)
        return 1

    logger.info(__util__.log_heading(f"Finished at {time.ctime()}"))
    logger.info("%d transfer(s)", transfers)

    if failures > 0:
        logger.warning("%d dataset(s) could not be cloned", failures)
        return 1

    return 0
