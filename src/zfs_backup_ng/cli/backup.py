"""Borg and restic commands: catch backup repositories up with snapshots."""

import argparse
import logging
import time

from .. import __util__
from ..__logger__ import create_logger
from ..backup import BorgRepo, ResticRepo
from ..core.capture import borg_sync, restic_sync
from ..core.gaps import RunTally
from .common import get_log_level, load_cli_config, volume_endpoint

logger = logging.getLogger(__name__)


def _get_limit(args: argparse.Namespace, config) -> int:
    limit = getattr(args, "limit", None)
    if limit is None:
        return config.global_config.backup_limit
    return limit


def _run_backups(args: argparse.Namespace, tool: str) -> int:
    create_logger(level=get_log_level(args))

    config = load_cli_config(args)
    if config is None:
        return 1

    volumes = [v for v in getattr(config, tool) if v.enabled]
    if not volumes:
        logger.error("No %s volumes configured", tool)
        return 1

    dry_run = getattr(args, "dry_run", False)
    tally = RunTally(_get_limit(args, config))
    options = config.endpoint_options()
    gc = config.global_config

    logger.info(__util__.log_heading(f"{tool} backups at {time.ctime()}"))
    try:
        with __util__.run_lock(gc.lock_file):
            for volume in volumes:
                logger.info("%s %s", tool.capitalize(), volume.name)
                ep = volume_endpoint(volume.name, volume.zfs, options)
                if tool == "borg":
                    repo = BorgRepo(volume.repo, command=gc.borg_command)
                    borg_sync(volume, ep, repo, tally, dry_run=dry_run)
                else:
                    repo = ResticRepo(
                        volume.repo, volume.password_file, command=gc.restic_command
                    )
                    restic_sync(volume, ep, repo, tally, dry_run=dry_run)
    except __util__.AbortError as e:
        logger.error("Error: %s", e)
        return 1

    logger.info("%d backup(s) %s", tally.count, "planned" if dry_run else "run")
    return 0


def execute_borg(args: argparse.Namespace) -> int:
    """Execute the borg command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    return _run_backups(args, "borg")


def execute_restic(args: argparse.Namespace) -> int:
    """Execute the restic command."""
    return _run_backups(args, "restic")
