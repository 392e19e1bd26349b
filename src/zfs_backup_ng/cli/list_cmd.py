"""List command: show snapshots and bookmarks of configured volumes."""

import argparse
import json
import logging

from .. import __util__, endpoint
from ..__logger__ import create_logger
from ..inventory import get_datasets
from .common import get_log_level, load_cli_config

logger = logging.getLogger(__name__)


def _configured_datasets(config) -> list[str]:
    """Dataset specifications named anywhere in the config, deduplicated."""
    specs = [v.zfs for v in config.volumes]
    specs += [c.source for c in config.clones]
    specs += [c.dest for c in config.clones]
    specs += [b.zfs for b in config.borg]
    specs += [r.zfs for r in config.restic]
    return list(dict.fromkeys(specs))


def execute_list(args: argparse.Namespace) -> int:
    """Execute the list command.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code
    """
    create_logger(level=get_log_level(args))

    config = load_cli_config(args)
    if config is None:
        return 1

    specs = _configured_datasets(config)
    if not specs:
        logger.error("No volumes configured")
        return 1

    result = {}
    errors = 0
    for spec in specs:
        try:
            ep = endpoint.choose_endpoint(spec, config.endpoint_options())
            result[spec] = [d.to_dict() for d in get_datasets(ep)]
        except __util__.AbortError as e:
            logger.error("%s: %s", spec, e)
            errors += 1

    if getattr(args, "json", False):
        print(json.dumps(result, indent=2))
    else:
        for spec, datasets in result.items():
            print(f"Volume: {spec}")
            for ds in datasets:
                print(
                    f"  {ds['name']}: {len(ds['snapshots'])} snapshot(s), "
                    f"{len(ds['bookmarks'])} bookmark(s)"
                )
                if ds["snapshots"]:
                    print(f"    Oldest: {ds['snapshots'][0]}")
                    print(f"    Latest: {ds['snapshots'][-1]}")
            print("")

    return 1 if errors else 0
