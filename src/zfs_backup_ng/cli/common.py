"""Shared CLI utilities and argument parsers."""

import argparse
import logging
from typing import Optional

from .. import __util__, endpoint
from ..config import Config, ConfigError, find_config_file, load_config
from ..transaction import set_transaction_log

logger = logging.getLogger(__name__)


def add_verbosity_args(parser: argparse.ArgumentParser) -> None:
    """Add verbosity-related arguments to a parser."""
    group = parser.add_argument_group("Output options")
    group.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output",
    )
    group.add_argument(
        "-q",
        "--quiet",
        action="store_true",
        help="Suppress non-essential output",
    )
    group.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug output",
    )


def add_dry_run_arg(parser: argparse.ArgumentParser) -> None:
    """Add the dry-run flag of mutating commands."""
    parser.add_argument(
        "-n",
        "--dry-run",
        action="store_true",
        help="Show what would be done without making changes",
    )


def non_negative_int(value: str) -> int:
    """argparse type for counts where 0 means unlimited."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid integer: {value!r}") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {number}")
    return number


def get_log_level(args: argparse.Namespace) -> str:
    """Determine log level from parsed arguments.

    Args:
        args: Parsed command line arguments

    Returns:
        Log level string (DEBUG, INFO, WARNING)
    """
    if getattr(args, "debug", False):
        return "DEBUG"
    elif getattr(args, "quiet", False):
        return "WARNING"
    elif getattr(args, "verbose", False):
        return "DEBUG"
    else:
        return "INFO"


def load_cli_config(args: argparse.Namespace) -> Optional[Config]:
    """Find and load the configuration, logging its warnings.

    Also points the transaction log at the configured path.

    Returns:
        The configuration, or None if none was found or it is invalid.
    """
    try:
        config_path = find_config_file(getattr(args, "config", None))
        if config_path is None:
            print("No configuration file found.")
            print("Create one with: zfs-backup-ng config init")
            return None

        logger.info("Loading configuration from: %s", config_path)
        config, warnings = load_config(config_path)

        for warning in warnings:
            logger.warning("Config: %s", warning)

    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return None

    set_transaction_log(config.global_config.transaction_log)
    return config


def volume_endpoint(volume_name: str, spec: str, options: dict):
    """Endpoint of a configured volume's dataset.

    Raises:
        EndpointSpecError: Naming the volume, if ``spec`` is malformed.
    """
    try:
        return endpoint.choose_endpoint(spec, options)
    except __util__.EndpointSpecError as e:
        raise __util__.EndpointSpecError(f"Volume {volume_name}: {e}") from e
