"""CLI dispatcher: argument parsing and routing to command handlers."""

import argparse
import sys
from typing import Callable

from .common import add_dry_run_arg, add_verbosity_args, non_negative_int


def create_subcommand_parser() -> argparse.ArgumentParser:
    """Create the main argument parser with subcommands."""
    parser = argparse.ArgumentParser(
        prog="zfs-backup-ng",
        description="Snapshot, prune, replicate and back up zfs datasets",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    add_verbosity_args(parser)

    parser.add_argument(
        "-V",
        "--version",
        action="store_true",
        help="Show version and exit",
    )

    parser.add_argument(
        "-c",
        "--config",
        metavar="FILE",
        help="Path to configuration file",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands (use 'command --help' for details)",
    )

    snap_parser = subparsers.add_parser(
        "snap",
        help="Take snapshots of all configured volumes",
        description="Snapshot every volume under its convention, sharing one timestamp",
    )
    add_dry_run_arg(snap_parser)

    prune_parser = subparsers.add_parser(
        "prune",
        help="Apply retention conventions",
        description="Replace expired snapshots by bookmarks according to their convention",
    )
    add_dry_run_arg(prune_parser)

    clone_parser = subparsers.add_parser(
        "clone",
        help="Replicate volumes incrementally",
        description="Bring every configured clone destination up to date",
    )
    add_dry_run_arg(clone_parser)
    clone_parser.add_argument(
        "--no-progress",
        action="store_true",
        help="Don't show a progress bar during transfers",
    )

    for tool in ("borg", "restic"):
        tool_parser = subparsers.add_parser(
            tool,
            help=f"Catch {tool} repositories up with snapshots",
            description=f"Back up every snapshot not yet captured in its {tool} repository",
        )
        add_dry_run_arg(tool_parser)
        tool_parser.add_argument(
            "-l",
            "--limit",
            type=non_negative_int,
            metavar="N",
            help="Limit the total number of backups run (overrides config)",
        )

    list_parser = subparsers.add_parser(
        "list",
        help="Show snapshots of configured volumes",
        description="List snapshots and bookmarks of every configured volume",
    )
    list_parser.add_argument(
        "--json",
        action="store_true",
        help="Output in JSON format",
    )

    config_parser = subparsers.add_parser(
        "config",
        help="Configuration management",
        description="Validate or initialize configuration",
    )
    config_subs = config_parser.add_subparsers(dest="config_action")

    config_subs.add_parser(
        "validate",
        help="Validate configuration file",
    )

    init_parser = config_subs.add_parser(
        "init",
        help="Generate example configuration",
    )
    init_parser.add_argument(
        "-o",
        "--output",
        metavar="FILE",
        help="Output file (default: stdout)",
    )

    return parser


def run_subcommand(args: argparse.Namespace) -> int:
    """Run the specified subcommand.

    Args:
        args: Parsed arguments

    Returns:
        Exit code
    """
    from .. import __version__

    if args.version:
        print(f"zfs-backup-ng {__version__}")
        return 0

    if not args.command:
        print("No command specified. Use --help for usage information.")
        return 1

    handlers: dict[str, Callable] = {
        "snap": cmd_snap,
        "prune": cmd_prune,
        "clone": cmd_clone,
        "borg": cmd_borg,
        "restic": cmd_restic,
        "list": cmd_list,
        "config": cmd_config,
    }

    handler = handlers.get(args.command)
    if handler:
        return handler(args)
    else:
        print(f"Unknown command: {args.command}")
        return 1


def cmd_snap(args: argparse.Namespace) -> int:
    """Execute snap command."""
    from .snapshot import execute_snap

    return execute_snap(args)


def cmd_prune(args: argparse.Namespace) -> int:
    """Execute prune command."""
    from .prune import execute_prune

    return execute_prune(args)


def cmd_clone(args: argparse.Namespace) -> int:
    """Execute clone command."""
    from .clone import execute_clone

    return execute_clone(args)


def cmd_borg(args: argparse.Namespace) -> int:
    """Execute borg command."""
    from .backup import execute_borg

    return execute_borg(args)


def cmd_restic(args: argparse.Namespace) -> int:
    """Execute restic command."""
    from .backup import execute_restic

    return execute_restic(args)


def cmd_list(args: argparse.Namespace) -> int:
    """Execute list command."""
    from .list_cmd import execute_list

    return execute_list(args)


def cmd_config(args: argparse.Namespace) -> int:
    """Execute config command."""
    from .config_cmd import execute_config

    return execute_config(args)


def main(argv: list[str] | None = None) -> int:
    """Main entry point for zfs-backup-ng CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code
    """
    if argv is None:
        argv = sys.argv[1:]

    parser = create_subcommand_parser()
    args = parser.parse_args(argv)

    return run_subcommand(args)
