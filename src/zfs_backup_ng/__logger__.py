# pyright: standard

"""zfs-backup-ng: zfs_backup_ng/__logger__.py
A common logger rendering through rich.
"""

import logging

from rich.console import Console
from rich.logging import RichHandler

# Log and progress output go to stderr; stdout carries command output
cons = Console(stderr=True)
rich_handler = RichHandler(console=cons, show_path=False)
# Create a logger directly
logger = logging.Logger("zfs-backup-ng", logging.INFO)


def create_logger(level="INFO", console=None) -> None:
    """Route all logging through a rich handler at the given level."""
    # pylint: disable=global-statement
    global cons, rich_handler

    cons = console or Console(stderr=True)
    rich_handler = RichHandler(console=cons, show_path=False)

    numeric_level = logging.getLevelName(str(level).upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    logger.handlers.clear()
    logger.propagate = False
    logger.setLevel(numeric_level)
    logger.addHandler(rich_handler)

    logging.basicConfig(
        format="%(message)s",
        datefmt="%H:%M:%S",
        level=numeric_level,
        handlers=[rich_handler],
        force=True,
    )


def get_console() -> Console:
    """Return the console currently used by the rich handler."""
    return cons
