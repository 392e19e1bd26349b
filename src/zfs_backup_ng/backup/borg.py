"""Borg repository access: list archives and create new ones."""

import json
import logging
from typing import Any

from .. import __util__
from .models import Archive

logger = logging.getLogger(__name__)


class BorgRepo:
    """A borg repository addressed by its location."""

    def __init__(self, path: str, command: str = "borg") -> None:
        self.path = path
        self.command = command

    def __repr__(self) -> str:
        return f"borg:{self.path}"

    def list_archives(self) -> list[Archive]:
        """Archives in the repository, as reported by ``borg list --json``."""
        result = __util__.exec_subprocess(
            [self.command, "list", "--json", self.path],
            check=True,
            capture_output=True,
            text=True,
        )
        logger.debug("%d bytes of borg list output", len(result.stdout))
        return parse_listing(result.stdout, self.path)

    def run_backup(self, directory: str, name: str) -> None:
        """Create archive ``name`` from ``directory``."""
        __util__.exec_subprocess(
            [
                self.command,
                "create",
                "-s",
                "--progress",
                "--one-file-system",
                "--exclude-caches",
                "--compression=lz4",
                f"{self.path}::{name}",
                directory,
            ],
            check=True,
        )


def parse_listing(text: str, repo: str = "") -> list[Archive]:
    """Decode ``borg list --json`` output."""
    try:
        data: dict[str, Any] = json.loads(text)
    except json.JSONDecodeError as e:
        raise __util__.AbortError(f"Invalid borg listing of {repo}: {e}") from e
    return [Archive.from_json(a) for a in data.get("archives", [])]
