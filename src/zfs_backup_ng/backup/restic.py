"""Restic repository access: list snapshots and back up new ones."""

import json
import logging
from typing import Optional

from .. import __util__
from .models import TaggedArchive

logger = logging.getLogger(__name__)


class ResticRepo:
    """A restic repository with its password file."""

    def __init__(
        self, path: str, password_file: Optional[str] = None, command: str = "restic"
    ) -> None:
        self.path = path
        self.password_file = password_file
        self.command = command

    def __repr__(self) -> str:
        return f"restic:{self.path}"

    def _base_cmd(self) -> list[str]:
        cmd = [self.command, "-r", self.path]
        if self.password_file:
            cmd += ["-p", self.password_file]
        return cmd

    def list_snapshots(self) -> list[TaggedArchive]:
        """Snapshots in the repository, from ``restic snapshots --json``."""
        result = __util__.exec_subprocess(
            self._base_cmd() + ["snapshots", "--json"],
            check=True,
            capture_output=True,
            text=True,
        )
        logger.debug("%d bytes of restic snapshots output", len(result.stdout))
        return parse_listing(result.stdout, self.path)

    def run_backup(self, source: str, tags: list[str]) -> None:
        """Back up ``source``, tagging the snapshot with ``tags``."""
        cmd = self._base_cmd() + ["backup", "--exclude-caches"]
        for tag in tags:
            cmd += ["--tag", tag]
        cmd.append(source)
        __util__.exec_subprocess(cmd, check=True)


def parse_listing(text: str, repo: str = "") -> list[TaggedArchive]:
    """Decode ``restic snapshots --json`` output (``null`` when empty)."""
    try:
        data = json.loads(text) if text.strip() else []
    except json.JSONDecodeError as e:
        raise __util__.AbortError(f"Invalid restic listing of {repo}: {e}") from e
    return [TaggedArchive.from_json(s) for s in data or []]
