# pyright: standard

"""zfs-backup-ng: zfs_backup_ng/endpoint/local.py
Create commands with local endpoints.
"""

from .common import Endpoint


class LocalEndpoint(Endpoint):
    """Create a local command endpoint."""

    def get_id(self) -> str:
        """Return an id string to identify this endpoint over multiple runs."""
        return str(self.config["path"])

    def build_command(self, *args) -> list[str]:
        return self._zfs_argv(*args)
