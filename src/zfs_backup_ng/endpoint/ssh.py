# pyright: standard

"""zfs-backup-ng: zfs_backup_ng/endpoint/ssh.py
Create commands for datasets on a remote host, run through ssh.
"""

import shlex

from .common import Endpoint


class SSHEndpoint(Endpoint):
    """Commands for a dataset on another host."""

    def __init__(self, config=None, **kwargs) -> None:
        super().__init__(config=config, **kwargs)
        if not self.config.get("hostname"):
            raise ValueError("No hostname for SSH specified.")
        self.config.setdefault("username", None)
        self.config.setdefault("port", None)
        self.config.setdefault("ssh_identity_file", None)

    def __repr__(self) -> str:
        return f"{self._destination()}:{self.config['path']}"

    def get_id(self) -> str:
        """Return an id string to identify this endpoint over multiple runs."""
        port = f":{self.config['port']}" if self.config["port"] else ""
        return f"ssh://{self._destination()}{port}/{self.config['path']}"

    def _destination(self) -> str:
        if self.config["username"]:
            return f"{self.config['username']}@{self.config['hostname']}"
        return self.config["hostname"]

    def _ssh_base_cmd(self) -> list[str]:
        cmd = ["ssh", "-o", "BatchMode=yes"]
        for opt in self.config["ssh_opts"]:
            cmd.extend(["-o", opt])
        if self.config["port"]:
            cmd.extend(["-p", str(self.config["port"])])
        if self.config["ssh_identity_file"]:
            cmd.extend(["-i", str(self.config["ssh_identity_file"])])
        cmd.append(self._destination())
        return cmd

    def build_command(self, *args) -> list[str]:
        # The remote shell re-splits the command line, so quote it once here.
        return self._ssh_base_cmd() + [shlex.join(self._zfs_argv(*args))]
