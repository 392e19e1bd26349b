# pyright: standard

"""zfs-backup-ng: zfs_backup_ng/endpoint/common.py
Common functionality among endpoints.
"""

import subprocess

from zfs_backup_ng import __util__
from zfs_backup_ng.__logger__ import logger

BOOKMARK_EXISTS = "bookmark exists"


class Endpoint:
    """Generic structure of a zfs command endpoint.

    An endpoint knows where zfs commands for a dataset have to run and how
    to build their invocation. Everything above this layer only deals with
    dataset and snapshot names.
    """

    def __init__(self, config=None, **kwargs) -> None:
        """
        Initialize the Endpoint with a configuration dictionary.

        Args:
            config (dict): Configuration dictionary containing endpoint settings.
            kwargs: Additional keyword arguments overriding config entries.
        """
        config = config or {}
        self.config = dict(config)

        self.config["path"] = str(config.get("path") or "").strip("/")
        self.config["zfs_command"] = config.get("zfs_command", "zfs")
        self.config["ssh_opts"] = list(config.get("ssh_opts", []))

        for key, value in kwargs.items():
            self.config[key] = value

        if not self.config["path"]:
            raise ValueError("No dataset given for endpoint")

    @property
    def name(self) -> str:
        """Name of the dataset this endpoint addresses."""
        return self.config["path"]

    def __repr__(self) -> str:
        return f"{self.config['path']}"

    def get_id(self) -> str:
        """Return an id string to identify this endpoint over multiple runs."""
        return f"unknown://{self.config['path']}"

    def for_dataset(self, name):
        """Return an endpoint of the same kind addressing another dataset."""
        config = dict(self.config)
        config["path"] = name
        return type(self)(config=config)

    # Command construction; subclasses decide where commands run.

    def build_command(self, *args) -> list[str]:
        """Return the argv that runs ``zfs *args`` for this endpoint."""
        raise NotImplementedError

    def _zfs_argv(self, *args) -> list[str]:
        return [self.config["zfs_command"], *[str(a) for a in args]]

    def _exec_command(self, args, operation=None, **kwargs):
        command = self.build_command(*args)
        try:
            return __util__.exec_subprocess(command, **kwargs)
        except __util__.CommandError as e:
            if operation and e.operation is None:
                raise __util__.CommandError(
                    e.cmd, e.returncode, e.stderr, operation=operation
                ) from e
            raise

    def run(self, *args, operation=None) -> str:
        """Run a zfs command and return its stdout; raise CommandError on failure."""
        result = self._exec_command(
            args,
            operation=operation,
            check=True,
            capture_output=True,
            text=True,
        )
        return result.stdout

    def run_unchecked(self, *args) -> subprocess.CompletedProcess:
        """Run a zfs command and return the completed process as is."""
        return self._exec_command(args, capture_output=True, text=True)

    def popen(self, *args, **kwargs) -> subprocess.Popen:
        """Start a zfs command for piping."""
        return self._exec_command(args, method="Popen", **kwargs)

    # zfs primitives

    def list_all(self, name=None) -> str:
        """Raw ``zfs list`` output of a dataset tree, snapshots and bookmarks."""
        name = name or self.name
        return self.run(
            "list", "-H", "-t", "all", "-o", "name", "-r", name,
            operation=f"list {name}",
        )

    def snapshot(self, snap, dataset=None) -> None:
        """Create ``dataset@snap``."""
        dataset = dataset or self.name
        self.run("snapshot", f"{dataset}@{snap}", operation=f"snapshot {dataset}@{snap}")

    def bookmark(self, snap, dataset=None) -> None:
        """Create the bookmark ``dataset#snap`` from ``dataset@snap``.

        An already existing bookmark counts as success. Any other output on
        stderr is treated as a failure, even with a zero exit status.
        """
        dataset = dataset or self.name
        args = ("bookmark", f"{dataset}@{snap}", f"#{snap}")
        result = self.run_unchecked(*args)
        stderr = result.stderr or ""
        if result.returncode == 0 and not stderr:
            return
        # zfs reports an existing bookmark only through stderr.
        if stderr.rstrip().endswith(BOOKMARK_EXISTS):
            logger.debug("Bookmark %s#%s already exists", dataset, snap)
            return
        raise __util__.CommandError(
            self.build_command(*args),
            result.returncode,
            stderr or "non-empty stderr from bookmark command",
            operation=f"bookmark {dataset}@{snap}",
        )

    def destroy_snapshot(self, snap, dataset=None) -> None:
        """Destroy ``dataset@snap``."""
        dataset = dataset or self.name
        self.run("destroy", f"{dataset}@{snap}", operation=f"destroy {dataset}@{snap}")

    def delete_snapshot(self, snap, dataset=None) -> None:
        """Remove a snapshot, leaving a bookmark of the same name behind."""
        self.bookmark(snap, dataset=dataset)
        self.destroy_snapshot(snap, dataset=dataset)

    @staticmethod
    def _build_send_args(send_args, dry_run=False) -> list[str]:
        args = ["send", "-p"]
        if dry_run:
            args += ["-n", "-P"]
        return args + list(send_args)

    @staticmethod
    def _build_receive_args(destination) -> list[str]:
        return ["receive", "-vF", "-x", "mountpoint", destination]

    def send_size_report(self, send_args) -> str:
        """Run a dry-run send and return its parsable report."""
        return self.run(
            *self._build_send_args(send_args, dry_run=True),
            operation=f"estimate send {' '.join(send_args)}",
        )

    def send(self, send_args, **kwargs) -> subprocess.Popen:
        """Start ``zfs send`` with its stream on a pipe."""
        kwargs.setdefault("stdout", subprocess.PIPE)
        return self.popen(*self._build_send_args(send_args), **kwargs)

    def receive(self, destination, stdin, **kwargs) -> subprocess.Popen:
        """Start ``zfs receive`` into ``destination`` reading from ``stdin``."""
        return self.popen(*self._build_receive_args(destination), stdin=stdin, **kwargs)
