"""Tests for command endpoints."""

import shlex
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from zfs_backup_ng.__util__ import AbortError, CommandError
from zfs_backup_ng.endpoint import LocalEndpoint, SSHEndpoint, choose_endpoint


def completed(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess([], returncode, stdout, stderr)


class TestChooseEndpoint:
    """Tests for choose_endpoint."""

    def test_local(self):
        """Test a plain dataset name is local."""
        ep = choose_endpoint("tank/home")
        assert isinstance(ep, LocalEndpoint)
        assert ep.name == "tank/home"

    def test_host_colon_path(self):
        """Test host:dataset addresses a remote dataset."""
        ep = choose_endpoint("backup@nas:vault/home")
        assert isinstance(ep, SSHEndpoint)
        assert ep.config["hostname"] == "nas"
        assert ep.config["username"] == "backup"
        assert ep.name == "vault/home"

    def test_ssh_url(self):
        """Test ssh:// URLs with user and port."""
        ep = choose_endpoint("ssh://root@nas:2222/vault/home")
        assert isinstance(ep, SSHEndpoint)
        assert ep.config["port"] == 2222
        assert ep.get_id() == "ssh://root@nas:2222/vault/home"

    def test_common_config(self):
        """Test shared options reach the endpoint."""
        ep = choose_endpoint("tank", {"zfs_command": "/sbin/zfs"})
        assert ep.build_command("list") == ["/sbin/zfs", "list"]

    def test_excluded(self):
        """Test no endpoint can be built when all types are excluded."""
        with pytest.raises(ValueError):
            choose_endpoint("tank", excluded_types=(LocalEndpoint,))

    def test_missing_dataset(self):
        """Test an empty dataset name is rejected."""
        with pytest.raises(ValueError):
            choose_endpoint("nas:")

    @pytest.mark.parametrize("spec", ["nas:", "ssh://", "ssh:///tank", ""])
    def test_malformed_is_abort_error(self, spec):
        """Test malformed specs raise an error the commands handle."""
        with pytest.raises(AbortError, match="Invalid dataset"):
            choose_endpoint(spec)


class TestCommands:
    """Tests for command construction."""

    def test_local_command(self):
        """Test local commands are plain zfs invocations."""
        ep = LocalEndpoint({"path": "tank"})
        assert ep.build_command("list", "-H") == ["zfs", "list", "-H"]

    def test_ssh_command_quoted(self):
        """Test the remote command line is quoted once."""
        ep = SSHEndpoint(
            {"path": "vault", "hostname": "nas", "port": 22, "ssh_opts": ["Cipher=x"]}
        )
        cmd = ep.build_command("snapshot", "vault/my fs@snap")
        assert cmd[:6] == ["ssh", "-o", "BatchMode=yes", "-o", "Cipher=x", "-p"]
        assert cmd[-2] == "nas"
        assert shlex.split(cmd[-1]) == ["zfs", "snapshot", "vault/my fs@snap"]

    def test_for_dataset_keeps_host(self):
        """Test child endpoints stay on the same host."""
        ep = choose_endpoint("nas:vault/home").for_dataset("vault/home/alice")
        assert isinstance(ep, SSHEndpoint)
        assert ep.config["hostname"] == "nas"
        assert ep.name == "vault/home/alice"

    def test_send_args(self):
        """Test send and its dry run."""
        ep = LocalEndpoint({"path": "tank"})
        with patch("zfs_backup_ng.__util__.exec_subprocess") as run:
            run.return_value = completed(stdout="size\t1\n")
            ep.send_size_report(["-I", "@a", "tank@b"])
        assert run.call_args.args[0] == [
            "zfs", "send", "-p", "-n", "-P", "-I", "@a", "tank@b"
        ]

    def test_receive_args(self):
        """Test receive forces the stream and ignores the mountpoint."""
        ep = LocalEndpoint({"path": "tank"})
        with patch("zfs_backup_ng.__util__.exec_subprocess") as run:
            ep.receive("vault/fs", stdin=subprocess.PIPE)
        assert run.call_args.args[0] == [
            "zfs", "receive", "-vF", "-x", "mountpoint", "vault/fs"
        ]
        assert run.call_args.kwargs["method"] == "Popen"

    def test_failure_names_operation(self):
        """Test failing commands report what was attempted."""
        ep = LocalEndpoint({"path": "tank"})
        error = CommandError(["zfs", "destroy", "tank@a"], 1, "busy")
        with patch("zfs_backup_ng.__util__.exec_subprocess", side_effect=error):
            with pytest.raises(CommandError, match="destroy tank@a") as excinfo:
                ep.destroy_snapshot("a")
        assert excinfo.value.stderr == "busy"


class TestBookmark:
    """Tests for bookmark and delete_snapshot."""

    def test_success(self):
        """Test a clean bookmark."""
        ep = LocalEndpoint({"path": "tank"})
        with patch("zfs_backup_ng.__util__.exec_subprocess") as run:
            run.return_value = completed()
            ep.bookmark("a")
        assert run.call_args.args[0] == ["zfs", "bookmark", "tank@a", "#a"]

    def test_existing_bookmark(self):
        """Test an existing bookmark counts as success."""
        ep = LocalEndpoint({"path": "tank"})
        stderr = "cannot create bookmark 'tank#a': bookmark exists\n"
        with patch("zfs_backup_ng.__util__.exec_subprocess") as run:
            run.return_value = completed(1, stderr=stderr)
            ep.bookmark("a")

    def test_other_stderr_fails(self):
        """Test unexpected output fails even with a zero exit status."""
        ep = LocalEndpoint({"path": "tank"})
        with patch("zfs_backup_ng.__util__.exec_subprocess") as run:
            run.return_value = completed(0, stderr="something odd")
            with pytest.raises(CommandError, match="something odd"):
                ep.bookmark("a")

    def test_bookmark_before_destroy(self):
        """Test deletion bookmarks first and destroys afterwards."""
        ep = LocalEndpoint({"path": "tank"})
        with patch("zfs_backup_ng.__util__.exec_subprocess") as run:
            run.return_value = completed()
            ep.delete_snapshot("a", dataset="tank/fs")
        commands = [c.args[0][1] for c in run.call_args_list]
        assert commands == ["bookmark", "destroy"]

    def test_no_destroy_after_failed_bookmark(self):
        """Test a snapshot is kept when its bookmark could not be made."""
        ep = LocalEndpoint({"path": "tank"})
        with patch("zfs_backup_ng.__util__.exec_subprocess") as run:
            run.return_value = completed(1, stderr="out of space")
            with pytest.raises(CommandError):
                ep.delete_snapshot("a")
        assert run.call_count == 1
