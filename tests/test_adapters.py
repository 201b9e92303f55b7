"""
Tests for command runners and the disk filesystem adapter.
"""

import stat
from pathlib import Path

import pytest

from architech.adapters.base import CommandReceipt, CommandRequest
from architech.adapters.mock import MockCommandRunner
from architech.adapters.shell.command import ShellCommandRunner
from architech.adapters.shell.filesystem import DiskFilesystem
from architech.core.errors import IoError

# ── Receipts ─────────────────────────────────────────────────────────


class TestCommandReceipt:
    def test_ok(self):
        assert CommandReceipt(command="ls", return_code=0).ok
        assert not CommandReceipt(command="ls", return_code=1).ok
        assert not CommandReceipt(command="ls", return_code=0, timed_out=True).ok

    def test_summary(self):
        assert CommandReceipt(command="npm i", timed_out=True).summary() == "`npm i` timed out"
        assert CommandReceipt(command="npm i", error="not found").summary() == (
            "`npm i` could not be run: not found"
        )
        failed = CommandReceipt(command="npm i", return_code=2, stderr="warn\nERR! missing\n")
        assert failed.summary() == "`npm i` exited with code 2: ERR! missing"
        assert CommandReceipt(command="x", return_code=1).summary() == "`x` exited with code 1"

    def test_request_display(self):
        assert CommandRequest(command=["npx", "prisma", "generate"]).display == "npx prisma generate"
        assert CommandRequest(command="npm i").display == "npm i"


# ── Mock runner ──────────────────────────────────────────────────────


class TestMockCommandRunner:
    def test_default_success(self):
        mock = MockCommandRunner()
        receipt = mock.run(CommandRequest(command="npm install"))
        assert receipt.ok
        assert receipt.stdout == "[mock] executed"
        assert mock.commands == ["npm install"]
        assert mock.call_count == 1

    def test_configured_failure(self):
        mock = MockCommandRunner()
        mock.set_failure("npm test", stderr="1 failing")
        receipt = mock.run(CommandRequest(command=["npm", "test"]))
        assert not receipt.ok
        assert receipt.summary() == "`npm test` exited with code 1: 1 failing"

    def test_timeout_and_reset(self):
        mock = MockCommandRunner()
        mock.set_timeout("sleep")
        assert mock.run(CommandRequest(command="sleep")).timed_out
        mock.reset()
        assert mock.call_count == 0
        assert mock.run(CommandRequest(command="sleep")).ok

    def test_custom_response(self):
        mock = MockCommandRunner()
        mock.set_response("node -v", CommandReceipt(command="node -v", return_code=0, stdout="v20.0.0"))
        assert mock.run(CommandRequest(command=["node", "-v"])).stdout == "v20.0.0"

    def test_availability(self):
        assert MockCommandRunner().is_available()
        assert not MockCommandRunner(available=False).is_available()
        assert MockCommandRunner().name == "mock"


# ── Shell runner ─────────────────────────────────────────────────────


class TestShellCommandRunner:
    def test_available(self):
        runner = ShellCommandRunner()
        assert runner.name == "shell"
        assert runner.is_available()

    def test_string_command_uses_shell(self, tmp_path: Path):
        receipt = ShellCommandRunner().run(CommandRequest(command="echo hello && pwd", cwd=str(tmp_path)))
        assert receipt.ok
        lines = receipt.stdout.splitlines()
        assert lines[0] == "hello"
        assert Path(lines[1]).resolve() == tmp_path.resolve()

    def test_argv_command(self, tmp_path: Path):
        receipt = ShellCommandRunner().run(CommandRequest(command=["false"], cwd=str(tmp_path)))
        assert not receipt.ok
        assert receipt.return_code == 1

    def test_env(self, tmp_path: Path):
        receipt = ShellCommandRunner().run(
            CommandRequest(command="echo $ARCHITECH_TEST", cwd=str(tmp_path), env={"ARCHITECH_TEST": "yes"})
        )
        assert receipt.stdout.strip() == "yes"

    def test_timeout(self, tmp_path: Path):
        receipt = ShellCommandRunner().run(CommandRequest(command="sleep 5", cwd=str(tmp_path), timeout=0.2))
        assert receipt.timed_out
        assert not receipt.ok

    def test_missing_binary(self, tmp_path: Path):
        receipt = ShellCommandRunner().run(
            CommandRequest(command=["architech-no-such-binary"], cwd=str(tmp_path))
        )
        assert receipt.error is not None
        assert receipt.return_code is None

    def test_missing_cwd(self, tmp_path: Path):
        receipt = ShellCommandRunner().run(CommandRequest(command="ls", cwd=str(tmp_path / "gone")))
        assert receipt.error.startswith("working directory does not exist")


# ── Disk filesystem ──────────────────────────────────────────────────


class TestDiskFilesystem:
    def test_read_missing(self, tmp_path: Path):
        assert DiskFilesystem().read_text(tmp_path / "nope.txt") is None

    def test_write_creates_parents(self, tmp_path: Path):
        fs = DiskFilesystem()
        target = tmp_path / "a" / "b" / "c.txt"
        fs.write_text(target, "content")
        assert fs.read_text(target) == "content"
        assert [p.name for p in target.parent.iterdir()] == ["c.txt"]

    def test_delete(self, tmp_path: Path):
        fs = DiskFilesystem()
        (tmp_path / "dir").mkdir()
        (tmp_path / "dir" / "x").write_text("x")
        (tmp_path / "f.txt").write_text("f")

        fs.delete(tmp_path / "dir")
        fs.delete(tmp_path / "f.txt")
        fs.delete(tmp_path / "missing.txt")

        assert list(tmp_path.iterdir()) == []

    def test_write_into_file_fails(self, tmp_path: Path):
        (tmp_path / "blocker").write_text("")
        with pytest.raises(IoError) as exc:
            DiskFilesystem().write_text(tmp_path / "blocker" / "child.txt", "x")
        assert exc.value.code == "WRITE_FAILED"
        assert exc.value.path.endswith("child.txt")

    def test_new_file_mode_follows_umask(self, tmp_path: Path, umask_022):
        target = tmp_path / "src" / "a.ts"
        DiskFilesystem().write_text(target, "export {}\n")
        assert stat.S_IMODE(target.stat().st_mode) == 0o644
        assert stat.S_IMODE(target.parent.stat().st_mode) == 0o755

    def test_rewrite_keeps_mode(self, tmp_path: Path, umask_022):
        script = tmp_path / "setup.sh"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o750)

        DiskFilesystem().write_text(script, "#!/bin/sh\necho ready\n")

        assert stat.S_IMODE(script.stat().st_mode) == 0o750
        assert script.read_text() == "#!/bin/sh\necho ready\n"
