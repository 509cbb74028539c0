"""
Tests for adapter protocol, registry, mock, and the concrete adapters.
"""

import tarfile
from pathlib import Path

import pytest

from deskprov.adapters.base import ExecutionContext
from deskprov.adapters.desktop.xfconf import XfconfAdapter
from deskprov.adapters.mock import MockAdapter
from deskprov.adapters.packages.apt import AptAdapter
from deskprov.adapters.registry import AdapterRegistry
from deskprov.adapters.shell.command import ShellCommandAdapter
from deskprov.adapters.shell.filesystem import FilesystemAdapter
from deskprov.adapters.vcs.git import GitAdapter
from deskprov.core.models.action import Action, Receipt


def _ctx(adapter: str, action_id: str = "test", **params) -> ExecutionContext:
    return ExecutionContext(action=Action(id=action_id, adapter=adapter, params=params))


class _Recorder:
    """Stands in for run_command and remembers the argv it got."""

    def __init__(self, receipt: Receipt | None = None):
        self.calls: list[list[str]] = []
        self.kwargs: list[dict] = []
        self._receipt = receipt

    def __call__(self, adapter, action_id, argv, **kwargs):
        self.calls.append(list(argv))
        self.kwargs.append(kwargs)
        return self._receipt or Receipt.success(
            adapter=adapter, action_id=action_id, metadata={"return_code": 0}
        )


# ── Protocol Tests ───────────────────────────────────────────────────


class TestExecutionContext:
    def test_cwd_defaults_to_workdir(self):
        ctx = ExecutionContext(action=Action(id="t", adapter="shell"), workdir="/work")
        assert ctx.cwd == "/work"

    def test_cwd_param_wins(self):
        ctx = ExecutionContext(action=Action(id="t", adapter="shell", params={"cwd": "/tmp"}), workdir="/work")
        assert ctx.cwd == "/tmp"


# ── Mock Adapter Tests ───────────────────────────────────────────────


class TestMockAdapter:
    def test_default_success(self):
        mock = MockAdapter(adapter_name="test-mock")
        receipt = mock.execute(_ctx("test-mock", "op-1"))
        assert receipt.ok
        assert receipt.metadata == {"mock": True}
        assert mock.call_count == 1

    def test_custom_response(self):
        mock = MockAdapter()
        mock.set_response("op-1", Receipt.success(adapter="mock", action_id="op-1", output="custom"))
        assert mock.execute(_ctx("mock", "op-1")).output == "custom"

    def test_prefix_failure(self):
        mock = MockAdapter()
        mock.set_failure("assets:kora", error="Intentional failure")
        assert mock.execute(_ctx("mock", "assets:kora:clone")).failed
        assert mock.execute(_ctx("mock", "assets:other:clone")).ok

    def test_reset(self):
        mock = MockAdapter()
        mock.set_failure("op-1")
        mock.execute(_ctx("mock", "op-1"))
        mock.reset()
        assert mock.call_count == 0
        assert mock.execute(_ctx("mock", "op-1")).ok


# ── Registry Tests ───────────────────────────────────────────────────


class TestAdapterRegistry:
    def test_register_and_get(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="shell"))
        assert registry.list_adapters() == ["shell"]
        assert registry.get("shell") is not None
        registry.unregister("shell")
        assert registry.get("shell") is None

    def test_missing_adapter(self):
        receipt = AdapterRegistry().run("git", "clone-it")
        assert receipt.failed
        assert "No adapter registered for 'git'" in receipt.error

    def test_validation_failure(self):
        registry = AdapterRegistry()
        registry.register(ShellCommandAdapter())
        receipt = registry.run("shell", "empty")
        assert receipt.failed
        assert receipt.error.startswith("Validation failed")

    def test_mock_mode(self):
        registry = AdapterRegistry(mock_mode=True)
        receipt = registry.run("apt", "packages:update", operation="update")
        assert receipt.ok
        assert receipt.metadata["mock"] is True
        assert registry.simulated

    def test_mock_mode_custom_adapter(self):
        mock = MockAdapter()
        registry = AdapterRegistry(mock_mode=True, mock_adapter=mock)
        registry.run("git", "assets:kora:clone")
        assert mock.action_ids == ["assets:kora:clone"]

    def test_dry_run_skips(self):
        mock = MockAdapter(adapter_name="shell")
        registry = AdapterRegistry(dry_run=True)
        registry.register(mock)
        receipt = registry.run("shell", "reboot", command=["sudo", "reboot"])
        assert receipt.status == "skipped"
        assert mock.call_count == 0

    def test_raising_adapter_becomes_failure(self):
        class Exploding(MockAdapter):
            def execute(self, context):
                raise RuntimeError("kaboom")

        registry = AdapterRegistry()
        registry.register(Exploding(adapter_name="shell"))
        receipt = registry.run("shell", "x")
        assert receipt.failed
        assert "kaboom" in receipt.error

    def test_missing_tools(self):
        registry = AdapterRegistry()
        registry.register(MockAdapter(adapter_name="xfconf", available=False))
        registry.register(MockAdapter(adapter_name="git"))
        assert registry.missing_tools() == ["xfconf"]


# ── Shell Adapter Tests ──────────────────────────────────────────────


class TestShellCommandAdapter:
    def test_captures_output(self, tmp_path: Path):
        adapter = ShellCommandAdapter()
        receipt = adapter.execute(_ctx("shell", command="echo hello", cwd=str(tmp_path)))
        assert receipt.ok
        assert receipt.output == "hello"
        assert receipt.metadata["return_code"] == 0

    def test_nonzero_exit(self):
        receipt = ShellCommandAdapter().execute(_ctx("shell", command=["sh", "-c", "exit 3"]))
        assert receipt.failed
        assert "exited with code 3" in receipt.error

    def test_ok_codes(self):
        receipt = ShellCommandAdapter().execute(
            _ctx("shell", command=["sh", "-c", "exit 1"], ok_codes=[0, 1])
        )
        assert receipt.ok
        assert receipt.metadata["return_code"] == 1

    def test_missing_executable(self):
        receipt = ShellCommandAdapter().execute(_ctx("shell", command=["deskprov-no-such-tool"]))
        assert receipt.failed
        assert "Cannot execute" in receipt.error

    def test_validate_cwd(self, tmp_path: Path):
        valid, error = ShellCommandAdapter().validate(
            _ctx("shell", command="true", cwd=str(tmp_path / "nope"))
        )
        assert not valid
        assert "does not exist" in error


# ── Filesystem Adapter Tests ─────────────────────────────────────────


class TestFilesystemAdapter:
    def test_write_creates_parents(self, tmp_path: Path):
        target = tmp_path / "launcher-3001" / "firefox.desktop"
        receipt = FilesystemAdapter().execute(
            _ctx("filesystem", operation="write", path=str(target), content="[Desktop Entry]\n")
        )
        assert receipt.ok
        assert target.read_text() == "[Desktop Entry]\n"

    def test_empty_content_is_valid(self, tmp_path: Path):
        valid, _ = FilesystemAdapter().validate(
            _ctx("filesystem", operation="write", path=str(tmp_path / "x.desktop"), content="")
        )
        assert valid

    def test_validate_required(self):
        valid, error = FilesystemAdapter().validate(_ctx("filesystem", operation="copy_glob", path="x"))
        assert not valid
        assert "'source'" in error

    def test_unknown_operation(self):
        valid, error = FilesystemAdapter().validate(_ctx("filesystem", operation="chmod", path="x"))
        assert not valid
        assert "Unknown operation" in error

    def test_copy_glob_no_match(self, tmp_path: Path):
        receipt = FilesystemAdapter().execute(
            _ctx("filesystem", operation="copy_glob", source=str(tmp_path), pattern="*.otf", path=str(tmp_path / "out"))
        )
        assert receipt.failed
        assert "No files matching" in receipt.error

    def test_extract_rejects_escape(self, tmp_path: Path):
        evil = tmp_path / "evil.txt"
        evil.write_text("x")
        archive = tmp_path / "evil.tar.gz"
        with tarfile.open(archive, "w:gz") as tar:
            tar.add(evil, arcname="../evil.txt")

        receipt = FilesystemAdapter().execute(
            _ctx("filesystem", operation="extract", source=str(archive), path=str(tmp_path / "out"))
        )
        assert receipt.failed
        assert "escapes" in receipt.error

    def test_extract_missing_archive(self, tmp_path: Path):
        receipt = FilesystemAdapter().execute(
            _ctx("filesystem", operation="extract", source=str(tmp_path / "no.tar.xz"), path=str(tmp_path))
        )
        assert receipt.failed
        assert "Archive not found" in receipt.error


# ── Tool Adapter Tests ───────────────────────────────────────────────


class TestXfconfAdapter:
    def test_set_with_create(self, monkeypatch: pytest.MonkeyPatch):
        recorder = _Recorder()
        monkeypatch.setattr("deskprov.adapters.desktop.xfconf.run_command", recorder)
        XfconfAdapter().execute(
            _ctx("xfconf", operation="set", channel="xfwm4", property="/general/theme", value="WhiteSur-Dark", type="string")
        )
        assert recorder.calls == [[
            "xfconf-query", "-c", "xfwm4", "-p", "/general/theme",
            "--create", "-t", "string", "-s", "WhiteSur-Dark",
        ]]

    def test_bool_rendering(self, monkeypatch: pytest.MonkeyPatch):
        recorder = _Recorder()
        monkeypatch.setattr("deskprov.adapters.desktop.xfconf.run_command", recorder)
        XfconfAdapter().execute(_ctx("xfconf", operation="set", channel="xsettings", property="/Net/EnableEventSounds", value=False))
        assert recorder.calls[0][-2:] == ["-s", "false"]

    def test_list(self, monkeypatch: pytest.MonkeyPatch):
        recorder = _Recorder()
        monkeypatch.setattr("deskprov.adapters.desktop.xfconf.run_command", recorder)
        XfconfAdapter().execute(_ctx("xfconf", operation="list", channel="xfce4-panel"))
        assert recorder.calls == [["xfconf-query", "-c", "xfce4-panel", "-l"]]

    def test_validate(self):
        valid, error = XfconfAdapter().validate(_ctx("xfconf", operation="set", channel="xfwm4"))
        assert not valid
        assert "'property'" in error


class TestAptAdapter:
    def test_status_installed(self, monkeypatch: pytest.MonkeyPatch):
        recorder = _Recorder(Receipt.success(
            adapter="apt", action_id="s", output="Package: git\nStatus: install ok installed\n",
            metadata={"return_code": 0},
        ))
        monkeypatch.setattr("deskprov.adapters.packages.apt.run_command", recorder)
        receipt = AptAdapter().execute(_ctx("apt", operation="status", package="git"))
        assert recorder.calls == [["dpkg", "-s", "git"]]
        assert receipt.metadata["installed"] is True

    def test_status_missing(self, monkeypatch: pytest.MonkeyPatch):
        recorder = _Recorder(Receipt.success(adapter="apt", action_id="s", metadata={"return_code": 1}))
        monkeypatch.setattr("deskprov.adapters.packages.apt.run_command", recorder)
        receipt = AptAdapter().execute(_ctx("apt", operation="status", package="wget"))
        assert receipt.output == "missing"
        assert receipt.metadata["installed"] is False

    def test_install_uses_sudo_for_users(self, monkeypatch: pytest.MonkeyPatch):
        recorder = _Recorder()
        monkeypatch.setattr("deskprov.adapters.packages.apt.run_command", recorder)
        monkeypatch.setattr("deskprov.adapters.packages.apt.os.geteuid", lambda: 1000)
        AptAdapter().execute(_ctx("apt", operation="install", packages=["git", "wget"]))
        assert recorder.calls == [["sudo", "apt-get", "install", "-y", "git", "wget"]]
        assert recorder.kwargs[0]["capture"] is False


class TestGitAdapter:
    def test_clone(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path):
        recorder = _Recorder()
        monkeypatch.setattr("deskprov.adapters.vcs.git.run_command", recorder)
        dest = tmp_path / "kora"
        receipt = GitAdapter().execute(
            _ctx("git", operation="clone", url="https://github.com/bikass/kora.git", dest=str(dest))
        )
        assert receipt.ok
        assert recorder.calls == [[
            "git", "clone", "--quiet", "--depth", "1", "https://github.com/bikass/kora.git", str(dest),
        ]]

    def test_existing_dest_rejected(self, tmp_path: Path):
        valid, error = GitAdapter().validate(
            _ctx("git", operation="clone", url="u", dest=str(tmp_path))
        )
        assert not valid
