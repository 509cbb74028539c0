"""
Tests for CLI commands — run, panel, config check, history, global options.
"""

import json
import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from deskprov.core import context
from deskprov.core.config.loader import DEFAULT_PROFILE
from deskprov.core.persistence.audit import AuditEntry, AuditWriter
from deskprov.main import cli


@pytest.fixture(autouse=True)
def regular_user(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(context, "is_root", lambda: False)


def _invoke(home: Path, *args: str, input: str | None = None):
    runner = CliRunner()
    return runner.invoke(cli, ["--home", str(home), *args], input=input)


class TestCLIGlobal:
    def test_help(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        assert "Desktop Provisioner" in result.output

    def test_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output


class TestConfigCheck:
    def test_default_profile(self, home: Path):
        result = _invoke(home, "-c", str(DEFAULT_PROFILE), "config", "check")
        assert result.exit_code == 0
        assert "Profile is valid" in result.output
        assert "Assets: 3" in result.output
        assert "does not exist yet" in result.output

    def test_invalid_json(self, home: Path, tmp_path: Path):
        bad = tmp_path / "provision.yml"
        bad.write_text("panel:\n  plugin_ids: [1, 1]\n")
        result = _invoke(home, "-c", str(bad), "config", "check", "--json")
        assert result.exit_code == 1
        data = json.loads(result.output)
        assert data["valid"] is False
        assert "Duplicate entries" in data["errors"][0]


class TestRunCommand:
    def test_mock_run(self, home: Path, installed_panel: Path):
        result = _invoke(home, "-c", str(DEFAULT_PROFILE), "run", "--mock", "--yes")
        assert result.exit_code == 0, result.output
        assert "4/4 steps succeeded" in result.output

    def test_refuses_root(self, home: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(context, "is_root", lambda: True)
        result = _invoke(home, "-c", str(DEFAULT_PROFILE), "run", "--mock", "--yes")
        assert result.exit_code == 1
        assert "non-root" in result.output

    def test_confirmation_declined(self, home: Path):
        result = _invoke(home, "-c", str(DEFAULT_PROFILE), "run", "--mock", input="n\n")
        assert result.exit_code == 1
        assert f"home directory: {home}" in result.output
        assert "Aborting" in result.output

    def test_confirmation_accepted(self, home: Path, installed_panel: Path):
        result = _invoke(home, "-c", str(DEFAULT_PROFILE), "run", "--mock", input="y\n")
        assert result.exit_code == 0, result.output
        assert "Proceeding setup" in result.output

    def test_json_needs_yes(self, home: Path, installed_panel: Path):
        before = installed_panel.read_bytes()
        result = _invoke(home, "-c", str(DEFAULT_PROFILE), "run", "--mock", "--json")
        assert result.exit_code == 2
        assert "--yes" in result.output
        assert AuditWriter().read_all() == []
        assert installed_panel.read_bytes() == before

    def test_json_with_yes(self, home: Path, installed_panel: Path):
        result = _invoke(home, "-c", str(DEFAULT_PROFILE), "run", "--mock", "--json", "--yes")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["report"]["status"] == "ok"
        assert "Reboot" not in result.output

    def test_stops_at_failed_step(self, home: Path):
        result = _invoke(home, "-c", str(DEFAULT_PROFILE), "run", "--mock", "--yes")
        assert result.exit_code == 1
        assert "stopped at 'panel'" in result.output
        assert "PatchError" in result.output

    def test_user_check_disabled(self, home: Path, tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setattr(context, "is_root", lambda: True)
        profile = tmp_path / "provision.yml"
        profile.write_text(textwrap.dedent("""\
            user_check: false
            required_packages: [git]
        """))
        result = _invoke(home, "-c", str(profile), "run", "--mock")
        assert result.exit_code == 0, result.output

    def test_missing_profile(self, home: Path, tmp_path: Path):
        result = _invoke(home, "-c", str(tmp_path / "nope.yml"), "run", "--yes")
        assert result.exit_code == 1
        assert "Profile not found" in result.output


class TestPanelCommand:
    def test_json(self, home: Path, installed_panel: Path):
        result = _invoke(home, "-c", str(DEFAULT_PROFILE), "panel", "--mock", "--json")
        assert result.exit_code == 0, result.output
        data = json.loads(result.output)
        assert data["report"]["status"] == "ok"
        assert data["panel"]["committed"] is False
        assert data["panel"]["plugin_ids"][:4] == [1, 3001, 3002, 3003]


class TestHistoryCommand:
    def test_empty(self, home: Path):
        result = _invoke(home, "history")
        assert result.exit_code == 0
        assert "No provisioning runs recorded." in result.output

    def test_lists_runs(self, home: Path):
        AuditWriter().write(AuditEntry(operation_id="op-1", profile="default", status="failed", failed_step="assets"))
        result = _invoke(home, "history")
        assert result.exit_code == 0
        assert "op-1" in result.output
        assert "stopped at assets" in result.output
