"""
Smoke tests — verify the package bootstrap is healthy.

These tests ensure the basic scaffolding works:
- Package imports successfully
- CLI entrypoint responds
- The bundled default profile ships with the package
"""

from click.testing import CliRunner

from deskprov import __version__
from deskprov.core.config.loader import DEFAULT_PROFILE
from deskprov.main import cli


class TestBootstrap:
    """Verify the project bootstrap is healthy."""

    def test_version_is_set(self):
        assert __version__
        assert isinstance(__version__, str)

    def test_cli_version(self):
        result = CliRunner().invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_commands_registered(self):
        result = CliRunner().invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("run", "panel", "config", "history"):
            assert command in result.output

    def test_default_profile_bundled(self):
        """The default profile must be reachable when no provision.yml exists."""
        assert DEFAULT_PROFILE.is_file()
        assert DEFAULT_PROFILE.name == "default_profile.yml"
