"""
Desktop Provisioner — CLI entrypoint.

Usage:
    deskprov run
    deskprov panel
    deskprov config check
    deskprov history
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from deskprov import __version__
from deskprov.core import context
from deskprov.core.observability.logging_config import setup_logging


@click.group()
@click.version_option(version=__version__, prog_name="deskprov")
@click.option("--verbose", "-v", is_flag=True, help="Show progress of every step.")
@click.option("--quiet", "-q", is_flag=True, help="Only show errors.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=False, dir_okay=False),
    default=None,
    help="Path to a provision.yml profile (default: auto-detect, then bundled default).",
)
@click.option(
    "--home",
    "home",
    type=click.Path(file_okay=False),
    default=None,
    help="Home directory to provision (default: the invoking user's).",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    debug: bool,
    config_path: str | None,
    home: str | None,
) -> None:
    """Desktop Provisioner — set up Xfce appearance and panel in one pass."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = Path(config_path) if config_path else None

    context.set_home(Path(home) if home else context.real_home())

    if debug:
        level = "DEBUG"
    elif verbose:
        level = "INFO"
    elif quiet:
        level = "ERROR"
    else:
        level = os.environ.get("DESKPROV_LOG_LEVEL", "WARNING")

    setup_logging(
        level=level,
        log_file=os.environ.get("DESKPROV_LOG_FILE"),
        log_file_level=os.environ.get("DESKPROV_LOG_FILE_LEVEL"),
    )


def _refuse_root() -> None:
    if context.is_root():
        click.secho("❌ Run this as a regular (non-root) user", fg="red")
        sys.exit(1)


def _print_report(result, as_json: bool) -> None:
    """Shared output for run/panel; exits 1 on failure."""
    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        if not result.ok:
            sys.exit(1)
        return

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    report = result.report
    assert report is not None

    click.echo()
    for step in report.steps:
        if step.ok:
            click.secho(f"   ✅ {step.name}", fg="green", nl=False)
            click.echo(f"  {step.summary} ({step.duration_ms}ms)")
        elif step.failed:
            click.secho(f"   🔥 {step.name} failed", fg="red", bold=True)
            click.echo(f"      {step.error_type}: {step.error}")
        else:
            click.secho(f"   ⊘ {step.name} (skipped)", fg="yellow")

    if result.panel and result.panel.settings_skipped:
        click.echo()
        click.secho("   ⚠️  Kept existing tuple settings:", fg="yellow")
        for name in result.panel.settings_skipped:
            click.echo(f"     • {name}")

    click.echo()
    if report.status != "ok":
        failed = report.failed_step
        click.secho(f"❌ Provisioning stopped at '{failed.name}'", fg="red", bold=True)
        sys.exit(1)

    click.secho(f"   Result: {report.succeeded}/{report.total} steps succeeded", fg="green", bold=True)
    click.echo()


@cli.command()
@click.option("--yes", "-y", is_flag=True, help="Skip the confirmation prompt.")
@click.option("--dry-run", is_flag=True, help="Validate every action, execute none.")
@click.option("--mock", is_flag=True, help="Simulate external tools (no real execution).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def run(ctx: click.Context, yes: bool, dry_run: bool, mock: bool, as_json: bool) -> None:
    """Run the full provisioning pass.

    Installs missing utilities, fetches icons, theme and fonts, applies
    appearance settings, and patches the panel layout.

    With --json the user/home confirmation needs --yes, and no reboot is
    offered; the JSON payload says whether the panel was committed.
    """
    from deskprov.core.config.loader import ConfigError, load_profile
    from deskprov.core.use_cases.provision import build_registry, provision, request_reboot

    config_path = ctx.obj.get("config_path")
    try:
        profile = load_profile(config_path)
    except ConfigError as e:
        click.secho(f"❌ {e}", fg="red")
        sys.exit(1)

    if profile.user_check:
        _refuse_root()
        if as_json and not yes:
            raise click.UsageError("--json cannot answer the user/home confirmation; add --yes.")
        if not yes:
            click.echo("Setting up environment for:")
            click.echo(f"  user: {context.real_user()}")
            click.echo(f"  home directory: {context.get_home()}")
            if not click.confirm("❔ Is this information correct?", default=False):
                click.secho("❌ Aborting", fg="red")
                sys.exit(1)
            click.secho("✅ Proceeding setup", fg="green")

    registry = build_registry(mock_mode=mock, dry_run=dry_run)
    result = provision(profile_path=config_path, registry=registry)
    _print_report(result, as_json)

    if as_json or yes or registry.simulated or not profile.reboot_prompt:
        if result.panel and result.panel.committed and not as_json:
            click.echo("A reboot is necessary to apply the panel changes.")
        return

    if click.confirm("🔁 Reboot now?", default=False):
        click.echo("🔄 Rebooting...")
        receipt = request_reboot(registry)
        if receipt.failed:
            click.secho(f"❌ Reboot failed: {receipt.error}", fg="red")
            sys.exit(1)
    else:
        click.echo("Skipped, reboot at a later time.")


@cli.command()
@click.option("--dry-run", is_flag=True, help="Apply edits in memory only.")
@click.option("--mock", is_flag=True, help="Simulate external tools (no real execution).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def panel(ctx: click.Context, dry_run: bool, mock: bool, as_json: bool) -> None:
    """Apply only the panel layout from the profile."""
    from deskprov.core.use_cases.provision import apply_panel_only

    _refuse_root()
    result = apply_panel_only(profile_path=ctx.obj.get("config_path"), mock_mode=mock, dry_run=dry_run)
    _print_report(result, as_json)


@cli.group()
def config() -> None:
    """Profile configuration commands."""


@config.command("check")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def config_check(ctx: click.Context, as_json: bool) -> None:
    """Validate the provisioning profile."""
    from deskprov.core.use_cases.config_check import check_config

    result = check_config(config_path=ctx.obj.get("config_path"))

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.valid else 1)

    if result.valid:
        assert result.profile is not None
        click.secho("✅ Profile is valid", fg="green", bold=True)
        click.echo(f"   Profile: {result.profile.name}  ({result.config_path})")
        click.echo(f"   Assets: {len(result.profile.assets)}")
        click.echo(f"   Appearance settings: {len(result.profile.appearance)}")
        if result.profile.panel:
            click.echo(f"   Panel plugins: {len(result.profile.panel.plugin_ids)}")
    else:
        click.secho("❌ Profile errors:", fg="red", bold=True)
        for err in result.errors:
            click.echo(f"   • {err}")

    if result.warnings:
        click.echo()
        click.secho("⚠️  Warnings:", fg="yellow")
        for warn in result.warnings:
            click.echo(f"   • {warn}")

    click.echo()
    if not result.valid:
        sys.exit(1)


@cli.command()
@click.option("--limit", "-n", default=10, show_default=True, help="Number of runs to show.")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def history(limit: int, as_json: bool) -> None:
    """Show recent provisioning runs from the audit ledger."""
    from deskprov.core.persistence.audit import AuditWriter

    entries = AuditWriter().read_recent(limit)

    if as_json:
        click.echo(json.dumps([e.model_dump(mode="json") for e in entries], indent=2))
        return

    if not entries:
        click.echo("No provisioning runs recorded.")
        return

    for entry in entries:
        colour = "green" if entry.status == "ok" else "red"
        click.echo(f"{entry.timestamp}  {entry.operation_id}  ", nl=False)
        click.secho(entry.status, fg=colour, nl=False)
        detail = f"  (stopped at {entry.failed_step})" if entry.failed_step else ""
        click.echo(f"  {entry.profile}{detail}")


if __name__ == "__main__":
    cli()
