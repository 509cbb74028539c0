"""
Provision use case — the full pass from profile to patched desktop.

Loads the profile, builds the ordered steps (packages → assets →
appearance → panel), runs them through the engine, and records the run
in the audit ledger. Interactive parts (root check, confirmation,
reboot prompt) belong to the CLI.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from deskprov.adapters.registry import AdapterRegistry
from deskprov.core.config.loader import ConfigError, load_profile, resolve_profile_path
from deskprov.core.engine.executor import (
    ProvisionReport,
    ProvisionStep,
    generate_operation_id,
    run_steps,
    write_audit_entry,
)
from deskprov.core.models.action import Receipt
from deskprov.core.models.profile import Profile
from deskprov.core.persistence.audit import AuditWriter
from deskprov.core.services.appearance import apply_appearance
from deskprov.core.services.assets import AssetFetcher
from deskprov.core.services.packages import PackageInstaller
from deskprov.core.services.panel import PanelResult, apply_panel

logger = logging.getLogger(__name__)

STEP_ORDER = ("packages", "assets", "appearance", "panel")


@dataclass
class ProvisionResult:
    """Result of a provisioning pass."""

    profile: Profile | None = None
    profile_path: Path | None = None
    report: ProvisionReport | None = None
    installed: list[str] = field(default_factory=list)
    assets: list[str] = field(default_factory=list)
    panel: PanelResult | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.report is not None and self.report.status == "ok"

    def to_dict(self) -> dict:
        result: dict = {}
        if self.error:
            result["error"] = self.error
            return result

        result["profile"] = self.profile.name if self.profile else ""
        result["profile_path"] = str(self.profile_path) if self.profile_path else None
        result["installed"] = self.installed
        result["assets"] = self.assets
        if self.panel:
            result["panel"] = self.panel.to_dict()
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def build_registry(mock_mode: bool = False, dry_run: bool = False) -> AdapterRegistry:
    """Registry with every adapter a provisioning pass uses."""
    from deskprov.adapters.desktop.xfconf import XfconfAdapter
    from deskprov.adapters.packages.apt import AptAdapter
    from deskprov.adapters.shell.command import ShellCommandAdapter
    from deskprov.adapters.shell.filesystem import FilesystemAdapter
    from deskprov.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry(mock_mode=mock_mode, dry_run=dry_run)
    registry.register(ShellCommandAdapter())
    registry.register(FilesystemAdapter())
    registry.register(GitAdapter())
    registry.register(AptAdapter())
    registry.register(XfconfAdapter())
    return registry


def plan_steps(profile: Profile, registry: AdapterRegistry, result: ProvisionResult) -> list[ProvisionStep]:
    """The ordered steps for ``profile``; each stores its output on ``result``."""

    def packages() -> str:
        result.installed = PackageInstaller(registry).ensure_installed(profile.required_packages)
        return f"installed {len(result.installed)}" if result.installed else "all present"

    def assets() -> str:
        placed = AssetFetcher(registry).fetch_all(profile.assets)
        result.assets = [str(p) for p in placed]
        return f"{len(placed)} asset(s) in place"

    def appearance() -> str:
        return f"{apply_appearance(profile.appearance, registry)} setting(s) applied"

    def panel() -> str:
        assert profile.panel is not None
        result.panel = apply_panel(profile.panel, registry)
        state = "committed" if result.panel.committed else "not committed"
        return f"{result.panel.plugins_injected} plugin definition(s), {state}"

    steps = [
        ProvisionStep("packages", packages, "Verifying required utilities"),
        ProvisionStep("assets", assets, "Installing icons, theme and fonts"),
        ProvisionStep("appearance", appearance, "Applying appearance settings"),
    ]
    if profile.panel is not None:
        steps.append(ProvisionStep("panel", panel, "Applying panel preferences"))
    return steps


def provision(
    profile_path: Path | None = None,
    registry: AdapterRegistry | None = None,
    only: list[str] | None = None,
    mock_mode: bool = False,
    dry_run: bool = False,
    audit_writer: AuditWriter | None = None,
) -> ProvisionResult:
    """Run a provisioning pass.

    Args:
        profile_path: Profile to load (default: lookup order of the loader).
        registry: Pre-configured adapter registry (default: all adapters).
        only: Restrict to these step names, keeping their order.
        mock_mode: Answer every external action with success.
        dry_run: Validate every external action, execute none.
        audit_writer: Ledger to record the run in (default: XDG state dir).

    Returns:
        ProvisionResult; ``error`` is set when the profile could not be
        loaded or no step was selected.
    """
    result = ProvisionResult()

    try:
        result.profile_path = resolve_profile_path(profile_path)
        result.profile = load_profile(result.profile_path)
    except ConfigError as e:
        result.error = str(e)
        return result

    profile = result.profile

    if registry is None:
        registry = build_registry(mock_mode=mock_mode, dry_run=dry_run)

    steps = plan_steps(profile, registry, result)
    if only:
        unknown = [name for name in only if name not in STEP_ORDER]
        if unknown:
            result.error = f"Unknown step(s): {', '.join(unknown)}. Valid: {', '.join(STEP_ORDER)}"
            return result
        steps = [s for s in steps if s.name in only]

    if not steps:
        result.error = f"Nothing to do: profile '{profile.name}' defines none of {', '.join(only or STEP_ORDER)}"
        return result

    operation_id = generate_operation_id()
    logger.info("Provisioning '%s' (%s)", profile.name, operation_id)
    result.report = run_steps(steps, operation_id=operation_id)

    if not registry.simulated:
        write_audit_entry(
            result.report,
            audit_writer or AuditWriter(),
            profile_name=profile.name,
            operation_type="panel" if only == ["panel"] else "provision",
            context={"profile_path": str(result.profile_path)},
        )

    return result


def request_reboot(registry: AdapterRegistry) -> Receipt:
    """Reboot the machine (sudo may prompt on the terminal)."""
    return registry.run("shell", "reboot", command=["sudo", "reboot"], interactive=True)


def apply_panel_only(
    profile_path: Path | None = None,
    registry: AdapterRegistry | None = None,
    mock_mode: bool = False,
    dry_run: bool = False,
) -> ProvisionResult:
    """Run just the panel step of a provisioning pass."""
    return provision(
        profile_path=profile_path,
        registry=registry,
        only=["panel"],
        mock_mode=mock_mode,
        dry_run=dry_run,
    )
