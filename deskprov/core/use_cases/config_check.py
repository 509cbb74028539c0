"""
Config check use case — validate a profile and report issues.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from deskprov.core.config.loader import ConfigError, load_profile, resolve_profile_path
from deskprov.core.context import expand_path
from deskprov.core.models.profile import Profile
from deskprov.core.use_cases.provision import build_registry


@dataclass
class ConfigCheckResult:
    """Result of profile validation."""

    valid: bool = False
    profile: Profile | None = None
    config_path: Path | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        panel = self.profile.panel if self.profile else None
        return {
            "valid": self.valid,
            "config_path": str(self.config_path) if self.config_path else None,
            "errors": self.errors,
            "warnings": self.warnings,
            "profile_name": self.profile.name if self.profile else None,
            "asset_count": len(self.profile.assets) if self.profile else 0,
            "plugin_count": len(panel.defined_ids()) if panel else 0,
        }


def check_config(config_path: Path | None = None) -> ConfigCheckResult:
    """Validate a provisioning profile and report issues."""
    result = ConfigCheckResult()
    result.config_path = resolve_profile_path(config_path)

    try:
        profile = load_profile(result.config_path)
        result.profile = profile
    except ConfigError as e:
        result.errors.append(str(e))
        return result

    if not profile.assets and not profile.appearance and profile.panel is None:
        result.warnings.append("Profile defines no assets, appearance settings or panel.")

    panel = profile.panel
    if panel is not None:
        for plugin_id in panel.unlisted_ids():
            result.warnings.append(
                f"Plugin {plugin_id} is defined but not in plugin_ids; it will not be shown."
            )
        for plugin_id in panel.undefined_ids():
            result.warnings.append(
                f"Plugin {plugin_id} is in plugin_ids but not defined here; "
                "it must already exist in the panel document."
            )

        channel_file = expand_path(panel.channel_file)
        if not channel_file.is_file():
            result.warnings.append(
                f"Panel document does not exist yet: {channel_file} "
                "(log into an Xfce session once to create it)."
            )

    for name in build_registry().missing_tools():
        result.warnings.append(f"Adapter '{name}' is unavailable: its tool is not installed on this host.")

    result.valid = len(result.errors) == 0
    return result
