"""
Panel — apply a PanelProfile to the xfce4-panel channel file.

The whole layout goes in as one batch: panel settings, the ordered
plugin-id list, plugin definitions, then launcher definitions, all
edited in memory with xfconfd stopped and committed with a single
atomic replace. Plugins appear on the panel in the order of the
plugin-id list; definitions are injected in profile order.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from deskprov.adapters.registry import AdapterRegistry
from deskprov.core.context import expand_path
from deskprov.core.errors import ProvisionError
from deskprov.core.models.profile import LauncherDefinition, PanelProfile, PanelSetting
from deskprov.core.xfconf.daemon import ConfigStoreDaemon
from deskprov.core.xfconf.document import PropertyType, find_property
from deskprov.core.xfconf.fragments import launcher_fragment
from deskprov.core.xfconf.patcher import ConfigDocumentPatcher, patch_document

logger = logging.getLogger(__name__)


@dataclass
class PanelResult:
    """What a panel pass changed."""

    channel_file: Path | None = None
    settings_applied: int = 0
    settings_skipped: list[str] = field(default_factory=list)
    plugin_ids: list[int] = field(default_factory=list)
    plugins_injected: int = 0
    launchers_written: list[str] = field(default_factory=list)
    committed: bool = False

    def to_dict(self) -> dict:
        return {
            "channel_file": str(self.channel_file) if self.channel_file else None,
            "settings_applied": self.settings_applied,
            "settings_skipped": self.settings_skipped,
            "plugin_ids": self.plugin_ids,
            "plugins_injected": self.plugins_injected,
            "launchers_written": self.launchers_written,
            "committed": self.committed,
        }


def write_launcher_entries(
    launchers: list[LauncherDefinition],
    launchers_dir: Path,
    registry: AdapterRegistry,
) -> list[str]:
    """Write each launcher's ``.desktop`` item where the panel expects it."""
    written = []
    for launcher in launchers:
        target = launcher.desktop_entry_path(launchers_dir)
        receipt = registry.run(
            "filesystem",
            f"panel:launcher-{launcher.id}:entry",
            step="panel",
            operation="write",
            path=str(target),
            content=launcher.entry,
        )
        if receipt.failed:
            raise ProvisionError(f"Cannot write launcher entry {target}: {receipt.error}")
        written.append(str(target))
    return written


def apply_settings(patcher: ConfigDocumentPatcher, settings: list[PanelSetting], result: PanelResult) -> None:
    """Upsert panel settings.

    Tuple settings append rather than replace, so they are only applied
    when the property does not exist yet.
    """
    for setting in settings:
        if setting.is_tuple:
            parent = patcher.resolve(setting.path)
            if find_property(parent, setting.name) is not None:
                logger.info("Keeping existing %s/%s", setting.path, setting.name)
                result.settings_skipped.append(f"{setting.path}/{setting.name}")
                continue

        patcher.ensure_scalar_property(
            setting.path,
            setting.name,
            setting.type,
            setting.value,
            element_type=setting.element_type,
        )
        result.settings_applied += 1


def apply_panel(panel: PanelProfile, registry: AdapterRegistry) -> PanelResult:
    """Patch the panel channel file and write launcher entries.

    In mock or dry-run mode every edit is still applied in memory (so a
    broken path or fragment is reported) but nothing is committed.

    Raises:
        PatchError: A path or fragment is invalid, or the commit failed.
        ProvisionError: The daemon could not be stopped or an entry
            file could not be written.
    """
    result = PanelResult(channel_file=expand_path(panel.channel_file))
    launchers_dir = expand_path(panel.launchers_dir)

    result.launchers_written = write_launcher_entries(panel.launchers, launchers_dir, registry)

    daemon = ConfigStoreDaemon(registry)
    with daemon.paused():
        with patch_document(result.channel_file) as doc:
            apply_settings(doc, panel.settings, result)

            if panel.plugin_ids:
                doc.append_ordered_list_entries(panel.plugin_ids_path, panel.plugin_ids, PropertyType.INT)
                result.plugin_ids = list(panel.plugin_ids)

            for plugin in panel.plugins:
                doc.inject_subtree(panel.plugins_path, plugin.fragment)
                result.plugins_injected += 1

            for launcher in panel.launchers:
                doc.inject_subtree(panel.plugins_path, launcher_fragment(launcher.id, launcher.items_file_name))
                result.plugins_injected += 1

            if registry.simulated:
                logger.info("Simulated run: %d edit(s) not committed", doc.edit_count)
                doc.discard()

        result.committed = not registry.simulated

    logger.info(
        "Panel: %d setting(s), %d plugin id(s), %d definition(s)",
        result.settings_applied,
        len(result.plugin_ids),
        result.plugins_injected,
    )
    return result
