"""
Profile model — one desktop setup, loaded from YAML.

A profile names the assets to fetch, the appearance settings to push
through xfconf-query, and the panel layout to patch into the
xfce4-panel channel file. Validation here catches the mistakes that
would otherwise corrupt a panel: duplicate plugin ids, fragments that
define a different plugin than they claim, malformed tuple settings.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, PositiveInt, field_validator, model_validator

from deskprov.core.errors import FragmentError
from deskprov.core.xfconf.document import PropertyType
from deskprov.core.xfconf.fragments import fragment_ids, parse_fragment, plugin_property_name

DEFAULT_PANEL_FILE = "~/.config/xfce4/xfconf/xfce-perchannel-xml/xfce4-panel.xml"
DEFAULT_LAUNCHERS_DIR = "~/.config/xfce4/panel"


class AssetSpec(BaseModel):
    """A third-party asset fetched with git.

    Exactly one placement strategy applies:
        source:  copy this directory of the clone to ``dest``
        archive: extract this archive of the clone into ``dest``'s parent
        pattern: copy the clone's files matching this glob into ``dest``
    """

    name: str
    kind: Literal["icons", "theme", "font"]
    url: str
    dest: str
    source: str | None = None
    archive: str | None = None
    pattern: str | None = None

    @model_validator(mode="after")
    def _one_strategy(self) -> AssetSpec:
        chosen = [s for s in ("source", "archive", "pattern") if getattr(self, s)]
        if len(chosen) != 1:
            raise ValueError(
                f"Asset '{self.name}' needs exactly one of source/archive/pattern, got {chosen or 'none'}"
            )
        return self

    @property
    def strategy(self) -> str:
        if self.source:
            return "source"
        if self.archive:
            return "archive"
        return "pattern"


class AppearanceSetting(BaseModel):
    """One xfconf-query call against a live channel."""

    model_config = ConfigDict(populate_by_name=True)

    channel: str
    prop: str = Field(alias="property")
    value: str | bool | int | float
    type: str | None = None           # set → create the property if missing


class PanelSetting(BaseModel):
    """A scalar (or fixed-arity tuple) property under a panel node."""

    path: str
    name: str
    type: PropertyType
    value: Any = None
    element_type: PropertyType | None = None

    @model_validator(mode="after")
    def _shape(self) -> PanelSetting:
        if self.type is PropertyType.ARRAY:
            if not isinstance(self.value, list) or not self.value:
                raise ValueError(f"Setting '{self.name}': array type needs a non-empty list value")
            if self.element_type is None or not self.element_type.is_scalar:
                raise ValueError(f"Setting '{self.name}': array type needs a scalar element_type")
        elif isinstance(self.value, (list, dict)):
            raise ValueError(f"Setting '{self.name}': {self.type.value} value must be scalar")
        elif self.value is None and self.type is not PropertyType.EMPTY:
            raise ValueError(f"Setting '{self.name}': missing value")
        return self

    @property
    def is_tuple(self) -> bool:
        return self.type is PropertyType.ARRAY


class PluginDefinition(BaseModel):
    """A panel plugin supplied as a raw fragment."""

    id: PositiveInt
    fragment: str

    @model_validator(mode="after")
    def _fragment_defines_plugin(self) -> PluginDefinition:
        try:
            elements = parse_fragment(self.fragment)
        except FragmentError as e:
            raise ValueError(f"Plugin {self.id}: {e}") from e
        if self.id not in fragment_ids(elements):
            raise ValueError(
                f"Plugin {self.id}: fragment does not define '{plugin_property_name(self.id)}'"
            )
        return self


class LauncherDefinition(BaseModel):
    """A launcher plugin and the ``.desktop`` entry it shows."""

    id: PositiveInt
    file_name: str
    entry: str = ""

    @field_validator("file_name")
    @classmethod
    def _desktop_file(cls, value: str) -> str:
        if "/" in value or not value.endswith(".desktop"):
            raise ValueError(f"Launcher file_name must be a bare *.desktop name, got '{value}'")
        return value

    @property
    def items_file_name(self) -> str:
        return self.file_name

    def desktop_entry_path(self, launchers_dir: Path) -> Path:
        """Where the panel looks for this launcher's item."""
        return launchers_dir / f"launcher-{self.id}" / self.file_name


class PanelProfile(BaseModel):
    """Panel layout applied to the xfce4-panel channel document."""

    channel_file: str = DEFAULT_PANEL_FILE
    launchers_dir: str = DEFAULT_LAUNCHERS_DIR
    plugin_ids_path: str = "/panels/panel-1/plugin-ids"
    plugins_path: str = "/plugins"

    settings: list[PanelSetting] = Field(default_factory=list)
    plugin_ids: list[PositiveInt] = Field(default_factory=list)
    plugins: list[PluginDefinition] = Field(default_factory=list)
    launchers: list[LauncherDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def _unique_ids(self) -> PanelProfile:
        defined = [p.id for p in self.plugins] + [lc.id for lc in self.launchers]
        dupes = sorted({i for i in defined if defined.count(i) > 1})
        if dupes:
            raise ValueError(f"Duplicate plugin ids: {', '.join(map(str, dupes))}")

        listed_dupes = sorted({i for i in self.plugin_ids if self.plugin_ids.count(i) > 1})
        if listed_dupes:
            raise ValueError(f"Duplicate entries in plugin_ids: {', '.join(map(str, listed_dupes))}")
        return self

    def defined_ids(self) -> list[int]:
        return [p.id for p in self.plugins] + [lc.id for lc in self.launchers]

    def unlisted_ids(self) -> list[int]:
        """Plugins defined but absent from the layout."""
        return [i for i in self.defined_ids() if i not in self.plugin_ids]

    def undefined_ids(self) -> list[int]:
        """Layout entries with no definition in this profile."""
        defined = set(self.defined_ids())
        return [i for i in self.plugin_ids if i not in defined]


class Profile(BaseModel):
    """Root provisioning profile."""

    version: int = 1
    name: str = "default"
    description: str = ""

    user_check: bool = True
    required_packages: list[str] = Field(default_factory=list)
    assets: list[AssetSpec] = Field(default_factory=list)
    appearance: list[AppearanceSetting] = Field(default_factory=list)
    panel: PanelProfile | None = None
    reboot_prompt: bool = True

    @model_validator(mode="after")
    def _unique_assets(self) -> Profile:
        names = [a.name for a in self.assets]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"Duplicate asset names: {', '.join(dupes)}")
        return self
