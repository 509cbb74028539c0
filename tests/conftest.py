"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from deskprov.adapters.mock import MockAdapter
from deskprov.adapters.registry import AdapterRegistry
from deskprov.core import context

PANEL_XML = """\
<?xml version="1.0" encoding="UTF-8"?>

<channel name="xfce4-panel" version="1.0">
  <property name="configver" type="int" value="2"/>
  <property name="panels" type="array">
    <value type="int" value="1"/>
    <property name="panel-1" type="empty">
      <property name="position" type="string" value="p=6;x=0;y=0"/>
      <property name="size" type="uint" value="26"/>
      <property name="plugin-ids" type="array">
        <value type="int" value="1"/>
        <value type="int" value="9"/>
      </property>
    </property>
  </property>
  <property name="plugins" type="empty">
    <property name="plugin-1" type="string" value="applicationsmenu"/>
    <property name="plugin-9" type="string" value="clock"/>
  </property>
</channel>
"""

ADAPTER_NAMES = ("shell", "filesystem", "git", "apt", "xfconf")


@pytest.fixture(autouse=True)
def home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point ``~`` and the audit ledger at a throwaway directory."""
    home_dir = tmp_path / "home"
    home_dir.mkdir()
    context.set_home(home_dir)
    monkeypatch.setenv("DESKPROV_STATE_DIR", str(tmp_path / "state"))
    yield home_dir
    context.set_home(None)


@pytest.fixture
def panel_xml(tmp_path: Path) -> Path:
    """A small xfce4-panel channel document."""
    path = tmp_path / "xfce4-panel.xml"
    path.write_text(PANEL_XML, encoding="utf-8")
    return path


@pytest.fixture
def registry() -> AdapterRegistry:
    """A registry whose adapters are all MockAdapters (not simulated)."""
    reg = AdapterRegistry()
    for name in ADAPTER_NAMES:
        reg.register(MockAdapter(adapter_name=name))
    return reg


@pytest.fixture
def installed_panel(home: Path) -> Path:
    """The panel document at its default location under ``home``."""
    path = home / ".config" / "xfce4" / "xfconf" / "xfce-perchannel-xml" / "xfce4-panel.xml"
    path.parent.mkdir(parents=True)
    path.write_text(PANEL_XML, encoding="utf-8")
    return path
