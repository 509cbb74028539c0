"""
Fragments — pre-built property sub-trees spliced into a channel document.

Plugin definitions are easier to author as whole XML snippets than to
build node by node. A fragment is opaque text holding one or more
sibling ``<property>`` elements; it is parsed here into real elements
so the patcher can insert them with a tree operation.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET

from deskprov.core.errors import FragmentError
from deskprov.core.xfconf.document import PROPERTY_TAG, PropertyType, make_value

_WRAPPER = "fragment"


def parse_fragment(text: str) -> list[ET.Element]:
    """Parse fragment text into its top-level property elements.

    Raises:
        FragmentError: If the text is not well-formed, is empty, or has a
            top-level element that is not a named ``<property>``.
    """
    if not text or not text.strip():
        raise FragmentError("Fragment is empty")

    try:
        wrapper = ET.fromstring(f"<{_WRAPPER}>{text}</{_WRAPPER}>")
    except ET.ParseError as e:
        raise FragmentError(f"Malformed fragment: {e}") from e

    elements = list(wrapper)
    if not elements:
        raise FragmentError("Fragment contains no elements")

    for element in elements:
        check_fragment_element(element)

    return elements


def check_fragment_element(element: ET.Element) -> None:
    """Raise FragmentError unless ``element`` is a named ``<property>``."""
    if element.tag != PROPERTY_TAG:
        raise FragmentError(f"Fragment root must be <{PROPERTY_TAG}>, got <{element.tag}>")
    if not element.get("name"):
        raise FragmentError("Fragment property has no name attribute")


def plugin_property_name(plugin_id: int) -> str:
    return f"plugin-{plugin_id}"


def launcher_fragment(plugin_id: int, items_file_name: str) -> ET.Element:
    """Definition of a launcher plugin pointing at one ``.desktop`` item.

        <property name="plugin-3001" type="string" value="launcher">
          <property name="items" type="array">
            <value type="string" value="settingsmanager.desktop"/>
          </property>
        </property>
    """
    plugin = ET.Element(
        PROPERTY_TAG,
        {"name": plugin_property_name(plugin_id), "type": "string", "value": "launcher"},
    )
    items = ET.SubElement(plugin, PROPERTY_TAG, {"name": "items", "type": "array"})
    items.append(make_value(PropertyType.STRING, items_file_name))
    return plugin


def fragment_ids(elements: list[ET.Element]) -> list[int]:
    """Plugin ids declared by ``plugin-<n>`` elements of a fragment."""
    ids = []
    for element in elements:
        name = element.get("name", "")
        if name.startswith("plugin-") and name[7:].isdigit():
            ids.append(int(name[7:]))
    return ids
