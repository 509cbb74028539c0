"""
Per-channel xfconf document — load, navigate, format, serialize.

xfconfd persists every channel as a small XML file:

    <channel name="xfce4-panel" version="1.0">
      <property name="panels" type="array">
        <value type="int" value="1"/>
        <property name="panel-1" type="empty">
          <property name="size" type="uint" value="32"/>
        </property>
      </property>
    </channel>

Properties are addressed by slash paths (``/panels/panel-1/size``). This
module holds the low-level helpers shared by the patcher; it knows
nothing about panels or plugins.
"""

from __future__ import annotations

import enum
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

from deskprov.core.errors import InvalidValue, PatchError, PathNotFound

logger = logging.getLogger(__name__)

PROPERTY_TAG = "property"
VALUE_TAG = "value"

_TRUE_WORDS = {"true", "1", "yes", "on"}
_FALSE_WORDS = {"false", "0", "no", "off"}


class PropertyType(str, enum.Enum):
    """Value types understood by xfconf."""

    STRING = "string"
    INT = "int"
    UINT = "uint"
    DOUBLE = "double"
    BOOL = "bool"
    EMPTY = "empty"
    ARRAY = "array"

    @property
    def is_scalar(self) -> bool:
        return self not in (PropertyType.EMPTY, PropertyType.ARRAY)


class NodePath:
    """A parsed property path.

    ``/panels/panel-1`` and ``/channel/panels/panel-1`` address the same
    node: a leading segment equal to the root tag refers to the root.
    """

    def __init__(self, raw: str):
        self.raw = raw
        self.segments = [s for s in raw.split("/") if s]

    def __str__(self) -> str:
        return "/" + "/".join(self.segments)

    def __repr__(self) -> str:
        return f"NodePath({self.raw!r})"

    def resolve(self, root: ET.Element) -> ET.Element:
        """Walk from ``root`` to the addressed node.

        Raises:
            PathNotFound: If any segment has no matching property.
        """
        segments = list(self.segments)
        if segments and segments[0] == root.tag:
            segments = segments[1:]

        node = root
        for segment in segments:
            child = find_property(node, segment)
            if child is None:
                raise PathNotFound(str(self), missing=segment)
            node = child
        return node


def find_property(parent: ET.Element, name: str) -> ET.Element | None:
    """Return the direct ``<property>`` child called ``name``, if any."""
    for child in parent.findall(PROPERTY_TAG):
        if child.get("name") == name:
            return child
    return None


def format_value(prop_type: PropertyType, value: Any) -> str | None:
    """Render ``value`` the way xfconfd writes it for ``prop_type``.

    Returns None for types that carry no ``value`` attribute.
    """
    prop_type = PropertyType(prop_type)

    if prop_type in (PropertyType.EMPTY, PropertyType.ARRAY):
        return None

    try:
        if prop_type is PropertyType.STRING:
            return str(value)
        if prop_type is PropertyType.BOOL:
            return "true" if _to_bool(value) else "false"
        if prop_type is PropertyType.INT:
            return str(int(value))
        if prop_type is PropertyType.UINT:
            number = int(value)
            if number < 0:
                raise InvalidValue(f"uint cannot be negative: {value!r}")
            return str(number)
        if prop_type is PropertyType.DOUBLE:
            return f"{float(value):f}"
    except (TypeError, ValueError) as e:
        raise InvalidValue(f"Cannot format {value!r} as {prop_type.value}: {e}") from e

    raise InvalidValue(f"Unsupported property type: {prop_type!r}")


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    word = str(value).strip().lower()
    if word in _TRUE_WORDS:
        return True
    if word in _FALSE_WORDS:
        return False
    raise ValueError(f"not a boolean: {value!r}")


def make_value(prop_type: PropertyType, value: Any) -> ET.Element:
    """Build an array entry element: ``<value type=".." value=".."/>``."""
    prop_type = PropertyType(prop_type)
    if not prop_type.is_scalar:
        raise InvalidValue(f"Array entries must be scalar, got {prop_type.value}")
    return ET.Element(
        VALUE_TAG,
        {"type": prop_type.value, "value": format_value(prop_type, value) or ""},
    )


def set_typed_value(element: ET.Element, prop_type: PropertyType, value: Any) -> None:
    """Overwrite ``type`` and ``value`` attributes of an existing element."""
    prop_type = PropertyType(prop_type)
    rendered = format_value(prop_type, value)
    element.set("type", prop_type.value)
    if rendered is None:
        element.attrib.pop("value", None)
    else:
        element.set("value", rendered)


def list_values(element: ET.Element) -> list[str]:
    """The ``value`` attributes of a property's array entries, in order."""
    return [v.get("value", "") for v in element.findall(VALUE_TAG)]


def property_names(element: ET.Element) -> list[str]:
    """Names of a node's property children, in document order."""
    return [p.get("name", "") for p in element.findall(PROPERTY_TAG)]


def load_document(path: Path) -> ET.ElementTree:
    """Parse a channel file from disk.

    Raises:
        PatchError: If the file is missing or not well-formed XML.
    """
    if not path.is_file():
        raise PatchError(f"Configuration document not found: {path}")

    try:
        tree = ET.parse(path)
    except ET.ParseError as e:
        raise PatchError(f"Malformed configuration document {path}: {e}") from e

    logger.debug("Loaded %s (root=<%s>)", path, tree.getroot().tag)
    return tree


def serialize_document(root: ET.Element) -> bytes:
    """Render a channel tree as UTF-8 bytes with an XML declaration."""
    tree = ET.ElementTree(root)
    ET.indent(tree, space="  ")
    body = ET.tostring(root, encoding="unicode")
    return ('<?xml version="1.0" encoding="UTF-8"?>\n\n' + body + "\n").encode("utf-8")

