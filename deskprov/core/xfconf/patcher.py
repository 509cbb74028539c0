"""
ConfigDocumentPatcher — batched, all-or-nothing edits to a channel file.

The document is loaded fresh when the patcher is created. Every edit
touches only the in-memory tree, in program order. ``commit()`` writes
the result once: serialize to a temp file in the same directory, then
``os.replace`` it over the target. The file on disk is therefore either
the untouched original or the fully edited document, never a mix.

    with patch_document(panel_xml) as doc:
        doc.ensure_scalar_property("/panels/panel-1", "size", PropertyType.UINT, 32)
        doc.append_ordered_list_entries("/panels/panel-1/plugin-ids", [1, 3001], PropertyType.INT)
        doc.inject_subtree("/plugins", '<property name="plugin-3001" type="string" value="launcher"/>')

The xfconf daemon must not be running while a patcher is open (see
``daemon.ConfigStoreDaemon``).
"""

from __future__ import annotations

import logging
import os
import tempfile
import xml.etree.ElementTree as ET
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from deskprov.core.errors import InvalidValue, PatchError, WriteFailure
from deskprov.core.xfconf.document import (
    PROPERTY_TAG,
    VALUE_TAG,
    NodePath,
    PropertyType,
    find_property,
    load_document,
    make_value,
    serialize_document,
    set_typed_value,
)
from deskprov.core.xfconf.fragments import check_fragment_element, parse_fragment

logger = logging.getLogger(__name__)


class ConfigDocumentPatcher:
    """Owns one channel document for the duration of a single edit batch."""

    def __init__(self, path: Path):
        self._path = Path(path)
        self._tree = load_document(self._path)
        self._edits = 0
        self._closed = False

    @property
    def path(self) -> Path:
        return self._path

    @property
    def root(self) -> ET.Element:
        return self._tree.getroot()

    @property
    def edit_count(self) -> int:
        """Number of edits applied since load."""
        return self._edits

    @property
    def closed(self) -> bool:
        return self._closed

    def resolve(self, path: str | NodePath) -> ET.Element:
        """Return the node at ``path`` (raises PathNotFound)."""
        return _as_path(path).resolve(self.root)

    # ── Edits ───────────────────────────────────────────────────

    def ensure_scalar_property(
        self,
        path: str | NodePath,
        name: str,
        prop_type: PropertyType,
        value: Any,
        element_type: PropertyType | None = None,
    ) -> ET.Element:
        """Create or overwrite the property ``name`` under ``path``.

        Idempotent for scalar types: nested ``<property>`` children are
        kept, ``type`` and ``value`` are rewritten, and any ``<value>``
        entries left from an earlier array type are dropped.

        With ``prop_type=ARRAY`` and a sequence ``value`` this appends one
        ``<value>`` per element instead (fixed-arity tuples such as an
        RGBA colour). That case is NOT idempotent; running it twice
        doubles the entries, so callers must guard re-runs.
        """
        self._check_open()
        prop_type = PropertyType(prop_type)
        parent = self.resolve(path)

        prop = find_property(parent, name)

        if prop_type is PropertyType.ARRAY:
            if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
                raise InvalidValue(f"Array property '{name}' needs a sequence value")
            if element_type is None:
                raise InvalidValue(f"Array property '{name}' needs an element_type")
            if prop is None:
                prop = ET.SubElement(parent, PROPERTY_TAG, {"name": name})
            set_typed_value(prop, PropertyType.ARRAY, None)
            for item in value:
                prop.append(make_value(element_type, item))
            logger.debug("Appended %d %s entries to %s/%s", len(value), element_type, path, name)
        else:
            if prop is None:
                prop = ET.SubElement(parent, PROPERTY_TAG, {"name": name})
            # Format first so a bad value leaves the property as it was
            set_typed_value(prop, prop_type, value)
            for old in prop.findall(VALUE_TAG):
                prop.remove(old)
            logger.debug("Set %s/%s = %r (%s)", path, name, value, prop_type.value)

        self._edits += 1
        return prop

    def append_ordered_list_entries(
        self,
        path: str | NodePath,
        entries: Sequence[Any],
        element_type: PropertyType,
    ) -> ET.Element:
        """Replace the array entries at ``path`` with ``entries``, in order.

        Destructive-then-rebuild: the final list always equals
        ``entries`` regardless of what was there before. Nested
        ``<property>`` children of the node are left alone.
        """
        self._check_open()
        node = self.resolve(path)

        # Build first so a bad value leaves the node untouched
        new_values = [make_value(element_type, entry) for entry in entries]

        for old in node.findall(VALUE_TAG):
            node.remove(old)
        set_typed_value(node, PropertyType.ARRAY, None)

        # Array entries precede nested properties, as xfconfd writes them
        for offset, value_el in enumerate(new_values):
            node.insert(offset, value_el)

        logger.debug("Replaced list %s with %d entries", path, len(new_values))
        self._edits += 1
        return node

    def inject_subtree(self, path: str | NodePath, fragment: str | ET.Element) -> list[ET.Element]:
        """Append a pre-built fragment as the last child(ren) of ``path``.

        ``fragment`` is either raw XML text holding one or more
        ``<property>`` elements, or a single element. Prior siblings keep
        their order and content. A property already present under the
        same name is dropped first so names stay unique.

        Returns:
            The inserted elements, in order.
        """
        self._check_open()
        node = self.resolve(path)

        if isinstance(fragment, ET.Element):
            check_fragment_element(fragment)
            elements = [_copy_element(fragment)]
        else:
            elements = parse_fragment(fragment)

        for element in elements:
            name = element.get("name")
            existing = find_property(node, name) if name else None
            if existing is not None:
                logger.info("Replacing existing property %s/%s", path, name)
                node.remove(existing)
            node.append(element)

        logger.debug("Injected %d element(s) under %s", len(elements), path)
        self._edits += 1
        return elements

    # ── Commit ──────────────────────────────────────────────────

    def commit(self) -> None:
        """Atomically replace the target file with the edited document.

        Raises:
            WriteFailure: Serialization or replace failed. The original
                file is left untouched and no temp file remains.
        """
        self._check_open()

        try:
            content = serialize_document(self.root)
        except Exception as e:
            raise WriteFailure(f"Cannot serialize {self._path}: {e}") from e

        tmp: Path | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=self._path.parent,
                prefix=f".{self._path.name}.",
                suffix=".tmp",
            )
            tmp = Path(tmp_name)
            with os.fdopen(fd, "wb") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            _copy_mode(self._path, tmp)
            os.replace(tmp, self._path)
        except OSError as e:
            if tmp is not None:
                tmp.unlink(missing_ok=True)
            raise WriteFailure(f"Cannot write {self._path}: {e}") from e

        self._closed = True
        logger.info("Committed %d edit(s) to %s", self._edits, self._path)

    def discard(self) -> None:
        """Drop the in-memory tree without writing anything."""
        if not self._closed:
            logger.debug("Discarded %d uncommitted edit(s) to %s", self._edits, self._path)
        self._closed = True

    def _check_open(self) -> None:
        if self._closed:
            raise PatchError(f"Patcher for {self._path} is closed")


@contextmanager
def patch_document(path: Path) -> Iterator[ConfigDocumentPatcher]:
    """Open a patcher, commit on clean exit, write nothing on error.

    A block that calls ``discard()`` itself leaves the file untouched too.
    """
    patcher = ConfigDocumentPatcher(path)
    try:
        yield patcher
    except BaseException:
        patcher.discard()
        raise
    if not patcher.closed:
        patcher.commit()


def _as_path(path: str | NodePath) -> NodePath:
    return path if isinstance(path, NodePath) else NodePath(path)


def _copy_element(element: ET.Element) -> ET.Element:
    return ET.fromstring(ET.tostring(element))


def _copy_mode(source: Path, target: Path) -> None:
    try:
        os.chmod(target, source.stat().st_mode & 0o7777)
    except FileNotFoundError:
        pass
