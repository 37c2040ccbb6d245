"""
Two-way binding between tree values and flat, named form fields.

A field id is a dotted path into a tree value. Each segment names a child
element, optionally indexed (``domain:contact[1]``). The last segment may
instead be an attribute (``@type``) or the literal ``value`` (the element's
text). A path that ends on an element name also reads that element's text.

    domain:registrant                    -> text of <domain:registrant>
    domain:authInfo.domain:pw            -> text of nested <domain:pw>
    domain:contact[1].@type              -> type attribute of the 2nd contact
    domain:ns.domain:hostObj[0].value    -> text of the 1st hostObj

Repeated elements are bound through a RepeatedGroup. It projects one row per
occurrence, and rows can be added and removed while editing.
"""

from __future__ import annotations

import copy
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, Union

from registrar_console.domains.markup.tree_codec import TEXT_KEY, TreeValue, as_list

VALUE_SEGMENT = "value"

_SEGMENT_RE = re.compile(r"^(?P<name>[^\[\]]+)(?:\[(?P<index>\d+)\])?$")
_ROW_ID_RE = re.compile(r"^\[(?P<index>\d+)\]\.(?P<column>.+)$")


@dataclass(frozen=True)
class FieldSpec:
    """A single scalar field bound to a text node or attribute."""

    path: str
    default: str = ""


@dataclass(frozen=True)
class RepeatedGroup:
    """A repeated element bound as rows of columns.

    Columns are paths relative to each occurrence. ``max_rows`` is the
    capacity policy the rendering layer applies to its add control.
    """

    path: str
    columns: tuple[str, ...] = (VALUE_SEGMENT,)
    max_rows: int | None = None

    def field_id(self, index: int, column: str) -> str:
        return f"{self.path}[{index}].{column}"


BindingSpec = Union[FieldSpec, RepeatedGroup]


@dataclass
class FormFields:
    """Current field values: scalars by path, repeated groups as ordered rows."""

    scalars: dict[str, str] = field(default_factory=dict)
    groups: dict[str, list[dict[str, str]]] = field(default_factory=dict)


# --- Path helpers ---

def _parse_path(path: str) -> list[tuple[str, int | None]]:
    segments: list[tuple[str, int | None]] = []
    for raw in path.split("."):
        m = _SEGMENT_RE.match(raw)
        if not m:
            raise ValueError(f"Invalid field path segment {raw!r} in {path!r}")
        index = m.group("index")
        segments.append((m.group("name"), int(index) if index is not None else None))
    return segments


def _is_leaf(name: str) -> bool:
    return name.startswith("@") or name == VALUE_SEGMENT


def _read_child(node: Any, name: str, index: int | None) -> Any:
    if not isinstance(node, dict):
        return None
    entry = node.get(name)
    if index is not None:
        items = as_list(entry)
        return items[index] if index < len(items) else None
    if isinstance(entry, list):
        return entry[0] if entry else None
    return entry


def get_path(tree: TreeValue, path: str) -> str | None:
    """Read the text or attribute addressed by path; None when absent."""
    node: Any = tree
    for name, index in _parse_path(path):
        if _is_leaf(name):
            if not isinstance(node, dict):
                return None
            value = node.get(TEXT_KEY if name == VALUE_SEGMENT else name)
            return value if isinstance(value, str) else None
        node = _read_child(node, name, index)
        if node is None:
            return None
    if isinstance(node, dict):
        value = node.get(TEXT_KEY)
        return value if isinstance(value, str) else None
    return None


def get_entry(tree: TreeValue, path: str) -> Any:
    """Return the raw child entry (dict, list, or None) addressed by an element path."""
    segments = _parse_path(path)
    node: Any = tree
    for name, index in segments[:-1]:
        node = _read_child(node, name, index)
    name, index = segments[-1]
    if index is not None:
        return _read_child(node, name, index)
    return node.get(name) if isinstance(node, dict) else None


def _child_for_write(node: TreeValue, name: str, index: int | None) -> TreeValue:
    entry = node.get(name)
    if index is None:
        if entry is None:
            entry = node[name] = {}
        elif isinstance(entry, list):
            if not entry:
                entry.append({})
            entry = entry[0]
        return entry
    items = as_list(entry)
    if items is not entry:
        node[name] = items
    while len(items) <= index:
        items.append({})
    return items[index]


def set_path(tree: TreeValue, path: str, value: str) -> None:
    """Write a text or attribute value at path, creating intermediate elements."""
    segments = _parse_path(path)
    node = tree
    for name, index in segments[:-1]:
        node = _child_for_write(node, name, index)
    name, index = segments[-1]
    if name == VALUE_SEGMENT:
        node[TEXT_KEY] = value
    elif name.startswith("@"):
        node[name] = value
    else:
        _child_for_write(node, name, index)[TEXT_KEY] = value


def _set_rows(tree: TreeValue, path: str, rows: list[TreeValue]) -> None:
    segments = _parse_path(path)
    node = tree
    for name, index in segments[:-1]:
        node = _child_for_write(node, name, index)
    node[segments[-1][0]] = rows


def _compact(node: Any) -> None:
    """Drop entries left empty by index padding from repeated children under node."""
    if not isinstance(node, dict):
        return
    for key, entry in list(node.items()):
        if isinstance(entry, list):
            for item in entry:
                _compact(item)
            kept = [item for item in entry if item != {}]
            if kept:
                node[key] = kept
            else:
                del node[key]
        else:
            _compact(entry)


# --- Projection ---

def project(tree: TreeValue, specs: Iterable[BindingSpec]) -> FormFields:
    """Project a tree value onto the given field specs."""
    fields = FormFields()
    for spec in specs:
        if isinstance(spec, RepeatedGroup):
            rows = []
            for item in as_list(get_entry(tree, spec.path)):
                rows.append({col: get_path(item, col) or "" for col in spec.columns})
            fields.groups[spec.path] = rows
        else:
            value = get_path(tree, spec.path)
            fields.scalars[spec.path] = spec.default if value is None else value
    return fields


def collect(fields: FormFields, specs: Iterable[BindingSpec]) -> TreeValue:
    """Rebuild a tree value from field values. Empty scalars are left out; every row is kept.

    Inside a row, indexed columns are packed: only filled occurrences are emitted.
    """
    tree: TreeValue = {}
    for spec in specs:
        if isinstance(spec, RepeatedGroup):
            rows = fields.groups.get(spec.path) or []
            if not rows:
                continue
            built: list[TreeValue] = []
            for row in rows:
                item: TreeValue = {}
                for col in spec.columns:
                    value = row.get(col, "")
                    if value:
                        set_path(item, col, value)
                _compact(item)
                built.append(item)
            _set_rows(tree, spec.path, built)
        else:
            value = fields.scalars.get(spec.path, "")
            if value:
                set_path(tree, spec.path, value)
    return tree


class FormBinder:
    """Holds the field values of one page and applies user edits to them."""

    def __init__(self, specs: Iterable[BindingSpec]) -> None:
        self.specs: tuple[BindingSpec, ...] = tuple(specs)
        self._groups = {s.path: s for s in self.specs if isinstance(s, RepeatedGroup)}
        self.fields = project({}, self.specs)
        self.read_only = True

    def project(self, tree: TreeValue) -> FormFields:
        self.fields = project(tree, self.specs)
        return self.fields

    def collect(self) -> TreeValue:
        return collect(self.fields, self.specs)

    def field_ids(self) -> list[str]:
        """All current field ids in binding order, repeated rows expanded."""
        ids: list[str] = []
        for spec in self.specs:
            if isinstance(spec, RepeatedGroup):
                for i in range(len(self.fields.groups.get(spec.path, []))):
                    ids.extend(spec.field_id(i, col) for col in spec.columns)
            else:
                ids.append(spec.path)
        return ids

    def _locate(self, field_id: str) -> tuple[RepeatedGroup | None, int, str]:
        if field_id in self.fields.scalars:
            return None, -1, field_id
        for path, group in self._groups.items():
            if field_id.startswith(path + "["):
                m = _ROW_ID_RE.match(field_id[len(path):])
                if m and m.group("column") in group.columns:
                    index = int(m.group("index"))
                    if index < len(self.fields.groups.get(path, [])):
                        return group, index, m.group("column")
        raise KeyError(f"Unknown field {field_id!r}")

    def value(self, field_id: str) -> str:
        group, index, column = self._locate(field_id)
        if group is None:
            return self.fields.scalars[column]
        return self.fields.groups[group.path][index][column]

    def _check_editable(self) -> None:
        if self.read_only:
            raise ValueError("Fields are read-only; enter edit mode first")

    def set_value(self, field_id: str, value: str) -> None:
        self._check_editable()
        group, index, column = self._locate(field_id)
        if group is None:
            self.fields.scalars[column] = value
        else:
            self.fields.groups[group.path][index][column] = value

    def row_count(self, group_path: str) -> int:
        return len(self.fields.groups.get(group_path, []))

    def can_add_row(self, group_path: str) -> bool:
        group = self._groups[group_path]
        return group.max_rows is None or self.row_count(group_path) < group.max_rows

    def add_row(self, group_path: str) -> int:
        """Append an empty row and return its index."""
        self._check_editable()
        if not self.can_add_row(group_path):
            raise ValueError(f"{group_path} already has the maximum of {self._groups[group_path].max_rows} rows")
        group = self._groups[group_path]
        rows = self.fields.groups.setdefault(group_path, [])
        rows.append({col: "" for col in group.columns})
        return len(rows) - 1

    def remove_row(self, group_path: str, index: int) -> None:
        """Delete one row; later rows shift down by one."""
        self._check_editable()
        rows = self.fields.groups.get(group_path, [])
        if not 0 <= index < len(rows):
            raise IndexError(f"{group_path} has no row {index}")
        del rows[index]

    def snapshot(self) -> FormFields:
        return copy.deepcopy(self.fields)

    def restore(self, snapshot: FormFields) -> None:
        self.fields = copy.deepcopy(snapshot)
