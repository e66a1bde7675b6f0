"""Field rows of a tree node and their flat views."""

from __future__ import annotations

import json
from dataclasses import dataclass, replace
from enum import Enum, auto

from jnode.literal import coerce

# Buffer identifier used for a node that holds a single bare value.
VALUE_FIELD = "value"


class RowType(Enum):
    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    NULL = "null"
    ARRAY = "array"
    OBJECT = "object"


class NodeShape(Enum):
    SCALAR = auto()  # one row, no key
    OBJECT = auto()  # keyed rows (or none at all)


_NESTED = (RowType.ARRAY, RowType.OBJECT)


@dataclass(frozen=True)
class FieldRow:
    key: str | None
    value: object
    type: RowType

    @property
    def nested(self) -> bool:
        return self.type in _NESTED


@dataclass(frozen=True)
class NodeData:
    """Snapshot of one tree node."""

    id: str
    rows: tuple[FieldRow, ...] = ()
    path: tuple[str | int, ...] = ()


def row_type_of(value: object) -> RowType:
    if value is None:
        return RowType.NULL
    if isinstance(value, bool):
        return RowType.BOOLEAN
    if isinstance(value, (int, float)):
        return RowType.NUMBER
    if isinstance(value, dict):
        return RowType.OBJECT
    if isinstance(value, list):
        return RowType.ARRAY
    return RowType.STRING


def node_shape(rows: tuple[FieldRow, ...] | list[FieldRow]) -> NodeShape:
    if len(rows) == 1 and rows[0].key is None:
        return NodeShape.SCALAR
    return NodeShape.OBJECT


def _editable(rows) -> list[FieldRow]:
    return [row for row in rows if not row.nested and row.key is not None]


def string_of(value: object) -> str:
    """Render a row value as editable text."""
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def normalize(rows) -> object:
    """Collapse rows into the value shown for the node.

    A single keyless row yields its bare value; otherwise a dict of the
    keyed scalar rows. Array and object rows are left out since they are
    shown as their own nodes.
    """
    if not rows:
        return {}
    if node_shape(rows) is NodeShape.SCALAR:
        return rows[0].value
    return {row.key: row.value for row in _editable(rows)}


def format_node(rows, indent: int = 2) -> str:
    """Display text for a node."""
    value = normalize(rows)
    if isinstance(value, dict):
        return json.dumps(value, indent=indent, ensure_ascii=False)
    if isinstance(value, str):
        return value
    return json.dumps(value, ensure_ascii=False)


def to_edit_buffer(rows) -> dict[str, str]:
    if rows and node_shape(rows) is NodeShape.SCALAR:
        return {VALUE_FIELD: string_of(rows[0].value)}
    return {row.key: string_of(row.value) for row in _editable(rows)}


def apply_edits(rows, buffer: dict[str, str]) -> tuple[FieldRow, ...]:
    """Project buffered edits onto the rows without touching the document."""

    def _edited(row: FieldRow, text: str) -> FieldRow:
        value = coerce(text)
        row_type = row_type_of(value)
        if row_type in _NESTED and row.key is not None:
            # Nested values become child nodes; the row keeps only a count.
            value = len(value)
        return replace(row, value=value, type=row_type)

    if rows and node_shape(rows) is NodeShape.SCALAR:
        if VALUE_FIELD not in buffer:
            return tuple(rows)
        return (_edited(rows[0], buffer[VALUE_FIELD]),)
    return tuple(
        _edited(row, buffer[row.key])
        if row.key is not None and row.key in buffer
        else row
        for row in rows
    )
