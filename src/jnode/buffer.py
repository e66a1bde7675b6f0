"""Edit session: viewing/editing state and the buffered field text."""

from __future__ import annotations

from enum import Enum, auto

from jnode.exceptions import EditStateError
from jnode.rows import FieldRow, NodeShape, node_shape, to_edit_buffer


class EditMode(Enum):
    VIEWING = auto()
    EDITING = auto()


class EditSession:
    """Buffered edits for one node snapshot."""

    def __init__(self, rows: tuple[FieldRow, ...] = ()) -> None:
        self.rows: tuple[FieldRow, ...] = tuple(rows)
        self.mode: EditMode = EditMode.VIEWING
        self.fields: dict[str, str] = to_edit_buffer(self.rows)

    @property
    def shape(self) -> NodeShape:
        return node_shape(self.rows)

    @property
    def editing(self) -> bool:
        return self.mode is EditMode.EDITING

    def enter_edit(self) -> None:
        if self.editing:
            return
        self.fields = to_edit_buffer(self.rows)
        self.mode = EditMode.EDITING

    def cancel_edit(self) -> None:
        self.fields = to_edit_buffer(self.rows)
        self.mode = EditMode.VIEWING

    def update_field(self, field_id: str, text: str) -> None:
        if not self.editing:
            raise EditStateError("not in edit mode")
        if field_id not in self.fields:
            raise EditStateError(f"unknown field: {field_id!r}")
        self.fields[field_id] = text

    def snapshot(self) -> dict[str, str]:
        """Copy of the buffer, safe to hand to the merge engine."""
        return dict(self.fields)

    def finish(self, rows: tuple[FieldRow, ...]) -> None:
        """Leave edit mode after a successful commit."""
        if not self.editing:
            raise EditStateError("not in edit mode")
        self.rows = tuple(rows)
        self.fields = to_edit_buffer(self.rows)
        self.mode = EditMode.VIEWING
