"""Tests for optimistic commit and deferred reconciliation."""

import json
from pathlib import Path

import pytest

from jnode.exceptions import EditStateError
from jnode.rows import FieldRow, NodeData, RowType, normalize
from jnode.store import DocumentStore, FileDocumentStore
from jnode.sync import NodeEditController
from jnode.tree import NodeIndex


class FakeScheduler:
    """Collects scheduled callbacks instead of running a timer."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback):
        self.pending.append((delay, callback))

    def run_all(self):
        pending, self.pending = self.pending, []
        for _delay, callback in pending:
            callback()


def _make(text, *, rebuild=True, delay=0.5):
    store = DocumentStore(text)
    index = NodeIndex()
    index.rebuild(text)
    if rebuild:
        store.add_listener(index.rebuild)
    scheduler = FakeScheduler()
    notes = []
    controller = NodeEditController(
        store,
        index.find,
        scheduler,
        notify=lambda ok, msg: notes.append((ok, msg)),
        reconcile_delay=delay,
    )
    return controller, store, index, scheduler, notes


class TestCommit:
    def test_end_to_end(self):
        controller, store, index, scheduler, notes = _make('{"x": 1}')
        controller.select(index.find("1"))
        controller.enter_edit()
        controller.update_field("x", "2")

        assert controller.commit() is True

        assert json.loads(store.read_text()) == {"x": 2}
        assert normalize(controller.selected_node.rows) == {"x": 2}
        assert not controller.session.editing
        assert notes == [(True, "Node updated successfully!")]

    def test_schedules_one_reconciliation(self):
        controller, _store, index, scheduler, _notes = _make('{"x": 1}', delay=0.25)
        controller.select(index.find("1"))
        controller.enter_edit()
        controller.commit()
        assert len(scheduler.pending) == 1
        assert scheduler.pending[0][0] == 0.25

    def test_failure_is_atomic(self):
        text = '{\n  "x": 1\n}'
        controller, store, _index, scheduler, notes = _make(text)
        stale = NodeData("7", (FieldRow("y", 1, RowType.NUMBER),), ("gone",))
        controller.select(stale)
        controller.enter_edit()
        controller.update_field("y", "5")

        assert controller.commit() is False

        assert store.read_text() == text
        assert controller.selected_node is stale
        assert controller.session.editing
        assert controller.session.fields == {"y": "5"}
        assert scheduler.pending == []
        assert len(notes) == 1 and notes[0][0] is False

    def test_invalid_document_text_fails(self):
        controller, store, _index, _scheduler, notes = _make('{"x": 1}')
        node = NodeData("1", (FieldRow("x", 1, RowType.NUMBER),), ())
        controller.select(node)
        store.replace_text("{broken")
        controller.enter_edit()
        assert controller.commit() is False
        assert store.read_text() == "{broken"
        assert len(notes) == 1

    def test_commit_outside_edit_mode(self):
        controller, _store, index, scheduler, notes = _make('{"x": 1}')
        controller.select(index.find("1"))
        assert controller.commit() is False
        assert scheduler.pending == []
        assert len(notes) == 1

    def test_enter_edit_without_selection(self):
        controller, *_ = _make('{"x": 1}')
        with pytest.raises(EditStateError):
            controller.enter_edit()

    def test_commit_uses_latest_text(self):
        """Structure outside the buffer comes from the current store text."""
        controller, store, index, _scheduler, _notes = _make(
            '{"x": 1, "other": {"k": 1}}'
        )
        controller.select(index.find("1"))
        controller.enter_edit()
        controller.update_field("x", "2")
        store.replace_text('{"x": 1, "other": {"k": 9}}')
        controller.commit()
        assert json.loads(store.read_text()) == {"x": 2, "other": {"k": 9}}

    def test_commit_writes_every_buffered_field(self):
        """Untouched fields in the buffer are written back as well."""
        controller, store, index, _scheduler, _notes = _make('{"x": 1, "y": 1}')
        controller.select(index.find("1"))
        controller.enter_edit()
        controller.update_field("x", "2")
        store.replace_text('{"x": 1, "y": 9}')
        controller.commit()
        assert json.loads(store.read_text()) == {"x": 2, "y": 1}

    def test_file_store_persists(self, tmp_path):
        target = tmp_path / "doc.json"
        target.write_text('{"x": 1}', encoding="utf-8")
        store = FileDocumentStore(target)
        index = NodeIndex()
        index.rebuild(store.read_text())
        controller = NodeEditController(store, index.find, FakeScheduler())
        controller.select(index.find("1"))
        controller.enter_edit()
        controller.update_field("x", '"two"')
        assert controller.commit() is True
        assert json.loads(target.read_text(encoding="utf-8")) == {"x": "two"}
        assert list(tmp_path.iterdir()) == [target]

    def test_failed_file_write_leaves_file_intact(self, tmp_path, monkeypatch):
        target = tmp_path / "doc.json"
        target.write_text('{"x": 1}', encoding="utf-8")
        store = FileDocumentStore(target)
        index = NodeIndex()
        index.rebuild(store.read_text())
        notes = []
        controller = NodeEditController(
            store,
            index.find,
            FakeScheduler(),
            notify=lambda ok, msg: notes.append((ok, msg)),
        )
        controller.select(index.find("1"))
        controller.enter_edit()
        controller.update_field("x", "2")

        def fail_replace(self, target):
            raise OSError("disk full")

        monkeypatch.setattr(Path, "replace", fail_replace)

        assert controller.commit() is False
        assert target.read_text(encoding="utf-8") == '{"x": 1}'
        assert store.read_text() == '{"x": 1}'
        assert list(tmp_path.iterdir()) == [target]
        assert controller.session.editing
        assert len(notes) == 1 and notes[0][0] is False


class TestReconcile:
    def test_canonical_node_replaces_optimistic(self):
        controller, _store, index, scheduler, _notes = _make('{"items": [5]}')
        node = index.find("2")
        assert node.path == ("items", 0)
        controller.select(node)
        controller.enter_edit()
        controller.update_field("value", '{"a": 1}')
        controller.commit()

        optimistic = controller.selected_node
        assert optimistic.rows == (FieldRow(None, {"a": 1}, RowType.OBJECT),)

        scheduler.run_all()

        assert controller.selected_node == index.find("2")
        assert controller.selected_node.rows == (FieldRow("a", 1, RowType.NUMBER),)
        assert controller.session.fields == {"a": "1"}

    def test_miss_keeps_optimistic_node(self):
        controller, _store, _index, scheduler, _notes = _make(
            '{"x": 1}', rebuild=False
        )
        controller.lookup = lambda node_id: None
        controller.select(NodeData("1", (FieldRow("x", 1, RowType.NUMBER),), ()))
        controller.enter_edit()
        controller.update_field("x", "2")
        controller.commit()
        optimistic = controller.selected_node

        scheduler.run_all()

        assert controller.selected_node is optimistic
        assert controller.selected_node.rows == (FieldRow("x", 2, RowType.NUMBER),)

    def test_id_taken_over_by_other_node_keeps_optimistic(self):
        """A rebuilt node with the same id but another path is not swapped in."""
        controller, _store, index, scheduler, _notes = _make(
            '{"items": [5], "other": {"k": 1}}'
        )
        node = index.find("2")
        assert node.path == ("items", 0)
        controller.select(node)
        controller.enter_edit()
        controller.update_field("value", "[]")
        controller.commit()
        optimistic = controller.selected_node

        assert index.find("2").path == ("other",)
        scheduler.run_all()

        assert controller.selected_node is optimistic
        assert controller.selected_node.path == ("items", 0)

    def test_stale_after_selection_change(self):
        controller, _store, index, scheduler, _notes = _make('{"a": {"b": 1}}')
        controller.select(index.find("2"))
        controller.enter_edit()
        controller.update_field("b", "2")
        controller.commit()

        other = index.find("1")
        controller.select(other)
        scheduler.run_all()

        assert controller.selected_node is other

    def test_stale_after_close(self):
        controller, _store, index, scheduler, _notes = _make('{"x": 1}')
        controller.select(index.find("1"))
        controller.enter_edit()
        controller.commit()
        controller.close()
        scheduler.run_all()
        assert controller.selected_node is None

    def test_reselecting_same_node_drops_old_reconciliation(self):
        controller, _store, index, scheduler, _notes = _make('{"x": 1}')
        controller.select(index.find("1"))
        controller.enter_edit()
        controller.commit()
        reselected = NodeData("1", (FieldRow("x", 1, RowType.NUMBER),), ())
        controller.select(reselected)
        scheduler.run_all()
        assert controller.selected_node is reselected

    def test_only_latest_commit_reconciles(self):
        controller, _store, index, scheduler, _notes = _make('{"x": 1}')
        controller.select(index.find("1"))
        controller.enter_edit()
        controller.update_field("x", "2")
        controller.commit()
        controller.enter_edit()
        controller.update_field("x", "3")
        controller.commit()

        first, second = scheduler.pending
        first[1]()
        assert controller.selected_node.rows == (FieldRow("x", 3, RowType.NUMBER),)
        second[1]()
        assert controller.selected_node == index.find("1")

    def test_listeners_see_every_selection_write(self):
        controller, _store, index, scheduler, _notes = _make('{"x": 1}')
        seen = []
        controller.on_selection_changed(seen.append)
        controller.select(index.find("1"))
        controller.enter_edit()
        controller.update_field("x", "2")
        controller.commit()
        scheduler.run_all()
        assert len(seen) == 3
        assert seen[-1] == index.find("1")
