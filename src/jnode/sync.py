"""Selected-node editing with optimistic update and deferred reconciliation."""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable

from jnode.buffer import EditSession
from jnode.exceptions import EditStateError, NodeEditError
from jnode.merge import commit_edits
from jnode.path import render_path
from jnode.rows import NodeData, apply_edits
from jnode.store import DocumentStore

_LOG = logging.getLogger(__name__)

DEFAULT_RECONCILE_DELAY = 0.5

Scheduler = Callable[[float, Callable[[], None]], object]
Notifier = Callable[[bool, str], None]
NodeLookup = Callable[[str], NodeData | None]


class NodeEditController:
    """Owns the selected node and its edit session.

    The controller is the only writer of the selection. A commit merges
    the buffer into the store text, shows the edited node right away and
    schedules one reconciliation that swaps in the rebuilt node once the
    tree has caught up with the new text.
    """

    def __init__(
        self,
        store: DocumentStore,
        lookup: NodeLookup,
        schedule: Scheduler,
        *,
        notify: Notifier | None = None,
        reconcile_delay: float = DEFAULT_RECONCILE_DELAY,
        indent: int = 2,
    ) -> None:
        self.store = store
        self.lookup = lookup
        self.schedule = schedule
        self.notify = notify
        self.reconcile_delay = reconcile_delay
        self.indent = indent
        self.selected_node: NodeData | None = None
        self.session: EditSession = EditSession()
        # Bumped on every selection change and commit; a reconciliation
        # only applies if the version is unchanged when it fires.
        self._version: int = 0
        self._listeners: list[Callable[[NodeData | None], None]] = []

    # -- Selection ---------------------------------------------------------

    def on_selection_changed(self, listener: Callable[[NodeData | None], None]) -> None:
        self._listeners.append(listener)

    def _set_selected(self, node: NodeData | None) -> None:
        self.selected_node = node
        for listener in list(self._listeners):
            listener(node)

    def select(self, node: NodeData | None) -> None:
        self._version += 1
        self.session = EditSession(node.rows if node else ())
        self._set_selected(node)

    def close(self) -> None:
        self.select(None)

    # -- Editing -----------------------------------------------------------

    def enter_edit(self) -> None:
        if self.selected_node is None:
            raise EditStateError("no node selected")
        self.session.enter_edit()

    def cancel_edit(self) -> None:
        self.session.cancel_edit()

    def update_field(self, field_id: str, text: str) -> None:
        self.session.update_field(field_id, text)

    def _notify(self, success: bool, message: str) -> None:
        if self.notify is not None:
            self.notify(success, message)

    def commit(self) -> bool:
        """Merge the buffer into the document. Returns True on success."""
        node = self.selected_node
        if node is None or not self.session.editing:
            self._notify(False, "Nothing to save")
            return False

        buffer = self.session.snapshot()
        try:
            result = commit_edits(
                self.store.read_text(),
                node.path,
                self.session.shape,
                buffer,
                indent=self.indent,
            )
            self.store.replace_text(result.text)
        except (NodeEditError, OSError) as exc:
            _LOG.warning("commit failed at %s: %s", render_path(node.path), exc, exc_info=exc)
            self._notify(False, "Failed to update node. Please check your edits.")
            return False

        optimistic = replace(node, rows=apply_edits(node.rows, buffer))
        self.session.finish(optimistic.rows)
        self._version += 1
        self._set_selected(optimistic)
        _LOG.info("updated node %s at %s", node.id, render_path(node.path))
        self._notify(True, "Node updated successfully!")

        version = self._version
        self.schedule(
            self.reconcile_delay,
            lambda: self._reconcile(node.id, node.path, version),
        )
        return True

    def _reconcile(self, node_id: str, path, version: int) -> None:
        current = self.selected_node
        if version != self._version or current is None or current.id != node_id:
            _LOG.debug("stale reconciliation for node %s dropped", node_id)
            return
        canonical = self.lookup(node_id)
        # Ids are handed out in walk order, so a reshaped document can give
        # this id to another node.
        if canonical is None or tuple(canonical.path) != tuple(path):
            _LOG.debug("node %s missing after rebuild; keeping edited view", node_id)
            return
        if self.session.editing:
            # User started another edit; keep the buffer and snapshot in step.
            self.session.rows = canonical.rows
        else:
            self.session = EditSession(canonical.rows)
        self._set_selected(canonical)
        _LOG.debug("node %s reconciled", node_id)
