"""Build the node collection shown for a document."""

from __future__ import annotations

import itertools
import logging

from jnode.exceptions import DocumentParseError
from jnode.merge import load_document
from jnode.path import ROOT_SYMBOL
from jnode.rows import FieldRow, NodeData, RowType, row_type_of

_LOG = logging.getLogger(__name__)


def build_nodes(document: object) -> list[NodeData]:
    """Flatten a document into nodes, parents before children.

    Objects become nodes with one row per key; scalars at the root or
    inside arrays become single keyless-row nodes. Arrays themselves have
    no node, their elements are addressed by index. Ids are assigned in
    visiting order, so an unchanged structure keeps its ids.
    """
    nodes: list[NodeData] = []
    counter = itertools.count(1)

    def visit(value: object, path: tuple[str | int, ...]) -> None:
        if isinstance(value, dict):
            rows = []
            for key, child in value.items():
                row_type = row_type_of(child)
                if row_type in (RowType.ARRAY, RowType.OBJECT):
                    rows.append(FieldRow(key, len(child), row_type))
                else:
                    rows.append(FieldRow(key, child, row_type))
            nodes.append(NodeData(str(next(counter)), tuple(rows), path))
            for key, child in value.items():
                if isinstance(child, (dict, list)):
                    visit(child, path + (key,))
        elif isinstance(value, list):
            for i, child in enumerate(value):
                visit(child, path + (i,))
        else:
            row = FieldRow(None, value, row_type_of(value))
            nodes.append(NodeData(str(next(counter)), (row,), path))

    visit(document, ())
    return nodes


def node_label(node: NodeData) -> str:
    """Short tree label: the last path segment, or $ for the root."""
    if not node.path:
        return ROOT_SYMBOL
    seg = node.path[-1]
    if isinstance(seg, int):
        return f"[{seg}]"
    return seg


class NodeIndex:
    """Latest node collection, looked up by id during reconciliation."""

    def __init__(self, nodes: list[NodeData] | None = None) -> None:
        self.nodes: list[NodeData] = list(nodes or [])
        self._by_id: dict[str, NodeData] = {n.id: n for n in self.nodes}

    def rebuild(self, text: str) -> bool:
        """Rebuild from document text. Keeps the old nodes if it does not parse."""
        try:
            document = load_document(text)
        except DocumentParseError as e:
            _LOG.warning("rebuild skipped: %s", e)
            return False
        self.nodes = build_nodes(document)
        self._by_id = {n.id: n for n in self.nodes}
        _LOG.debug("rebuilt %d node(s)", len(self.nodes))
        return True

    def find(self, node_id: str) -> NodeData | None:
        return self._by_id.get(node_id)

    def find_by_path(self, path) -> NodeData | None:
        path = tuple(path)
        for node in self.nodes:
            if node.path == path:
                return node
        return None

    def __iter__(self):
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)
