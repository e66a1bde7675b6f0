"""Tree browser application for editing JSON nodes."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from rich.syntax import Syntax
from textual.app import App, ComposeResult
from textual.containers import Horizontal, VerticalScroll
from textual.logging import TextualHandler
from textual.widgets import Footer, Header, Static, Tree

from jnode.config import EditorConfig, build_parser
from jnode.exceptions import PathSyntaxError
from jnode.modal import NodeModal
from jnode.path import parse_path
from jnode.rows import NodeData, NodeShape, format_node, node_shape
from jnode.store import DocumentStore, FileDocumentStore
from jnode.sync import NodeEditController
from jnode.tree import NodeIndex, node_label

_LOG = logging.getLogger(__name__)

# Data directory path
_DATA_DIR = Path(__file__).parent / "data"


def _load_data(filename: str) -> str:
    """Load content from data directory."""
    return (_DATA_DIR / filename).read_text(encoding="utf-8")


def _preview(node: NodeData) -> str:
    if node_shape(node.rows) is NodeShape.SCALAR:
        text = format_node(node.rows)
    else:
        text = f"{{{len(node.rows)} keys}}"
    return text if len(text) <= 40 else text[:39] + "…"


class JsonNodeApp(App):
    """TUI app: node tree beside the document text."""

    CSS = """
    #main {
        height: 1fr;
    }
    #nodes {
        width: 40%;
        border: solid $accent;
    }
    #document-pane {
        width: 1fr;
        border: solid $accent 50%;
    }
    """

    TITLE = "JSON Node Editor"
    BINDINGS = [("q", "quit", "Quit")]

    def __init__(
        self,
        store: DocumentStore,
        config: EditorConfig | None = None,
        *,
        file_path: str = "",
        start_path: list[str | int] | None = None,
        **kwargs,
    ) -> None:
        super().__init__(**kwargs)
        self.store = store
        self.editor_config = config or EditorConfig()
        self.file_path = file_path
        self.start_path = start_path
        self.index = NodeIndex()
        self.index.rebuild(store.read_text())
        self.controller = NodeEditController(
            store,
            self.index.find,
            self._schedule,
            notify=self._notify_commit,
            reconcile_delay=self.editor_config.reconcile_delay,
            indent=self.editor_config.indent,
        )
        self.controller.on_selection_changed(self._on_selection_changed)
        store.add_listener(self._on_document_replaced)

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="main"):
            yield Tree("$", id="nodes")
            with VerticalScroll(id="document-pane"):
                yield Static(id="document")
        yield Footer()

    def on_mount(self) -> None:
        ro = " [RO]" if self.editor_config.read_only else ""
        self.sub_title = (self.file_path or "[sample]") + ro
        self._populate_tree()
        self._show_document()
        tree = self.query_one("#nodes", Tree)
        tree.focus()
        if self.start_path is not None:
            node = self.index.find_by_path(self.start_path)
            if node is None:
                self.notify("No node at the given path", severity="warning")
            else:
                self.open_node(node)

    # -- Collaborators -----------------------------------------------------

    def _schedule(self, delay: float, callback) -> object:
        return self.set_timer(delay, callback)

    def _notify_commit(self, success: bool, message: str) -> None:
        if success:
            self.notify(message, severity="information")
        else:
            self.notify(message, severity="error", timeout=6)

    def _on_document_replaced(self, text: str) -> None:
        self._show_document()
        # The tree is rebuilt out of band, after the next refresh.
        self.call_after_refresh(self._rebuild)

    def _on_selection_changed(self, node: NodeData | None) -> None:
        if isinstance(self.screen, NodeModal):
            self.screen.show_node()

    # -- Views -------------------------------------------------------------

    def _rebuild(self) -> None:
        if self.index.rebuild(self.store.read_text()):
            self._populate_tree()

    def _show_document(self) -> None:
        self.query_one("#document", Static).update(
            Syntax(self.store.read_text(), "json", theme="monokai", line_numbers=True)
        )

    def _populate_tree(self) -> None:
        tree = self.query_one("#nodes", Tree)
        tree.reset("$")
        by_path = {(): tree.root}
        for node in self.index:
            if not node.path:
                tree.root.data = node
                tree.root.set_label(f"$ {_preview(node)}")
                continue
            parent_path = node.path[:-1]
            while parent_path not in by_path:
                parent_path = parent_path[:-1]
            parent = by_path[parent_path]
            label = f"{node_label(node)}: {_preview(node)}"
            if node_shape(node.rows) is NodeShape.SCALAR:
                by_path[node.path] = parent.add_leaf(label, data=node)
            else:
                by_path[node.path] = parent.add(label, data=node, expand=True)
        tree.root.expand()

    def open_node(self, node: NodeData) -> None:
        _LOG.debug("opening node %s", node.id)
        self.controller.select(node)
        self.push_screen(
            NodeModal(self.controller, self.editor_config),
            callback=lambda _: self.controller.close(),
        )

    def on_tree_node_selected(self, event: Tree.NodeSelected) -> None:
        node = event.node.data
        if node is not None:
            self.open_node(node)


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()

    try:
        config = EditorConfig.from_args(args)
    except ValueError as exc:
        parser.error(str(exc))

    start_path = None
    if args.path:
        try:
            start_path = parse_path(args.path)
        except PathSyntaxError as exc:
            parser.error(f"--path: {exc}")

    logging.basicConfig(level=config.log_level_value, handlers=[TextualHandler()])

    file_path: str = args.file
    try:
        if file_path:
            store = FileDocumentStore(file_path)
        else:
            store = DocumentStore(_load_data("sample.json"))
    except (PermissionError, UnicodeDecodeError) as exc:
        print(f"jnode: {exc}", file=sys.stderr)
        sys.exit(1)

    app = JsonNodeApp(
        store,
        config,
        file_path=file_path,
        start_path=start_path,
    )
    app.run()


if __name__ == "__main__":
    main()
