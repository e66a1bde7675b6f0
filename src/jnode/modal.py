"""Dialog showing one node's content and path, with field editing."""

from __future__ import annotations

from rich.syntax import Syntax
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.screen import ModalScreen
from textual.widgets import Button, Input, Label, Static

from jnode.config import EditorConfig
from jnode.path import render_path
from jnode.rows import VALUE_FIELD, format_node
from jnode.sync import NodeEditController


def field_label(field_id: str) -> str:
    return "Value" if field_id == VALUE_FIELD else field_id


class NodeModal(ModalScreen[None]):
    """Content / JSON Path dialog for the selected node."""

    DEFAULT_CSS = """
    NodeModal {
        align: center middle;
    }
    #node-dialog {
        width: 80;
        max-width: 90%;
        height: auto;
        max-height: 90%;
        border: thick $accent;
        background: $surface;
        padding: 0 1;
    }
    #content-header {
        height: auto;
    }
    .section {
        width: 1fr;
        text-style: bold;
        padding: 1 0 0 0;
    }
    #content, #path {
        height: auto;
        max-height: 16;
        background: $panel;
    }
    #edit-fields {
        height: auto;
        max-height: 16;
    }
    #actions {
        height: auto;
        align-horizontal: right;
    }
    #actions Button, #close {
        min-width: 8;
        margin: 0 0 0 1;
    }
    """

    BINDINGS = [
        Binding("escape", "close", "Close"),
        Binding("c", "copy_path", "Copy path"),
    ]

    def __init__(self, controller: NodeEditController, config: EditorConfig) -> None:
        super().__init__()
        self.controller = controller
        self.editor_config = config

    def compose(self) -> ComposeResult:
        with Vertical(id="node-dialog"):
            with Horizontal(id="content-header"):
                yield Label("Content", classes="section")
                yield Button("✕", id="close", variant="error")
            yield Static(id="content")
            yield VerticalScroll(id="edit-fields")
            with Horizontal(id="actions"):
                yield Button("Edit", id="edit", variant="primary")
                yield Button("Cancel", id="cancel")
                yield Button("Save", id="save", variant="success")
            yield Label("JSON Path", classes="section")
            yield Static(id="path")

    def on_mount(self) -> None:
        self.show_node()

    def show_node(self) -> None:
        """Redraw from the controller's current selection."""
        node = self.controller.selected_node
        rows = node.rows if node else ()
        path = node.path if node else ()
        content = format_node(rows, indent=self.editor_config.indent)
        self.query_one("#content", Static).update(
            Syntax(content, "json", theme="monokai", word_wrap=True)
        )
        self.query_one("#path", Static).update(
            Syntax(render_path(path), "json", theme="monokai", word_wrap=True)
        )
        self._update_mode()

    def _update_mode(self) -> None:
        editing = self.controller.session.editing
        self.query_one("#content").display = not editing
        self.query_one("#edit-fields").display = editing
        self.query_one("#edit").display = not editing and not self.editor_config.read_only
        self.query_one("#cancel").display = editing
        self.query_one("#save").display = editing

    async def _start_edit(self) -> None:
        self.controller.enter_edit()
        fields = self.query_one("#edit-fields", VerticalScroll)
        await fields.remove_children()
        widgets = []
        for field_id, text in self.controller.session.fields.items():
            widgets.append(Label(field_label(field_id)))
            widgets.append(Input(value=text, name=field_id))
        await fields.mount_all(widgets)
        self._update_mode()
        inputs = fields.query(Input)
        if inputs:
            inputs.first().focus()

    def _save(self) -> None:
        if self.controller.commit():
            self.show_node()

    def on_input_changed(self, event: Input.Changed) -> None:
        if self.controller.session.editing and event.input.name is not None:
            self.controller.update_field(event.input.name, event.value)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._save()

    async def on_button_pressed(self, event: Button.Pressed) -> None:
        button_id = event.button.id
        if button_id == "edit":
            await self._start_edit()
        elif button_id == "cancel":
            self.controller.cancel_edit()
            self.show_node()
        elif button_id == "save":
            self._save()
        elif button_id == "close":
            self.action_close()

    def action_close(self) -> None:
        self.dismiss(None)

    def action_copy_path(self) -> None:
        if self.controller.session.editing:
            return
        node = self.controller.selected_node
        self.app.copy_to_clipboard(render_path(node.path if node else ()))
        self.notify("Copied to clipboard", severity="information")
