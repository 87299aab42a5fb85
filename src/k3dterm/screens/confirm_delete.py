"""Yes/no dialog shown before a cluster is deleted."""

from __future__ import annotations

from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Grid
from textual.screen import ModalScreen
from textual.widgets import Button, Label


class ConfirmDeleteScreen(ModalScreen[bool]):
    """Dismisses with True only when the user agrees to the deletion."""

    BINDINGS = [
        Binding("escape,n", "answer(False)", "No"),
        Binding("y", "answer(True)", "Yes"),
    ]

    def __init__(self, cluster_name: str) -> None:
        super().__init__()
        self.cluster_name = cluster_name

    def compose(self) -> ComposeResult:
        with Grid(id="confirm-dialog"):
            yield Label(f'Delete cluster "{self.cluster_name}"?', id="confirm-question")
            yield Label(
                f'This will delete "{self.cluster_name}". You will not be able to undo this.',
                id="confirm-note",
            )
            yield Button("No", variant="primary", id="confirm-cancel")
            yield Button("Yes, delete", variant="error", id="confirm-delete")

    def on_button_pressed(self, event: Button.Pressed) -> None:
        event.stop()
        self.action_answer(event.button.id == "confirm-delete")

    def action_answer(self, confirmed: bool) -> None:
        self.dismiss(confirmed)
