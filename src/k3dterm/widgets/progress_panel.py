"""Status strip showing the running operation and its latest update."""

from __future__ import annotations

from rich.text import Text
from textual.app import ComposeResult
from textual.widget import Widget
from textual.widgets import Static


class ProgressPanel(Widget):
    """Progress reporter for long running k3d operations."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.title_text = ""
        self.messages: list[str] = []
        self.active = False

    def compose(self) -> ComposeResult:
        yield Static("Idle", id="progress-title")
        yield Static("", id="progress-message")

    def begin(self, title: str) -> None:
        self.active = True
        self.title_text = title
        self.messages = []
        self.query_one("#progress-title", Static).update(Text(title, style="bold"))
        self.query_one("#progress-message", Static).update("")

    def report(self, message: str) -> None:
        """Show the latest update, replacing the previous one."""
        self.messages.append(message)
        self.query_one("#progress-message", Static).update(Text(message))

    def end(self) -> None:
        self.active = False
        self.query_one("#progress-title", Static).update(Text(self.title_text, style="dim"))
