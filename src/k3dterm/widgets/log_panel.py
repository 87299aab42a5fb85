"""Bottom panel - transcript of every k3d invocation and its output."""

from __future__ import annotations

import logging

from rich.text import Text
from textual.app import ComposeResult
from textual.widget import Widget
from textual.widgets import RichLog, Static

logger = logging.getLogger("k3dterm.output")


class LogPanel(Widget):
    """Scrolling output channel; also mirrors lines to the log file."""

    def __init__(self, **kwargs) -> None:
        super().__init__(**kwargs)
        self.lines: list[str] = []

    def compose(self) -> ComposeResult:
        yield Static("Output", id="log-title")
        yield RichLog(id="log-output", wrap=True, markup=False)

    def append(self, line: str) -> None:
        """Write a line to the output."""
        self.lines.append(line)
        logger.info("%s", line)
        self.query_one("#log-output", RichLog).write(Text(line))

    def write_error(self, text: str) -> None:
        """Write a failure in full, one line at a time."""
        for line in text.splitlines() or [text]:
            self.lines.append(line)
            logger.error("%s", line)
            self.query_one("#log-output", RichLog).write(Text(line, style="bold red"))
