"""Output channel abstraction for command transcripts."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Protocol


class LogChannel(Protocol):
    """Anything that accepts one line of output at a time."""

    def append(self, line: str) -> None:
        ...


class LoggingChannel:
    """LogChannel backed by a standard library logger."""

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.INFO) -> None:
        self.logger = logger or logging.getLogger("k3dterm.output")
        self.level = level

    def append(self, line: str) -> None:
        self.logger.log(self.level, "%s", line)


class MemoryChannel:
    """LogChannel that keeps every line in memory."""

    def __init__(self) -> None:
        self.lines: list[str] = []

    def append(self, line: str) -> None:
        self.lines.append(line)


def show_output(channel: LogChannel, message: str, title: str | None = None) -> None:
    """Write a message, preceded by a timestamped title header if given."""
    if title:
        stamp = datetime.now().isoformat(sep=" ", timespec="milliseconds")
        channel.append(f"[{title} {stamp}]")
    channel.append(message)
