"""Turn arbitrarily chunked stream text into complete lines."""

from __future__ import annotations


class LineSplitter:
    """Buffers stream fragments and hands back only newline-terminated lines.

    One instance per stream per process. The unterminated tail is kept in
    ``pending`` until its newline arrives; it is never flushed when the
    stream ends, so a last line without a trailing newline is dropped.
    The buffer has no size limit.
    """

    def __init__(self) -> None:
        self.pending = ""

    def feed(self, chunk: str) -> list[str]:
        """Add a chunk and return the lines it completed, trimmed."""
        if not chunk:
            return []
        parts = (self.pending + chunk).split("\n")
        self.pending = parts.pop()
        return [part.strip() for part in parts]
