"""Adapt process tracking events into UI progress steps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Callable, Generic, TypeVar, Union

from k3dterm.core.errorable import Errorable, Failed, Succeeded
from k3dterm.core.log import LogChannel
from k3dterm.core.process_tracker import LineEvent, ProcessFailed, ProcessSucceeded, ProcessTrackingEvent

T = TypeVar("T")

# k3d marks the lines meant for humans with a bullet
INTERESTING_PREFIX = "• "


@dataclass(frozen=True)
class ProgressUpdate:
    """An incremental status message."""
    message: str


@dataclass(frozen=True)
class ProgressComplete(Generic[T]):
    """The final value of an operation."""
    value: T


ProgressStep = Union[ProgressUpdate, ProgressComplete[T]]


def stripped_lines(text: str) -> list[str]:
    """Split text into trimmed, non-empty lines."""
    return [line.strip() for line in text.split("\n") if line.strip()]


def failure_message(event: ProcessFailed) -> str:
    """Describe a failed process, preferring what it wrote to stderr."""
    if event.stderr:
        return event.stderr
    if event.no_program:
        return event.reason or "program not found"
    if event.exit_code is None:
        return "process failed"
    return f"exited with code {event.exit_code}"


def progress_of(event: ProcessTrackingEvent, value: Any = None) -> ProgressStep[Errorable[Any]]:
    """Default mapping from a tracking event to a progress step."""
    if isinstance(event, LineEvent):
        return ProgressUpdate(event.text)
    if isinstance(event, ProcessSucceeded):
        return ProgressComplete(Succeeded(value))
    if isinstance(event, ProcessFailed):
        return ProgressComplete(Failed([failure_message(event)]))
    raise TypeError(f"not a process tracking event: {event!r}")


async def adapt(
    events: AsyncIterable[ProcessTrackingEvent | ProgressStep[T]],
    map_event: Callable[[ProcessTrackingEvent], ProgressStep[T]] = progress_of,
    log: LogChannel | None = None,
) -> AsyncIterator[ProgressStep[T]]:
    """Map tracking events to progress steps, ending at the first Complete.

    Steps that are already progress steps are forwarded as they are. When a
    log channel is given, every raw line and the stderr of a failure are
    appended to it; this never changes what is forwarded.
    """
    async for event in events:
        if log is not None:
            _tap(log, event)
        if isinstance(event, (ProgressUpdate, ProgressComplete)):
            step = event
        else:
            step = map_event(event)
        yield step
        if isinstance(step, ProgressComplete):
            return


def _tap(log: LogChannel, event: object) -> None:
    if isinstance(event, LineEvent):
        log.append(event.text)
    elif isinstance(event, ProcessFailed):
        for line in stripped_lines(event.stderr):
            log.append(line)


async def undecorate(
    steps: AsyncIterable[ProgressStep[T]],
    prefix: str = INTERESTING_PREFIX,
) -> AsyncIterator[ProgressStep[T]]:
    """Keep only updates that start with prefix, with the prefix removed."""
    async for step in steps:
        if isinstance(step, ProgressUpdate):
            if not step.message.startswith(prefix):
                continue
            step = ProgressUpdate(step.message[len(prefix):])
        yield step
