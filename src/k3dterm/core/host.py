"""Drive a progress step stream to its final result while reporting updates."""

from __future__ import annotations

from typing import AsyncIterable, Awaitable, Callable, Protocol, TypeVar

from k3dterm.core.progress import ProgressComplete, ProgressStep, ProgressUpdate

T = TypeVar("T")


class ProgressIncompleteError(RuntimeError):
    """The progress stream ended without delivering a result."""


class ProgressReporter(Protocol):
    """Where progress is shown to the user."""

    def begin(self, title: str) -> None:
        ...

    def report(self, message: str) -> None:
        ...

    def end(self) -> None:
        ...


async def long_running_with_messages(
    title: str,
    steps: AsyncIterable[ProgressStep[T]],
    reporter: ProgressReporter,
) -> T:
    """Show updates as they arrive and return the value of the first Complete.

    Errors raised by the stream are not caught: they fail the whole call.
    """
    reporter.begin(title)
    try:
        async for step in steps:
            if isinstance(step, ProgressUpdate):
                if step.message:
                    reporter.report(step.message)
            elif isinstance(step, ProgressComplete):
                await _close(steps)
                return step.value
        raise ProgressIncompleteError(f"{title}: finished without a result")
    finally:
        reporter.end()


async def long_running(
    title: str,
    action: Callable[[], Awaitable[T]],
    reporter: ProgressReporter,
) -> T:
    """Show the title while awaiting action."""
    reporter.begin(title)
    try:
        return await action()
    finally:
        reporter.end()


async def _close(steps: AsyncIterable[object]) -> None:
    aclose = getattr(steps, "aclose", None)
    if aclose is not None:
        await aclose()
