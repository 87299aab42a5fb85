"""Track a running process as a stream of line and completion events.

A tracked process produces zero or more ``LineEvent`` values, one per
complete line of stdout, followed by exactly one terminal event:
``ProcessSucceeded`` when it exits with code 0, or ``ProcessFailed`` when it
exits nonzero or cannot be started at all. Nothing follows the terminal
event.

stderr is not split into lines. It is accumulated and only surfaced in the
``ProcessFailed`` event. There is no ordering between stdout lines and the
stderr accumulation.

The tracker has no timeout and no retry logic. Stopping iteration early does
not stop the process; call ``ProcessTracker.kill()`` for that.
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import inspect
import logging
import subprocess
from dataclasses import dataclass
from typing import Any, AsyncIterable, AsyncIterator, Callable, Literal, Mapping, Sequence, Union

from k3dterm.core.command_runner import format_command, merged_env
from k3dterm.core.line_splitter import LineSplitter

logger = logging.getLogger(__name__)

NO_PROGRAM: Literal["no-program"] = "no-program"

ExitCode = Union[int, Literal["no-program"], None]


@dataclass(frozen=True)
class LineEvent:
    """One complete, trimmed line of stdout."""
    text: str


@dataclass(frozen=True)
class ProcessSucceeded:
    """The process exited with code 0."""


@dataclass(frozen=True)
class ProcessFailed:
    """The process exited nonzero, or could not be started.

    ``exit_code`` is NO_PROGRAM when spawning failed; ``reason`` then holds
    the operating system error.
    """
    exit_code: ExitCode
    stderr: str
    reason: str = ""

    @property
    def no_program(self) -> bool:
        return self.exit_code == NO_PROGRAM


ProcessTrackingEvent = Union[LineEvent, ProcessSucceeded, ProcessFailed]


def is_terminal(event: object) -> bool:
    return isinstance(event, (ProcessSucceeded, ProcessFailed))


@dataclass(frozen=True)
class _StreamError:
    error: Exception


class ProcessTracker:
    """Runs one command and exposes its progress as an async event stream."""

    CHUNK_SIZE = 4096

    def __init__(
        self,
        executable: str,
        args: Sequence[str],
        cwd: str | None = None,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self.executable = executable
        self.args = list(args)
        self.cwd = cwd
        self.env = dict(env) if env else None
        self.process: asyncio.subprocess.Process | None = None
        self._started = False

    @property
    def command(self) -> str:
        return format_command(self.executable, self.args)

    async def events(self) -> AsyncIterator[ProcessTrackingEvent]:
        """Start the process and yield its events in arrival order.

        Raises whatever unexpected exception stopped the producer; ordinary
        command failure is reported as a ProcessFailed event instead.
        """
        if self._started:
            raise RuntimeError(f"already tracking '{self.command}'")
        self._started = True

        queue: asyncio.Queue[ProcessTrackingEvent | _StreamError] = asyncio.Queue()
        producer = asyncio.create_task(self._produce(queue))
        try:
            while True:
                item = await queue.get()
                if isinstance(item, _StreamError):
                    raise item.error
                yield item
                if is_terminal(item):
                    return
        finally:
            if not producer.done():
                producer.cancel()

    def kill(self) -> None:
        """Kill the process if it is still running."""
        if self.process is None or self.process.returncode is not None:
            return
        logger.debug("Killing pid %s: %s", self.process.pid, self.command)
        with contextlib.suppress(ProcessLookupError):
            self.process.kill()

    async def _produce(self, queue: asyncio.Queue) -> None:
        try:
            await self._run(queue.put_nowait)
        except Exception as e:
            logger.exception("Tracking '%s' failed unexpectedly", self.command)
            queue.put_nowait(_StreamError(e))

    async def _run(self, emit: Callable[[ProcessTrackingEvent], None]) -> None:
        logger.debug("Tracking command: %s", self.command)
        try:
            proc = await asyncio.create_subprocess_exec(
                self.executable,
                *self.args,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                cwd=self.cwd,
                env=merged_env(self.env),
            )
        except OSError as e:
            logger.debug("Could not start %s: %s", self.executable, e)
            emit(ProcessFailed(exit_code=NO_PROGRAM, stderr="", reason=str(e)))
            return
        self.process = proc

        assert proc.stdout is not None
        assert proc.stderr is not None
        _, stderr = await asyncio.gather(
            self._pump_stdout(proc.stdout, emit),
            self._collect_stderr(proc.stderr),
        )
        exit_code = await proc.wait()
        logger.debug("'%s' exited with code %s", self.command, exit_code)

        if exit_code == 0:
            emit(ProcessSucceeded())
        else:
            emit(ProcessFailed(exit_code=exit_code, stderr=stderr))

    async def _pump_stdout(
        self,
        stream: asyncio.StreamReader,
        emit: Callable[[ProcessTrackingEvent], None],
    ) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        splitter = LineSplitter()
        while True:
            chunk = await stream.read(self.CHUNK_SIZE)
            if not chunk:
                break
            for line in splitter.feed(decoder.decode(chunk)):
                emit(LineEvent(line))
        splitter.feed(decoder.decode(b"", final=True))
        if splitter.pending:
            logger.debug("Discarding unterminated output: %r", splitter.pending)

    async def _collect_stderr(self, stream: asyncio.StreamReader) -> str:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        stderr = ""
        while True:
            chunk = await stream.read(self.CHUNK_SIZE)
            if not chunk:
                break
            stderr += decoder.decode(chunk)
        return stderr + decoder.decode(b"", final=True)


def track(
    executable: str,
    args: Sequence[str],
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> AsyncIterator[ProcessTrackingEvent]:
    """Shortcut for ``ProcessTracker(...).events()``."""
    return ProcessTracker(executable, args, cwd=cwd, env=env).events()


async def _invoke(fn: Callable[..., Any], *args: Any) -> None:
    result = fn(*args)
    if inspect.isawaitable(result):
        await result


async def subscribe(
    events: AsyncIterable[Any],
    on_next: Callable[[Any], Any],
    on_error: Callable[[Exception], Any] | None = None,
    on_complete: Callable[[], Any] | None = None,
) -> None:
    """Push every event of a stream to callbacks.

    Callbacks may be plain functions or coroutine functions. Exceptions
    raised by the stream go to on_error, or propagate if it is not given;
    on_complete is called only when the stream ends normally.
    """
    iterator = aiter(events)
    while True:
        try:
            event = await anext(iterator)
        except StopAsyncIteration:
            break
        except Exception as e:
            if on_error is None:
                raise
            await _invoke(on_error, e)
            return
        await _invoke(on_next, event)
    if on_complete is not None:
        await _invoke(on_complete)
