"""Async one-shot execution of external commands."""

from __future__ import annotations

import asyncio
import logging
import os
import subprocess
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping, Sequence, TypeVar

from k3dterm.core.errorable import Errorable, Failed, Succeeded

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class ExecutionResult:
    """Result of a completed command."""
    exit_code: int
    stdout: str
    stderr: str


def merged_env(overlay: Mapping[str, str] | None) -> dict[str, str] | None:
    """Layer overlay variables on top of the current environment."""
    if not overlay:
        return None
    env = dict(os.environ)
    env.update(overlay)
    return env


def format_command(executable: str, args: Sequence[str]) -> str:
    return " ".join([executable, *args])


async def run_command(
    executable: str,
    args: Sequence[str],
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
    on_output: Callable[[str], Awaitable[None]] | None = None,
) -> ExecutionResult:
    """Run a command to completion, streaming stdout line by line.

    Args:
        executable: Program to run. It is not passed through a shell.
        args: Arguments, passed to the program as-is.
        cwd: Working directory. Defaults to current directory.
        env: Variables added to the current environment.
        on_output: Async callback called with each line of stdout.

    Returns:
        ExecutionResult with the exit code, stdout and stderr.

    Raises:
        OSError: If the program cannot be started.
    """
    if cwd is None:
        cwd = os.getcwd()

    logger.debug("Running command: %s", format_command(executable, args))
    proc = await asyncio.create_subprocess_exec(
        executable,
        *args,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        cwd=cwd,
        env=merged_env(env),
    )

    lines: list[str] = []

    async def read_stdout() -> None:
        assert proc.stdout is not None
        while True:
            line_bytes = await proc.stdout.readline()
            if not line_bytes:
                break
            line = line_bytes.decode("utf-8", errors="replace").rstrip("\r\n")
            lines.append(line)
            if on_output:
                await on_output(line)

    async def read_stderr() -> bytes:
        assert proc.stderr is not None
        return await proc.stderr.read()

    _, stderr_bytes = await asyncio.gather(read_stdout(), read_stderr())
    exit_code = await proc.wait()

    return ExecutionResult(
        exit_code=exit_code,
        stdout="\n".join(lines),
        stderr=stderr_bytes.decode("utf-8", errors="replace"),
    )


async def exec_obj(
    executable: str,
    args: Sequence[str],
    description: str,
    parse: Callable[[str], T],
    cwd: str | None = None,
    env: Mapping[str, str] | None = None,
) -> Errorable[T]:
    """Run a command and parse its stdout into a value.

    A nonzero exit or a program that cannot be started becomes a Failed
    result instead of an exception.
    """
    try:
        result = await run_command(executable, args, cwd=cwd, env=env)
    except OSError as e:
        return Failed([f"Error invoking '{format_command(executable, args)}': {e}"])
    if result.exit_code != 0:
        return Failed([f"{description} error: {result.stderr}"])
    try:
        return Succeeded(parse(result.stdout))
    except ValueError as e:
        return Failed([f"{description} returned unexpected output: {e}"])
