"""Run the external build tools as asyncio subprocesses.

Every tool multibundle drives (esbuild, sass, yuidoc, karma, browser-sync) is
invoked through `run` or `run_piped`. A module level semaphore bounds how many
processes run at once, and each `Command` carries its own timeout and the
exception type raised when it fails.

Example usage:
```
from multibundle import command

out = await command.run(
    command.Command(["esbuild", "--version"], timeout=10)
)
```
"""

import asyncio
from abc import ABC, abstractmethod
import logging
import os
import shlex
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from .exceptions import CommandException

_LOGGER = logging.getLogger(__name__)

_CONCURRENCY = 20
_SEM = asyncio.Semaphore(_CONCURRENCY)
DEFAULT_TIMEOUT = 60.0


# No public API
__all__: list[str] = []


class Task(ABC):
    """A step of a command pipeline."""

    timeout: float | None = DEFAULT_TIMEOUT

    @abstractmethod
    async def run(self, stdin: bytes | None = None) -> bytes:
        """Execute the step, returning its output."""


def format_path(path: Path) -> str:
    """Render a path relative to the working directory when possible."""
    if path.is_absolute() and path.is_relative_to(Path.cwd()):
        return f"{path.relative_to(Path.cwd())} (abs)"
    return str(path)


@dataclass
class Command(Task):
    """An external program invocation."""

    cmd: list[str]
    """Program and arguments, not interpreted by a shell."""

    cwd: Path | None = None
    """Working directory of the process."""

    exc: type[CommandException] = CommandException
    """Raised when the program fails or times out."""

    retcodes: list[int] | None = None
    """Non-zero exit codes that still count as success."""

    env: dict[str, str] | None = None
    """Extra environment variables."""

    timeout: float | None = DEFAULT_TIMEOUT
    """Seconds to wait, or None for long running servers."""

    capture: bool = True
    """Collect stdout and stderr, or let them pass through to the terminal."""

    @property
    def string(self) -> str:
        """Render the command line for logs and errors."""
        return shlex.join(self.cmd)

    def __str__(self) -> str:
        if self.cwd:
            return f"({format_path(self.cwd)}) {self.string}"
        return self.string

    def _failure(self, returncode: int, out: bytes, err: bytes) -> CommandException:
        lines = [f"Command '{self}' failed with return code {returncode}"]
        lines.extend(
            stream.decode("utf-8", errors="replace") for stream in (out, err) if stream
        )
        message = "\n".join(lines)
        _LOGGER.debug(message)
        return self.exc(message)

    async def run(self, stdin: bytes | None = None) -> bytes:
        """Run the program to completion, returning stdout.

        The process is killed if the caller is cancelled, so a timed out or
        abandoned build does not leave it running.
        """
        _LOGGER.debug("Running command: %s", self)
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.cmd,
                stdin=subprocess.PIPE if stdin is not None else subprocess.DEVNULL,
                stdout=subprocess.PIPE if self.capture else None,
                stderr=subprocess.PIPE if self.capture else None,
                cwd=self.cwd,
                env={**os.environ, **(self.env or {})},
            )
        except OSError as err:
            raise self.exc(f"Unable to start '{self}': {err}") from err
        try:
            out, err = await proc.communicate(stdin)
        except asyncio.CancelledError:
            if proc.returncode is None:
                proc.kill()
                await proc.wait()
            raise
        if proc.returncode and proc.returncode not in (self.retcodes or []):
            raise self._failure(proc.returncode, out or b"", err or b"")
        return out or b""


async def _run_with_timeout(task: Task, stdin: bytes | None) -> bytes:
    try:
        return await asyncio.wait_for(task.run(stdin), task.timeout)
    except TimeoutError as err:
        if isinstance(task, Command):
            raise task.exc(
                f"Command '{task}' timed out after {task.timeout}s"
            ) from err
        raise


async def run_piped(cmds: Sequence[Task], stdin: bytes | None = None) -> str:
    """Run the steps in order, feeding each one's output to the next."""
    async with _SEM:
        out: bytes | None = stdin
        for cmd in cmds:
            out = await _run_with_timeout(cmd, out)
    return out.decode("utf-8") if out else ""


async def run(cmd: Task, stdin: bytes | None = None) -> str:
    """Run one step and return its stdout."""
    return await run_piped([cmd], stdin)
