"""Running external commands.

This is the only module that starts processes. Two modes are offered:

- :func:`execute` runs a command to completion and captures its combined
  stdout and stderr.
- :func:`execute_interactive` lets the command talk to the terminal while
  keeping a copy of everything it writes.

Neither mode enforces a timeout; a command that never exits blocks the
caller until it is interrupted from outside.
"""

from __future__ import annotations

import io
import os
import selectors
import subprocess
import sys
from dataclasses import dataclass
from typing import BinaryIO, Dict, IO, List, Optional, Tuple

import structlog

from .errors import ProcessExecutionError

logger = structlog.get_logger(__name__)

_CHUNK_SIZE = 32 * 1024


@dataclass(frozen=True)
class CommandResult:
    """Output of a finished command."""

    command: Tuple[str, ...]
    data: bytes
    stderr: bytes = b""

    @property
    def output(self) -> str:
        """Decoded and trimmed form of ``data``."""
        return _decode(self.data)


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace").strip()


def execute(*args: str) -> CommandResult:
    """Run a command and capture its combined output.

    Raises:
        ProcessExecutionError: If the command exits non-zero or cannot start
    """
    command = tuple(args)
    logger.debug("running command", command=command[:2])
    try:
        completed = subprocess.run(
            command,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            check=False,
        )
    except OSError as e:
        raise ProcessExecutionError(command, None, str(e))

    if completed.returncode != 0:
        raise ProcessExecutionError(command, completed.returncode, _decode(completed.stdout))

    logger.debug("command finished", command=command[:2], output_bytes=len(completed.stdout))
    return CommandResult(command=command, data=completed.stdout)


def execute_interactive(
    *args: str,
    show_stdout: bool = True,
    show_stderr: bool = True,
    stdout_sink: Optional[BinaryIO] = None,
    stderr_sink: Optional[BinaryIO] = None,
) -> CommandResult:
    """Run a command attached to the terminal, keeping a copy of its output.

    Stdin is inherited so the command can prompt the user. Each shown stream
    is written to its terminal sink and to an in-memory buffer as the bytes
    arrive. Hidden streams are discarded.

    Args:
        *args: Command and arguments
        show_stdout: Mirror stdout to the terminal
        show_stderr: Mirror stderr to the terminal
        stdout_sink: Binary sink for stdout (defaults to the process stdout)
        stderr_sink: Binary sink for stderr (defaults to the process stderr)

    Returns:
        CommandResult holding the buffered stdout and stderr

    Raises:
        ProcessExecutionError: If the command cannot run or exits non-zero
    """
    command = tuple(args)
    stdout_buffer = io.BytesIO()
    stderr_buffer = io.BytesIO()

    try:
        proc = subprocess.Popen(
            command,
            stdout=subprocess.PIPE if show_stdout else subprocess.DEVNULL,
            stderr=subprocess.PIPE if show_stderr else subprocess.DEVNULL,
        )
    except OSError as e:
        raise ProcessExecutionError(command, None, str(e))

    routes: Dict[IO[bytes], List[BinaryIO]] = {}
    if proc.stdout is not None:
        routes[proc.stdout] = [stdout_sink or sys.stdout.buffer, stdout_buffer]
    if proc.stderr is not None:
        routes[proc.stderr] = [stderr_sink or sys.stderr.buffer, stderr_buffer]

    try:
        _copy_streams(routes)
        returncode = proc.wait()
    except OSError as e:
        proc.kill()
        proc.wait()
        raise ProcessExecutionError(command, None, str(e))
    finally:
        for pipe, sinks in routes.items():
            for sink in sinks:
                sink.flush()
            pipe.close()

    stdout_data = stdout_buffer.getvalue()
    stderr_data = stderr_buffer.getvalue()
    logger.debug(
        "interactive command finished",
        command=command[:2],
        returncode=returncode,
        stdout_bytes=len(stdout_data),
        stderr_bytes=len(stderr_data),
    )

    if returncode != 0:
        output = _decode(stderr_data) or _decode(stdout_data)
        raise ProcessExecutionError(command, returncode, output)

    return CommandResult(command=command, data=stdout_data, stderr=stderr_data)


def _copy_streams(routes: Dict[IO[bytes], List[BinaryIO]]) -> None:
    """Copy each pipe to all of its sinks until every pipe reaches EOF."""
    with selectors.DefaultSelector() as selector:
        for pipe in routes:
            selector.register(pipe, selectors.EVENT_READ)

        while selector.get_map():
            for key, _ in selector.select():
                pipe = key.fileobj
                chunk = os.read(key.fd, _CHUNK_SIZE)
                if not chunk:
                    selector.unregister(pipe)
                    continue
                for sink in routes[pipe]:
                    sink.write(chunk)
                    sink.flush()
