"""Shell execution utilities.

Provides async subprocess execution with line streaming and cooperative
cancellation.
"""

from __future__ import annotations

import asyncio
import contextlib
import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from packctl.core.cache import CancelToken

# Grace period between SIGTERM and SIGKILL when aborting a command
_TERMINATE_GRACE_SECONDS: float = 5.0

_READ_CHUNK_SIZE = 64 * 1024

_LINE_BREAK = re.compile(rb"\r\n|\r|\n")


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of a shell command execution.

    Attributes:
        stdout: Standard output from the command.
        stderr: Standard error from the command.
        returncode: Exit code of the command.
        cancelled: True if the command was aborted through its cancel token.
    """

    stdout: str
    stderr: str
    returncode: int
    cancelled: bool = False

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.returncode == 0 and not self.cancelled


async def _read_lines(
    stream: asyncio.StreamReader | None,
    sink: list[str],
    on_line: Callable[[str], None] | None,
) -> None:
    if stream is None:
        return

    def emit(raw: bytes) -> None:
        line = raw.decode("utf-8", errors="replace")
        sink.append(line)
        if on_line is not None:
            on_line(line)

    # Split by hand: readline() fails once a line exceeds the stream limit
    pending = b""
    while chunk := await stream.read(_READ_CHUNK_SIZE):
        data = pending + chunk
        carry = b""
        if data.endswith(b"\r"):
            # May be the first half of \r\n
            data, carry = data[:-1], b"\r"
        *lines, pending = _LINE_BREAK.split(data)
        pending += carry
        for raw in lines:
            emit(raw)
    if pending:
        emit(pending.removesuffix(b"\r"))


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    with contextlib.suppress(ProcessLookupError):
        process.terminate()
    try:
        await asyncio.wait_for(process.wait(), timeout=_TERMINATE_GRACE_SECONDS)
    except TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()


async def run_command(
    args: list[str],
    *,
    on_stdout: Callable[[str], None] | None = None,
    on_stderr: Callable[[str], None] | None = None,
    token: CancelToken | None = None,
    timeout: float | None = None,
    cwd: str | None = None,
) -> CommandResult:
    """Execute a command, streaming its output line by line.

    Args:
        args: Command and arguments to execute.
        on_stdout: Called with each stdout line as it arrives.
        on_stderr: Called with each stderr line as it arrives.
        token: Cancel token. When signalled, the process is terminated and
            the result is flagged as cancelled.
        timeout: Maximum time in seconds to wait for the command.
        cwd: Working directory for the command. If None, uses current directory.

    Returns:
        CommandResult with collected stdout, stderr, and returncode.

    Raises:
        TimeoutError: If command exceeds timeout.
        FileNotFoundError: If command executable is not found.
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        cwd=cwd,
    )

    stdout_lines: list[str] = []
    stderr_lines: list[str] = []
    readers = asyncio.gather(
        _read_lines(process.stdout, stdout_lines, on_stdout),
        _read_lines(process.stderr, stderr_lines, on_stderr),
        process.wait(),
    )

    waiters: set[asyncio.Future[object]] = {readers}
    cancel_waiter: asyncio.Task[None] | None = None
    if token is not None:
        cancel_waiter = asyncio.ensure_future(token.wait())
        waiters.add(cancel_waiter)

    cancelled = False
    try:
        done, _ = await asyncio.wait(
            waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
        )
        if readers in done:
            await readers
        else:
            cancelled = cancel_waiter is not None and cancel_waiter in done
            await _terminate(process)
            with contextlib.suppress(Exception):
                await readers
            if not cancelled:
                msg = f"Command timed out after {timeout}s: {' '.join(args)}"
                raise TimeoutError(msg)
    except Exception:
        await _terminate(process)
        raise
    finally:
        if cancel_waiter is not None:
            cancel_waiter.cancel()

    return CommandResult(
        stdout="\n".join(stdout_lines),
        stderr="\n".join(stderr_lines),
        returncode=process.returncode if process.returncode is not None else -1,
        cancelled=cancelled,
    )
