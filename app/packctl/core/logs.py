"""Per-task log capture.

Attaches a log stream to each queued task so the output produced while
the task runs is kept in the task log history.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Protocol, runtime_checkable

from packctl.models.task import Task, TaskLog

logger = logging.getLogger(__name__)

# Logger the service layer writes manager output to
SERVICE_LOGGER_NAME = "packctl.service"

DEFAULT_LOG_FORMAT = "%(message)s"


@runtime_checkable
class LogStream(Protocol):
    """A source of log lines that can be switched on and off."""

    @property
    def lines(self) -> list[str]:
        """Live, ordered list of lines received while listening."""
        ...

    async def start_listening(self) -> None:
        """Begin appending incoming lines to :attr:`lines`."""
        ...

    async def stop_listening(self) -> None:
        """Stop appending lines. Already received lines are kept."""
        ...


class _ListHandler(logging.Handler):
    """Logging handler appending formatted records to a list."""

    def __init__(self, lines: list[str]) -> None:
        super().__init__(level=logging.DEBUG)
        self._lines = lines

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._lines.append(self.format(record))
        except Exception:  # noqa: BLE001
            self.handleError(record)


class LoggerStream:
    """Log stream fed by a standard library logger.

    While listening, every record emitted on ``logger_name`` (or its
    children) is formatted and appended to :attr:`lines`.
    """

    def __init__(
        self,
        logger_name: str = SERVICE_LOGGER_NAME,
        fmt: str = DEFAULT_LOG_FORMAT,
    ) -> None:
        self._logger = logging.getLogger(logger_name)
        self._lines: list[str] = []
        self._handler = _ListHandler(self._lines)
        self._handler.setFormatter(logging.Formatter(fmt))
        self._listening = False
        self._saved_level = logging.NOTSET

    @property
    def lines(self) -> list[str]:
        return self._lines

    @property
    def is_listening(self) -> bool:
        """Check if the handler is currently attached."""
        return self._listening

    async def start_listening(self) -> None:
        if self._listening:
            return
        self._saved_level = self._logger.level
        # Records below the logger's effective level would never reach us
        if self._logger.getEffectiveLevel() > logging.INFO:
            self._logger.setLevel(logging.INFO)
        self._logger.addHandler(self._handler)
        self._listening = True

    async def stop_listening(self) -> None:
        if not self._listening:
            return
        self._logger.removeHandler(self._handler)
        self._logger.setLevel(self._saved_level)
        self._listening = False


LogStreamFactory = Callable[[], LogStream]


def with_logs(
    work: Callable[[], Awaitable[None]],
    task_name: str,
    *,
    history: list[TaskLog],
    on_settled: Callable[[], None],
    stream_factory: LogStreamFactory = LoggerStream,
) -> Task:
    """Wrap work in a task that captures its log output.

    On dispatch a :class:`TaskLog` referencing the stream's live line list
    is appended to ``history`` and listening starts before the work runs.
    On completion listening stops exactly once, then ``on_settled`` runs.

    Args:
        work: Coroutine function performing the operation.
        task_name: Description of the task, also used as log entry name.
        history: Task log history to append to.
        on_settled: Callback run after listening stops (marks state stale).
        stream_factory: Creates the log stream for this task.

    Returns:
        Task ready to be enqueued.
    """
    stream = stream_factory()
    stopped = False

    async def logged_work() -> None:
        history.append(TaskLog(task_name=task_name, logs=stream.lines))
        await stream.start_listening()
        logger.debug("Started log capture for '%s'", task_name)
        await work()

    async def on_complete() -> None:
        nonlocal stopped
        if not stopped:
            stopped = True
            try:
                await stream.stop_listening()
            finally:
                logger.debug("Stopped log capture for '%s'", task_name)
                on_settled()

    return Task(description=task_name, work=logged_work, on_complete=on_complete)
