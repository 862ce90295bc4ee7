"""Queue task and task log models."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field


async def _noop() -> None:
    return None


@dataclass(slots=True)
class Task:
    """A unit of queued work.

    Owned by the queue from enqueue until it settles.

    Attributes:
        description: Human-readable description shown as queue status.
        work: Coroutine function performing the operation.
        on_complete: Coroutine function awaited after ``work`` settles,
            whether it succeeded, failed or was cancelled.
    """

    description: str
    work: Callable[[], Awaitable[None]]
    on_complete: Callable[[], Awaitable[None]] = field(default=_noop)


@dataclass(frozen=True, slots=True)
class TaskLog:
    """Captured log output of one task.

    ``logs`` is the live line list of the task's log stream; it keeps
    growing while the task runs and is left untouched afterwards.

    Attributes:
        task_name: Description of the task the lines belong to.
        logs: Ordered log lines.
    """

    task_name: str
    logs: list[str]
