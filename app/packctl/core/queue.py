"""FIFO task queue for pack manager operations.

Runs queued tasks one at a time in submission order on the running event
loop and exposes aggregate status for display.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque

from packctl.core.cache import OperationCancelled
from packctl.models.task import Task

logger = logging.getLogger(__name__)

IDLE_STATUS = "Idle"


class TaskQueue:
    """Serial executor for :class:`Task` objects.

    A worker coroutine is started lazily on the first enqueue. Each task's
    ``work`` is awaited, then its ``on_complete`` is awaited whatever the
    outcome. A failing task never stops the queue.
    """

    def __init__(self) -> None:
        self._tasks: deque[tuple[Task, asyncio.Future[None]]] = deque()
        self._current: Task | None = None
        self._worker: asyncio.Task[None] | None = None
        self._wakeup = asyncio.Event()
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    @property
    def pending_count(self) -> int:
        """Number of uncompleted tasks, including the running one."""
        return len(self._tasks) + (1 if self._current is not None else 0)

    @property
    def all_done(self) -> bool:
        """Check if every submitted task has settled."""
        return self.pending_count == 0

    @property
    def status_message(self) -> str:
        """Human-readable status of the queue."""
        if self._current is None:
            return IDLE_STATUS
        return f"Running: {self._current.description}"

    def enqueue(self, task: Task) -> asyncio.Future[None]:
        """Submit a task for execution.

        Args:
            task: Task to run after all previously submitted tasks.

        Returns:
            Future resolved when the task settles. It carries the task's
            exception if the work failed, and None if it was cancelled.

        Raises:
            RuntimeError: If the queue has been closed.
        """
        if self._closed:
            msg = "Cannot enqueue on a closed task queue"
            raise RuntimeError(msg)

        loop = asyncio.get_running_loop()
        future: asyncio.Future[None] = loop.create_future()
        self._tasks.append((task, future))
        self._idle.clear()
        self._wakeup.set()

        if self._worker is None or self._worker.done():
            self._worker = loop.create_task(self._run(), name="packctl-task-queue")

        logger.debug("Enqueued '%s' (%d pending)", task.description, self.pending_count)
        return future

    async def join(self) -> None:
        """Wait until every submitted task has settled."""
        await self._idle.wait()

    async def close(self) -> None:
        """Drain the queue and stop the worker."""
        self._closed = True
        await self.join()
        if self._worker is not None:
            self._worker.cancel()
            try:
                await self._worker
            except asyncio.CancelledError:
                pass
            self._worker = None

    async def _run(self) -> None:
        while True:
            if not self._tasks:
                self._wakeup.clear()
                await self._wakeup.wait()
                continue

            task, future = self._tasks.popleft()
            self._current = task
            try:
                await self._execute(task, future)
            finally:
                self._current = None
                if not self._tasks:
                    self._idle.set()

    async def _execute(self, task: Task, future: asyncio.Future[None]) -> None:
        logger.info("Starting task '%s'", task.description)
        error: BaseException | None = None
        try:
            await task.work()
        except OperationCancelled:
            logger.info("Task '%s' was cancelled", task.description)
        except Exception as e:
            logger.error("Task '%s' failed: %s", task.description, e)
            error = e
        else:
            logger.info("Task '%s' completed", task.description)
        finally:
            try:
                await task.on_complete()
            except Exception as e:
                logger.warning(
                    "Completion callback of '%s' failed: %s", task.description, e
                )
                error = error or e

        if not future.done():
            if error is not None:
                future.set_exception(error)
            else:
                future.set_result(None)
