"""Unit tests for task models."""

import pytest

from packctl.models.task import Task, TaskLog


class TestTask:
    """Tests for Task dataclass."""

    @pytest.mark.asyncio
    async def test_default_on_complete(self) -> None:
        """on_complete defaults to an awaitable no-op."""

        async def work() -> None:
            pass

        task = Task(description="Installing pkg", work=work)

        assert await task.on_complete() is None


class TestTaskLog:
    """Tests for TaskLog dataclass."""

    def test_logs_follow_live_list(self) -> None:
        """The log entry references the list, not a copy."""
        lines: list[str] = []
        entry = TaskLog(task_name="Installing pkg", logs=lines)

        lines.append("Downloading")
        lines.append("Done")

        assert entry.logs == ["Downloading", "Done"]
        assert entry.logs is lines
