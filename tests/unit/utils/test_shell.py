"""Unit tests for shell execution utilities."""

import asyncio
import sys
from pathlib import Path

import pytest

from packctl.core.cache import CancelToken
from packctl.utils.shell import CommandResult, run_command

pytestmark = pytest.mark.skipif(sys.platform == "win32", reason="requires a POSIX shell")


class TestCommandResult:
    """Tests for CommandResult dataclass."""

    def test_success(self) -> None:
        """Zero exit code without cancellation is a success."""
        assert CommandResult(stdout="", stderr="", returncode=0).success is True

    def test_failure(self) -> None:
        """Non-zero exit codes are failures."""
        assert CommandResult(stdout="", stderr="", returncode=1).success is False

    def test_cancelled_is_not_success(self) -> None:
        """A cancelled command is never a success."""
        result = CommandResult(stdout="", stderr="", returncode=0, cancelled=True)
        assert result.success is False


class TestRunCommand:
    """Tests for run_command with real subprocesses."""

    @pytest.mark.asyncio
    async def test_collects_output(self) -> None:
        """stdout and stderr are collected separately."""
        result = await run_command(["sh", "-c", "echo out; echo err >&2"])

        assert result.stdout == "out"
        assert result.stderr == "err"
        assert result.returncode == 0
        assert result.success is True

    @pytest.mark.asyncio
    async def test_streams_lines(self) -> None:
        """Each output line is passed to the callbacks in order."""
        stdout_lines: list[str] = []
        stderr_lines: list[str] = []

        await run_command(
            ["sh", "-c", "echo one; echo two; echo warn >&2"],
            on_stdout=stdout_lines.append,
            on_stderr=stderr_lines.append,
        )

        assert stdout_lines == ["one", "two"]
        assert stderr_lines == ["warn"]

    @pytest.mark.asyncio
    async def test_nonzero_exit(self) -> None:
        """The exit code is reported."""
        result = await run_command(["sh", "-c", "exit 4"])

        assert result.returncode == 4
        assert result.success is False

    @pytest.mark.asyncio
    async def test_cwd(self, tmp_path: Path) -> None:
        """Commands run in the given working directory."""
        result = await run_command(["pwd"], cwd=str(tmp_path))

        assert result.stdout.endswith(tmp_path.name)

    @pytest.mark.asyncio
    async def test_missing_executable(self) -> None:
        """Unknown executables raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            await run_command(["definitely-not-a-command-packctl"])

    @pytest.mark.asyncio
    async def test_timeout(self) -> None:
        """Commands exceeding the timeout are terminated."""
        with pytest.raises(TimeoutError, match="timed out"):
            await run_command(["sh", "-c", "sleep 10"], timeout=0.2)

    @pytest.mark.asyncio
    async def test_cancel_terminates(self) -> None:
        """Signalling the token terminates the process."""
        token = CancelToken()
        started: list[str] = []

        run = asyncio.ensure_future(
            run_command(["sh", "-c", "echo ready; sleep 10"], on_stdout=started.append, token=token)
        )
        await asyncio.wait_for(_wait_for_output(started), timeout=5)
        token.cancel()

        result = await asyncio.wait_for(run, timeout=5)

        assert result.cancelled is True
        assert result.success is False
        assert result.stdout == "ready"

    @pytest.mark.asyncio
    async def test_unused_token(self) -> None:
        """A token that is never signalled does not affect the result."""
        result = await run_command(["sh", "-c", "echo done"], token=CancelToken())

        assert result.cancelled is False
        assert result.stdout == "done"

    @pytest.mark.asyncio
    async def test_line_longer_than_stream_limit(self) -> None:
        """A single line far over 64 KiB is returned whole."""
        result = await run_command(
            ["sh", "-c", "head -c 200000 /dev/zero | tr '\\0' a; echo; echo tail"]
        )

        lines = result.stdout.split("\n")
        assert result.success is True
        assert lines == ["a" * 200000, "tail"]

    @pytest.mark.asyncio
    async def test_carriage_return_progress(self) -> None:
        """Progress output separated by \\r is split into lines."""
        streamed: list[str] = []
        script = (
            "i=0; while [ $i -lt 5000 ]; do i=$((i+1)); printf '\\rDownloading %d/5000' $i; done;"
            " printf '\\r\\ndone\\n'"
        )

        result = await run_command(["sh", "-c", script], on_stdout=streamed.append)

        assert result.returncode == 0
        assert "Downloading 1/5000" in streamed
        assert "Downloading 5000/5000" in streamed
        assert streamed[-1] == "done"

    @pytest.mark.asyncio
    async def test_output_still_running_is_not_a_failure(self) -> None:
        """Large output followed by more work waits for the real exit code."""
        script = "head -c 100000 /dev/zero | tr '\\0' x; sleep 0.3; exit 0"

        result = await run_command(["sh", "-c", script])

        assert result.returncode == 0
        assert len(result.stdout) == 100000

    @pytest.mark.asyncio
    async def test_callback_error_terminates_process(self) -> None:
        """A failing line callback propagates and the process is stopped."""

        def explode(line: str) -> None:
            raise RuntimeError(f"bad line: {line}")

        with pytest.raises(RuntimeError, match="bad line: ready"):
            await asyncio.wait_for(
                run_command(["sh", "-c", "echo ready; sleep 10"], on_stdout=explode),
                timeout=5,
            )


async def _wait_for_output(lines: list[str]) -> None:
    while not lines:
        await asyncio.sleep(0.01)
