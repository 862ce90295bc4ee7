"""Unit tests for the pack lifecycle commands.

Tests install, enable, uninstall, update, update-all and disable against
an orchestrator backed by the in-memory pack service.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest
from conftest import FakePackService
from click.testing import Result
from typer.testing import CliRunner

from packctl.cli.main import app
from packctl.core.orchestrator import PackOrchestrator
from packctl.services.base import PackServiceError

runner = CliRunner()

Invoke = Callable[..., Result]


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Path of a config file that does not exist, so defaults apply."""
    return tmp_path / "config.toml"


@pytest.fixture
def fake_service(example_packs: dict[str, Any]) -> FakePackService:
    """Fake service listing the example packs."""
    return FakePackService(packs=example_packs)


@pytest.fixture
def invoke(fake_service: FakePackService, config_path: Path) -> Invoke:
    """Invoke the CLI with the orchestrator wired to the fake service."""

    def _invoke(*args: str) -> Result:
        with patch(
            "packctl.cli.types.build_orchestrator",
            return_value=PackOrchestrator(fake_service),
        ):
            return runner.invoke(app, ["--config", str(config_path), *args])

    return _invoke


class TestInstallCommand:
    """Tests for packctl install."""

    def test_install_help(self) -> None:
        """install shows help with the version option."""
        result = runner.invoke(app, ["install", "--help"])

        assert result.exit_code == 0
        assert "--version" in result.output

    def test_install_new_pack(self, invoke: Invoke, fake_service: FakePackService) -> None:
        """Installing an unknown pack runs one install task."""
        result = invoke("install", "comfyui-impact-pack")

        assert result.exit_code == 0
        assert fake_service.completed == [("install", "comfyui-impact-pack")]
        assert "Installing comfyui-impact-pack" in result.output
        assert "install comfyui-impact-pack" in result.output
        assert "1 task(s) completed." in result.output

    def test_install_other_version(self, invoke: Invoke) -> None:
        """Installing another version of an installed pack is a version change."""
        result = invoke("install", "pkg", "--version", "2.0.0")

        assert result.exit_code == 0
        assert "Changing version from 1.0.0 to 2.0.0: pkg" in result.output

    def test_install_empty_id(self, invoke: Invoke, fake_service: FakePackService) -> None:
        """An empty id is a no-op."""
        result = invoke("install", "")

        assert result.exit_code == 0
        assert fake_service.calls == []
        assert "Nothing to do." in result.output

    def test_install_failure(self, invoke: Invoke, fake_service: FakePackService) -> None:
        """A failed install exits with code 1 and shows the error."""
        fake_service.failures[("install", "broken")] = PackServiceError("network unreachable")

        result = invoke("install", "broken")

        assert result.exit_code == 1
        assert "network unreachable" in result.output
        assert "Installing broken" in result.output

    def test_listing_failure_is_a_warning(
        self, invoke: Invoke, fake_service: FakePackService
    ) -> None:
        """The action still runs when the initial listing fails."""
        fake_service.list_error = PackServiceError("listing broken")

        result = invoke("install", "x")

        assert result.exit_code == 0
        assert "Could not list installed packs" in result.output
        assert fake_service.completed == [("install", "x")]


class TestOtherPackCommands:
    """Tests for enable, uninstall, update, update-all and disable."""

    def test_enable(self, invoke: Invoke, fake_service: FakePackService) -> None:
        """enable goes through the install operation."""
        result = invoke("enable", "owner/tool", "--version", "abc123")

        assert result.exit_code == 0
        assert fake_service.completed == [("install", "owner/tool")]
        assert "Enabling owner/tool" in result.output

    def test_uninstall(self, invoke: Invoke, fake_service: FakePackService) -> None:
        """uninstall runs the uninstall operation."""
        result = invoke("uninstall", "pkg")

        assert result.exit_code == 0
        assert fake_service.completed == [("uninstall", "pkg")]
        assert "Uninstalling pkg" in result.output

    def test_update(self, invoke: Invoke, fake_service: FakePackService) -> None:
        """update runs the update operation."""
        result = invoke("update", "pkg")

        assert result.exit_code == 0
        assert fake_service.completed == [("update", "pkg")]
        assert "Updating pkg" in result.output

    def test_update_all(self, invoke: Invoke, fake_service: FakePackService) -> None:
        """update-all runs the bulk update operation."""
        result = invoke("update-all")

        assert result.exit_code == 0
        assert fake_service.completed == [("update_all", None)]
        assert "Updating all packs" in result.output

    def test_disable(self, invoke: Invoke, fake_service: FakePackService) -> None:
        """disable runs the disable operation."""
        result = invoke("disable", "pkg")

        assert result.exit_code == 0
        assert fake_service.completed == [("disable", "pkg")]
        assert "Disabling pkg" in result.output

    def test_disable_failure(self, invoke: Invoke, fake_service: FakePackService) -> None:
        """A failed disable exits with code 1."""
        fake_service.failures[("disable", "pkg")] = PackServiceError("locked")

        result = invoke("disable", "pkg")

        assert result.exit_code == 1
        assert "locked" in result.output


class TestGlobalOptions:
    """Tests for options on the main application."""

    def test_version(self) -> None:
        """--version prints the version and exits."""
        result = runner.invoke(app, ["--version"])

        assert result.exit_code == 0
        assert "packctl version" in result.output

    def test_help_lists_commands(self) -> None:
        """The main help lists every command."""
        result = runner.invoke(app, ["--help"])

        assert result.exit_code == 0
        for command in ("install", "enable", "uninstall", "update-all", "disable", "list"):
            assert command in result.output

    def test_invalid_config(self, tmp_path: Path) -> None:
        """An unreadable config file aborts with code 1."""
        config_file = tmp_path / "config.toml"
        config_file.write_text("[[[")

        result = runner.invoke(app, ["--config", str(config_file), "update-all"])

        assert result.exit_code == 1
        assert "Invalid TOML syntax" in result.output
