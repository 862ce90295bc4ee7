"""Unit tests for XDG path management.

Tests for the paths module that provides XDG-compliant directory paths.
"""

import os
from pathlib import Path
from unittest.mock import patch

import pytest

from packctl.core.paths import (
    APP_NAME,
    ensure_config_dir,
    get_config_dir,
    get_config_path,
    get_user_theme_path,
)


@pytest.fixture
def no_xdg_config(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove XDG_CONFIG_HOME so defaults apply."""
    monkeypatch.delenv("XDG_CONFIG_HOME", raising=False)


class TestGetConfigDir:
    """Tests for get_config_dir function."""

    @pytest.mark.usefixtures("no_xdg_config")
    def test_default_config_dir(self) -> None:
        """get_config_dir returns default path when XDG_CONFIG_HOME not set."""
        assert get_config_dir() == Path.home() / ".config" / APP_NAME

    def test_respects_xdg_config_home(self, tmp_path: Path) -> None:
        """get_config_dir respects XDG_CONFIG_HOME environment variable."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            result = get_config_dir()

        assert result == tmp_path / APP_NAME

    def test_empty_xdg_config_home_ignored(self) -> None:
        """An empty XDG_CONFIG_HOME falls back to the home directory."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": ""}):
            result = get_config_dir()

        assert result == Path.home() / ".config" / APP_NAME


class TestConveniencePaths:
    """Tests for file paths inside the config directory."""

    @pytest.mark.usefixtures("no_xdg_config")
    def test_get_config_path(self) -> None:
        """get_config_path returns config.toml in config dir."""
        assert get_config_path() == Path.home() / ".config" / APP_NAME / "config.toml"

    def test_get_user_theme_path_respects_xdg(self, tmp_path: Path) -> None:
        """get_user_theme_path returns theme.toml under XDG_CONFIG_HOME."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}):
            result = get_user_theme_path()

        assert result == tmp_path / APP_NAME / "theme.toml"


class TestEnsureConfigDir:
    """Tests for directory creation."""

    def test_creates_directory(self, tmp_path: Path) -> None:
        """ensure_config_dir creates the config directory."""
        config_dir = tmp_path / "config" / APP_NAME

        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path / "config")}):
            result = ensure_config_dir()

        assert result == config_dir
        assert config_dir.is_dir()

    def test_idempotent(self, tmp_path: Path) -> None:
        """ensure_config_dir can be called multiple times."""
        with patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path / "config")}):
            result1 = ensure_config_dir()
            result2 = ensure_config_dir()

        assert result1 == result2
        assert result1.exists()

    def test_permission_error(self, tmp_path: Path) -> None:
        """ensure_config_dir wraps permission errors in RuntimeError."""
        with (
            patch.dict(os.environ, {"XDG_CONFIG_HOME": str(tmp_path)}),
            patch.object(Path, "mkdir", side_effect=PermissionError("denied")),
            pytest.raises(RuntimeError, match="Permission denied"),
        ):
            ensure_config_dir()
