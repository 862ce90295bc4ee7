"""Manager configuration and settings.

This module provides the configuration model and I/O functions for the
pack manager backend: which commands perform each lifecycle operation,
how long they may run, and the default log level.

Configuration is stored in ~/.config/packctl/config.toml
"""

import logging
import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Literal

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from packctl.core.paths import get_config_path

logger = logging.getLogger(__name__)

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

# Placeholders substituted into command templates
ID_PLACEHOLDER = "{id}"
VERSION_PLACEHOLDER = "{version}"


class CommandTemplates(BaseModel):
    """Argument vectors of the manager commands for each operation.

    Each template is a list of arguments. ``{id}`` is replaced with the
    pack id and ``{version}`` with the selected version; an argument
    containing ``{version}`` is dropped when no version is selected.
    An empty template means the operation is not configured.

    The ``list_installed`` command must print a JSON object mapping lookup
    keys to records with optional ``cnr_id``, ``aux_id``, ``ver`` and
    ``enabled`` fields.
    """

    model_config = ConfigDict(extra="forbid")

    list_installed: list[str] = Field(default_factory=list)
    install: list[str] = Field(default_factory=list)
    uninstall: list[str] = Field(default_factory=list)
    update: list[str] = Field(default_factory=list)
    update_all: list[str] = Field(default_factory=list)
    disable: list[str] = Field(default_factory=list)

    @field_validator("*")
    @classmethod
    def validate_no_empty_args(cls, v: list[str]) -> list[str]:
        """Reject templates containing empty arguments."""
        if any(not arg for arg in v):
            msg = "command arguments cannot be empty strings"
            raise ValueError(msg)
        return v


class ManagerConfig(BaseModel):
    """Configuration for the pack manager backend.

    Attributes:
        commands: Command templates per lifecycle operation.
        command_timeout_seconds: Maximum runtime of a manager command.
            None means no limit.
        log_level: Default log level when neither --verbose nor --quiet is given.
    """

    model_config = ConfigDict(extra="forbid")

    commands: CommandTemplates = Field(
        default_factory=CommandTemplates,
        description="Manager command templates",
    )
    command_timeout_seconds: Annotated[
        int | None,
        Field(ge=1, description="Timeout in seconds for manager commands"),
    ] = None
    log_level: Annotated[
        LogLevel,
        Field(description="Default log level"),
    ] = "WARNING"


class ConfigError(Exception):
    """Base exception for configuration errors."""


class ConfigNotFoundError(ConfigError):
    """Raised when the config file is not found."""


class ConfigParseError(ConfigError):
    """Raised when the config file cannot be parsed."""


def load_config(path: Path | None = None) -> ManagerConfig:
    """Load manager configuration from a TOML file.

    Args:
        path: Path to the config file. If None, uses default config path.

    Returns:
        Validated ManagerConfig object.

    Raises:
        ConfigNotFoundError: If the config file doesn't exist.
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        raise ConfigNotFoundError(f"Config not found: {config_path}")

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigParseError(f"Invalid TOML syntax: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config: {e}") from e

    try:
        return ManagerConfig.model_validate(data)
    except (ValueError, ValidationError) as e:
        raise ConfigError(f"Invalid config content: {e}") from e


def load_config_or_default(path: Path | None = None) -> ManagerConfig:
    """Load configuration, falling back to defaults when no file exists.

    Raises:
        ConfigParseError: If the TOML syntax is invalid.
        ConfigError: If the content doesn't match the schema.
    """
    try:
        return load_config(path)
    except ConfigNotFoundError:
        logger.debug("No config file found, using defaults")
        return get_default_config()


def save_config(config: ManagerConfig, path: Path | None = None) -> Path:
    """Save manager configuration to a TOML file.

    The file is written atomically by first writing to a temporary file
    and then using os.replace() for atomic rename.

    Args:
        config: The ManagerConfig object to save.
        path: Path to save the config. If None, uses default config path.

    Returns:
        Path where the config was saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    data = config.model_dump(exclude_none=True)

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(data, f)
        # os.replace() is atomic on POSIX
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path


def get_default_config() -> ManagerConfig:
    """Create a default ManagerConfig.

    Returns:
        ManagerConfig with default settings.
    """
    return ManagerConfig()
