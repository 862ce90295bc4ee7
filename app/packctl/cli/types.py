"""Shared types and utilities for CLI commands.

This module provides common enums and helper functions used across
multiple CLI command modules to avoid code duplication.
"""

import asyncio
import logging
from collections.abc import Callable
from enum import Enum
from pathlib import Path

import typer

from packctl.cli.display import print_run_summary, print_task_logs
from packctl.core.config import ConfigError, ManagerConfig, load_config_or_default
from packctl.core.orchestrator import PackOrchestrator
from packctl.services.base import PackServiceError
from packctl.services.command import CommandPackService
from packctl.utils.formatting import print_error, print_warning

logger = logging.getLogger(__name__)

PackAction = Callable[[PackOrchestrator], "asyncio.Task[None]"]


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


def get_config(ctx: typer.Context) -> ManagerConfig:
    """Load the configuration selected by the global --config option.

    Args:
        ctx: Typer context carrying the global options.

    Returns:
        Loaded configuration, or defaults when no config file exists.

    Raises:
        typer.Exit: If the configuration file is invalid.
    """
    obj = ctx.obj or {}
    config_path: Path | None = obj.get("config_path")
    try:
        return load_config_or_default(config_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e


def build_orchestrator(config: ManagerConfig) -> PackOrchestrator:
    """Create an orchestrator backed by the configured manager commands.

    Args:
        config: Manager configuration.

    Returns:
        PackOrchestrator for one CLI session.
    """
    timeout = config.command_timeout_seconds
    service = CommandPackService(
        config.commands,
        timeout=float(timeout) if timeout is not None else None,
    )
    return PackOrchestrator(service)


async def run_action(orchestrator: PackOrchestrator, action: PackAction) -> int:
    """Run one pack action to completion and report its outcome.

    The installed view is loaded first so install requests can tell
    installing, enabling and version changes apart.

    Args:
        orchestrator: Session orchestrator.
        action: Callable submitting the request.

    Returns:
        Process exit code: 0 on success or no-op, 1 if the task failed.
    """
    try:
        await orchestrator.start()
    except PackServiceError as e:
        print_warning(f"Could not list installed packs: {e}")

    request = action(orchestrator)
    await orchestrator.wait_idle()
    await orchestrator.queue.close()

    print_task_logs(orchestrator.task_logs)

    error = None if request.cancelled() else request.exception()
    if error is not None:
        logger.debug("Pack action failed", exc_info=error)
        print_error(str(error))
        return 1

    print_run_summary(orchestrator.task_logs)
    return 0


def run_pack_action(ctx: typer.Context, action: PackAction) -> None:
    """Execute a pack action from a CLI command.

    Args:
        ctx: Typer context carrying the global options.
        action: Callable submitting the request to the orchestrator.

    Raises:
        typer.Exit: With code 1 if the action failed.
    """
    config = get_config(ctx)
    orchestrator = build_orchestrator(config)
    exit_code = asyncio.run(run_action(orchestrator, action))
    if exit_code:
        raise typer.Exit(code=exit_code)
