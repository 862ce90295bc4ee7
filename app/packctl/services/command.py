"""Command-line pack manager service.

Performs pack lifecycle operations by running the manager commands
configured in config.toml.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from packctl.core.cache import CancelToken, OperationCancelled
from packctl.core.config import ID_PLACEHOLDER, VERSION_PLACEHOLDER, CommandTemplates
from packctl.core.logs import SERVICE_LOGGER_NAME
from packctl.models.pack import InstallPackParams, PackInfo, UpdateAllPacksParams
from packctl.services.base import PackService, PackServiceError
from packctl.utils.shell import CommandResult, run_command

logger = logging.getLogger(SERVICE_LOGGER_NAME)


def render_command(
    template: list[str],
    pack_id: str | None = None,
    version: str | None = None,
) -> list[str]:
    """Substitute placeholders into a command template.

    Arguments containing ``{version}`` are dropped when no version is given.

    Args:
        template: Argument list with optional placeholders.
        pack_id: Value for ``{id}``.
        version: Value for ``{version}``.

    Returns:
        Argument list ready for execution.
    """
    args: list[str] = []
    for arg in template:
        if VERSION_PLACEHOLDER in arg:
            if not version:
                continue
            arg = arg.replace(VERSION_PLACEHOLDER, version)
        if ID_PLACEHOLDER in arg:
            arg = arg.replace(ID_PLACEHOLDER, pack_id or "")
        args.append(arg)
    return args


class CommandPackService(PackService):
    """Pack service backed by external manager commands.

    Output lines of every command are logged to the ``packctl.service``
    logger so that per-task log capture records them. A signalled cancel
    token terminates the running command.

    Attributes:
        commands: Command templates per operation.
        timeout: Maximum runtime of a command in seconds, or None.
    """

    def __init__(self, commands: CommandTemplates, timeout: float | None = None) -> None:
        """Initialize the service.

        Args:
            commands: Command templates per operation.
            timeout: Maximum runtime of a command in seconds, or None.
        """
        self.commands = commands
        self.timeout = timeout

    async def list_installed_packs(self) -> Mapping[str, Any] | None:
        args = self._render("list_installed")
        result = await self._run("list_installed", args, token=None, stream_stdout=False)

        output = result.stdout.strip()
        if not output:
            return None

        try:
            payload = json.loads(output)
        except json.JSONDecodeError as e:
            msg = f"Manager listing is not valid JSON: {e}"
            raise PackServiceError(msg) from e

        if payload is None:
            return None
        if not isinstance(payload, dict):
            msg = f"Manager listing must be a JSON object, got {type(payload).__name__}"
            raise PackServiceError(msg)
        return payload

    async def install_pack(
        self, params: InstallPackParams, token: CancelToken | None = None
    ) -> None:
        args = self._render("install", params.id, params.selected_version)
        await self._run("install", args, token=token)

    async def uninstall_pack(self, params: PackInfo, token: CancelToken | None = None) -> None:
        await self._run("uninstall", self._render("uninstall", params.id), token=token)

    async def update_pack(self, params: PackInfo, token: CancelToken | None = None) -> None:
        await self._run("update", self._render("update", params.id), token=token)

    async def update_all_packs(
        self, params: UpdateAllPacksParams, token: CancelToken | None = None
    ) -> None:
        await self._run("update_all", self._render("update_all"), token=token)

    async def disable_pack(self, params: PackInfo, token: CancelToken | None = None) -> None:
        await self._run("disable", self._render("disable", params.id), token=token)

    def _render(
        self,
        operation: str,
        pack_id: str | None = None,
        version: str | None = None,
    ) -> list[str]:
        template: list[str] = getattr(self.commands, operation)
        if not template:
            msg = (
                f"No command configured for '{operation}' "
                f"(set commands.{operation} in config.toml)"
            )
            raise PackServiceError(msg)
        return render_command(template, pack_id, version)

    async def _run(
        self,
        operation: str,
        args: list[str],
        *,
        token: CancelToken | None,
        stream_stdout: bool = True,
    ) -> CommandResult:
        """Run a manager command and translate its outcome.

        Raises:
            OperationCancelled: If the token was signalled.
            PackServiceError: If the command is missing, times out or fails.
        """
        if token is not None:
            token.raise_if_cancelled()

        logger.info("$ %s", " ".join(args))

        try:
            result = await run_command(
                args,
                on_stdout=logger.info if stream_stdout else None,
                on_stderr=logger.warning,
                token=token,
                timeout=self.timeout,
            )
        except FileNotFoundError as e:
            msg = f"Manager command not found: {args[0]}"
            raise PackServiceError(msg) from e
        except TimeoutError as e:
            raise PackServiceError(str(e)) from e

        if result.cancelled:
            logger.info("%s aborted", operation)
            raise OperationCancelled(f"{operation} was cancelled")

        if not result.success:
            error_msg = result.stderr.strip() or f"{operation} command failed"
            raise PackServiceError(
                error_msg,
                returncode=result.returncode,
                stderr=result.stderr,
            )

        return result
