"""Abstract base class for pack manager services.

This module defines the PackService interface that performs the actual
lifecycle operations the orchestrator schedules.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from packctl.core.cache import CancelToken
    from packctl.models.pack import (
        InstallPackParams,
        PackInfo,
        PackRecord,
        UpdateAllPacksParams,
    )


class PackServiceError(Exception):
    """Raised when the pack manager rejects or fails an operation.

    Attributes:
        returncode: Exit code of the manager command, if one was run.
        stderr: Error output of the manager, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        returncode: int | None = None,
        stderr: str | None = None,
    ) -> None:
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class PackService(ABC):
    """Abstract base class for pack manager backends.

    Every mutating operation receives an optional cancel token. A service
    must observe it, abort its own downstream work and raise
    :class:`~packctl.core.cache.OperationCancelled` when it is signalled.
    Services do not retry.

    Example:
        >>> service = CommandPackService(config.commands)
        >>> packs = await service.list_installed_packs()
        >>> await service.install_pack(InstallPackParams(id="comfyui-impact-pack"))
    """

    @abstractmethod
    async def list_installed_packs(self) -> Mapping[str, PackRecord | Mapping[str, Any]] | None:
        """List installed packs.

        Returns:
            Mapping of lookup key to record (or raw record dictionary),
            or None when the manager returned no data.

        Raises:
            PackServiceError: If the listing fails.
        """

    @abstractmethod
    async def install_pack(
        self, params: InstallPackParams, token: CancelToken | None = None
    ) -> None:
        """Install, enable or change the version of a pack.

        Raises:
            PackServiceError: If the manager fails the operation.
            OperationCancelled: If the token was signalled.
        """

    @abstractmethod
    async def uninstall_pack(self, params: PackInfo, token: CancelToken | None = None) -> None:
        """Uninstall a pack.

        Raises:
            PackServiceError: If the manager fails the operation.
            OperationCancelled: If the token was signalled.
        """

    @abstractmethod
    async def update_pack(self, params: PackInfo, token: CancelToken | None = None) -> None:
        """Update a single pack to its latest version.

        Raises:
            PackServiceError: If the manager fails the operation.
            OperationCancelled: If the token was signalled.
        """

    @abstractmethod
    async def update_all_packs(
        self, params: UpdateAllPacksParams, token: CancelToken | None = None
    ) -> None:
        """Update every installed pack.

        Raises:
            PackServiceError: If the manager fails the operation.
            OperationCancelled: If the token was signalled.
        """

    @abstractmethod
    async def disable_pack(self, params: PackInfo, token: CancelToken | None = None) -> None:
        """Disable a pack without uninstalling it.

        Raises:
            PackServiceError: If the manager fails the operation.
            OperationCancelled: If the token was signalled.
        """
