"""Pack lifecycle orchestration.

Provides PackOrchestrator, which turns lifecycle requests (install,
uninstall, update, update all, disable) into queued, log-captured tasks,
resolves races between overlapping requests, and keeps the installed
pack state in sync with the manager after every change.
"""

from __future__ import annotations

import asyncio
import functools
import logging
from collections.abc import Awaitable, Callable, Coroutine
from enum import Enum
from typing import Any, TypeVar

from packctl.core.cache import CachedRequest, CancelToken, OperationCancelled
from packctl.core.identity import ReconciledState, reconcile
from packctl.core.logs import LoggerStream, LogStreamFactory, with_logs
from packctl.core.queue import TaskQueue
from packctl.models.pack import (
    InstalledPacks,
    InstallPackParams,
    PackInfo,
    UpdateAllPacksParams,
    parse_installed_packs,
)
from packctl.models.task import TaskLog
from packctl.services.base import PackService

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RefreshState(str, Enum):
    """Freshness of the installed packs view.

    Attributes:
        FRESH: View matches the last successful listing.
        STALE: A change happened since the last listing.
        REFRESHING: A listing is in flight.
    """

    FRESH = "fresh"
    STALE = "stale"
    REFRESHING = "refreshing"


class PackOrchestrator:
    """Single-flight task orchestrator for pack lifecycle operations.

    Construct one per session and pass it to whoever needs it. Every
    public operation returns immediately with an :class:`asyncio.Task`
    that settles together with the queued work; the task resolves to None
    when the request was a no-op or got cancelled, and raises if the
    manager failed the operation.

    Race rules:
        - A new install supersedes a pending install.
        - Uninstall cancels any pending install.
        - Update cancels a pending update-all, never the other way round.

    Example:
        >>> orchestrator = PackOrchestrator(service)
        >>> await orchestrator.start()
        >>> orchestrator.install_pack(InstallPackParams(id="comfyui-impact-pack"))
        >>> await orchestrator.wait_idle()
        >>> orchestrator.is_pack_enabled("comfyui-impact-pack")
        True
    """

    def __init__(
        self,
        service: PackService,
        queue: TaskQueue | None = None,
        *,
        stream_factory: LogStreamFactory = LoggerStream,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            service: Backend performing the actual operations.
            queue: Task queue to submit to. A new one is created if None.
            stream_factory: Creates the log stream captured per task.
        """
        self._service = service
        self.queue = queue or TaskQueue()
        self._stream_factory = stream_factory

        self.installed_packs: InstalledPacks = {}
        self.task_logs: list[TaskLog] = []
        self._state = ReconciledState()
        self._refresh_state = RefreshState.STALE
        self._refresh_task: asyncio.Task[None] | None = None
        self._operations: set[asyncio.Task[Any]] = set()
        self._active_calls = 0
        # Error of the latest manager call, reset when the next one starts
        self.last_error: Exception | None = None

        self._install = CachedRequest(self._request_install, max_size=1, name="install_pack")
        self._update = CachedRequest(self._request_update, max_size=1, name="update_pack")
        self._update_all = CachedRequest(
            self._request_update_all, max_size=1, name="update_all_packs"
        )

        # Enabling a disabled pack goes through the install endpoint
        self.enable_pack = self.install_pack

    # -------------------------------------------------------------------------
    # Installed packs state
    # -------------------------------------------------------------------------

    @property
    def installed_pack_ids(self) -> frozenset[str]:
        return self._state.installed

    @property
    def enabled_pack_ids(self) -> frozenset[str]:
        return self._state.enabled

    @property
    def disabled_pack_ids(self) -> frozenset[str]:
        return self._state.disabled

    @property
    def refresh_state(self) -> RefreshState:
        return self._refresh_state

    @property
    def is_busy(self) -> bool:
        """Check if a manager call (listing or operation) is in progress."""
        return self._active_calls > 0

    def is_pack_installed(self, pack_id: str | None) -> bool:
        """Check if any variant of the pack is installed."""
        return bool(pack_id) and pack_id in self._state.installed

    def is_pack_enabled(self, pack_id: str | None) -> bool:
        """Check if the pack is installed and has an enabled variant."""
        return self.is_pack_installed(pack_id) and pack_id in self._state.enabled

    def set_installed_packs(self, packs: InstalledPacks) -> None:
        """Replace the installed packs view and re-derive the id sets."""
        self.installed_packs = dict(packs)
        self._on_packs_changed()

    def _on_packs_changed(self) -> None:
        self._state = reconcile(self.installed_packs.values())
        logger.debug(
            "Reconciled %d pack(s): %d enabled, %d disabled",
            len(self._state.installed),
            len(self._state.enabled),
            len(self._state.disabled),
        )

    # -------------------------------------------------------------------------
    # Refresh state machine
    # -------------------------------------------------------------------------

    def mark_stale(self) -> None:
        """Flag the view as outdated and schedule a refresh.

        While a refresh is in flight this is a no-op: the running refresh
        clears staleness when it completes.
        """
        if self._refresh_state is RefreshState.REFRESHING:
            logger.debug("Refresh already in flight, not scheduling another")
            return

        self._refresh_state = RefreshState.STALE
        self._schedule_refresh(background=True)

    def _schedule_refresh(self, *, background: bool = False) -> asyncio.Task[None]:
        self._refresh_state = RefreshState.REFRESHING
        task = asyncio.get_running_loop().create_task(
            self._fetch_installed(), name="packctl-refresh"
        )
        task.add_done_callback(functools.partial(self._on_refresh_done, background=background))
        self._refresh_task = task
        return task

    def _on_refresh_done(self, task: asyncio.Task[None], *, background: bool) -> None:
        if task.cancelled():
            self._refresh_state = RefreshState.STALE
            return
        error = task.exception()
        # Direct callers receive the error themselves
        if error is not None and background:
            logger.warning("Failed to refresh installed packs: %s", error)

    async def refresh_installed_list(self) -> None:
        """Reload the installed packs view from the service.

        Joins the in-flight refresh if there is one.

        Raises:
            Exception: Whatever the service raised while listing.
        """
        task = self._refresh_task
        if task is None or task.done():
            task = self._schedule_refresh()
        await asyncio.shield(task)

    async def start(self) -> None:
        """Perform the initial refresh. The view starts out stale.

        Raises:
            Exception: Whatever the service raised while listing.
        """
        if self._refresh_state is not RefreshState.FRESH:
            await self.refresh_installed_list()

    async def _fetch_installed(self) -> None:
        try:
            payload = await self._call_service(self._service.list_installed_packs)
        except Exception:
            self._refresh_state = RefreshState.STALE
            raise

        # No data means no packs
        self.set_installed_packs(parse_installed_packs(payload))
        self._refresh_state = RefreshState.FRESH
        logger.debug("Installed packs refreshed (%d entries)", len(self.installed_packs))

    # -------------------------------------------------------------------------
    # Queue state
    # -------------------------------------------------------------------------

    @property
    def status_message(self) -> str:
        return self.queue.status_message

    @property
    def all_tasks_done(self) -> bool:
        return self.queue.all_done

    @property
    def uncompleted_count(self) -> int:
        return self.queue.pending_count

    def clear_logs(self) -> None:
        """Discard all captured task logs."""
        self.task_logs.clear()

    async def wait_idle(self) -> None:
        """Wait until all requests, queued tasks and refreshes have settled."""
        while True:
            if self._operations:
                await asyncio.gather(*self._operations, return_exceptions=True)
            await self.queue.join()
            if self._refresh_task is not None and not self._refresh_task.done():
                # Failures reach the direct caller or _on_refresh_done
                await asyncio.wait({self._refresh_task})
            if not self._operations and self.queue.all_done and (
                self._refresh_task is None or self._refresh_task.done()
            ):
                return

    # -------------------------------------------------------------------------
    # Pack actions
    # -------------------------------------------------------------------------

    def install_pack(self, params: InstallPackParams) -> asyncio.Task[None]:
        """Install, enable or change the version of a pack.

        A request with an empty id is a no-op. A newer install request
        supersedes a pending one.
        """
        return self._spawn(self._install.call(params), f"install:{params.id}")

    def uninstall_pack(
        self, params: PackInfo, token: CancelToken | None = None
    ) -> asyncio.Task[None]:
        """Uninstall a pack, cancelling any pending install first."""

        async def uninstall() -> None:
            self._install.clear()
            self._install.cancel()
            await self._enqueue(
                f"Uninstalling {params.id}",
                lambda: self._service.uninstall_pack(params, token),
                token,
            )

        return self._spawn(uninstall(), f"uninstall:{params.id}")

    def update_pack(self, params: PackInfo) -> asyncio.Task[None]:
        """Update a pack, cancelling a pending update of all packs."""
        return self._spawn(self._update.call(params), f"update:{params.id}")

    def update_all_packs(
        self, params: UpdateAllPacksParams | None = None
    ) -> asyncio.Task[None]:
        """Update every installed pack. Pending single updates are kept."""
        return self._spawn(
            self._update_all.call(params or UpdateAllPacksParams()), "update_all"
        )

    def disable_pack(
        self, params: PackInfo, token: CancelToken | None = None
    ) -> asyncio.Task[None]:
        """Disable a pack."""

        async def disable() -> None:
            await self._enqueue(
                f"Disabling {params.id}",
                lambda: self._service.disable_pack(params, token),
                token,
            )

        return self._spawn(disable(), f"disable:{params.id}")

    def describe_install(self, params: InstallPackParams) -> str:
        """Build the task description for an install request."""
        action = "Installing"
        if params.id in self._state.installed:
            installed = self.installed_packs.get(params.id)
            if installed is not None and installed.ver != params.selected_version:
                action = f"Changing version from {installed.ver} to {params.selected_version}:"
            else:
                action = "Enabling"
        return f"{action} {params.id}"

    async def _request_install(self, params: InstallPackParams, token: CancelToken) -> None:
        if not params.id or token.cancelled:
            return
        await self._enqueue(
            self.describe_install(params),
            lambda: self._service.install_pack(params, token),
            token,
        )

    async def _request_update(self, params: PackInfo, token: CancelToken) -> None:
        self._update_all.cancel()
        if token.cancelled:
            return
        await self._enqueue(
            f"Updating {params.id}",
            lambda: self._service.update_pack(params, token),
            token,
        )

    async def _request_update_all(
        self, params: UpdateAllPacksParams, token: CancelToken
    ) -> None:
        if token.cancelled:
            return
        await self._enqueue(
            "Updating all packs",
            lambda: self._service.update_all_packs(params, token),
            token,
        )

    async def _enqueue(
        self,
        description: str,
        call: Callable[[], Awaitable[None]],
        token: CancelToken | None,
    ) -> None:
        async def work() -> None:
            # Superseded before dispatch: skip the manager call
            if token is not None:
                token.raise_if_cancelled()
            await self._call_service(call)

        task = with_logs(
            work,
            description,
            history=self.task_logs,
            on_settled=self.mark_stale,
            stream_factory=self._stream_factory,
        )
        logger.info("Queued '%s'", description)
        await self.queue.enqueue(task)

    async def _call_service(self, call: Callable[[], Awaitable[T]]) -> T:
        self._active_calls += 1
        self.last_error = None
        try:
            return await call()
        except OperationCancelled:
            raise
        except Exception as e:
            self.last_error = e
            raise
        finally:
            self._active_calls -= 1

    def _spawn(self, coro: Coroutine[Any, Any, None], name: str) -> asyncio.Task[None]:
        task = asyncio.get_running_loop().create_task(coro, name=f"packctl-{name}")
        self._operations.add(task)
        task.add_done_callback(self._on_operation_done)
        return task

    def _on_operation_done(self, task: asyncio.Task[Any]) -> None:
        self._operations.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.debug("Operation %s failed: %s", task.get_name(), error)
