"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

import pytest

from packctl.core.cache import CancelToken, OperationCancelled
from packctl.core.logs import SERVICE_LOGGER_NAME
from packctl.core.orchestrator import PackOrchestrator
from packctl.models.pack import InstallPackParams, PackInfo, UpdateAllPacksParams
from packctl.services.base import PackService

service_logger = logging.getLogger(SERVICE_LOGGER_NAME)


async def wait_for_gate(gate: asyncio.Event, token: CancelToken | None) -> None:
    """Block until the gate opens or the token is cancelled."""
    if token is None:
        await gate.wait()
        return

    gate_waiter = asyncio.ensure_future(gate.wait())
    token_waiter = asyncio.ensure_future(token.wait())
    _, pending = await asyncio.wait(
        {gate_waiter, token_waiter}, return_when=asyncio.FIRST_COMPLETED
    )
    for waiter in pending:
        waiter.cancel()


async def wait_until(predicate: Callable[[], bool], max_ticks: int = 1000) -> None:
    """Yield to the event loop until the predicate holds."""
    for _ in range(max_ticks):
        if predicate():
            return
        await asyncio.sleep(0)
    msg = "condition not reached"
    raise AssertionError(msg)


class FakePackService(PackService):
    """In-memory pack service recording every call.

    Operations can be held open with :meth:`hold` and made to fail with
    :attr:`failures`. A held operation observes its cancel token.
    """

    def __init__(self, packs: dict[str, Any] | None = None) -> None:
        self.packs = packs
        self.list_calls = 0
        self.list_gate: asyncio.Event | None = None
        self.list_error: Exception | None = None
        self.calls: list[tuple[str, str | None]] = []
        self.completed: list[tuple[str, str | None]] = []
        self.cancelled: list[tuple[str, str | None]] = []
        self.failures: dict[tuple[str, str | None], Exception] = {}
        self.gates: dict[tuple[str, str | None], asyncio.Event] = {}

    def hold(self, operation: str, pack_id: str | None = None) -> asyncio.Event:
        """Keep an operation running until the returned event is set."""
        gate = asyncio.Event()
        self.gates[(operation, pack_id)] = gate
        return gate

    async def list_installed_packs(self) -> dict[str, Any] | None:
        self.list_calls += 1
        if self.list_gate is not None:
            await self.list_gate.wait()
        if self.list_error is not None:
            raise self.list_error
        return self.packs

    async def install_pack(
        self, params: InstallPackParams, token: CancelToken | None = None
    ) -> None:
        await self._perform("install", params.id, token)

    async def uninstall_pack(self, params: PackInfo, token: CancelToken | None = None) -> None:
        await self._perform("uninstall", params.id, token)

    async def update_pack(self, params: PackInfo, token: CancelToken | None = None) -> None:
        await self._perform("update", params.id, token)

    async def update_all_packs(
        self, params: UpdateAllPacksParams, token: CancelToken | None = None
    ) -> None:
        await self._perform("update_all", None, token)

    async def disable_pack(self, params: PackInfo, token: CancelToken | None = None) -> None:
        await self._perform("disable", params.id, token)

    async def _perform(
        self, operation: str, pack_id: str | None, token: CancelToken | None
    ) -> None:
        key = (operation, pack_id)
        self.calls.append(key)
        service_logger.info("%s %s", operation, pack_id or "all")

        gate = self.gates.get(key)
        if gate is not None:
            await wait_for_gate(gate, token)

        if token is not None and token.cancelled:
            self.cancelled.append(key)
            raise OperationCancelled(f"{operation} cancelled")

        failure = self.failures.get(key)
        if failure is not None:
            raise failure

        self.completed.append(key)


@pytest.fixture
def example_packs() -> dict[str, Any]:
    """Installed listing with a disabled old version and an enabled default."""
    return {
        "pkg@1_0_2": {"cnr_id": "pkg", "ver": "1.0.2", "enabled": False},
        "pkg": {"cnr_id": "pkg", "ver": "1.0.0", "enabled": True},
        "owner/tool": {"aux_id": "owner/tool", "ver": "abc123", "enabled": False},
    }


@pytest.fixture
def service(example_packs: dict[str, Any]) -> FakePackService:
    """Fake service listing the example packs."""
    return FakePackService(packs=example_packs)


@pytest.fixture
def orchestrator(service: FakePackService) -> PackOrchestrator:
    """Orchestrator backed by the fake service."""
    return PackOrchestrator(service)
