"""Single-flight request caching with cooperative cancellation.

Provides CachedRequest, which wraps an async operation so that identical
concurrent calls share one execution, superseded calls are cancelled and
completed results are memoized in a small LRU.
"""

from __future__ import annotations

import asyncio
import logging
from collections import OrderedDict
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

logger = logging.getLogger(__name__)

P = TypeVar("P")
R = TypeVar("R")


class OperationCancelled(Exception):
    """Raised by an operation that observed its cancel token.

    Cancellation is not a failure: callers receive None instead of an error.
    """


class CancelToken:
    """Cooperative cancellation handle passed to cancellable operations.

    The token only signals; the operation must observe it and abort its
    own downstream work.

    Example:
        >>> token = CancelToken()
        >>> token.cancelled
        False
        >>> token.cancel()
        >>> token.cancelled
        True
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        """Check if cancellation has been requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    async def wait(self) -> None:
        """Block until cancellation is requested."""
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        """Raise OperationCancelled if cancellation was requested."""
        if self.cancelled:
            raise OperationCancelled("Operation was cancelled")


Request = Callable[[P, CancelToken], Awaitable[R | None]]


def _identity(params: Any) -> Hashable:
    return params


@dataclass(slots=True)
class _PendingCall:
    token: CancelToken
    task: asyncio.Task[object]


class CachedRequest(Generic[P, R]):
    """Memoizing, single-flight wrapper around an async request function.

    At most ``max_size`` calls are in flight at once. When a new call
    would exceed the bound, the oldest pending call is cancelled and its
    slot vacated before the new call starts. With ``max_size=1`` every new
    call supersedes the previous pending one.

    Identical calls (same cache key) join the in-flight execution instead
    of starting a second one. Non-None results are kept in an LRU of
    ``max_size`` entries until :meth:`clear`.

    Attributes:
        name: Label used in log messages.
        max_size: Bound on pending calls and on cached results.
    """

    def __init__(
        self,
        request: Request[P, R],
        *,
        max_size: int = 1,
        cache_key: Callable[[P], Hashable] | None = None,
        name: str | None = None,
    ) -> None:
        """Initialize the cached request.

        Args:
            request: Async function called as ``request(params, token)``.
            max_size: Maximum number of pending calls and cached results.
            cache_key: Function deriving a hashable key from params.
                Defaults to using the params object itself.
            name: Label used in log messages.

        Raises:
            ValueError: If max_size is less than 1.
        """
        if max_size < 1:
            msg = f"max_size must be at least 1, got {max_size}"
            raise ValueError(msg)

        self._request = request
        self._cache_key: Callable[[P], Hashable] = cache_key or _identity
        self.max_size = max_size
        self.name = name or getattr(request, "__name__", "request")
        self._results: OrderedDict[Hashable, R] = OrderedDict()
        self._pending: OrderedDict[Hashable, _PendingCall] = OrderedDict()

    @property
    def pending_count(self) -> int:
        """Number of calls currently in flight."""
        return len(self._pending)

    async def __call__(self, params: P) -> R | None:
        return await self.call(params)

    async def call(self, params: P) -> R | None:
        """Invoke the wrapped request.

        Args:
            params: Parameters forwarded to the request function.

        Returns:
            The request result, the cached result for identical params,
            or None if the call was cancelled.

        Raises:
            Exception: Whatever the request function raised, other than
                OperationCancelled.
        """
        key = self._cache_key(params)

        if key in self._results:
            self._results.move_to_end(key)
            logger.debug("%s: cache hit for %r", self.name, key)
            return self._results[key]

        pending = self._pending.get(key)
        if pending is not None:
            logger.debug("%s: joining in-flight call for %r", self.name, key)
            return await self._settle(pending)

        while len(self._pending) >= self.max_size:
            old_key, oldest = self._pending.popitem(last=False)
            logger.debug("%s: cancelling superseded call for %r", self.name, old_key)
            oldest.token.cancel()

        return await self._execute(params, key)

    def cancel(self) -> None:
        """Cancel every in-flight call without starting a new one."""
        while self._pending:
            key, pending = self._pending.popitem(last=False)
            logger.debug("%s: cancelling call for %r", self.name, key)
            pending.token.cancel()

    def clear(self) -> None:
        """Drop all cached results. In-flight calls are not affected."""
        self._results.clear()

    async def _execute(self, params: P, key: Hashable) -> R | None:
        token = CancelToken()
        task: asyncio.Task[object] = asyncio.ensure_future(self._request(params, token))
        pending = _PendingCall(token=token, task=task)
        self._pending[key] = pending

        try:
            result = await self._settle(pending)
        finally:
            # A superseded call must not evict the call that replaced it
            if self._pending.get(key) is pending:
                del self._pending[key]

        if result is not None:
            self._store(key, result)
        return result

    async def _settle(self, pending: _PendingCall) -> R | None:
        try:
            result = await asyncio.shield(pending.task)
        except OperationCancelled:
            logger.debug("%s: call cancelled", self.name)
            return None

        if pending.token.cancelled:
            return None
        return result  # type: ignore[return-value]

    def _store(self, key: Hashable, result: R) -> None:
        self._results[key] = result
        self._results.move_to_end(key)
        while len(self._results) > self.max_size:
            self._results.popitem(last=False)
