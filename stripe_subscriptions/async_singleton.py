"""Lazily built, shared handle guarded for concurrent first use."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")


class AsyncSingleton(Generic[T]):
    """Holds one value produced by an async factory.

    The factory runs at most once per successful build. Concurrent first
    callers wait on the same lock and receive the same instance. A factory
    failure caches nothing, so the next get() tries again.
    """

    def __init__(
        self,
        factory: Callable[[], Awaitable[T]],
        disposer: Optional[Callable[[T], Awaitable[None]]] = None,
    ):
        self._factory = factory
        self._disposer = disposer
        self._value: Optional[T] = None
        self._initialized = False
        self._disposed = False
        self._lock = asyncio.Lock()

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def get(self) -> T:
        if self._disposed:
            raise RuntimeError("AsyncSingleton has been disposed")
        if self._initialized:
            return self._value  # type: ignore[return-value]

        async with self._lock:
            # Re-check after acquiring: another waiter may have built it
            if self._disposed:
                raise RuntimeError("AsyncSingleton has been disposed")
            if not self._initialized:
                self._value = await self._factory()
                self._initialized = True
        return self._value  # type: ignore[return-value]

    async def dispose(self) -> None:
        if self._disposed:
            return
        async with self._lock:
            self._disposed = True
            value, self._value = self._value, None
            was_initialized, self._initialized = self._initialized, False
            if was_initialized and self._disposer is not None:
                await self._disposer(value)  # type: ignore[arg-type]
