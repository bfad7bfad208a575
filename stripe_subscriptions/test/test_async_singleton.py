import asyncio

import pytest

from stripe_subscriptions.async_singleton import AsyncSingleton


async def test_concurrent_first_calls_build_once():
    built = []

    async def factory():
        built.append(1)
        await asyncio.sleep(0.01)
        return object()

    singleton = AsyncSingleton(factory)
    values = await asyncio.gather(*(singleton.get() for _ in range(10)))

    assert len(built) == 1
    assert all(v is values[0] for v in values)
    assert singleton.is_initialized


async def test_failed_factory_is_retried():
    attempts = []

    async def factory():
        attempts.append(1)
        if len(attempts) == 1:
            raise ConnectionError("first attempt fails")
        return "client"

    singleton = AsyncSingleton(factory)

    with pytest.raises(ConnectionError):
        await singleton.get()
    assert not singleton.is_initialized

    assert await singleton.get() == "client"
    assert len(attempts) == 2


async def test_dispose_runs_disposer_once_and_blocks_get():
    disposed = []

    async def factory():
        return "client"

    async def disposer(value):
        disposed.append(value)

    singleton = AsyncSingleton(factory, disposer)
    await singleton.get()
    await singleton.dispose()
    await singleton.dispose()

    assert disposed == ["client"]
    with pytest.raises(RuntimeError, match="disposed"):
        await singleton.get()


async def test_dispose_before_build_skips_disposer():
    disposed = []

    async def factory():
        return "client"

    async def disposer(value):
        disposed.append(value)

    singleton = AsyncSingleton(factory, disposer)
    await singleton.dispose()

    assert disposed == []
