import asyncio

import pytest

from freightcompare.services.quotes.cache import CompareCache


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


def test_value_is_computed_once_and_reused():
    cache = CompareCache(ttl_seconds=60)
    calls = []

    async def compute():
        calls.append(1)
        return "quotes"

    async def run():
        first = await cache.get_or_compute("key", compute)
        second = await cache.get_or_compute("key", compute)
        return first, second

    assert asyncio.run(run()) == (("quotes", False), ("quotes", True))
    assert len(calls) == 1


def test_concurrent_callers_share_the_in_flight_task():
    cache = CompareCache(ttl_seconds=60)
    calls = []

    async def compute():
        calls.append(1)
        await asyncio.sleep(0.01)
        return len(calls)

    async def run():
        return await asyncio.gather(*(cache.get_or_compute("key", compute) for _ in range(4)))

    results = asyncio.run(run())

    assert len(calls) == 1
    assert [value for value, _ in results] == [1, 1, 1, 1]
    assert [reused for _, reused in results] == [False, True, True, True]


def test_cancelled_caller_does_not_cancel_shared_work():
    cache = CompareCache(ttl_seconds=60)
    release = None

    async def compute():
        await release.wait()
        return "done"

    async def run():
        nonlocal release
        release = asyncio.Event()
        abandoned = asyncio.ensure_future(cache.get_or_compute("key", compute))
        await asyncio.sleep(0)
        waiting = asyncio.ensure_future(cache.get_or_compute("key", compute))
        await asyncio.sleep(0)
        abandoned.cancel()
        release.set()
        return await waiting

    assert asyncio.run(run()) == ("done", True)


def test_failures_are_not_cached():
    cache = CompareCache(ttl_seconds=60)
    attempts = []

    async def compute():
        attempts.append(1)
        if len(attempts) == 1:
            raise RuntimeError("boom")
        return "ok"

    async def run():
        with pytest.raises(RuntimeError):
            await cache.get_or_compute("key", compute)
        await asyncio.sleep(0)
        return await cache.get_or_compute("key", compute)

    assert asyncio.run(run()) == ("ok", False)
    assert len(attempts) == 2


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = CompareCache(ttl_seconds=1800, clock=clock)
    calls = []

    async def compute():
        calls.append(1)
        return len(calls)

    async def run():
        await cache.get_or_compute("key", compute)
        clock.now = 1799
        cached = await cache.get_or_compute("key", compute)
        clock.now = 1800
        fresh = await cache.get_or_compute("key", compute)
        return cached, fresh

    cached, fresh = asyncio.run(run())

    assert cached == (1, True)
    assert fresh == (2, False)


def test_evict_expired_and_clear():
    clock = FakeClock()
    cache = CompareCache(ttl_seconds=10, clock=clock)

    async def compute():
        return "value"

    async def run():
        await cache.get_or_compute("a", compute)
        await cache.get_or_compute("b", compute)

    asyncio.run(run())
    assert len(cache) == 2 and "a" in cache

    clock.now = 5
    assert cache.evict_expired() == 0
    clock.now = 10
    assert cache.evict_expired() == 2
    assert len(cache) == 0

    asyncio.run(run())
    cache.clear()
    assert len(cache) == 0
