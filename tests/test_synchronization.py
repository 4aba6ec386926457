import threading
import time
import typing as tp
from concurrent.futures import ThreadPoolExecutor

import anyio
import httpx
import pytest

from simplecache import (
    CACHE_HEADER,
    AsyncCacheMiddleware,
    AsyncInMemoryStore,
    CacheMiddleware,
    CacheOptions,
    InMemoryStore,
)
from simplecache._synchronization import AsyncKeyedLock, KeyedLock

URL = "https://example.com/a"


@pytest.mark.anyio
async def test_async_keyed_lock_is_released():
    locks = AsyncKeyedLock()

    async with locks.hold("a"):
        assert len(locks) == 1
        async with locks.hold("b"):
            assert len(locks) == 2

    assert len(locks) == 0


def test_keyed_lock_is_released():
    locks = KeyedLock()

    with locks.hold("a"):
        assert len(locks) == 1

    with pytest.raises(RuntimeError):
        with locks.hold("a"):
            raise RuntimeError()

    assert len(locks) == 0


async def _fetch_concurrently(middleware: AsyncCacheMiddleware, count: int) -> tp.Tuple[int, tp.List[str]]:
    calls = 0
    statuses: tp.List[str] = []

    async def handler(request: httpx.Request, options: tp.Any) -> httpx.Response:
        nonlocal calls
        calls += 1
        await anyio.sleep(0.01)
        return httpx.Response(200, content=b"ho")

    cached = middleware(handler)

    async def fetch() -> None:
        response = await cached(httpx.Request("GET", URL), {})
        statuses.append(response.headers[CACHE_HEADER])

    async with anyio.create_task_group() as tg:
        for _ in range(count):
            tg.start_soon(fetch)

    return calls, sorted(statuses)


@pytest.mark.anyio
async def test_concurrent_misses_race_by_default():
    calls, statuses = await _fetch_concurrently(AsyncCacheMiddleware(AsyncInMemoryStore()), 5)

    assert calls == 5
    assert statuses == ["CACHE_SET"] * 5


@pytest.mark.anyio
async def test_single_flight_sends_one_request():
    middleware = AsyncCacheMiddleware(AsyncInMemoryStore(), options=CacheOptions(single_flight=True))

    calls, statuses = await _fetch_concurrently(middleware, 5)

    assert calls == 1
    assert statuses == ["CACHE_HIT"] * 4 + ["CACHE_SET"]


def test_single_flight_with_threads():
    calls = 0
    guard = threading.Lock()

    def handler(request: httpx.Request, options: tp.Any) -> httpx.Response:
        nonlocal calls
        with guard:
            calls += 1
        time.sleep(0.05)
        return httpx.Response(200, content=b"ho")

    cached = CacheMiddleware(InMemoryStore(), options=CacheOptions(single_flight=True))(handler)

    with ThreadPoolExecutor(max_workers=5) as pool:
        responses = list(pool.map(lambda _: cached(httpx.Request("GET", URL), {}), range(5)))

    assert calls == 1
    assert sorted(response.headers[CACHE_HEADER] for response in responses) == ["CACHE_HIT"] * 4 + ["CACHE_SET"]
    assert all(response.content == b"ho" for response in responses)
