import typing as tp

import anysqlite
import httpx
import pytest
from inline_snapshot import snapshot

from simplecache import (
    CACHE_HEADER,
    AsyncCacheMiddleware,
    AsyncInMemoryStore,
    AsyncSQLiteStore,
    CacheOptions,
    dumps_response,
    loads_response,
)


class RecordingHandler:
    def __init__(self, *results: tp.Union[httpx.Response, Exception]) -> None:
        self.results = list(results)
        self.calls: tp.List[tp.Tuple[httpx.Request, tp.Any]] = []

    async def __call__(self, request: httpx.Request, options: tp.Any) -> httpx.Response:
        self.calls.append((request, options))
        result = self.results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


class SpyStore(AsyncInMemoryStore):
    def __init__(self) -> None:
        super().__init__()
        self.reads = 0
        self.writes = 0

    async def get(self, key: str, default: tp.Any = None) -> tp.Any:
        self.reads += 1
        return await super().get(key, default)

    async def set(self, key: str, value: str) -> bool:
        self.writes += 1
        return await super().set(key, value)


class RejectingStore(AsyncInMemoryStore):
    async def set(self, key: str, value: str) -> bool:
        return False


@pytest.mark.anyio
async def test_miss_stores_response():
    store = AsyncInMemoryStore()
    handler = RecordingHandler(httpx.Response(200, content=b"ho"))
    cached = AsyncCacheMiddleware(store)(handler)

    response = await cached(httpx.Request("GET", "http://x/a"), {})

    assert len(handler.calls) == 1
    assert response.status_code == 200
    assert response.content == b"ho"
    assert response.headers[CACHE_HEADER] == "CACHE_SET"
    assert await store.has("http://x/a")


@pytest.mark.anyio
async def test_second_request_is_served_from_store():
    store = AsyncInMemoryStore()
    handler = RecordingHandler(httpx.Response(200, content=b"ho"))
    cached = AsyncCacheMiddleware(store)(handler)

    await cached(httpx.Request("GET", "http://x/a"), {})
    response = await cached(httpx.Request("GET", "http://x/a"), {})

    assert len(handler.calls) == 1
    assert response.status_code == 200
    assert response.content == b"ho"
    assert response.headers[CACHE_HEADER] == "CACHE_HIT"


@pytest.mark.anyio
async def test_hit_reproduces_stored_response():
    stored = httpx.Response(
        201,
        headers=[("Content-Type", "text/plain"), ("X-Custom", "1"), (CACHE_HEADER, "CACHE_HIT")],
        content=b"hihoho",
        extensions={"http_version": b"HTTP/1.0", "reason_phrase": b"Made It"},
    )
    store = AsyncInMemoryStore()
    await store.set("http://www.something.com/", dumps_response(stored))
    handler = RecordingHandler()

    response = await AsyncCacheMiddleware(store)(handler)(httpx.Request("GET", "http://www.something.com/"), {})

    assert handler.calls == []
    assert response.content == b"hihoho"
    assert response.status_code == stored.status_code
    assert response.headers.raw == stored.headers.raw
    assert response.http_version == "HTTP/1.0"
    assert response.reason_phrase == "Made It"


@pytest.mark.anyio
async def test_invalid_method_never_touches_store():
    store = SpyStore()
    await store.set("http://y/b", dumps_response(httpx.Response(200, content=b"old")))
    store.writes = 0
    handler = RecordingHandler(httpx.Response(200, content=b"new"))

    response = await AsyncCacheMiddleware(store)(handler)(httpx.Request("POST", "http://y/b"), {})

    assert len(handler.calls) == 1
    assert response.content == b"new"
    assert response.headers[CACHE_HEADER] == "INVALID_METHOD"
    assert store.reads == 0
    assert store.writes == 0
    assert loads_response(await store.get("http://y/b")).content == b"old"


@pytest.mark.anyio
async def test_invalid_method_failure_is_not_tagged():
    error = httpx.ConnectError("boom")
    handler = RecordingHandler(error)
    cached = AsyncCacheMiddleware(AsyncInMemoryStore())(handler)

    with pytest.raises(httpx.ConnectError) as exc_info:
        await cached(httpx.Request("DELETE", "http://y/b"), {})

    assert exc_info.value is error


@pytest.mark.anyio
async def test_handler_failure_propagates_unchanged():
    store = AsyncInMemoryStore()
    error = httpx.ReadTimeout("too slow")
    handler = RecordingHandler(error)
    cached = AsyncCacheMiddleware(store)(handler)

    with pytest.raises(httpx.ReadTimeout) as exc_info:
        await cached(httpx.Request("GET", "http://x/a"), {})

    assert exc_info.value is error
    assert not await store.has("http://x/a")


@pytest.mark.anyio
async def test_status_400_is_stored():
    store = AsyncInMemoryStore()
    handler = RecordingHandler(httpx.Response(400))
    response = await AsyncCacheMiddleware(store)(handler)(httpx.Request("GET", "http://x/bad"), {})

    assert response.headers[CACHE_HEADER] == "CACHE_SET"
    assert await store.has("http://x/bad")


@pytest.mark.anyio
async def test_status_401_is_not_stored():
    store = AsyncInMemoryStore()
    handler = RecordingHandler(httpx.Response(401), httpx.Response(401))
    cached = AsyncCacheMiddleware(store)(handler)

    first = await cached(httpx.Request("GET", "http://x/private"), {})
    second = await cached(httpx.Request("GET", "http://x/private"), {})

    assert first.headers[CACHE_HEADER] == "CACHE_SET"
    assert second.headers[CACHE_HEADER] == "CACHE_SET"
    assert len(handler.calls) == 2
    assert not await store.has("http://x/private")


@pytest.mark.anyio
async def test_redirect_is_stored():
    store = AsyncInMemoryStore()
    handler = RecordingHandler(httpx.Response(301, headers=[("Location", "https://example.com")]))
    cached = AsyncCacheMiddleware(store)(handler)

    await cached(httpx.Request("GET", "https://www.example.com/"), {})
    response = await cached(httpx.Request("GET", "https://www.example.com/"), {})

    assert response.status_code == 301
    assert response.headers["Location"] == "https://example.com"
    assert response.headers[CACHE_HEADER] == "CACHE_HIT"


@pytest.mark.anyio
async def test_malformed_payload_is_a_miss():
    store = AsyncInMemoryStore()
    await store.set("http://x/a", "definitely not a response")
    handler = RecordingHandler(httpx.Response(200, content=b"ho"))

    response = await AsyncCacheMiddleware(store)(handler)(httpx.Request("GET", "http://x/a"), {})

    assert len(handler.calls) == 1
    assert response.headers[CACHE_HEADER] == "CACHE_SET"
    assert loads_response(await store.get("http://x/a")).content == b"ho"


@pytest.mark.anyio
async def test_keys_are_not_normalized():
    store = AsyncInMemoryStore()
    handler = RecordingHandler(
        httpx.Response(200, content=b"1"),
        httpx.Response(200, content=b"2"),
        httpx.Response(200, content=b"3"),
    )
    cached = AsyncCacheMiddleware(store)(handler)

    await cached(httpx.Request("GET", "http://x/a"), {})
    await cached(httpx.Request("GET", "http://x/a?page=2"), {})
    await cached(httpx.Request("GET", "http://x/A"), {})

    assert len(handler.calls) == 3


@pytest.mark.anyio
async def test_options_are_passed_through():
    options = {"timeout": {"connect": 1.0}}
    handler = RecordingHandler(httpx.Response(200), httpx.Response(200))
    cached = AsyncCacheMiddleware(AsyncInMemoryStore())(handler)

    await cached(httpx.Request("GET", "http://x/a"), options)
    await cached(httpx.Request("PUT", "http://x/a"), options)

    assert [call_options for _, call_options in handler.calls] == [options, options]
    assert all(call_options is options for _, call_options in handler.calls)


@pytest.mark.anyio
async def test_allow_list_is_case_insensitive():
    store = AsyncInMemoryStore()
    handler = RecordingHandler(httpx.Response(200, content=b"ho"))
    middleware = AsyncCacheMiddleware(store, methods=["get", "head"])
    cached = middleware(handler)

    await cached(httpx.Request("HEAD", "http://x/a"), {})
    response = await cached(httpx.Request("HEAD", "http://x/a"), {})

    assert middleware.options.methods == frozenset({"GET", "HEAD"})
    assert response.headers[CACHE_HEADER] == "CACHE_HIT"


@pytest.mark.anyio
async def test_get_is_rejected_when_not_allowed():
    handler = RecordingHandler(httpx.Response(200))
    cached = AsyncCacheMiddleware(AsyncInMemoryStore(), methods=["POST"])(handler)

    response = await cached(httpx.Request("GET", "http://x/a"), {})

    assert response.headers[CACHE_HEADER] == "INVALID_METHOD"


@pytest.mark.anyio
async def test_custom_header_name():
    handler = RecordingHandler(httpx.Response(200))
    options = CacheOptions(header_name="X-Cache")
    cached = AsyncCacheMiddleware(AsyncInMemoryStore(), options=options)(handler)

    response = await cached(httpx.Request("GET", "http://x/a"), {})

    assert response.headers["X-Cache"] == "CACHE_SET"
    assert CACHE_HEADER not in response.headers


@pytest.mark.anyio
async def test_streamed_body_stays_readable():
    async def chunks() -> tp.AsyncIterator[bytes]:
        yield b"hello "
        yield b"world"

    store = AsyncInMemoryStore()
    handler = RecordingHandler(httpx.Response(200, content=chunks()))
    cached = AsyncCacheMiddleware(store)(handler)

    first = await cached(httpx.Request("GET", "http://x/stream"), {})
    second = await cached(httpx.Request("GET", "http://x/stream"), {})

    assert await first.aread() == b"hello world"
    assert await second.aread() == b"hello world"
    assert "Transfer-Encoding" not in second.headers
    assert second.headers["Content-Length"] == "11"


@pytest.mark.anyio
async def test_rejected_write_still_tags_set(caplog: pytest.LogCaptureFixture):
    handler = RecordingHandler(httpx.Response(200, content=b"ho"))
    cached = AsyncCacheMiddleware(RejectingStore())(handler)

    with caplog.at_level("WARNING", logger="simplecache"):
        response = await cached(httpx.Request("GET", "http://x/a"), {})

    assert response.headers[CACHE_HEADER] == "CACHE_SET"
    assert caplog.messages == ["Could not store response for http://x/a"]


@pytest.mark.anyio
async def test_read_only_sqlite_store_still_tags_set():
    connection = await anysqlite.connect(":memory:")
    store = AsyncSQLiteStore(connection=connection)
    assert not await store.has("http://x/a")
    await connection.execute("PRAGMA query_only = ON")
    handler = RecordingHandler(httpx.Response(200, content=b"ho"), httpx.Response(200, content=b"ho"))
    cached = AsyncCacheMiddleware(store)(handler)

    first = await cached(httpx.Request("GET", "http://x/a"), {})
    second = await cached(httpx.Request("GET", "http://x/a"), {})

    assert first.headers[CACHE_HEADER] == "CACHE_SET"
    assert second.headers[CACHE_HEADER] == "CACHE_SET"
    assert second.content == b"ho"
    assert len(handler.calls) == 2
    await store.aclose()


@pytest.mark.anyio
async def test_logging(caplog: pytest.LogCaptureFixture):
    handler = RecordingHandler(httpx.Response(200, content=b"ho"), httpx.Response(200))
    cached = AsyncCacheMiddleware(AsyncInMemoryStore())(handler)

    with caplog.at_level("DEBUG", logger="simplecache"):
        await cached(httpx.Request("GET", "https://example.com/a"), {})
        await cached(httpx.Request("GET", "https://example.com/a"), {})
        await cached(httpx.Request("POST", "https://example.com/a"), {})

    assert caplog.messages == snapshot(
        [
            "Cache miss for https://example.com/a",
            "Stored response for https://example.com/a",
            "Cache hit for https://example.com/a",
            "Method POST is not cacheable, skipping the cache",
        ]
    )


def test_methods_and_options_are_exclusive():
    with pytest.raises(TypeError):
        AsyncCacheMiddleware(AsyncInMemoryStore(), methods=["GET"], options=CacheOptions())
