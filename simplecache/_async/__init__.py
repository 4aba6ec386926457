from ._client import AsyncCacheClient as AsyncCacheClient
from ._middleware import AsyncCacheMiddleware as AsyncCacheMiddleware
from ._mock import MockAsyncTransport as MockAsyncTransport
from ._stores import (
    AsyncBaseStore as AsyncBaseStore,
    AsyncFileStore as AsyncFileStore,
    AsyncInMemoryStore as AsyncInMemoryStore,
    AsyncRedisStore as AsyncRedisStore,
    AsyncSQLiteStore as AsyncSQLiteStore,
)
from ._transports import AsyncCacheTransport as AsyncCacheTransport
