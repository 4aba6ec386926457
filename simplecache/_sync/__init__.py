from ._client import CacheClient as CacheClient
from ._middleware import CacheMiddleware as CacheMiddleware
from ._mock import MockTransport as MockTransport
from ._stores import (
    BaseStore as BaseStore,
    FileStore as FileStore,
    InMemoryStore as InMemoryStore,
    RedisStore as RedisStore,
    SQLiteStore as SQLiteStore,
)
from ._transports import CacheTransport as CacheTransport
