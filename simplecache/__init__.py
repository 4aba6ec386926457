from ._async import *
from ._codec import dumps_response as dumps_response, loads_response as loads_response
from ._exceptions import *
from ._options import (
    CACHE_HEADER as CACHE_HEADER,
    DEFAULT_METHODS as DEFAULT_METHODS,
    MAX_CACHEABLE_STATUS as MAX_CACHEABLE_STATUS,
    CacheOptions as CacheOptions,
    CacheStatus as CacheStatus,
)
from ._sync import *
from ._utils import compose as compose

__all__ = (
    # Middleware
    "AsyncCacheMiddleware",
    "CacheMiddleware",
    "CacheOptions",
    "CacheStatus",
    "CACHE_HEADER",
    "DEFAULT_METHODS",
    "MAX_CACHEABLE_STATUS",
    "compose",
    # Codec
    "dumps_response",
    "loads_response",
    # Stores
    "AsyncBaseStore",
    "AsyncInMemoryStore",
    "AsyncFileStore",
    "AsyncSQLiteStore",
    "AsyncRedisStore",
    "BaseStore",
    "InMemoryStore",
    "FileStore",
    "SQLiteStore",
    "RedisStore",
    # httpx
    "AsyncCacheTransport",
    "AsyncCacheClient",
    "CacheTransport",
    "CacheClient",
    "MockAsyncTransport",
    "MockTransport",
    # Errors
    "CacheError",
    "ParseError",
)

__version__ = "0.1.0"
