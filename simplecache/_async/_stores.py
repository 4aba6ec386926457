from __future__ import annotations

import logging
import typing as tp
from pathlib import Path
from sqlite3 import Error as SQLiteError

try:
    import anysqlite
except ImportError:  # pragma: no cover
    anysqlite = None  # type: ignore

try:
    import redis.asyncio as redis
    from redis.exceptions import RedisError
except ImportError:  # pragma: no cover
    redis = None  # type: ignore

from .._files import AsyncFileManager
from .._lfu_cache import LFUCache
from .._synchronization import AsyncLock
from .._utils import ensure_cache_dir, hash_key

logger = logging.getLogger("simplecache.stores")

__all__ = (
    "AsyncBaseStore",
    "AsyncInMemoryStore",
    "AsyncFileStore",
    "AsyncSQLiteStore",
    "AsyncRedisStore",
)


class AsyncBaseStore:
    """
    A key-value store of serialized responses.

    Keys are cache keys (the request URL) and values are opaque strings.
    """

    async def get(self, key: str, default: tp.Any = None) -> tp.Any:
        raise NotImplementedError()

    async def set(self, key: str, value: str) -> bool:
        raise NotImplementedError()

    async def has(self, key: str) -> bool:
        raise NotImplementedError()

    async def clear(self) -> None:
        raise NotImplementedError()

    async def aclose(self) -> None:
        raise NotImplementedError()


class AsyncInMemoryStore(AsyncBaseStore):
    """
    A simple in-memory store.

    :param capacity: The maximum number of responses that can be stored, the least frequently
        used one is evicted first, defaults to 128
    :type capacity: int, optional
    """

    def __init__(self, capacity: int = 128) -> None:
        self._cache: LFUCache[str, str] = LFUCache(capacity=capacity)
        self._lock = AsyncLock()

    async def get(self, key: str, default: tp.Any = None) -> tp.Any:
        """
        Retrieves the stored value.

        :param key: The cache key
        :type key: str
        :param default: Returned when nothing is stored under the key, defaults to None
        :type default: tp.Any
        :return: The stored value or `default`
        :rtype: tp.Any
        """

        async with self._lock:
            if key not in self._cache:
                return default
            return self._cache.get(key)

    async def set(self, key: str, value: str) -> bool:
        """
        Stores the value, replacing the previous one.

        :param key: The cache key
        :type key: str
        :param value: Serialized response
        :type value: str
        :return: Whether the value was stored
        :rtype: bool
        """

        async with self._lock:
            self._cache.put(key, value)
        return True

    async def has(self, key: str) -> bool:
        async with self._lock:
            return key in self._cache

    async def clear(self) -> None:
        async with self._lock:
            self._cache.clear()

    async def aclose(self) -> None:  # pragma: no cover
        return


class AsyncFileStore(AsyncBaseStore):
    """
    A simple file store, one file per key.

    :param base_path: A store base path where the responses should be saved, defaults to None
    :type base_path: tp.Optional[Path], optional
    """

    def __init__(self, base_path: tp.Optional[Path] = None) -> None:
        self._base_path = ensure_cache_dir(Path(base_path) if base_path is not None else None)
        self._file_manager = AsyncFileManager()
        self._lock = AsyncLock()

    def _path_for(self, key: str) -> Path:
        return self._base_path / hash_key(key)

    async def get(self, key: str, default: tp.Any = None) -> tp.Any:
        """
        Retrieves the stored value.

        :param key: The cache key
        :type key: str
        :param default: Returned when nothing is stored under the key, defaults to None
        :type default: tp.Any
        :return: The stored value or `default`
        :rtype: tp.Any
        """

        async with self._lock:
            data = await self._file_manager.read_from(self._path_for(key))
        if data is None:
            return default
        return data.decode("utf-8")

    async def set(self, key: str, value: str) -> bool:
        """
        Stores the value, replacing the previous one.

        :param key: The cache key
        :type key: str
        :param value: Serialized response
        :type value: str
        :return: Whether the value was written to disk
        :rtype: bool
        """

        response_path = self._path_for(key)
        async with self._lock:
            try:
                await self._file_manager.write_to(response_path, value.encode("utf-8"))
            except OSError as exc:
                logger.warning(f"Could not write {response_path}: {exc}")
                return False
        return True

    async def has(self, key: str) -> bool:
        return self._path_for(key).is_file()

    async def clear(self) -> None:
        async with self._lock:
            for path in self._base_path.iterdir():
                if path.is_file() and path.name != ".gitignore":
                    await self._file_manager.remove(path)

    async def aclose(self) -> None:  # pragma: no cover
        return


class AsyncSQLiteStore(AsyncBaseStore):
    """
    A simple sqlite3 store.

    :param connection: A connection for sqlite, defaults to None
    :type connection: tp.Optional[anysqlite.Connection], optional
    """

    def __init__(self, connection: tp.Optional[anysqlite.Connection] = None) -> None:
        if anysqlite is None:  # pragma: no cover
            raise RuntimeError(
                f"The `{type(self).__name__}` was used, but the required packages were not found. "
                "Check that you have `simplecache` installed with the `sqlite` extension as shown.\n"
                "```pip install simplecache[sqlite]```"
            )

        self._connection: tp.Optional[anysqlite.Connection] = connection or None
        self._setup_lock = AsyncLock()
        self._setup_completed: bool = False
        self._lock = AsyncLock()

    async def _setup(self) -> None:
        async with self._setup_lock:
            if not self._setup_completed:
                if not self._connection:  # pragma: no cover
                    self._connection = await anysqlite.connect(".simplecache.sqlite", check_same_thread=False)
                await self._connection.execute("CREATE TABLE IF NOT EXISTS cache(key TEXT PRIMARY KEY, data TEXT)")
                await self._connection.commit()
                self._setup_completed = True

    async def get(self, key: str, default: tp.Any = None) -> tp.Any:
        await self._setup()
        assert self._connection

        async with self._lock:
            cursor = await self._connection.execute("SELECT data FROM cache WHERE key = ?", [key])
            row = await cursor.fetchone()
        if row is None:
            return default
        return row[0]

    async def set(self, key: str, value: str) -> bool:
        await self._setup()
        assert self._connection

        async with self._lock:
            try:
                await self._connection.execute("INSERT OR REPLACE INTO cache(key, data) VALUES(?, ?)", [key, value])
                await self._connection.commit()
            except SQLiteError as exc:
                logger.warning(f"Could not write {key} to sqlite: {exc}")
                return False
        return True

    async def has(self, key: str) -> bool:
        await self._setup()
        assert self._connection

        async with self._lock:
            cursor = await self._connection.execute("SELECT 1 FROM cache WHERE key = ?", [key])
            row = await cursor.fetchone()
        return row is not None

    async def clear(self) -> None:
        await self._setup()
        assert self._connection

        async with self._lock:
            await self._connection.execute("DELETE FROM cache")
            await self._connection.commit()

    async def aclose(self) -> None:  # pragma: no cover
        if self._connection is not None:
            await self._connection.close()


class AsyncRedisStore(AsyncBaseStore):
    """
    A simple redis store.

    :param client: A client for redis, defaults to None
    :type client: tp.Optional["redis.Redis"], optional
    :param prefix: Prepended to every key, `clear` only removes keys with this prefix,
        defaults to "simplecache:"
    :type prefix: str, optional
    """

    def __init__(
        self,
        client: tp.Optional[redis.Redis] = None,  # type: ignore
        prefix: str = "simplecache:",
    ) -> None:
        if redis is None:  # pragma: no cover
            raise RuntimeError(
                f"The `{type(self).__name__}` was used, but the required packages were not found. "
                "Check that you have `simplecache` installed with the `redis` extension as shown.\n"
                "```pip install simplecache[redis]```"
            )

        if client is None:
            self._client = redis.Redis()  # type: ignore
        else:  # pragma: no cover
            self._client = client
        self._prefix = prefix

    async def get(self, key: str, default: tp.Any = None) -> tp.Any:
        value = await self._client.get(self._prefix + key)
        if value is None:
            return default
        return value.decode("utf-8") if isinstance(value, bytes) else value

    async def set(self, key: str, value: str) -> bool:
        try:
            return bool(await self._client.set(self._prefix + key, value))
        except RedisError as exc:
            logger.warning(f"Could not write {key} to redis: {exc}")
            return False

    async def has(self, key: str) -> bool:
        return bool(await self._client.exists(self._prefix + key))

    async def clear(self) -> None:
        async for name in self._client.scan_iter(match=f"{self._prefix}*"):
            await self._client.delete(name)

    async def aclose(self) -> None:  # pragma: no cover
        await self._client.aclose()
