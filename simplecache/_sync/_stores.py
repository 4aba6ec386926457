from __future__ import annotations

import logging
import typing as tp
from pathlib import Path
from sqlite3 import Error as SQLiteError

try:
    import sqlite3
except ImportError:  # pragma: no cover
    sqlite3 = None  # type: ignore

try:
    import redis
    from redis.exceptions import RedisError
except ImportError:  # pragma: no cover
    redis = None  # type: ignore

from .._files import FileManager
from .._lfu_cache import LFUCache
from .._synchronization import Lock
from .._utils import ensure_cache_dir, hash_key

logger = logging.getLogger("simplecache.stores")

__all__ = (
    "BaseStore",
    "InMemoryStore",
    "FileStore",
    "SQLiteStore",
    "RedisStore",
)


class BaseStore:
    """
    A key-value store of serialized responses.

    Keys are cache keys (the request URL) and values are opaque strings.
    """

    def get(self, key: str, default: tp.Any = None) -> tp.Any:
        raise NotImplementedError()

    def set(self, key: str, value: str) -> bool:
        raise NotImplementedError()

    def has(self, key: str) -> bool:
        raise NotImplementedError()

    def clear(self) -> None:
        raise NotImplementedError()

    def close(self) -> None:
        raise NotImplementedError()


class InMemoryStore(BaseStore):
    """
    A simple in-memory store.

    :param capacity: The maximum number of responses that can be stored, the least frequently
        used one is evicted first, defaults to 128
    :type capacity: int, optional
    """

    def __init__(self, capacity: int = 128) -> None:
        self._cache: LFUCache[str, str] = LFUCache(capacity=capacity)
        self._lock = Lock()

    def get(self, key: str, default: tp.Any = None) -> tp.Any:
        """
        Retrieves the stored value.

        :param key: The cache key
        :type key: str
        :param default: Returned when nothing is stored under the key, defaults to None
        :type default: tp.Any
        :return: The stored value or `default`
        :rtype: tp.Any
        """

        with self._lock:
            if key not in self._cache:
                return default
            return self._cache.get(key)

    def set(self, key: str, value: str) -> bool:
        """
        Stores the value, replacing the previous one.

        :param key: The cache key
        :type key: str
        :param value: Serialized response
        :type value: str
        :return: Whether the value was stored
        :rtype: bool
        """

        with self._lock:
            self._cache.put(key, value)
        return True

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._cache

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()

    def close(self) -> None:  # pragma: no cover
        return


class FileStore(BaseStore):
    """
    A simple file store, one file per key.

    :param base_path: A store base path where the responses should be saved, defaults to None
    :type base_path: tp.Optional[Path], optional
    """

    def __init__(self, base_path: tp.Optional[Path] = None) -> None:
        self._base_path = ensure_cache_dir(Path(base_path) if base_path is not None else None)
        self._file_manager = FileManager()
        self._lock = Lock()

    def _path_for(self, key: str) -> Path:
        return self._base_path / hash_key(key)

    def get(self, key: str, default: tp.Any = None) -> tp.Any:
        """
        Retrieves the stored value.

        :param key: The cache key
        :type key: str
        :param default: Returned when nothing is stored under the key, defaults to None
        :type default: tp.Any
        :return: The stored value or `default`
        :rtype: tp.Any
        """

        with self._lock:
            data = self._file_manager.read_from(self._path_for(key))
        if data is None:
            return default
        return data.decode("utf-8")

    def set(self, key: str, value: str) -> bool:
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
        with self._lock:
            try:
                self._file_manager.write_to(response_path, value.encode("utf-8"))
            except OSError as exc:
                logger.warning(f"Could not write {response_path}: {exc}")
                return False
        return True

    def has(self, key: str) -> bool:
        return self._path_for(key).is_file()

    def clear(self) -> None:
        with self._lock:
            for path in self._base_path.iterdir():
                if path.is_file() and path.name != ".gitignore":
                    self._file_manager.remove(path)

    def close(self) -> None:  # pragma: no cover
        return


class SQLiteStore(BaseStore):
    """
    A simple sqlite3 store.

    :param connection: A connection for sqlite, defaults to None
    :type connection: tp.Optional[sqlite3.Connection], optional
    """

    def __init__(self, connection: tp.Optional[sqlite3.Connection] = None) -> None:
        if sqlite3 is None:  # pragma: no cover
            raise RuntimeError(
                f"The `{type(self).__name__}` was used, but the required packages were not found. "
                "Check that you have `simplecache` installed with the `sqlite` extension as shown.\n"
                "```pip install simplecache[sqlite]```"
            )

        self._connection: tp.Optional[sqlite3.Connection] = connection or None
        self._setup_lock = Lock()
        self._setup_completed: bool = False
        self._lock = Lock()

    def _setup(self) -> None:
        with self._setup_lock:
            if not self._setup_completed:
                if not self._connection:  # pragma: no cover
                    self._connection = sqlite3.connect(".simplecache.sqlite", check_same_thread=False)
                self._connection.execute("CREATE TABLE IF NOT EXISTS cache(key TEXT PRIMARY KEY, data TEXT)")
                self._connection.commit()
                self._setup_completed = True

    def get(self, key: str, default: tp.Any = None) -> tp.Any:
        self._setup()
        assert self._connection

        with self._lock:
            cursor = self._connection.execute("SELECT data FROM cache WHERE key = ?", [key])
            row = cursor.fetchone()
        if row is None:
            return default
        return row[0]

    def set(self, key: str, value: str) -> bool:
        self._setup()
        assert self._connection

        with self._lock:
            try:
                self._connection.execute("INSERT OR REPLACE INTO cache(key, data) VALUES(?, ?)", [key, value])
                self._connection.commit()
            except SQLiteError as exc:
                logger.warning(f"Could not write {key} to sqlite: {exc}")
                return False
        return True

    def has(self, key: str) -> bool:
        self._setup()
        assert self._connection

        with self._lock:
            cursor = self._connection.execute("SELECT 1 FROM cache WHERE key = ?", [key])
            row = cursor.fetchone()
        return row is not None

    def clear(self) -> None:
        self._setup()
        assert self._connection

        with self._lock:
            self._connection.execute("DELETE FROM cache")
            self._connection.commit()

    def close(self) -> None:  # pragma: no cover
        if self._connection is not None:
            self._connection.close()


class RedisStore(BaseStore):
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

    def get(self, key: str, default: tp.Any = None) -> tp.Any:
        value = self._client.get(self._prefix + key)
        if value is None:
            return default
        return value.decode("utf-8") if isinstance(value, bytes) else value

    def set(self, key: str, value: str) -> bool:
        try:
            return bool(self._client.set(self._prefix + key, value))
        except RedisError as exc:
            logger.warning(f"Could not write {key} to redis: {exc}")
            return False

    def has(self, key: str) -> bool:
        return bool(self._client.exists(self._prefix + key))

    def clear(self) -> None:
        for name in self._client.scan_iter(match=f"{self._prefix}*"):
            self._client.delete(name)

    def close(self) -> None:  # pragma: no cover
        self._client.close()
