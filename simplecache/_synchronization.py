from __future__ import annotations

import types
import typing as tp
from contextlib import asynccontextmanager, contextmanager
from threading import Lock as T_LOCK

import anyio

__all__ = ("AsyncLock", "Lock", "AsyncKeyedLock", "KeyedLock")


class AsyncLock:
    def __init__(self) -> None:
        self._lock = anyio.Lock()

    async def __aenter__(self) -> None:
        await self._lock.acquire()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: types.TracebackType | None = None,
    ) -> None:
        self._lock.release()


class Lock:
    def __init__(self) -> None:
        self._lock = T_LOCK()

    def __enter__(self) -> None:
        self._lock.acquire()

    def __exit__(
        self,
        exc_type: type[BaseException] | None = None,
        exc_value: BaseException | None = None,
        traceback: types.TracebackType | None = None,
    ) -> None:
        self._lock.release()


class AsyncKeyedLock:
    """
    One lock per key, created on first use and dropped once nobody holds or waits on it.

    Must be used from a single event loop.
    """

    def __init__(self) -> None:
        self._locks: dict[str, AsyncLock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, key: str) -> tp.AsyncIterator[None]:
        lock = self._locks.setdefault(key, AsyncLock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                del self._locks[key]


class KeyedLock:
    """Thread-safe counterpart of :class:`AsyncKeyedLock`."""

    def __init__(self) -> None:
        self._guard = T_LOCK()
        self._locks: dict[str, Lock] = {}
        self._users: dict[str, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @contextmanager
    def hold(self, key: str) -> tp.Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(key, Lock())
            self._users[key] = self._users.get(key, 0) + 1
        try:
            with lock:
                yield
        finally:
            with self._guard:
                self._users[key] -= 1
                if not self._users[key]:
                    del self._users[key]
                    del self._locks[key]
