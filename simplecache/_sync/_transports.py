from __future__ import annotations

import types
import typing as tp

import httpx

from .._options import CacheOptions
from .._types import Options
from ._middleware import CacheMiddleware
from ._stores import BaseStore, InMemoryStore

if tp.TYPE_CHECKING:  # pragma: no cover
    from typing_extensions import Self

__all__ = ("CacheTransport",)


class CacheTransport(httpx.BaseTransport):
    """
    An HTTPX Transport that caches responses by request URL.

    :param transport: `Transport` that our class wraps in order to add a cache layer on top of
    :type transport: httpx.BaseTransport
    :param store: Store that keeps the serialized responses, defaults to None (in-memory)
    :type store: tp.Optional[BaseStore], optional
    :param methods: HTTP methods eligible for caching, defaults to None (only ``GET``)
    :type methods: tp.Optional[tp.Iterable[str]], optional
    :param options: Full cache configuration, an alternative to `methods`, defaults to None
    :type options: tp.Optional[CacheOptions], optional
    """

    def __init__(
        self,
        transport: httpx.BaseTransport,
        store: tp.Optional[BaseStore] = None,
        methods: tp.Optional[tp.Iterable[str]] = None,
        options: tp.Optional[CacheOptions] = None,
    ) -> None:
        self._transport = transport
        self._store = store if store is not None else InMemoryStore()
        self._middleware = CacheMiddleware(self._store, methods=methods, options=options)
        self._handler = self._middleware(self._send)

    def _send(self, request: httpx.Request, options: Options) -> httpx.Response:
        return self._transport.handle_request(request)

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        """
        Handles HTTP requests, serving them from the store when possible.

        :param request: An HTTP request
        :type request: httpx.Request
        :return: An HTTP response
        :rtype: httpx.Response
        """

        return self._handler(request, request.extensions)

    def close(self) -> None:
        self._store.close()
        self._transport.close()

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: tp.Optional[tp.Type[BaseException]] = None,
        exc_value: tp.Optional[BaseException] = None,
        traceback: tp.Optional[types.TracebackType] = None,
    ) -> None:
        self.close()
