from __future__ import annotations

import logging
import typing as tp

import httpx
from typing_extensions import assert_never

from .._codec import dumps_response, loads_response
from .._exceptions import ParseError
from .._options import MAX_CACHEABLE_STATUS, CacheOptions, CacheStatus
from .._outcomes import Failure, Hit, Lookup, Miss, Outcome, Success
from .._synchronization import AsyncKeyedLock
from .._types import AsyncHandler, Options
from ._stores import AsyncBaseStore

logger = logging.getLogger("simplecache.middleware")

__all__ = ("AsyncCacheMiddleware",)

# Distinct from anything a store can hold.
_MISSING = object()


class AsyncCacheMiddleware:
    """
    Caches responses of a handler by request URL.

    Calling the middleware with a handler returns a new handler with the same signature.
    Every response it returns carries a :class:`CacheStatus` in the configured header.

    :param store: Store that holds the serialized responses
    :type store: AsyncBaseStore
    :param methods: HTTP methods eligible for caching, defaults to None (only ``GET``)
    :type methods: tp.Optional[tp.Iterable[str]], optional
    :param options: Full configuration, an alternative to `methods`, defaults to None
    :type options: tp.Optional[CacheOptions], optional
    """

    def __init__(
        self,
        store: AsyncBaseStore,
        methods: tp.Optional[tp.Iterable[str]] = None,
        options: tp.Optional[CacheOptions] = None,
    ) -> None:
        self._store = store
        self._options = CacheOptions.resolve(methods=methods, options=options)
        self._locks = AsyncKeyedLock() if self._options.single_flight else None

    @property
    def options(self) -> CacheOptions:
        return self._options

    def __call__(self, handler: AsyncHandler) -> AsyncHandler:
        async def cache_handler(request: httpx.Request, options: Options) -> httpx.Response:
            return await self.handle(request, options, handler)

        return cache_handler

    async def handle(self, request: httpx.Request, options: Options, handler: AsyncHandler) -> httpx.Response:
        """
        Handles a single call on behalf of `handler`.

        :param request: An HTTP request
        :type request: httpx.Request
        :param options: Request options passed through to the handler
        :type options: Options
        :param handler: The wrapped handler
        :type handler: AsyncHandler
        :return: An HTTP response tagged with its :class:`CacheStatus`
        :rtype: httpx.Response
        """

        if not self._options.allows(request.method):
            logger.debug(f"Method {request.method} is not cacheable, skipping the cache")
            response = await handler(request, options)
            return self._tag(response, CacheStatus.INVALID_METHOD)

        key = str(request.url)
        if self._locks is None:
            return await self._lookup_or_send(key, request, options, handler)

        async with self._locks.hold(key):
            return await self._lookup_or_send(key, request, options, handler)

    async def _lookup_or_send(
        self, key: str, request: httpx.Request, options: Options, handler: AsyncHandler
    ) -> httpx.Response:
        lookup = await self._lookup(key)
        if isinstance(lookup, Hit):
            logger.debug(f"Cache hit for {key}")
            return self._tag(lookup.response, CacheStatus.HIT)
        elif isinstance(lookup, Miss):
            logger.debug(f"Cache miss for {key}")
        else:
            assert_never(lookup)

        outcome = await self._send(request, options, handler)
        if isinstance(outcome, Success):
            await self._maybe_store(key, outcome.response)
            return self._tag(outcome.response, CacheStatus.SET)
        elif isinstance(outcome, Failure):
            raise outcome.error
        else:
            assert_never(outcome)

    async def _lookup(self, key: str) -> Lookup:
        payload = await self._store.get(key, _MISSING)
        if payload is _MISSING:
            return Miss()

        try:
            return Hit(loads_response(payload))
        except ParseError:
            return Miss()

    async def _send(self, request: httpx.Request, options: Options, handler: AsyncHandler) -> Outcome:
        try:
            response = await handler(request, options)
        except Exception as exc:
            return Failure(exc)
        return Success(response)

    async def _maybe_store(self, key: str, response: httpx.Response) -> None:
        if response.status_code > MAX_CACHEABLE_STATUS:
            logger.debug(f"Not storing response for {key}, status code is {response.status_code}")
            return

        # The body stays available on the response after reading it.
        await response.aread()
        if await self._store.set(key, dumps_response(response)):
            logger.debug(f"Stored response for {key}")
        else:
            logger.warning(f"Could not store response for {key}")

    def _tag(self, response: httpx.Response, status: CacheStatus) -> httpx.Response:
        response.headers[self._options.header_name] = status.value
        return response
