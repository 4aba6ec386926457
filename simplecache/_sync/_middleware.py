from __future__ import annotations

import logging
import typing as tp

import httpx
from typing_extensions import assert_never

from .._codec import dumps_response, loads_response
from .._exceptions import ParseError
from .._options import MAX_CACHEABLE_STATUS, CacheOptions, CacheStatus
from .._outcomes import Failure, Hit, Lookup, Miss, Outcome, Success
from .._synchronization import KeyedLock
from .._types import Handler, Options
from ._stores import BaseStore

logger = logging.getLogger("simplecache.middleware")

__all__ = ("CacheMiddleware",)

# Distinct from anything a store can hold.
_MISSING = object()


class CacheMiddleware:
    """
    Caches responses of a handler by request URL.

    Calling the middleware with a handler returns a new handler with the same signature.
    Every response it returns carries a :class:`CacheStatus` in the configured header.

    :param store: Store that holds the serialized responses
    :type store: BaseStore
    :param methods: HTTP methods eligible for caching, defaults to None (only ``GET``)
    :type methods: tp.Optional[tp.Iterable[str]], optional
    :param options: Full configuration, an alternative to `methods`, defaults to None
    :type options: tp.Optional[CacheOptions], optional
    """

    def __init__(
        self,
        store: BaseStore,
        methods: tp.Optional[tp.Iterable[str]] = None,
        options: tp.Optional[CacheOptions] = None,
    ) -> None:
        self._store = store
        self._options = CacheOptions.resolve(methods=methods, options=options)
        self._locks = KeyedLock() if self._options.single_flight else None

    @property
    def options(self) -> CacheOptions:
        return self._options

    def __call__(self, handler: Handler) -> Handler:
        def cache_handler(request: httpx.Request, options: Options) -> httpx.Response:
            return self.handle(request, options, handler)

        return cache_handler

    def handle(self, request: httpx.Request, options: Options, handler: Handler) -> httpx.Response:
        """
        Handles a single call on behalf of `handler`.

        :param request: An HTTP request
        :type request: httpx.Request
        :param options: Request options passed through to the handler
        :type options: Options
        :param handler: The wrapped handler
        :type handler: Handler
        :return: An HTTP response tagged with its :class:`CacheStatus`
        :rtype: httpx.Response
        """

        if not self._options.allows(request.method):
            logger.debug(f"Method {request.method} is not cacheable, skipping the cache")
            response = handler(request, options)
            return self._tag(response, CacheStatus.INVALID_METHOD)

        key = str(request.url)
        if self._locks is None:
            return self._lookup_or_send(key, request, options, handler)

        with self._locks.hold(key):
            return self._lookup_or_send(key, request, options, handler)

    def _lookup_or_send(
        self, key: str, request: httpx.Request, options: Options, handler: Handler
    ) -> httpx.Response:
        lookup = self._lookup(key)
        if isinstance(lookup, Hit):
            logger.debug(f"Cache hit for {key}")
            return self._tag(lookup.response, CacheStatus.HIT)
        elif isinstance(lookup, Miss):
            logger.debug(f"Cache miss for {key}")
        else:
            assert_never(lookup)

        outcome = self._send(request, options, handler)
        if isinstance(outcome, Success):
            self._maybe_store(key, outcome.response)
            return self._tag(outcome.response, CacheStatus.SET)
        elif isinstance(outcome, Failure):
            raise outcome.error
        else:
            assert_never(outcome)

    def _lookup(self, key: str) -> Lookup:
        payload = self._store.get(key, _MISSING)
        if payload is _MISSING:
            return Miss()

        try:
            return Hit(loads_response(payload))
        except ParseError:
            return Miss()

    def _send(self, request: httpx.Request, options: Options, handler: Handler) -> Outcome:
        try:
            response = handler(request, options)
        except Exception as exc:
            return Failure(exc)
        return Success(response)

    def _maybe_store(self, key: str, response: httpx.Response) -> None:
        if response.status_code > MAX_CACHEABLE_STATUS:
            logger.debug(f"Not storing response for {key}, status code is {response.status_code}")
            return

        # The body stays available on the response after reading it.
        response.read()
        if self._store.set(key, dumps_response(response)):
            logger.debug(f"Stored response for {key}")
        else:
            logger.warning(f"Could not store response for {key}")

    def _tag(self, response: httpx.Response, status: CacheStatus) -> httpx.Response:
        response.headers[self._options.header_name] = status.value
        return response
