import typing as tp

import httpx

from .._options import CacheOptions
from ._stores import AsyncBaseStore
from ._transports import AsyncCacheTransport

__all__ = ("AsyncCacheClient",)


class AsyncCacheClient(httpx.AsyncClient):
    def __init__(
        self,
        *args: tp.Any,
        store: tp.Optional[AsyncBaseStore] = None,
        methods: tp.Optional[tp.Iterable[str]] = None,
        options: tp.Optional[CacheOptions] = None,
        **kwargs: tp.Any,
    ):
        self._store = store
        self._methods = methods
        self._cache_options = options
        super().__init__(*args, **kwargs)

    def _init_transport(self, *args, **kwargs) -> AsyncCacheTransport:  # type: ignore
        _transport = super()._init_transport(*args, **kwargs)
        return AsyncCacheTransport(
            transport=_transport,
            store=self._store,
            methods=self._methods,
            options=self._cache_options,
        )

    def _init_proxy_transport(self, *args, **kwargs) -> AsyncCacheTransport:  # type: ignore
        _transport = super()._init_proxy_transport(*args, **kwargs)  # pragma: no cover
        return AsyncCacheTransport(  # pragma: no cover
            transport=_transport,
            store=self._store,
            methods=self._methods,
            options=self._cache_options,
        )
