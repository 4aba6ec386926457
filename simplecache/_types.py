import typing as tp

import httpx

if tp.TYPE_CHECKING:  # pragma: no cover
    from typing_extensions import TypeAlias

__all__ = ("Options", "AsyncHandler", "Handler")

Options: "TypeAlias" = tp.Mapping[str, tp.Any]

AsyncHandler: "TypeAlias" = tp.Callable[[httpx.Request, Options], tp.Awaitable[httpx.Response]]
Handler: "TypeAlias" = tp.Callable[[httpx.Request, Options], httpx.Response]

H = tp.TypeVar("H", AsyncHandler, Handler)
