from __future__ import annotations

import enum
import typing as tp
from dataclasses import dataclass, field

__all__ = ("CacheStatus", "CacheOptions", "CACHE_HEADER", "DEFAULT_METHODS", "MAX_CACHEABLE_STATUS")

CACHE_HEADER = "X-Simple-Cache"
DEFAULT_METHODS: tp.FrozenSet[str] = frozenset({"GET"})

# Responses up to and including 400 are stored, 401 and above are not.
MAX_CACHEABLE_STATUS = 400


class CacheStatus(str, enum.Enum):
    """How a response returned by the cache middleware was produced."""

    HIT = "CACHE_HIT"
    MISS = "CACHE_MISS"
    """Internal lookup result, never written on a returned response."""
    SET = "CACHE_SET"
    INVALID_METHOD = "INVALID_METHOD"


def normalize_methods(methods: tp.Optional[tp.Iterable[str]]) -> tp.FrozenSet[str]:
    if isinstance(methods, str):
        raise TypeError(f"Expected an iterable of method names, got the string {methods!r}")
    normalized = frozenset(method.upper() for method in methods or ())
    return normalized or DEFAULT_METHODS


@dataclass(frozen=True)
class CacheOptions:
    """
    Configuration of the cache middleware.

    :param methods: HTTP methods eligible for caching, defaults to ``{"GET"}``
    :type methods: tp.FrozenSet[str]
    :param header_name: Header that carries the :class:`CacheStatus` of every response
    :type header_name: str
    :param single_flight: Serialize concurrent calls for the same URL so only one of them reaches
        the wrapped handler, defaults to False
    :type single_flight: bool
    """

    methods: tp.FrozenSet[str] = field(default=DEFAULT_METHODS)
    header_name: str = CACHE_HEADER
    single_flight: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "methods", normalize_methods(self.methods))

    def allows(self, method: str) -> bool:
        return method.upper() in self.methods

    @classmethod
    def resolve(
        cls,
        methods: tp.Optional[tp.Iterable[str]] = None,
        options: tp.Optional[CacheOptions] = None,
    ) -> CacheOptions:
        if methods is not None and options is not None:
            raise TypeError("Pass either `methods` or `options`, not both")
        if options is not None:
            return options
        return cls(methods=normalize_methods(methods))
