from __future__ import annotations

import hashlib
import typing as tp
from pathlib import Path

if tp.TYPE_CHECKING:  # pragma: no cover
    from ._types import H

HEADERS_ENCODING = "iso-8859-1"

__all__ = ("compose", "ensure_cache_dir", "hash_key")


def hash_key(key: str) -> str:
    """Turn a cache key into something safe to use as a file name."""
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


def ensure_cache_dir(base_path: Path | None = None) -> Path:
    _base_path = base_path if base_path is not None else Path(".cache/simplecache")
    _gitignore_file = _base_path / ".gitignore"

    _base_path.mkdir(parents=True, exist_ok=True)

    if not _gitignore_file.is_file():
        with open(_gitignore_file, "w", encoding="utf-8") as f:
            f.write("# Automatically created by simplecache\n*")
    return _base_path


def compose(handler: H, *middlewares: tp.Callable[[H], H]) -> H:
    """
    Wrap a handler with middlewares, the way a handler stack does.

    The first middleware ends up closest to the handler and the last one
    becomes the outermost layer, so it sees the request first.

    Args:
        handler: The innermost handler, usually the one that sends requests.
        middlewares: Callables taking a handler and returning a new handler
            with the same signature.

    Returns:
        The fully wrapped handler.

    Example:
        ```
        handler = compose(send, AsyncCacheMiddleware(store), add_user_agent)
        response = await handler(request, {})
        ```
    """
    for middleware in middlewares:
        handler = middleware(handler)
    return handler
