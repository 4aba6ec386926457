#!/usr/bin/env uv run
# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "simplecache",
# ]
#
# [tool.uv.sources]
# simplecache = { path = "../", editable = true }
# ///

import logging
import typing as tp

import httpx

from simplecache import CACHE_HEADER, CacheMiddleware, FileStore, compose

logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")
logging.getLogger("httpcore").setLevel(logging.INFO)

transport = httpx.HTTPTransport()


def send(request: httpx.Request, options: tp.Mapping[str, tp.Any]) -> httpx.Response:
    response = transport.handle_request(request)
    response.read()
    return response


def user_agent(handler: tp.Callable[..., httpx.Response]) -> tp.Callable[..., httpx.Response]:
    def wrapped(request: httpx.Request, options: tp.Mapping[str, tp.Any]) -> httpx.Response:
        request.headers["User-Agent"] = "simplecache-example"
        return handler(request, options)

    return wrapped


handler = compose(send, CacheMiddleware(FileStore(), methods=["GET", "HEAD"]), user_agent)

for method in ("GET", "GET", "POST"):
    response = handler(httpx.Request(method, "https://httpbin.org/anything"), {})
    print(f"{method}: {response.status_code} {response.headers[CACHE_HEADER]}")
