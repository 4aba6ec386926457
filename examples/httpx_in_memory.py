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

from simplecache import CACHE_HEADER, CacheClient, InMemoryStore

with CacheClient(store=InMemoryStore(capacity=16)) as client:
    client.get("https://www.python-httpx.org/")
    response = client.get("https://www.python-httpx.org/")
    print(response.headers[CACHE_HEADER])
