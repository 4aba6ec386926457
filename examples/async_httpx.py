#!/usr/bin/env uv run
# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "simplecache[sqlite]",
# ]
#
# [tool.uv.sources]
# simplecache = { path = "../", editable = true }
# ///

import asyncio

import anysqlite

from simplecache import CACHE_HEADER, AsyncCacheClient, AsyncSQLiteStore


async def fetch_and_print(client: AsyncCacheClient, url: str) -> None:
    print(f"\n➡ Sending request to {url}...")
    response = await client.get(url)
    print(f"📦 Status: {response.status_code}")
    print(f"🔄 Cache: {response.headers[CACHE_HEADER]}")


async def main() -> None:
    url = "https://www.python-httpx.org/"
    store = AsyncSQLiteStore(connection=await anysqlite.connect(":memory:"))
    async with AsyncCacheClient(store=store) as client:
        await fetch_and_print(client, url)
        await fetch_and_print(client, url)


if __name__ == "__main__":
    asyncio.run(main())
