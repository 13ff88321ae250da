#!/usr/bin/env uv run
# /// script
# requires-python = ">=3.9"
# dependencies = [
#     "offliner[sqlite]",
# ]
#
# [tool.uv.sources]
# offliner = { path = "../", editable = true }
# ///

import asyncio
from typing import cast

import anysqlite

from offliner import (
    AsyncNetwork,
    AsyncOfflineClient,
    AsyncOfflineController,
    AsyncSQLiteStorage,
    ControllerConfig,
    MockAsyncTransport,
    Registration,
    ResponseMetadata,
)

ORIGIN = "https://mani.news"


async def fetch_and_print(client, path: str, **kwargs):
    print(f"\n➡ Sending request to {path}...")
    response = await client.get(path, **kwargs)
    meta = cast(ResponseMetadata, response.extensions)

    print(f"📄 Status: {response.status_code}, body: {response.text[:40]!r}")
    print(f"🔄 From Cache: {meta.get('offliner_from_cache')}")
    print(f"🧭 Strategy: {meta.get('offliner_strategy')}")
    print(f"🪂 Fallback: {meta.get('offliner_fallback')}")


async def main():
    transport = MockAsyncTransport()
    config = ControllerConfig.mani_news(ORIGIN)
    for path in config.precache:
        transport.add_route(path, f"static {path}")
    transport.add_route("/api/news/latest", '[{"title": "Chuva forte no fim de semana"}]')

    storage = AsyncSQLiteStorage(connection=await anysqlite.connect(":memory:"))
    registration = Registration(storage=storage)
    await registration.register(AsyncOfflineController(config, registration, network=AsyncNetwork(transport)))

    async with AsyncOfflineClient(registration=registration, transport=transport, base_url=ORIGIN) as client:
        await fetch_and_print(client, "/api/news/latest")
        await fetch_and_print(client, "/css/output.css")

        transport.offline = True
        await fetch_and_print(client, "/api/news/latest")
        await fetch_and_print(client, "/images/unknown.png")
        await fetch_and_print(client, "/noticia/nova", headers={"Sec-Fetch-Mode": "navigate"})


if __name__ == "__main__":
    asyncio.run(main())
