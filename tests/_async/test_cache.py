import pytest

import offliner
from offliner import AsyncCache, AsyncInMemoryStorage, NetworkError, Request, Response


@pytest.mark.anyio
async def test_cache_match_and_put():
    cache = AsyncCache(AsyncInMemoryStorage(), "mani-news-v1")
    request = Request("GET", "https://mani.news/api/posts")

    assert await cache.match(request) is None

    await cache.put(request, Response(200, content=b"[]"))
    response = await cache.match(request)

    assert response is not None
    assert response.content == b"[]"
    assert response.metadata["offliner_from_cache"] is True
    assert response.metadata["offliner_generation"] == "mani-news-v1"


@pytest.mark.anyio
async def test_cache_delete():
    cache = AsyncCache(AsyncInMemoryStorage(), "mani-news-v1")
    request = Request("GET", "https://mani.news/api/posts")
    await cache.put(request, Response(200))

    assert await cache.delete(request)
    assert not await cache.delete(request)
    assert await cache.keys() == []


@pytest.mark.anyio
async def test_add_all(transport, origin):
    storage = AsyncInMemoryStorage()
    cache = AsyncCache(storage, "mani-news-v1")
    requests = [Request("GET", f"{origin}{path}") for path in ("/", "/offline.html")]

    entries = await cache.add_all(requests, offliner.AsyncNetwork(transport))

    assert [entry.request.url for entry in entries] == [f"{origin}/", f"{origin}/offline.html"]
    assert len(await cache.keys()) == 2


@pytest.mark.anyio
async def test_add_all_with_no_requests_opens_the_generation(transport):
    storage = AsyncInMemoryStorage()

    await AsyncCache(storage, "mani-news-v1").add_all([], offliner.AsyncNetwork(transport))

    assert await storage.list_generations() == ["mani-news-v1"]


@pytest.mark.anyio
async def test_add_all_writes_nothing_on_failure(transport, origin):
    storage = AsyncInMemoryStorage()
    cache = AsyncCache(storage, "mani-news-v1")
    requests = [Request("GET", f"{origin}{path}") for path in ("/", "/missing", "/offline.html")]

    with pytest.raises(NetworkError) as exc_info:
        await cache.add_all(requests, offliner.AsyncNetwork(transport))

    assert exc_info.value.reason == "unexpected status 404"
    assert await storage.list_generations() == []
