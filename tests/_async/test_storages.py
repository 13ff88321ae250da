import anysqlite
import pytest

from offliner import (
    AsyncInMemoryStorage,
    AsyncSQLiteStorage,
    Headers,
    JSONSerializer,
    PickleSerializer,
    QuotaExceededError,
    Request,
    Response,
    StorageError,
    generate_key,
    reclaim_storage,
)


def make_pair(path: str, body: bytes = b"test"):
    request = Request("GET", f"https://mani.news{path}")
    response = Response(200, headers=Headers({"Content-Type": "text/plain"}), content=body)
    return generate_key(request), request, response


@pytest.fixture(params=["inmemory", "sqlite", "sqlite-pickle"])
async def storage(request):
    if request.param == "inmemory":
        yield AsyncInMemoryStorage()
        return

    connection = await anysqlite.connect(":memory:")
    serializer = PickleSerializer() if request.param == "sqlite-pickle" else None
    yield AsyncSQLiteStorage(serializer=serializer, connection=connection)
    await connection.close()


@pytest.mark.anyio
async def test_storage_put_and_get(storage):
    key, request, response = make_pair("/css/output.css", b"body{}")

    stored = await storage.put("v1", key, request, response)
    entry = await storage.get("v1", key)

    assert entry is not None
    assert entry.response.status_code == 200
    assert entry.response.content == b"body{}"
    assert entry.response.headers["content-type"] == "text/plain"
    assert entry.request.url == "https://mani.news/css/output.css"
    assert entry.meta.cache_key == key
    assert entry.meta.generation == "v1"
    assert entry.meta.created_at == stored.meta.created_at


@pytest.mark.anyio
async def test_storage_generations_are_isolated(storage):
    key, request, response = make_pair("/js/main.js")

    await storage.put("v1", key, request, response)

    assert await storage.get("v2", key) is None
    assert await storage.keys("v2") == []
    assert await storage.keys("v1") == [key]


@pytest.mark.anyio
async def test_storage_last_write_wins(storage):
    key, request, _ = make_pair("/api/news/latest")

    await storage.put("v1", key, request, Response(200, content=b"first"))
    await storage.put("v1", key, request, Response(200, content=b"second"))

    entry = await storage.get("v1", key)
    assert entry is not None
    assert entry.response.content == b"second"
    assert await storage.keys("v1") == [key]


@pytest.mark.anyio
async def test_storage_list_generations_in_creation_order(storage):
    key, request, response = make_pair("/")

    await storage.put("mani-news-v2", key, request, response)
    await storage.open_generation("mani-news-v1")
    await storage.put("mani-news-v3", key, request, response)
    await storage.put("mani-news-v2", key, request, response)

    assert await storage.list_generations() == ["mani-news-v2", "mani-news-v1", "mani-news-v3"]


@pytest.mark.anyio
async def test_storage_delete(storage):
    key, request, response = make_pair("/images/logo.png")
    await storage.put("v1", key, request, response)

    assert await storage.delete("v1", key)
    assert not await storage.delete("v1", key)
    assert await storage.get("v1", key) is None


@pytest.mark.anyio
async def test_storage_delete_generation(storage):
    first = make_pair("/a")
    second = make_pair("/b")
    await storage.put_many("v1", [first, second])
    await storage.put("v2", *first)

    assert await storage.delete_generation("v1")
    assert not await storage.delete_generation("v1")
    assert await storage.list_generations() == ["v2"]
    assert await storage.keys("v1") == []
    assert await storage.get("v2", first[0]) is not None


@pytest.mark.anyio
async def test_storage_does_not_share_objects(storage):
    key, request, response = make_pair("/a")

    await storage.put("v1", key, request, response)
    response.headers["Content-Type"] = "application/json"
    entry = await storage.get("v1", key)
    assert entry is not None
    entry.response.headers["Content-Type"] = "image/png"

    again = await storage.get("v1", key)
    assert again is not None
    assert again.response.headers["Content-Type"] == "text/plain"


@pytest.mark.anyio
async def test_inmemory_storage_capacity():
    storage = AsyncInMemoryStorage(capacity=2)
    first, second, third = make_pair("/a"), make_pair("/b"), make_pair("/c")

    await storage.put_many("v1", [first, second])
    # Overwriting an existing key needs no room.
    await storage.put("v1", *first)

    with pytest.raises(QuotaExceededError):
        await storage.put("v1", *third)
    with pytest.raises(QuotaExceededError):
        await storage.put_many("v2", [third])


@pytest.mark.anyio
async def test_inmemory_put_many_is_all_or_nothing():
    storage = AsyncInMemoryStorage(capacity=2)

    with pytest.raises(QuotaExceededError):
        await storage.put_many("v1", [make_pair("/a"), make_pair("/b"), make_pair("/c")])

    assert await storage.keys("v1") == []


def test_inmemory_storage_rejects_invalid_capacity():
    with pytest.raises(ValueError):
        AsyncInMemoryStorage(capacity=0)


@pytest.mark.anyio
async def test_reclaim_storage(storage, caplog):
    pair = make_pair("/")
    for generation in ("v1", "v2", "v3", "v4"):
        await storage.put(generation, *pair)

    with caplog.at_level("WARNING", logger="offliner"):
        deleted = await reclaim_storage(storage, keep="v2")

    assert deleted == ["v1", "v3"]
    assert await storage.list_generations() == ["v2", "v4"]
    assert caplog.messages == [
        "Deleting cache generation v1 to free storage",
        "Deleting cache generation v3 to free storage",
    ]


@pytest.mark.anyio
async def test_sqlite_storage_persists_to_file(use_temp_dir):
    key, request, response = make_pair("/offline.html", b"<h1>Offline</h1>")

    storage = AsyncSQLiteStorage()
    await storage.put("v1", key, request, response)
    await storage.aclose()

    reopened = AsyncSQLiteStorage()
    entry = await reopened.get("v1", key)
    await reopened.aclose()

    assert entry is not None
    assert entry.response.content == b"<h1>Offline</h1>"


class FailingSerializer(JSONSerializer):
    def __init__(self, fail_on: str) -> None:
        self.fail_on = fail_on

    def dumps(self, entry):
        if entry.request.url.endswith(self.fail_on):
            raise StorageError(f"Could not encode {entry.request.url}")
        return super().dumps(entry)


@pytest.mark.anyio
async def test_sqlite_put_many_is_all_or_nothing():
    connection = await anysqlite.connect(":memory:")
    storage = AsyncSQLiteStorage(serializer=FailingSerializer(fail_on="/c"), connection=connection)
    first = make_pair("/a")
    await storage.put("v1", *first)

    with pytest.raises(StorageError):
        await storage.put_many("v1", [make_pair("/b"), make_pair("/c")])
    await storage.open_generation("v2")

    assert await storage.keys("v1") == [first[0]]
    assert await storage.list_generations() == ["v1", "v2"]
    await connection.close()
