import json

import anyio
import pytest
from inline_snapshot import snapshot

import offliner
from offliner import (
    ErrorEvent,
    MessageEvent,
    NotificationClickEvent,
    PeriodicSyncEvent,
    PushEvent,
    QuotaExceededEvent,
    Request,
    SyncEvent,
    generate_key,
)


@pytest.mark.anyio
async def test_push_shows_default_notification(controller):
    notification = await controller.dispatch(PushEvent(b"{}"))

    assert notification.title == "Mani News"
    assert notification.body == "Nova notícia importante disponível!"
    assert notification.data.url == "/"
    assert controller.clients.notifications == [notification]


@pytest.mark.anyio
async def test_push_uses_payload_fields(controller):
    notification = await controller.dispatch(PushEvent(json.dumps({"body": "X", "url": "/y"}).encode()))

    assert notification.body == "X"
    assert notification.data.url == "/y"


@pytest.mark.anyio
async def test_push_without_payload(controller):
    notification = await controller.dispatch(PushEvent())

    assert notification.body == "Nova notícia importante disponível!"


@pytest.mark.anyio
async def test_explore_click_opens_target(controller, origin):
    notification = await controller.dispatch(PushEvent({"url": "/noticia/eleicoes"}))
    home = controller.clients.connect(f"{origin}/", focused=True)

    client = await controller.dispatch(NotificationClickEvent(notification, action="explore"))

    assert client is not None
    assert client.url == f"{origin}/noticia/eleicoes"
    assert client.focused
    assert not home.focused
    assert controller.clients.notifications == []


@pytest.mark.anyio
async def test_explore_click_focuses_existing_client(controller, origin):
    notification = await controller.dispatch(PushEvent({"url": "/noticia/eleicoes"}))
    existing = controller.clients.connect(f"{origin}/noticia/eleicoes")
    controller.clients.connect(f"{origin}/", focused=True)

    client = await controller.dispatch(NotificationClickEvent(notification, action="explore"))

    assert client is existing
    assert existing.focused
    assert len(await controller.clients.match_all()) == 2


@pytest.mark.anyio
async def test_close_click_only_dismisses(controller):
    notification = await controller.dispatch(PushEvent(b"{}"))

    assert await controller.dispatch(NotificationClickEvent(notification, action="close")) is None
    assert controller.clients.notifications == []
    assert await controller.clients.match_all() == []


@pytest.mark.anyio
async def test_default_click_focuses_home(controller, origin):
    notification = await controller.dispatch(PushEvent({"url": "/noticia/eleicoes"}))
    home = controller.clients.connect(f"{origin}/?utm_source=push")

    client = await controller.dispatch(NotificationClickEvent(notification))

    assert client is home
    assert home.focused


@pytest.mark.anyio
async def test_default_click_opens_home(controller, origin):
    notification = await controller.dispatch(PushEvent(b"{}"))

    client = await controller.dispatch(NotificationClickEvent(notification, action="share"))

    assert client is not None
    assert client.url == f"{origin}/"


@pytest.mark.anyio
async def test_get_version_replies_on_port(controller):
    send_stream, receive_stream = anyio.create_memory_object_stream(1)

    async with send_stream, receive_stream:
        reply = await controller.dispatch(MessageEvent({"type": "GET_VERSION"}, ports=[send_stream]))
        received = receive_stream.receive_nowait()

    assert received == {"version": "mani-news-v1.0.0"}
    assert reply == received


@pytest.mark.anyio
async def test_get_version_without_port(controller, caplog):
    with caplog.at_level("WARNING", logger="offliner"):
        reply = await controller.dispatch(MessageEvent({"type": "GET_VERSION"}))

    assert reply == {"version": "mani-news-v1.0.0"}
    assert caplog.messages == ["GET_VERSION message arrived without a reply port"]


@pytest.mark.anyio
async def test_cache_urls_adds_exactly_the_requested_urls(controller, transport, origin):
    transport.add_route("/a", "a")
    transport.add_route("/b", "b")
    before = set(await controller.cache.keys())

    await controller.dispatch(MessageEvent({"type": "CACHE_URLS", "urls": ["/a", "/b"]}))

    after = set(await controller.cache.keys())
    assert after - before == {
        generate_key(Request("GET", f"{origin}/a")),
        generate_key(Request("GET", f"{origin}/b")),
    }
    assert before <= after
    response = await controller.cache.match(Request("GET", f"{origin}/b"))
    assert response is not None
    assert response.content == b"b"


@pytest.mark.anyio
async def test_cache_urls_is_all_or_nothing(controller, transport, caplog):
    transport.add_route("/a", "a")
    before = await controller.cache.keys()

    with caplog.at_level("ERROR", logger="offliner"):
        await controller.dispatch(MessageEvent({"type": "CACHE_URLS", "urls": ["/a", "/missing"]}))

    assert await controller.cache.keys() == before
    assert caplog.messages == snapshot(
        [
            "Could not cache requested URLs: Failed to fetch https://mani.news/missing: unexpected status 404"
        ]
    )


@pytest.mark.anyio
async def test_unknown_messages_are_ignored(controller, transport):
    assert await controller.dispatch(MessageEvent({"type": "REFRESH"})) is None
    assert await controller.dispatch(MessageEvent("hello")) is None
    assert transport.requests == []


@pytest.mark.anyio
async def test_sync_refreshes_latest_news(controller, transport, registration, origin):
    transport.add_route("/api/news/latest", '[{"id": 1}]')
    reader = controller.clients.connect(f"{origin}/")

    assert registration.sync.register("news-sync")
    assert not registration.sync.register("news-sync")
    completed = await registration.sync.replay()

    assert completed == ["news-sync"]
    assert registration.sync.pending == []
    assert reader.messages == [{"type": "NEWS_UPDATED", "data": "New content available"}]
    cached = await controller.cache.match(Request("GET", f"{origin}/api/news/latest"))
    assert cached is not None
    assert cached.content == b'[{"id": 1}]'


@pytest.mark.anyio
async def test_failed_sync_stays_pending(controller, transport, registration, origin, caplog):
    reader = controller.clients.connect(f"{origin}/")
    registration.sync.register("news-sync")
    transport.offline = True

    with caplog.at_level("ERROR", logger="offliner"):
        completed = await registration.sync.replay()

    assert completed == []
    assert registration.sync.pending == ["news-sync"]
    assert reader.messages == []
    assert caplog.messages == snapshot(
        [
            "Background sync failed: Failed to fetch https://mani.news/api/news/latest: Network is unreachable"
        ]
    )

    transport.offline = False
    transport.add_route("/api/news/latest", "[]")
    assert await registration.sync.replay() == ["news-sync"]


@pytest.mark.anyio
async def test_sync_error_status_stays_pending(controller, registration):
    registration.sync.register("news-sync")

    assert await registration.sync.replay() == []
    assert registration.sync.pending == ["news-sync"]


@pytest.mark.anyio
async def test_unknown_sync_tag_completes(controller, transport):
    assert await controller.dispatch(SyncEvent("comments-sync")) is True
    assert transport.requests == []


@pytest.mark.anyio
async def test_periodic_sync(controller, transport, registration, origin):
    transport.add_route("/api/news/latest", "[]")
    reader = controller.clients.connect(f"{origin}/")

    assert await registration.sync.periodic("news-update")
    assert reader.messages == [{"type": "NEWS_UPDATED", "data": "New content available"}]
    assert await controller.dispatch(PeriodicSyncEvent("news-sync")) is True
    assert transport.requested_paths() == ["/api/news/latest"]


@pytest.mark.anyio
async def test_quota_exceeded_event_reclaims_old_generations(controller, origin, caplog):
    pair = (Request("GET", f"{origin}/"), offliner.Response(200))
    for generation in ("mani-news-v0.1", "mani-news-v0.2"):
        await controller.storage.put(generation, "key", *pair)

    with caplog.at_level("WARNING", logger="offliner"):
        deleted = await controller.dispatch(QuotaExceededEvent())

    assert deleted == ["mani-news-v0.1"]
    assert await controller.storage.list_generations() == ["mani-news-v1.0.0", "mani-news-v0.2"]
    assert caplog.messages == [
        "Storage quota exceeded, cleaning up old caches",
        "Deleting cache generation mani-news-v0.1 to free storage",
    ]


@pytest.mark.anyio
async def test_error_event_is_logged(controller, caplog):
    error = RuntimeError("boom")

    with caplog.at_level("ERROR", logger="offliner"):
        assert await controller.dispatch(ErrorEvent(error)) is None

    assert caplog.records[0].exc_info is not None
    assert caplog.messages == ["Unhandled error: RuntimeError('boom')"]


@pytest.mark.anyio
async def test_get_version_with_closed_port(controller, caplog):
    send_stream, receive_stream = anyio.create_memory_object_stream(1)
    await receive_stream.aclose()

    with caplog.at_level("WARNING", logger="offliner"):
        reply = await controller.dispatch(MessageEvent({"type": "GET_VERSION"}, ports=[send_stream]))

    assert reply == {"version": "mani-news-v1.0.0"}
    assert caplog.messages == ["GET_VERSION reply port was closed before the reply was sent"]
    await send_stream.aclose()
