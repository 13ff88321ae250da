from __future__ import annotations

import logging
import typing as tp

import anyio
from typing_extensions import assert_never

from offliner._classifier import classify
from offliner._config import ControllerConfig, Strategy
from offliner._events import (
    ActivateEvent,
    AnyEvent,
    ErrorEvent,
    FetchEvent,
    InstallEvent,
    MessageEvent,
    NotificationClickEvent,
    PeriodicSyncEvent,
    PushEvent,
    QuotaExceededEvent,
    SyncEvent,
)
from offliner._exceptions import InstallationError, NetworkError, QuotaExceededError
from offliner._messages import CacheUrls, GetVersion, SkipWaiting, news_updated, parse_message
from offliner._models import Request, Response
from offliner._notifications import CLOSE_ACTION, EXPLORE_ACTION, Notification, parse_push_payload
from offliner._utils import path_of, resolve

from ._cache import AsyncCache, reclaim_storage
from ._clients import AsyncBaseClients, Client
from ._lifecycle import GenerationState, Registration
from ._network import AsyncBaseNetwork, AsyncNetwork
from ._storages import AsyncBaseStorage
from ._strategies import cache_first, network_first

logger = logging.getLogger("offliner.controller")

__all__ = ("AsyncOfflineController",)


class AsyncOfflineController:
    """
    One generation of the offline request cache.

    Every platform event goes through `dispatch`, which routes it to the
    handler for its type. Handlers only touch this generation's cache, the
    registration's clients and the network.

    :param config: Settings of this generation
    :type config: ControllerConfig
    :param registration: Registration the generation belongs to, defaults to None (a fresh in-memory one)
    :type registration: tp.Optional[Registration], optional
    :param network: Network used to fetch responses, defaults to None (a real HTTPX transport)
    :type network: tp.Optional[AsyncBaseNetwork], optional
    """

    def __init__(
        self,
        config: ControllerConfig,
        registration: tp.Optional[Registration] = None,
        network: tp.Optional[AsyncBaseNetwork] = None,
    ) -> None:
        self.config = config
        self.registration = registration if registration is not None else Registration()
        self.network = network if network is not None else AsyncNetwork()
        self.state = GenerationState.PARSED
        self.skip_waiting_requested = False

    @property
    def cache_name(self) -> str:
        return self.config.cache_name

    @property
    def storage(self) -> AsyncBaseStorage:
        return self.registration.storage

    @property
    def clients(self) -> AsyncBaseClients:
        return self.registration.clients

    @property
    def cache(self) -> AsyncCache:
        return AsyncCache(self.storage, self.cache_name)

    async def dispatch(self, event: AnyEvent) -> tp.Any:
        logger.debug(f"Handling event: {event.__class__.__name__}")
        if isinstance(event, InstallEvent):
            return await self._handle_install()
        elif isinstance(event, ActivateEvent):
            return await self._handle_activate()
        elif isinstance(event, FetchEvent):
            return await self.handle_fetch(event.request)
        elif isinstance(event, (SyncEvent, PeriodicSyncEvent)):
            return await self._handle_sync(event)
        elif isinstance(event, PushEvent):
            return await self._handle_push(event)
        elif isinstance(event, NotificationClickEvent):
            return await self._handle_notification_click(event)
        elif isinstance(event, MessageEvent):
            return await self._handle_message(event)
        elif isinstance(event, QuotaExceededEvent):
            logger.warning("Storage quota exceeded, cleaning up old caches")
            return await reclaim_storage(self.storage, keep=self.cache_name)
        elif isinstance(event, ErrorEvent):
            logger.error(f"Unhandled error: {event.error!r}", exc_info=event.error)
            return None
        else:
            assert_never(event)

    async def install(self) -> None:
        """
        Pre-populate this generation with the precache manifest.

        Raises `InstallationError` when any manifest entry could not be
        fetched; nothing of the generation is kept in that case.
        """
        requests = [Request(method="GET", url=resolve(self.config.origin, path)) for path in self.config.precache]
        try:
            await self.cache.add_all(requests, self.network)
        except (NetworkError, QuotaExceededError) as exc:
            await self.storage.delete_generation(self.cache_name)
            raise InstallationError(f"Could not install {self.cache_name}: {exc}") from exc
        logger.debug(f"Cached {len(requests)} static resources in {self.cache_name}")

    async def handle_fetch(
        self, request: Request, network: tp.Optional[AsyncBaseNetwork] = None
    ) -> tp.Optional[Response]:
        """
        Answer an outgoing request, or return None when it bypasses the controller.

        :param request: The outgoing request
        :type request: Request
        :param network: Network to fetch through instead of the controller's own, defaults to None
        :type network: tp.Optional[AsyncBaseNetwork], optional
        """
        network = network if network is not None else self.network
        strategy = classify(request, self.config)
        if strategy is Strategy.BYPASS:
            return None
        elif strategy is Strategy.CACHE_FIRST:
            return await cache_first(request, self.config, self.cache, network)
        elif strategy is Strategy.NETWORK_FIRST:
            return await network_first(request, self.config, self.cache, network)
        else:
            assert_never(strategy)

    async def aclose(self) -> None:
        await self.network.aclose()

    async def _handle_install(self) -> bool:
        try:
            await self.install()
        except InstallationError as exc:
            logger.error(f"Cache installation failed: {exc}")
            return False
        return True

    async def _handle_activate(self) -> tp.List[str]:
        deleted = []
        for generation in await self.storage.list_generations():
            if generation != self.cache_name:
                logger.debug(f"Deleting old cache: {generation}")
                await self.storage.delete_generation(generation)
                deleted.append(generation)
        await self.clients.claim(self.cache_name)
        return deleted

    async def _handle_sync(self, event: tp.Union[SyncEvent, PeriodicSyncEvent]) -> bool:
        tags = self.config.sync_tags if isinstance(event, SyncEvent) else self.config.periodic_sync_tags
        if event.tag not in tags:
            logger.debug(f"Ignoring sync task {event.tag!r}")
            return True
        return await self._refresh_latest_content()

    async def _refresh_latest_content(self) -> bool:
        request = Request(method="GET", url=resolve(self.config.origin, self.config.sync_url))
        try:
            response = await self.network.fetch(request)
        except NetworkError as exc:
            logger.error(f"Background sync failed: {exc}")
            return False
        if not response.ok:
            logger.error(f"Background sync failed: {request.url} answered {response.status_code}")
            return False

        await self.cache.put(request, response)
        for client in await self.clients.match_all():
            await self.clients.post_message(client, news_updated())
        return True

    async def _handle_push(self, event: PushEvent) -> Notification:
        notification = parse_push_payload(event.data, self.config.notifications)
        await self.clients.show_notification(notification)
        return notification

    async def _handle_notification_click(self, event: NotificationClickEvent) -> tp.Optional[Client]:
        await self.clients.close_notification(event.notification)

        if event.action == EXPLORE_ACTION:
            return await self._focus_or_open(event.notification.data.url or "/")
        elif event.action == CLOSE_ACTION:
            return None
        return await self._focus_or_open("/")

    async def _focus_or_open(self, url: str) -> tp.Optional[Client]:
        target = resolve(self.config.origin, url)
        for client in await self.clients.match_all():
            if client.path == path_of(target):
                return await self.clients.focus(client)
        return await self.clients.open_window(target)

    async def _handle_message(self, event: MessageEvent) -> tp.Optional[tp.Mapping[str, tp.Any]]:
        message = parse_message(event.data)
        if message is None:
            return None

        if isinstance(message, SkipWaiting):
            await self.registration.skip_waiting()
            return None
        elif isinstance(message, GetVersion):
            reply = {"version": self.cache_name}
            if event.ports:
                try:
                    await event.ports[0].send(reply)
                except (anyio.BrokenResourceError, anyio.ClosedResourceError):
                    logger.warning("GET_VERSION reply port was closed before the reply was sent")
            else:
                logger.warning("GET_VERSION message arrived without a reply port")
            return reply
        elif isinstance(message, CacheUrls):
            requests = [Request(method="GET", url=resolve(self.config.origin, url)) for url in message.urls]
            try:
                await self.cache.add_all(requests, self.network)
            except (NetworkError, QuotaExceededError) as exc:
                logger.error(f"Could not cache requested URLs: {exc}")
            return None
        else:
            assert_never(message)
