from __future__ import annotations

import logging
import typing as tp
import uuid
from dataclasses import dataclass, field

from offliner._notifications import Notification
from offliner._utils import path_of

logger = logging.getLogger("offliner.clients")

__all__ = ("Client", "AsyncBaseClients", "AsyncInMemoryClients")


@dataclass
class Client:
    """A client view (page, tab) connected to the controller."""

    id: str
    url: str
    focused: bool = False
    generation: tp.Optional[str] = None
    """Cache generation controlling this client, None while uncontrolled."""

    messages: tp.List[tp.Mapping[str, tp.Any]] = field(default_factory=list)

    @property
    def path(self) -> str:
        return path_of(self.url)


class AsyncBaseClients:
    async def match_all(self) -> tp.List[Client]:
        raise NotImplementedError()

    async def open_window(self, url: str) -> tp.Optional[Client]:
        raise NotImplementedError()

    async def focus(self, client: Client) -> Client:
        raise NotImplementedError()

    async def post_message(self, client: Client, message: tp.Mapping[str, tp.Any]) -> None:
        raise NotImplementedError()

    async def claim(self, generation: str) -> None:
        """Make `generation` the controller of every current and future client."""
        raise NotImplementedError()

    async def release(self, client_id: str) -> None:
        raise NotImplementedError()

    async def show_notification(self, notification: Notification) -> None:
        raise NotImplementedError()

    async def close_notification(self, notification: Notification) -> None:
        raise NotImplementedError()


class AsyncInMemoryClients(AsyncBaseClients):
    """
    Keeps client views and notifications in memory.

    Used by tests and by applications that drive a single view themselves.
    """

    def __init__(self) -> None:
        self._clients: tp.Dict[str, Client] = {}
        self._generation: tp.Optional[str] = None
        self.notifications: tp.List[Notification] = []

    def connect(self, url: str, focused: bool = False) -> Client:
        """Register an already open view, controlled by the current generation."""
        client = Client(id=uuid.uuid4().hex, url=url, focused=focused, generation=self._generation)
        self._clients[client.id] = client
        return client

    async def match_all(self) -> tp.List[Client]:
        return list(self._clients.values())

    async def open_window(self, url: str) -> tp.Optional[Client]:
        for other in self._clients.values():
            other.focused = False
        logger.debug(f"Opening a new window at {url}")
        return self.connect(url, focused=True)

    async def focus(self, client: Client) -> Client:
        for other in self._clients.values():
            other.focused = other.id == client.id
        return client

    async def post_message(self, client: Client, message: tp.Mapping[str, tp.Any]) -> None:
        client.messages.append(dict(message))

    async def claim(self, generation: str) -> None:
        self._generation = generation
        for client in self._clients.values():
            client.generation = generation

    async def release(self, client_id: str) -> None:
        self._clients.pop(client_id, None)

    async def show_notification(self, notification: Notification) -> None:
        self.notifications.append(notification)

    async def close_notification(self, notification: Notification) -> None:
        if notification in self.notifications:
            self.notifications.remove(notification)
