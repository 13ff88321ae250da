from __future__ import annotations

import enum
import logging
import typing as tp

from offliner._events import ActivateEvent, AnyEvent, InstallEvent

from ._clients import AsyncBaseClients, AsyncInMemoryClients
from ._storages import AsyncBaseStorage, AsyncInMemoryStorage
from ._sync import SyncManager

if tp.TYPE_CHECKING:  # pragma: no cover
    from ._controller import AsyncOfflineController

logger = logging.getLogger("offliner.lifecycle")

__all__ = ("GenerationState", "Registration")


class GenerationState(str, enum.Enum):
    PARSED = "parsed"
    INSTALLING = "installing"
    INSTALLED = "installed"
    ACTIVATING = "activating"
    ACTIVATED = "activated"
    REDUNDANT = "redundant"


class Registration:
    """
    Tracks which controller generation is installing, waiting and active.

    All controllers of a registration share its storage and clients. At most
    one generation is active; a newly installed generation waits until the
    active one has no clients left, unless waiting is skipped.

    :param storage: Storage shared by every generation, defaults to None (in-memory)
    :type storage: tp.Optional[AsyncBaseStorage], optional
    :param clients: Connected client views, defaults to None (in-memory)
    :type clients: tp.Optional[AsyncBaseClients], optional
    """

    def __init__(
        self,
        storage: tp.Optional[AsyncBaseStorage] = None,
        clients: tp.Optional[AsyncBaseClients] = None,
    ) -> None:
        self.storage = storage if storage is not None else AsyncInMemoryStorage()
        self.clients = clients if clients is not None else AsyncInMemoryClients()
        self.sync = SyncManager(self)
        self.installing: tp.Optional[AsyncOfflineController] = None
        self.waiting: tp.Optional[AsyncOfflineController] = None
        self.active: tp.Optional[AsyncOfflineController] = None

    async def register(self, controller: AsyncOfflineController) -> GenerationState:
        """
        Install a controller generation and activate it when possible.

        Returns the state the generation ended up in: activated, installed
        (waiting for the active generation's clients) or redundant when the
        installation failed.
        """
        for current in (self.active, self.waiting):
            if current is not None and current.cache_name == controller.cache_name:
                logger.debug(f"Generation {controller.cache_name} is already registered")
                return current.state

        self.installing = controller
        controller.state = GenerationState.INSTALLING
        installed = await controller.dispatch(InstallEvent())
        self.installing = None

        if not installed:
            controller.state = GenerationState.REDUNDANT
            return controller.state

        if self.waiting is not None:
            logger.debug(f"Generation {self.waiting.cache_name} was superseded by {controller.cache_name}")
            self.waiting.state = GenerationState.REDUNDANT
        self.waiting = controller
        controller.state = GenerationState.INSTALLED

        if controller.config.skip_waiting_on_install:
            controller.skip_waiting_requested = True
        await self._try_activate()
        return controller.state

    async def skip_waiting(self) -> None:
        if self.waiting is None:
            logger.debug("Skip waiting requested, but no generation is waiting")
            return
        self.waiting.skip_waiting_requested = True
        await self._try_activate()

    async def release(self, client_id: str) -> None:
        """Forget a client view that went away, which may let a waiting generation activate."""
        await self.clients.release(client_id)
        await self._try_activate()

    async def dispatch(self, event: AnyEvent) -> tp.Any:
        """Deliver an event to the active generation, or do nothing while none is active."""
        if self.active is None:
            logger.debug(f"No active generation to handle {type(event).__name__}")
            return None
        return await self.active.dispatch(event)

    async def aclose(self) -> None:
        """Close the networks of the active and waiting generations, then the storage."""
        for controller in (self.active, self.waiting):
            if controller is not None:
                await controller.aclose()
        await self.storage.aclose()

    async def _has_clients(self, controller: AsyncOfflineController) -> bool:
        return any(client.generation == controller.cache_name for client in await self.clients.match_all())

    async def _try_activate(self) -> None:
        waiting = self.waiting
        if waiting is None:
            return

        if self.active is not None and not waiting.skip_waiting_requested and await self._has_clients(self.active):
            logger.debug(f"Generation {waiting.cache_name} is waiting for clients of {self.active.cache_name}")
            return

        self.waiting = None
        previous = self.active
        waiting.state = GenerationState.ACTIVATING
        await waiting.dispatch(ActivateEvent())
        if previous is not None:
            previous.state = GenerationState.REDUNDANT
        self.active = waiting
        waiting.state = GenerationState.ACTIVATED
        logger.debug(f"Generation {waiting.cache_name} is active")
