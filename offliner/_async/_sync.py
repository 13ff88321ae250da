from __future__ import annotations

import logging
import typing as tp

from offliner._events import PeriodicSyncEvent, SyncEvent

if tp.TYPE_CHECKING:  # pragma: no cover
    from ._lifecycle import Registration

logger = logging.getLogger("offliner.sync")

__all__ = ("SyncManager",)


class SyncManager:
    """
    Deferred actions waiting for connectivity, at most one per tag.

    Retry scheduling is up to the caller: `replay` runs every pending task
    once and keeps the ones that failed.
    """

    def __init__(self, registration: Registration) -> None:
        self._registration = registration
        self._pending: tp.Dict[str, None] = {}

    @property
    def pending(self) -> tp.List[str]:
        return list(self._pending)

    def register(self, tag: str) -> bool:
        """Register a task, returning False when one with the same tag is already pending."""
        if tag in self._pending:
            logger.debug(f"Sync task {tag!r} is already pending")
            return False
        self._pending[tag] = None
        logger.debug(f"Registered sync task {tag!r}")
        return True

    async def replay(self) -> tp.List[str]:
        """
        Run every pending task, returning the tags that completed.
        """
        completed = []
        for tag in list(self._pending):
            if await self._registration.dispatch(SyncEvent(tag)):
                self._pending.pop(tag, None)
                completed.append(tag)
            else:
                logger.debug(f"Sync task {tag!r} stays pending")
        return completed

    async def periodic(self, tag: str) -> bool:
        return bool(await self._registration.dispatch(PeriodicSyncEvent(tag)))
