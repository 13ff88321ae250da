from __future__ import annotations

import logging
import typing as tp

import anyio

from offliner._exceptions import NetworkError, QuotaExceededError
from offliner._models import CacheEntry, Request, Response
from offliner._utils import generate_key

from ._network import AsyncBaseNetwork
from ._storages import AsyncBaseStorage

logger = logging.getLogger("offliner.cache")

__all__ = ("AsyncCache", "reclaim_storage")


async def reclaim_storage(storage: AsyncBaseStorage, keep: tp.Optional[str] = None) -> tp.List[str]:
    """
    Free space by deleting every generation except the most recently created one.

    `keep` names one more generation that must survive, usually the one being
    written to when the quota ran out.
    """
    generations = await storage.list_generations()
    survivors = set(generations[-1:])
    if keep is not None:
        survivors.add(keep)

    deleted = []
    for generation in generations:
        if generation not in survivors:
            logger.warning(f"Deleting cache generation {generation} to free storage")
            await storage.delete_generation(generation)
            deleted.append(generation)
    return deleted


class AsyncCache:
    """
    Handle on one cache generation.

    Lookups and writes are keyed by request identity (method and URL). Stored
    responses are copies, so callers may keep using the objects they pass in.
    """

    def __init__(self, storage: AsyncBaseStorage, generation: str) -> None:
        self._storage = storage
        self.generation = generation

    async def match(self, request: Request) -> tp.Optional[Response]:
        entry = await self._storage.get(self.generation, generate_key(request))
        if entry is None:
            return None
        response = entry.response
        response.metadata = {
            "offliner_from_cache": True,
            "offliner_stored": False,
            "offliner_generation": self.generation,
            "offliner_created_at": entry.meta.created_at,
        }
        return response

    async def put(self, request: Request, response: Response) -> tp.Optional[CacheEntry]:
        """
        Store a copy of `response` for `request`.

        A full storage is reclaimed and the write retried once. Returns None
        when the entry still could not be stored; serving the response must not
        depend on the write.
        """
        key = generate_key(request)
        try:
            return await self._storage.put(self.generation, key, request, response)
        except QuotaExceededError:
            logger.warning(f"Storage quota exceeded while caching {request.url}")
            await reclaim_storage(self._storage, keep=self.generation)

        try:
            return await self._storage.put(self.generation, key, request, response)
        except QuotaExceededError:
            logger.error(f"Could not cache {request.url}, storage is still full")
            return None

    async def add_all(self, requests: tp.Sequence[Request], network: AsyncBaseNetwork) -> tp.List[CacheEntry]:
        """
        Fetch every request and store the responses, all of them or none.

        All fetches run concurrently. If any fetch fails or answers with a
        non-2xx status nothing is written and `NetworkError` is raised.
        """
        results: tp.List[tp.Union[Response, NetworkError, None]] = [None] * len(requests)

        async def fetch_one(index: int, request: Request) -> None:
            try:
                response = await network.fetch(request)
            except NetworkError as exc:
                results[index] = exc
                return
            if not response.ok:
                results[index] = NetworkError(request.url, reason=f"unexpected status {response.status_code}")
                return
            results[index] = response

        async with anyio.create_task_group() as task_group:
            for index, request in enumerate(requests):
                task_group.start_soon(fetch_one, index, request)

        responses: tp.List[Response] = []
        for result in results:
            if isinstance(result, NetworkError):
                raise result
            assert result is not None
            responses.append(result)

        await self._storage.open_generation(self.generation)
        return await self._storage.put_many(
            self.generation,
            [(generate_key(request), request, response) for request, response in zip(requests, responses)],
        )

    async def delete(self, request: Request) -> bool:
        return await self._storage.delete(self.generation, generate_key(request))

    async def keys(self) -> tp.List[str]:
        return await self._storage.keys(self.generation)
