from __future__ import annotations

import logging
import time
import typing as tp

import anyio

try:
    import anysqlite
except ImportError:  # pragma: no cover
    anysqlite = None  # type: ignore

from offliner._exceptions import QuotaExceededError
from offliner._models import CacheEntry, EntryMeta, Request, Response
from offliner._serializers import BaseSerializer, JSONSerializer

logger = logging.getLogger("offliner.storages")

__all__ = (
    "AsyncBaseStorage",
    "AsyncInMemoryStorage",
    "AsyncSQLiteStorage",
)


class AsyncBaseStorage:
    """
    Durable key-value store of cache entries, partitioned into generations.

    Generations are created implicitly by the first `open_generation` or `put`
    and are listed in creation order. Writes replace whole entries.
    """

    async def open_generation(self, generation: str) -> None:
        raise NotImplementedError()

    async def get(self, generation: str, key: str) -> tp.Optional[CacheEntry]:
        raise NotImplementedError()

    async def put(self, generation: str, key: str, request: Request, response: Response) -> CacheEntry:
        raise NotImplementedError()

    async def put_many(
        self, generation: str, items: tp.Sequence[tp.Tuple[str, Request, Response]]
    ) -> tp.List[CacheEntry]:
        """Store several entries at once, either all of them or none."""
        raise NotImplementedError()

    async def delete(self, generation: str, key: str) -> bool:
        raise NotImplementedError()

    async def keys(self, generation: str) -> tp.List[str]:
        raise NotImplementedError()

    async def list_generations(self) -> tp.List[str]:
        raise NotImplementedError()

    async def delete_generation(self, generation: str) -> bool:
        raise NotImplementedError()

    async def aclose(self) -> None:
        raise NotImplementedError()


def _make_entry(generation: str, key: str, request: Request, response: Response) -> CacheEntry:
    return CacheEntry(
        request=request.copy(),
        response=Response(
            status_code=response.status_code,
            headers=response.headers.copy(),
            content=response.content,
        ),
        meta=EntryMeta(cache_key=key, generation=generation, created_at=time.time()),
    )


class AsyncInMemoryStorage(AsyncBaseStorage):
    """
    A simple in-memory storage.

    :param capacity: The maximum number of entries across all generations, defaults to None (unbounded)
    :type capacity: tp.Optional[int], optional
    """

    def __init__(self, capacity: tp.Optional[int] = None) -> None:
        if capacity is not None and capacity <= 0:
            raise ValueError("Capacity must be positive")
        self._capacity = capacity
        self._generations: tp.Dict[str, tp.Dict[str, CacheEntry]] = {}
        self._lock = anyio.Lock()

    def _size(self) -> int:
        return sum(len(entries) for entries in self._generations.values())

    def _check_capacity(self, generation: str, keys: tp.Iterable[str]) -> None:
        if self._capacity is None:
            return
        existing = self._generations.get(generation, {})
        new_keys = {key for key in keys if key not in existing}
        if self._size() + len(new_keys) > self._capacity:
            raise QuotaExceededError(
                f"Storing {len(new_keys)} new entries would exceed the capacity of {self._capacity}"
            )

    async def open_generation(self, generation: str) -> None:
        async with self._lock:
            self._generations.setdefault(generation, {})

    async def get(self, generation: str, key: str) -> tp.Optional[CacheEntry]:
        async with self._lock:
            entry = self._generations.get(generation, {}).get(key)
            return entry.copy() if entry is not None else None

    async def put(self, generation: str, key: str, request: Request, response: Response) -> CacheEntry:
        async with self._lock:
            self._check_capacity(generation, [key])
            entry = _make_entry(generation, key, request, response)
            self._generations.setdefault(generation, {})[key] = entry
            return entry.copy()

    async def put_many(
        self, generation: str, items: tp.Sequence[tp.Tuple[str, Request, Response]]
    ) -> tp.List[CacheEntry]:
        async with self._lock:
            self._check_capacity(generation, [key for key, _, _ in items])
            entries = [_make_entry(generation, key, request, response) for key, request, response in items]
            stored = self._generations.setdefault(generation, {})
            for entry in entries:
                stored[entry.meta.cache_key] = entry
            return [entry.copy() for entry in entries]

    async def delete(self, generation: str, key: str) -> bool:
        async with self._lock:
            return self._generations.get(generation, {}).pop(key, None) is not None

    async def keys(self, generation: str) -> tp.List[str]:
        async with self._lock:
            return list(self._generations.get(generation, {}))

    async def list_generations(self) -> tp.List[str]:
        async with self._lock:
            return list(self._generations)

    async def delete_generation(self, generation: str) -> bool:
        async with self._lock:
            return self._generations.pop(generation, None) is not None

    async def aclose(self) -> None:
        return


class AsyncSQLiteStorage(AsyncBaseStorage):
    """
    A simple sqlite3 storage.

    :param serializer: Serializer capable of serializing and de-serializing cache entries, defaults to None
    :type serializer: tp.Optional[BaseSerializer], optional
    :param connection: A connection for sqlite, defaults to None
    :type connection: tp.Optional[anysqlite.Connection], optional
    :param database_path: Where to create the database when no connection is given
    :type database_path: str
    """

    def __init__(
        self,
        serializer: tp.Optional[BaseSerializer] = None,
        connection: tp.Optional[anysqlite.Connection] = None,
        database_path: str = ".offliner.sqlite",
    ) -> None:
        if anysqlite is None:  # pragma: no cover
            raise RuntimeError(
                f"The `{type(self).__name__}` was used, but the required packages were not found. "
                "Check that you have `offliner` installed with the `sqlite` extension as shown.\n"
                "```pip install offliner[sqlite]```"
            )
        self._serializer = serializer or JSONSerializer()
        self._connection: tp.Optional[anysqlite.Connection] = connection or None
        self._database_path = database_path
        self._setup_lock = anyio.Lock()
        self._setup_completed: bool = False
        self._lock = anyio.Lock()

    async def _setup(self) -> anysqlite.Connection:
        async with self._setup_lock:
            if not self._setup_completed:
                if not self._connection:  # pragma: no cover
                    self._connection = await anysqlite.connect(self._database_path, check_same_thread=False)
                await self._connection.execute(
                    "CREATE TABLE IF NOT EXISTS generations("
                    "position INTEGER PRIMARY KEY AUTOINCREMENT, name TEXT UNIQUE NOT NULL, created_at REAL)"
                )
                await self._connection.execute(
                    "CREATE TABLE IF NOT EXISTS entries("
                    "generation TEXT NOT NULL, key TEXT NOT NULL, data BLOB NOT NULL, created_at REAL, "
                    "PRIMARY KEY (generation, key))"
                )
                await self._connection.commit()
                self._setup_completed = True
        assert self._connection
        return self._connection

    async def _ensure_generation(self, connection: anysqlite.Connection, generation: str) -> None:
        await connection.execute(
            "INSERT OR IGNORE INTO generations(name, created_at) VALUES(?, ?)", [generation, time.time()]
        )

    async def open_generation(self, generation: str) -> None:
        connection = await self._setup()
        async with self._lock:
            await self._ensure_generation(connection, generation)
            await connection.commit()

    async def get(self, generation: str, key: str) -> tp.Optional[CacheEntry]:
        connection = await self._setup()
        async with self._lock:
            cursor = await connection.execute(
                "SELECT data FROM entries WHERE generation = ? AND key = ?", [generation, key]
            )
            row = await cursor.fetchone()
        if row is None:
            return None
        return self._serializer.loads(row[0])

    async def put(self, generation: str, key: str, request: Request, response: Response) -> CacheEntry:
        return (await self.put_many(generation, [(key, request, response)]))[0]

    async def put_many(
        self, generation: str, items: tp.Sequence[tp.Tuple[str, Request, Response]]
    ) -> tp.List[CacheEntry]:
        connection = await self._setup()
        entries = [_make_entry(generation, key, request, response) for key, request, response in items]
        async with self._lock:
            try:
                await self._ensure_generation(connection, generation)
                for entry in entries:
                    await connection.execute(
                        "INSERT OR REPLACE INTO entries(generation, key, data, created_at) VALUES(?, ?, ?, ?)",
                        [generation, entry.meta.cache_key, self._serializer.dumps(entry), entry.meta.created_at],
                    )
            except Exception:
                await connection.rollback()
                raise
            await connection.commit()
        return entries

    async def delete(self, generation: str, key: str) -> bool:
        connection = await self._setup()
        async with self._lock:
            cursor = await connection.execute(
                "SELECT 1 FROM entries WHERE generation = ? AND key = ?", [generation, key]
            )
            if await cursor.fetchone() is None:
                return False
            await connection.execute("DELETE FROM entries WHERE generation = ? AND key = ?", [generation, key])
            await connection.commit()
            return True

    async def keys(self, generation: str) -> tp.List[str]:
        connection = await self._setup()
        async with self._lock:
            cursor = await connection.execute("SELECT key FROM entries WHERE generation = ?", [generation])
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def list_generations(self) -> tp.List[str]:
        connection = await self._setup()
        async with self._lock:
            cursor = await connection.execute("SELECT name FROM generations ORDER BY position")
            rows = await cursor.fetchall()
        return [row[0] for row in rows]

    async def delete_generation(self, generation: str) -> bool:
        connection = await self._setup()
        async with self._lock:
            cursor = await connection.execute("SELECT 1 FROM generations WHERE name = ?", [generation])
            deleted = await cursor.fetchone() is not None
            await connection.execute("DELETE FROM entries WHERE generation = ?", [generation])
            await connection.execute("DELETE FROM generations WHERE name = ?", [generation])
            await connection.commit()
        if deleted:
            logger.debug(f"Deleted generation {generation}")
        return deleted

    async def aclose(self) -> None:  # pragma: no cover
        if self._connection is not None:
            await self._connection.close()
