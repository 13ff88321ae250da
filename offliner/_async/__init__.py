from ._cache import AsyncCache, reclaim_storage
from ._client import AsyncOfflineClient
from ._clients import AsyncBaseClients, AsyncInMemoryClients, Client
from ._controller import AsyncOfflineController
from ._lifecycle import GenerationState, Registration
from ._mock import MockAsyncTransport
from ._network import AsyncBaseNetwork, AsyncNetwork
from ._storages import AsyncBaseStorage, AsyncInMemoryStorage, AsyncSQLiteStorage
from ._sync import SyncManager
from ._transports import AsyncOfflineTransport

__all__ = (
    "AsyncCache",
    "reclaim_storage",
    "AsyncOfflineClient",
    "AsyncBaseClients",
    "AsyncInMemoryClients",
    "Client",
    "AsyncOfflineController",
    "GenerationState",
    "Registration",
    "MockAsyncTransport",
    "AsyncBaseNetwork",
    "AsyncNetwork",
    "AsyncBaseStorage",
    "AsyncInMemoryStorage",
    "AsyncSQLiteStorage",
    "SyncManager",
    "AsyncOfflineTransport",
)
