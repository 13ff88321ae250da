from offliner._async import (
    AsyncBaseClients as AsyncBaseClients,
    AsyncBaseNetwork as AsyncBaseNetwork,
    AsyncBaseStorage as AsyncBaseStorage,
    AsyncCache as AsyncCache,
    AsyncInMemoryClients as AsyncInMemoryClients,
    AsyncInMemoryStorage as AsyncInMemoryStorage,
    AsyncNetwork as AsyncNetwork,
    AsyncOfflineClient as AsyncOfflineClient,
    AsyncOfflineController as AsyncOfflineController,
    AsyncOfflineTransport as AsyncOfflineTransport,
    AsyncSQLiteStorage as AsyncSQLiteStorage,
    Client as Client,
    GenerationState as GenerationState,
    MockAsyncTransport as MockAsyncTransport,
    Registration as Registration,
    SyncManager as SyncManager,
    reclaim_storage as reclaim_storage,
)
from offliner._classifier import classify as classify
from offliner._config import (
    DEFAULT_PRECACHE as DEFAULT_PRECACHE,
    DEFAULT_RULES as DEFAULT_RULES,
    ClassificationRule as ClassificationRule,
    ControllerConfig as ControllerConfig,
    NotificationDefaults as NotificationDefaults,
    Strategy as Strategy,
    load_config as load_config,
)
from offliner._events import (
    ActivateEvent as ActivateEvent,
    AnyEvent as AnyEvent,
    ErrorEvent as ErrorEvent,
    FetchEvent as FetchEvent,
    InstallEvent as InstallEvent,
    MessageEvent as MessageEvent,
    NotificationClickEvent as NotificationClickEvent,
    PeriodicSyncEvent as PeriodicSyncEvent,
    PushEvent as PushEvent,
    QuotaExceededEvent as QuotaExceededEvent,
    SyncEvent as SyncEvent,
)
from offliner._exceptions import (
    ConfigError as ConfigError,
    InstallationError as InstallationError,
    NetworkError as NetworkError,
    OfflinerError as OfflinerError,
    QuotaExceededError as QuotaExceededError,
    StorageError as StorageError,
)
from offliner._headers import Headers as Headers
from offliner._models import (
    CacheEntry as CacheEntry,
    EntryMeta as EntryMeta,
    Request as Request,
    Response as Response,
    ResponseMetadata as ResponseMetadata,
)
from offliner._notifications import (
    CLOSE_ACTION as CLOSE_ACTION,
    EXPLORE_ACTION as EXPLORE_ACTION,
    Notification as Notification,
    NotificationAction as NotificationAction,
    NotificationData as NotificationData,
    parse_push_payload as parse_push_payload,
)
from offliner._serializers import (
    BaseSerializer as BaseSerializer,
    JSONSerializer as JSONSerializer,
    PickleSerializer as PickleSerializer,
)
from offliner._utils import generate_key as generate_key

__all__ = (
    # Controller
    "AsyncOfflineController",
    "Registration",
    "GenerationState",
    "SyncManager",
    "classify",
    ## Configuration
    "ControllerConfig",
    "ClassificationRule",
    "NotificationDefaults",
    "Strategy",
    "load_config",
    "DEFAULT_RULES",
    "DEFAULT_PRECACHE",
    ## Events
    "AnyEvent",
    "InstallEvent",
    "ActivateEvent",
    "FetchEvent",
    "SyncEvent",
    "PeriodicSyncEvent",
    "PushEvent",
    "NotificationClickEvent",
    "MessageEvent",
    "QuotaExceededEvent",
    "ErrorEvent",
    ## Models
    "Request",
    "Response",
    "ResponseMetadata",
    "CacheEntry",
    "EntryMeta",
    "Headers",
    "Notification",
    "NotificationData",
    "NotificationAction",
    "EXPLORE_ACTION",
    "CLOSE_ACTION",
    "parse_push_payload",
    "generate_key",
    # Storages
    "AsyncCache",
    "AsyncBaseStorage",
    "AsyncInMemoryStorage",
    "AsyncSQLiteStorage",
    "reclaim_storage",
    "BaseSerializer",
    "JSONSerializer",
    "PickleSerializer",
    # Platform
    "AsyncBaseNetwork",
    "AsyncNetwork",
    "AsyncBaseClients",
    "AsyncInMemoryClients",
    "Client",
    # HTTPX
    "AsyncOfflineClient",
    "AsyncOfflineTransport",
    "MockAsyncTransport",
    # Errors
    "OfflinerError",
    "ConfigError",
    "NetworkError",
    "InstallationError",
    "QuotaExceededError",
    "StorageError",
)

__version__ = "0.1.0"
