from __future__ import annotations

import typing as tp
from dataclasses import dataclass, field

from anyio.abc import ObjectSendStream

from offliner._models import Request
from offliner._notifications import Notification

__all__ = (
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
    "AnyEvent",
)


@dataclass(frozen=True)
class InstallEvent: ...


@dataclass(frozen=True)
class ActivateEvent: ...


@dataclass(frozen=True)
class FetchEvent:
    request: Request


@dataclass(frozen=True)
class SyncEvent:
    tag: str


@dataclass(frozen=True)
class PeriodicSyncEvent:
    tag: str


@dataclass(frozen=True)
class PushEvent:
    data: tp.Union[bytes, str, tp.Mapping[str, tp.Any], None] = None


@dataclass(frozen=True)
class NotificationClickEvent:
    notification: Notification
    action: str = ""


@dataclass(frozen=True)
class MessageEvent:
    data: tp.Any
    ports: tp.Sequence[ObjectSendStream[tp.Mapping[str, tp.Any]]] = field(default_factory=tuple)


@dataclass(frozen=True)
class QuotaExceededEvent: ...


@dataclass(frozen=True)
class ErrorEvent:
    error: BaseException


AnyEvent = tp.Union[
    InstallEvent,
    ActivateEvent,
    FetchEvent,
    SyncEvent,
    PeriodicSyncEvent,
    PushEvent,
    NotificationClickEvent,
    MessageEvent,
    QuotaExceededEvent,
    ErrorEvent,
]
