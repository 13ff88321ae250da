from __future__ import annotations

import json
import logging
import time
import typing as tp
from dataclasses import dataclass, field

from offliner._config import NotificationDefaults

logger = logging.getLogger("offliner.notifications")

__all__ = (
    "NotificationAction",
    "NotificationData",
    "Notification",
    "EXPLORE_ACTION",
    "CLOSE_ACTION",
    "parse_push_payload",
)

EXPLORE_ACTION = "explore"
CLOSE_ACTION = "close"


@dataclass(frozen=True)
class NotificationAction:
    action: str
    title: str
    icon: str


@dataclass
class NotificationData:
    url: str
    title: str
    date_of_arrival: float = field(default_factory=lambda: time.time() * 1000)
    primary_key: int = 1


@dataclass
class Notification:
    title: str
    body: str
    data: NotificationData
    icon: str
    badge: str
    image: str
    tag: str
    vibrate: tp.Tuple[int, ...]
    actions: tp.Tuple[NotificationAction, ...]
    require_interaction: bool = True


DEFAULT_ACTIONS = (
    NotificationAction(EXPLORE_ACTION, "Ver Notícia", "/icons/action-explore.png"),
    NotificationAction(CLOSE_ACTION, "Fechar", "/icons/action-close.png"),
)


def _decode_payload(payload: tp.Union[bytes, str, tp.Mapping[str, tp.Any], None]) -> tp.Mapping[str, tp.Any]:
    if payload is None:
        return {}
    if isinstance(payload, tp.Mapping):
        return payload
    try:
        decoded = json.loads(payload)
    except (ValueError, UnicodeDecodeError):
        logger.warning("Push payload is not valid JSON, using the default notification text")
        return {}
    if not isinstance(decoded, dict):
        logger.warning(f"Push payload must be a JSON object, got {type(decoded).__name__}")
        return {}
    return decoded


def _text(value: tp.Any, default: str) -> str:
    # Empty and non-string values fall back to the default.
    if isinstance(value, str) and value:
        return value
    return default


def parse_push_payload(
    payload: tp.Union[bytes, str, tp.Mapping[str, tp.Any], None],
    defaults: tp.Optional[NotificationDefaults] = None,
) -> Notification:
    """
    Turn a push message into the notification shown to the user.

    The payload is a JSON object with optional `body`, `url` and `title`.
    Missing, empty or malformed values are replaced by the defaults, so a
    payload never prevents the notification from being shown.
    """
    defaults = defaults if defaults is not None else NotificationDefaults()
    fields = _decode_payload(payload)

    return Notification(
        title=defaults.app_name,
        body=_text(fields.get("body"), defaults.body),
        data=NotificationData(
            url=_text(fields.get("url"), defaults.url),
            title=_text(fields.get("title"), defaults.title),
        ),
        icon=defaults.icon,
        badge=defaults.badge,
        image=defaults.image,
        tag=defaults.tag,
        vibrate=defaults.vibrate,
        actions=DEFAULT_ACTIONS,
    )
