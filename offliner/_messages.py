from __future__ import annotations

import logging
import typing as tp
from dataclasses import dataclass

logger = logging.getLogger("offliner.messages")

__all__ = (
    "SKIP_WAITING",
    "GET_VERSION",
    "CACHE_URLS",
    "NEWS_UPDATED",
    "SkipWaiting",
    "GetVersion",
    "CacheUrls",
    "AnyMessage",
    "parse_message",
    "news_updated",
)

SKIP_WAITING = "SKIP_WAITING"
GET_VERSION = "GET_VERSION"
CACHE_URLS = "CACHE_URLS"
NEWS_UPDATED = "NEWS_UPDATED"


@dataclass(frozen=True)
class SkipWaiting: ...


@dataclass(frozen=True)
class GetVersion: ...


@dataclass(frozen=True)
class CacheUrls:
    urls: tp.Tuple[str, ...]


AnyMessage = tp.Union[SkipWaiting, GetVersion, CacheUrls]


def parse_message(data: tp.Any) -> tp.Optional[AnyMessage]:
    """
    Read a message posted by a client view.

    Returns None for anything that is not a known, well-formed message.
    """
    if not isinstance(data, tp.Mapping):
        logger.debug(f"Ignoring message that is not an object: {data!r}")
        return None

    message_type = data.get("type")
    if message_type == SKIP_WAITING:
        return SkipWaiting()
    if message_type == GET_VERSION:
        return GetVersion()
    if message_type == CACHE_URLS:
        urls = data.get("urls")
        if not isinstance(urls, (list, tuple)) or not all(isinstance(url, str) for url in urls):
            logger.warning("CACHE_URLS message needs a list of URL strings")
            return None
        return CacheUrls(urls=tuple(urls))

    logger.debug(f"Ignoring message of unknown type {message_type!r}")
    return None


def news_updated(data: str = "New content available") -> tp.Dict[str, str]:
    return {"type": NEWS_UPDATED, "data": data}
