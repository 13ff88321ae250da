from __future__ import annotations

import time
from dataclasses import dataclass, field, replace
from typing import Any, Mapping, Optional, TypedDict

from offliner._headers import Headers

__all__ = (
    "Request",
    "Response",
    "ResponseMetadata",
    "EntryMeta",
    "CacheEntry",
)


@dataclass
class Request:
    method: str
    url: str
    headers: Headers = field(default_factory=Headers)
    content: bytes = b""
    mode: Optional[str] = None
    """How the request was initiated, "navigate" for full-page loads."""

    destination: Optional[str] = None
    """What the response will be used for, e.g. "image", "document", "script"."""

    @property
    def is_navigation(self) -> bool:
        return self.mode == "navigate"

    def copy(self) -> "Request":
        return replace(self, headers=self.headers.copy())


class ResponseMetadata(TypedDict, total=False):
    # All the names here should be prefixed with "offliner_" to avoid collisions with user data
    offliner_from_cache: bool
    """Indicates whether the response was served from the cache."""

    offliner_stored: bool
    """Indicates whether the response was stored in the cache."""

    offliner_strategy: str
    """The strategy that produced the response."""

    offliner_fallback: str
    """Set to the fallback path when a fallback (offline page, placeholder image) was served."""

    offliner_generation: str
    """The cache generation the response was read from or written to."""

    offliner_created_at: float
    """Timestamp when the response was cached."""


@dataclass
class Response:
    status_code: int
    headers: Headers = field(default_factory=Headers)
    content: bytes = b""
    metadata: ResponseMetadata | Mapping[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300

    def copy(self) -> "Response":
        return replace(self, headers=self.headers.copy(), metadata=dict(self.metadata))


@dataclass
class EntryMeta:
    cache_key: str
    generation: str
    created_at: float = field(default_factory=time.time)


@dataclass
class CacheEntry:
    request: Request
    response: Response
    meta: EntryMeta

    def copy(self) -> "CacheEntry":
        return CacheEntry(request=self.request.copy(), response=self.response.copy(), meta=replace(self.meta))
