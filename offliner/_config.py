from __future__ import annotations

import enum
import json
import typing as tp
from dataclasses import dataclass, field, fields
from pathlib import Path

from offliner._exceptions import ConfigError

__all__ = (
    "Strategy",
    "ClassificationRule",
    "NotificationDefaults",
    "ControllerConfig",
    "load_config",
    "DEFAULT_RULES",
    "DEFAULT_PRECACHE",
)


class Strategy(str, enum.Enum):
    CACHE_FIRST = "cache-first"
    NETWORK_FIRST = "network-first"
    BYPASS = "bypass"


@dataclass(frozen=True)
class ClassificationRule:
    prefix: str
    strategy: Strategy

    def __post_init__(self) -> None:
        if not isinstance(self.prefix, str) or not self.prefix.startswith("/"):
            raise ConfigError(f"Classification prefix must be an absolute path, got {self.prefix!r}")
        if self.strategy is Strategy.BYPASS:
            raise ConfigError("Classification rules can only use cache-first or network-first")

    def matches(self, path: str) -> bool:
        return path.startswith(self.prefix)


DEFAULT_RULES: tp.Tuple[ClassificationRule, ...] = (
    ClassificationRule("/css/", Strategy.CACHE_FIRST),
    ClassificationRule("/js/", Strategy.CACHE_FIRST),
    ClassificationRule("/images/", Strategy.CACHE_FIRST),
    ClassificationRule("/icons/", Strategy.CACHE_FIRST),
    ClassificationRule("/uploads/", Strategy.CACHE_FIRST),
    ClassificationRule("/api/", Strategy.NETWORK_FIRST),
    ClassificationRule("/noticia/", Strategy.NETWORK_FIRST),
    ClassificationRule("/categoria/", Strategy.NETWORK_FIRST),
    ClassificationRule("/buscar", Strategy.NETWORK_FIRST),
)

DEFAULT_PRECACHE: tp.Tuple[str, ...] = (
    "/",
    "/css/output.css",
    "/js/main.js",
    "/offline.html",
    "/images/logo.png",
    "/images/placeholder.jpg",
    "/icons/icon-192x192.png",
    "/icons/icon-512x512.png",
)


@dataclass(frozen=True)
class NotificationDefaults:
    app_name: str = "Mani News"
    body: str = "Nova notícia importante disponível!"
    url: str = "/"
    title: str = "Nova Notícia"
    icon: str = "/icons/icon-192x192.png"
    badge: str = "/icons/badge-72x72.png"
    image: str = "/images/notification-image.jpg"
    tag: str = "news-notification"
    vibrate: tp.Tuple[int, ...] = (100, 50, 100)


@dataclass(frozen=True)
class ControllerConfig:
    """
    Immutable settings shared by every event handler of a controller.

    :param origin: The origin the controller serves, e.g. "https://mani.news"
    :type origin: str
    :param version: Version part of the cache generation name
    :type version: str
    :param cache_prefix: Prefix part of the cache generation name
    :type cache_prefix: str
    :param rules: Ordered classification rules, the first matching prefix wins
    :type rules: tp.Tuple[ClassificationRule, ...]
    :param precache: Absolute paths fetched and stored at install time
    :type precache: tp.Tuple[str, ...]
    :param offline_url: Page served to navigations that fail without a cached copy
    :type offline_url: str
    :param fallback_image: Image served to image requests that fail without a cached copy
    :type fallback_image: tp.Optional[str]
    :param network_first_navigations: Handle unmatched page navigations network-first
    :type network_first_navigations: bool
    :param skip_waiting_on_install: Activate a new generation right after it installs
    :type skip_waiting_on_install: bool
    :param sync_tags: Background sync tags that refresh the latest content
    :type sync_tags: tp.Tuple[str, ...]
    :param periodic_sync_tags: Periodic sync tags that refresh the latest content
    :type periodic_sync_tags: tp.Tuple[str, ...]
    :param sync_url: Path refetched by background sync
    :type sync_url: str
    """

    origin: str
    version: str = "v1.0.0"
    cache_prefix: str = "mani-news"
    rules: tp.Tuple[ClassificationRule, ...] = DEFAULT_RULES
    precache: tp.Tuple[str, ...] = DEFAULT_PRECACHE
    offline_url: str = "/offline.html"
    fallback_image: tp.Optional[str] = "/images/placeholder.jpg"
    network_first_navigations: bool = False
    skip_waiting_on_install: bool = False
    sync_tags: tp.Tuple[str, ...] = ("news-sync",)
    periodic_sync_tags: tp.Tuple[str, ...] = ("news-update",)
    sync_url: str = "/api/news/latest"
    notifications: NotificationDefaults = field(default_factory=NotificationDefaults)

    def __post_init__(self) -> None:
        if not isinstance(self.origin, str) or not self.origin.startswith(("http://", "https://")):
            raise ConfigError(f"Origin must be an http(s) URL, got {self.origin!r}")
        if not isinstance(self.version, str) or not self.version:
            raise ConfigError(f"Version must be a non-empty string, got {self.version!r}")
        for path in self.precache:
            if not isinstance(path, str) or not path.startswith("/"):
                raise ConfigError(f"Precache entries must be absolute paths, got {path!r}")

    @property
    def cache_name(self) -> str:
        return f"{self.cache_prefix}-{self.version}"

    @classmethod
    def mani_news(cls, origin: str, **overrides: tp.Any) -> "ControllerConfig":
        """Settings of the Mani News site, which also routes page navigations network-first."""
        options: tp.Dict[str, tp.Any] = {"network_first_navigations": True, "skip_waiting_on_install": True}
        options.update(overrides)
        return cls(origin=origin, **options)

    @classmethod
    def from_dict(cls, data: tp.Mapping[str, tp.Any]) -> "ControllerConfig":
        """
        Build a configuration from plain data, e.g. a parsed JSON document.

        Rules are given as `{"prefix": ..., "strategy": "cache-first" | "network-first"}`.
        """
        known = {f.name for f in fields(cls)}
        unknown = set(data) - known
        if unknown:
            raise ConfigError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
        if "origin" not in data:
            raise ConfigError("Configuration is missing the 'origin' key")

        options = dict(data)
        try:
            if "rules" in options:
                options["rules"] = tuple(
                    ClassificationRule(rule["prefix"], Strategy(rule["strategy"])) for rule in options["rules"]
                )
            for key in ("precache", "sync_tags", "periodic_sync_tags"):
                if key in options:
                    options[key] = tuple(options[key])
            if "notifications" in options:
                notifications = dict(options["notifications"])
                if "vibrate" in notifications:
                    notifications["vibrate"] = tuple(notifications["vibrate"])
                options["notifications"] = NotificationDefaults(**notifications)
            return cls(**options)
        except (KeyError, TypeError, ValueError) as exc:
            raise ConfigError(f"Invalid configuration: {exc}") from exc


def load_config(path: tp.Union[str, Path]) -> ControllerConfig:
    """
    Load a controller configuration from a JSON file.
    """
    try:
        data = json.loads(Path(path).read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise ConfigError(f"Could not read configuration from {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration in {path} must be a JSON object")
    return ControllerConfig.from_dict(data)
