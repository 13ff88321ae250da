__all__ = (
    "OfflinerError",
    "ConfigError",
    "NetworkError",
    "InstallationError",
    "QuotaExceededError",
    "StorageError",
)


class OfflinerError(Exception): ...


class ConfigError(OfflinerError): ...


class NetworkError(OfflinerError):
    """A fetch failed, either because the network was unreachable or because it answered with an error."""

    def __init__(self, url: str, reason: str = "network unreachable") -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class InstallationError(OfflinerError): ...


class QuotaExceededError(OfflinerError): ...


class StorageError(OfflinerError): ...
