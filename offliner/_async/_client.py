import typing as tp

import httpx

from ._lifecycle import Registration
from ._transports import AsyncOfflineTransport

__all__ = ("AsyncOfflineClient",)


class AsyncOfflineClient(httpx.AsyncClient):
    def __init__(
        self,
        *args: tp.Any,
        registration: Registration,
        **kwargs: tp.Any,
    ):
        self._registration = registration
        super().__init__(*args, **kwargs)

    def _init_transport(self, *args, **kwargs) -> AsyncOfflineTransport:  # type: ignore
        _transport = super()._init_transport(*args, **kwargs)
        return AsyncOfflineTransport(transport=_transport, registration=self._registration)

    def _init_proxy_transport(self, *args, **kwargs) -> AsyncOfflineTransport:  # type: ignore
        _transport = super()._init_proxy_transport(*args, **kwargs)  # pragma: no cover
        return AsyncOfflineTransport(transport=_transport, registration=self._registration)  # pragma: no cover
