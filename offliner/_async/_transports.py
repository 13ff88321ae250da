from __future__ import annotations

import logging
import types
import typing as tp

import httpx

from offliner._exceptions import NetworkError
from offliner._headers import Headers
from offliner._models import Request, Response

from ._lifecycle import Registration
from ._network import AsyncNetwork

if tp.TYPE_CHECKING:  # pragma: no cover
    from typing_extensions import Self

logger = logging.getLogger("offliner.transports")

__all__ = ("AsyncOfflineTransport",)

SAFE_METHODS = ("GET", "HEAD", "OPTIONS")


async def request_from_httpx(request: httpx.Request) -> Request:
    """
    Convert an HTTPX request, reading its body.

    The fetch mode and destination come from the request extensions, or from
    the `Sec-Fetch-Mode` / `Sec-Fetch-Dest` headers a browser would send.
    """
    content = await request.aread()
    mode = request.extensions.get("mode") or request.headers.get("Sec-Fetch-Mode")
    destination = request.extensions.get("destination") or request.headers.get("Sec-Fetch-Dest")
    return Request(
        method=request.method,
        url=str(request.url),
        headers=Headers(request.headers.multi_items()),
        content=content,
        mode=mode,
        destination=destination,
    )


def response_to_httpx(response: Response, request: httpx.Request) -> httpx.Response:
    return httpx.Response(
        status_code=response.status_code,
        headers=response.headers.multi_items(),
        content=response.content,
        request=request,
        extensions=dict(response.metadata),
    )


class AsyncOfflineTransport(httpx.AsyncBaseTransport):
    """
    An HTTPX Transport that routes requests through the active offline controller.

    Requests the controller handles are answered by its caching strategies,
    which fetch through the wrapped transport, so the client's network
    settings apply to them too. Everything else goes straight to the wrapped
    transport. A mutating request that
    cannot reach the network registers the background sync task, so the
    latest content is refreshed once connectivity returns.

    :param transport: `Transport` that our class wraps
    :type transport: httpx.AsyncBaseTransport
    :param registration: Registration whose active generation handles requests
    :type registration: Registration
    """

    def __init__(self, transport: httpx.AsyncBaseTransport, registration: Registration) -> None:
        self._transport = transport
        self._registration = registration
        self._network = AsyncNetwork(transport)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        controller = self._registration.active
        if controller is not None:
            internal_request = await request_from_httpx(request)
            try:
                response = await controller.handle_fetch(internal_request, network=self._network)
            except NetworkError as exc:
                raise httpx.ConnectError(str(exc), request=request) from exc
            if response is not None:
                return response_to_httpx(response, request)

        try:
            return await self._transport.handle_async_request(request)
        except httpx.TransportError:
            if request.method not in SAFE_METHODS and controller is not None:
                for tag in controller.config.sync_tags[:1]:
                    logger.debug(f"{request.method} {request.url} failed offline, deferring {tag!r}")
                    self._registration.sync.register(tag)
            raise

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: tp.Optional[tp.Type[BaseException]] = None,
        exc_value: tp.Optional[BaseException] = None,
        traceback: tp.Optional[types.TracebackType] = None,
    ) -> None:
        await self.aclose()
