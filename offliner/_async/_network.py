from __future__ import annotations

import logging
import typing as tp

import httpx

from offliner._exceptions import NetworkError
from offliner._headers import Headers
from offliner._models import Request, Response

logger = logging.getLogger("offliner.network")

__all__ = ("AsyncBaseNetwork", "AsyncNetwork", "request_to_httpx", "response_from_httpx")


def request_to_httpx(request: Request) -> httpx.Request:
    extensions: tp.Dict[str, tp.Any] = {}
    if request.mode is not None:
        extensions["mode"] = request.mode
    if request.destination is not None:
        extensions["destination"] = request.destination
    return httpx.Request(
        method=request.method,
        url=request.url,
        headers=request.headers.multi_items(),
        content=request.content,
        extensions=extensions,
    )


# The body is stored decoded, so headers describing the wire encoding no longer apply.
DECODED_BODY_EXCLUDED_HEADERS = frozenset({"content-encoding", "content-length", "transfer-encoding"})


def response_from_httpx(response: httpx.Response, content: bytes) -> Response:
    return Response(
        status_code=response.status_code,
        headers=Headers(
            [
                (key, value)
                for key, value in response.headers.multi_items()
                if key.lower() not in DECODED_BODY_EXCLUDED_HEADERS
            ]
        ),
        content=content,
    )


class AsyncBaseNetwork:
    async def fetch(self, request: Request) -> Response:
        """
        Send the request and return the full response.

        Raises `NetworkError` when the network cannot be reached. HTTP error
        statuses are returned as ordinary responses.
        """
        raise NotImplementedError()

    async def aclose(self) -> None:
        raise NotImplementedError()


class AsyncNetwork(AsyncBaseNetwork):
    """
    Network access backed by an HTTPX transport.

    :param transport: Transport used to send requests, defaults to a fresh `httpx.AsyncHTTPTransport`
    :type transport: tp.Optional[httpx.AsyncBaseTransport], optional
    """

    def __init__(self, transport: tp.Optional[httpx.AsyncBaseTransport] = None) -> None:
        self._transport = transport if transport is not None else httpx.AsyncHTTPTransport()

    async def fetch(self, request: Request) -> Response:
        httpx_request = request_to_httpx(request)
        try:
            httpx_response = await self._transport.handle_async_request(httpx_request)
            try:
                content = await httpx_response.aread()
            finally:
                await httpx_response.aclose()
        except httpx.TransportError as exc:
            logger.debug(f"Network request to {request.url} failed: {exc!r}")
            raise NetworkError(request.url, reason=str(exc) or type(exc).__name__) from exc
        return response_from_httpx(httpx_response, content)

    async def aclose(self) -> None:
        await self._transport.aclose()
