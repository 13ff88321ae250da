import typing as tp
from types import TracebackType

import httpx

if tp.TYPE_CHECKING:  # pragma: no cover
    from typing_extensions import Self

__all__ = ("MockAsyncTransport",)


class MockAsyncTransport(httpx.AsyncBaseTransport):
    """
    Transport answering from canned responses, with a switch to simulate losing the network.

    Queued responses (`add_responses`) are used first, in order. Otherwise the
    request path is looked up in the routes (`add_route`), which answer every
    time they match. Unknown paths get a 404.
    """

    def __init__(self) -> None:
        self.mocked_responses: tp.List[httpx.Response] = []
        self.routes: tp.Dict[str, tp.Tuple[int, tp.List[tp.Tuple[str, str]], bytes]] = {}
        self.requests: tp.List[httpx.Request] = []
        self.offline = False

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self.offline:
            raise httpx.ConnectError("Network is unreachable", request=request)
        await request.aread()
        self.requests.append(request)
        if self.mocked_responses:
            return self.mocked_responses.pop(0)
        route = self.routes.get(request.url.path)
        if route is None:
            return httpx.Response(404, content=b"Not Found")
        status_code, headers, content = route
        return httpx.Response(status_code, headers=headers, content=content)

    def add_responses(self, responses: tp.List[httpx.Response]) -> None:
        self.mocked_responses.extend(responses)

    def add_route(
        self,
        path: str,
        content: tp.Union[bytes, str] = b"",
        status_code: int = 200,
        headers: tp.Optional[tp.List[tp.Tuple[str, str]]] = None,
    ) -> None:
        body = content.encode("utf-8") if isinstance(content, str) else content
        self.routes[path] = (status_code, list(headers or []), body)

    def requested_paths(self) -> tp.List[str]:
        return [request.url.path for request in self.requests]

    async def __aenter__(self) -> "Self":
        return self

    async def __aexit__(
        self,
        exc_type: tp.Optional[tp.Type[BaseException]] = None,
        exc_value: tp.Optional[BaseException] = None,
        traceback: tp.Optional[TracebackType] = None,
    ) -> None: ...
