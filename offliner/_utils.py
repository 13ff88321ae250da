from __future__ import annotations

import hashlib
from urllib.parse import urljoin, urlsplit

from offliner._headers import accepts
from offliner._models import Request

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".gif", ".webp", ".svg", ".ico", ".avif", ".bmp")


def generate_key(request: Request) -> str:
    """
    Build the cache key identifying a request.

    Two requests share a key when their method and URL are the same.
    """
    encoded = f"{request.method.upper()} {request.url}".encode("utf-8")
    return hashlib.sha256(encoded).hexdigest()


def origin_of(url: str) -> str:
    """
    Return "scheme://host[:port]" for an absolute URL, omitting default ports.

    Example:
        >>> origin_of("https://example.com:443/a?b=1")
        'https://example.com'
    """
    parts = urlsplit(url)
    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    port = parts.port
    if port is None or (scheme, port) in (("http", 80), ("https", 443)):
        return f"{scheme}://{host}"
    return f"{scheme}://{host}:{port}"


def path_of(url: str) -> str:
    return urlsplit(url).path or "/"


def resolve(origin: str, path_or_url: str) -> str:
    """Turn an absolute path into a URL on `origin`, leaving absolute URLs untouched."""
    return urljoin(origin.rstrip("/") + "/", path_or_url)


def expects_image(request: Request) -> bool:
    """
    Guess whether the request is for an image.

    The fetch destination wins when present, then the Accept header, then the
    file extension of the path.
    """
    if request.destination is not None:
        return request.destination == "image"
    if accepts(request.headers, "image/*"):
        return True
    return path_of(request.url).lower().endswith(IMAGE_EXTENSIONS)


def is_page_request(request: Request) -> bool:
    return request.is_navigation or accepts(request.headers, "text/html")

