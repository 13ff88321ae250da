from __future__ import annotations

import logging
import typing as tp

from offliner._config import ControllerConfig
from offliner._exceptions import NetworkError
from offliner._models import Request, Response
from offliner._utils import expects_image, resolve

from ._cache import AsyncCache
from ._network import AsyncBaseNetwork

logger = logging.getLogger("offliner.strategies")

__all__ = ("cache_first", "network_first")


async def _fetch_and_store(
    request: Request, cache: AsyncCache, network: AsyncBaseNetwork, strategy: str
) -> Response:
    response = await network.fetch(request)
    stored = False
    if response.ok:
        stored = await cache.put(request, response) is not None
    response.metadata = {
        "offliner_from_cache": False,
        "offliner_stored": stored,
        "offliner_strategy": strategy,
        "offliner_generation": cache.generation,
    }
    return response


async def _fallback(path: tp.Optional[str], config: ControllerConfig, cache: AsyncCache) -> tp.Optional[Response]:
    if path is None:
        return None
    response = await cache.match(Request(method="GET", url=resolve(config.origin, path)))
    if response is not None:
        response.metadata = {**response.metadata, "offliner_fallback": path}
    return response


async def cache_first(
    request: Request, config: ControllerConfig, cache: AsyncCache, network: AsyncBaseNetwork
) -> Response:
    """
    Serve from the cache, going to the network only on a miss.

    A failed fetch of an image is answered with the fallback image when it is
    cached. Other failures reach the caller: network errors are raised and
    error responses are returned as they are, uncached.
    """
    cached = await cache.match(request)
    if cached is not None:
        logger.debug(f"Serving {request.url} from cache")
        cached.metadata = {**cached.metadata, "offliner_strategy": "cache-first"}
        return cached

    try:
        response = await _fetch_and_store(request, cache, network, "cache-first")
    except NetworkError as exc:
        logger.error(f"Cache first failed for {request.url}: {exc}")
        if expects_image(request):
            fallback = await _fallback(config.fallback_image, config, cache)
            if fallback is not None:
                fallback.metadata = {**fallback.metadata, "offliner_strategy": "cache-first"}
                return fallback
        raise

    if not response.ok and expects_image(request):
        fallback = await _fallback(config.fallback_image, config, cache)
        if fallback is not None:
            logger.debug(f"Replacing {response.status_code} response for {request.url} with the fallback image")
            fallback.metadata = {**fallback.metadata, "offliner_strategy": "cache-first"}
            return fallback
    return response


async def network_first(
    request: Request, config: ControllerConfig, cache: AsyncCache, network: AsyncBaseNetwork
) -> Response:
    """
    Serve fresh content from the network, falling back to the cache.

    Network errors and 5xx responses fall back to the cached copy, then to the
    offline page for navigations. When neither exists the failure reaches the
    caller.
    """
    try:
        response = await _fetch_and_store(request, cache, network, "network-first")
    except NetworkError as exc:
        logger.warning(f"Network first failed for {request.url}, trying cache: {exc}")
        failure: tp.Union[Response, NetworkError] = exc
    else:
        if response.status_code < 500:
            return response
        logger.warning(f"Network first got {response.status_code} for {request.url}, trying cache")
        failure = response

    cached = await cache.match(request)
    if cached is not None:
        cached.metadata = {**cached.metadata, "offliner_strategy": "network-first"}
        return cached

    if request.is_navigation:
        offline = await _fallback(config.offline_url, config, cache)
        if offline is not None:
            offline.metadata = {**offline.metadata, "offliner_strategy": "network-first"}
            return offline

    if isinstance(failure, NetworkError):
        raise failure
    return failure
