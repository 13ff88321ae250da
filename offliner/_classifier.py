from __future__ import annotations

import logging

from offliner._config import ControllerConfig, Strategy
from offliner._models import Request
from offliner._utils import is_page_request, origin_of, path_of

logger = logging.getLogger("offliner.classifier")

__all__ = ("classify",)


def classify(request: Request, config: ControllerConfig) -> Strategy:
    """
    Decide how the controller handles a request.

    Only same-origin GET requests are eligible. The path is matched against the
    configured prefixes in order and the first match decides the strategy.
    Anything else bypasses the controller, except page navigations when
    `network_first_navigations` is enabled.
    """
    if request.method.upper() != "GET":
        return Strategy.BYPASS

    if origin_of(request.url) != origin_of(config.origin):
        return Strategy.BYPASS

    path = path_of(request.url)
    for rule in config.rules:
        if rule.matches(path):
            return rule.strategy

    if config.network_first_navigations and is_page_request(request):
        return Strategy.NETWORK_FIRST

    logger.debug(f"No classification rule matches {path}")
    return Strategy.BYPASS
