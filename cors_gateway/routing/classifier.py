from enum import Enum

from cors_gateway.config import GatewayConfig

PREFLIGHT_METHOD = "OPTIONS"
READ_METHOD = "GET"


class Disposition(str, Enum):
    PREFLIGHT = "preflight"
    FORWARD = "forward"
    STATIC_ASSET = "static_asset"
    NOT_FOUND = "not_found"


def classify(method: str, target: str, config: GatewayConfig) -> Disposition:
    """
    Decide how an inbound request is handled.

    ``target`` is the raw request target (path plus query string, exactly as
    received). The prefix check runs against the whole target so that
    ``/api?x=1`` forwards. Root document matching ignores the query string.
    """
    method = method.upper()
    if method == PREFLIGHT_METHOD:
        return Disposition.PREFLIGHT
    if method != READ_METHOD:
        return Disposition.NOT_FOUND
    if target.startswith(config.proxy_prefix):
        return Disposition.FORWARD
    path = target.split("?", 1)[0]
    if path in config.root_paths:
        return Disposition.STATIC_ASSET
    return Disposition.NOT_FOUND
