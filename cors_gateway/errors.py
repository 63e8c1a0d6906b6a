"""
Error kinds raised while handling a single request.

``UpstreamConnectError`` and ``StaticAssetReadError`` are recovered at the
route boundary into a 500 response. ``UpstreamStreamError`` happens after the
response headers went out, so the only option left is to abort the stream.
An unmatched route is not an error; see ``Disposition.NOT_FOUND``.
"""

from typing import Optional

from cors_gateway.utils.exception_logging import format_exception_message


class GatewayError(Exception):
    """Base class for per-request gateway failures."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

    @property
    def diagnostic(self) -> str:
        """Human readable message including the underlying cause chain."""
        if self.cause is None:
            return str(self)
        return format_exception_message(self.cause)


class UpstreamConnectError(GatewayError):
    """DNS, TCP, TLS or timeout failure before any upstream response arrived."""

    def __init__(self, target_url: str, cause: Optional[BaseException] = None):
        super().__init__(f"Failed to reach upstream {target_url}", cause)
        self.target_url = target_url


class UpstreamStreamError(GatewayError):
    """Upstream body failed after the response had already started."""

    def __init__(
        self,
        target_url: str,
        bytes_relayed: int,
        cause: Optional[BaseException] = None,
    ):
        super().__init__(
            f"Upstream stream from {target_url} broke after {bytes_relayed} bytes",
            cause,
        )
        self.target_url = target_url
        self.bytes_relayed = bytes_relayed


class StaticAssetReadError(GatewayError):
    def __init__(self, name: str, cause: Optional[BaseException] = None):
        super().__init__(f"Error loading {name}", cause)
        self.name = name
