from typing import Dict

from starlette.datastructures import MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

CORS_HEADERS: Dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def apply_cors_headers(headers: MutableHeaders) -> None:
    """Set the fixed CORS headers, replacing any value already present."""
    for name, value in CORS_HEADERS.items():
        headers[name] = value


class CORSHeaderMiddleware:
    """
    Stamp the CORS headers onto every HTTP response start message.

    Unlike ``starlette.middleware.cors.CORSMiddleware`` this does not look at
    the ``Origin`` header and does not answer preflights itself; the headers
    are unconditional and the route decides the status code.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def send_with_cors(message: Message) -> None:
            if message["type"] == "http.response.start":
                apply_cors_headers(MutableHeaders(scope=message))
            await send(message)

        await self.app(scope, receive, send_with_cors)
