import logging
from typing import AsyncIterator, List, Optional, Tuple

import httpx
from fastapi import Request
from fastapi.responses import PlainTextResponse, Response, StreamingResponse
from opentelemetry import trace
from starlette.background import BackgroundTask
from starlette.requests import ClientDisconnect

from cors_gateway.config import GatewayConfig
from cors_gateway.errors import UpstreamConnectError, UpstreamStreamError
from cors_gateway.utils import header_value
from cors_gateway.utils.exception_logging import log_exception_with_details
from cors_gateway.utils.traced_requests import traced_request

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

# Hop-by-hop headers that should NOT be relayed (RFC 2616); the ASGI server
# redoes the framing for the caller.
HOP_BY_HOP_HEADERS = {
    "connection",
    "keep-alive",
    "proxy-authenticate",
    "proxy-authorization",
    "te",
    "trailers",
    "transfer-encoding",
    "upgrade",
}


def build_timeout(config: GatewayConfig) -> httpx.Timeout:
    return httpx.Timeout(config.read_timeout, connect=config.connect_timeout)


class UpstreamRelay:
    """
    Forward a request to the fixed upstream and stream the answer back.

    One instance per gateway; the only state it holds is the immutable config
    and the shared ``httpx.AsyncClient`` (which owns the connection pool).
    """

    def __init__(self, config: GatewayConfig, client: httpx.AsyncClient):
        self.config = config
        self.client = client

    @staticmethod
    def target_for(request: Request) -> str:
        """Raw ``path?query`` exactly as the caller sent it."""
        raw_path = request.scope.get("raw_path") or request.scope["path"].encode(
            "utf-8"
        )
        target = raw_path.decode("latin-1")
        query_string = request.scope.get("query_string", b"")
        if query_string:
            target = f"{target}?{query_string.decode('latin-1')}"
        return target

    def upstream_url(self, target: str) -> httpx.URL:
        base = httpx.URL(
            scheme=self.config.upstream_scheme,
            host=self.config.upstream_host,
            port=self.config.upstream_port,
        )
        return base.copy_with(raw_path=target.encode("latin-1"))

    def build_headers(self, request: Request) -> List[Tuple[str, str]]:
        headers = [
            ("Host", self.config.upstream_host),
            (
                "User-Agent",
                header_value(
                    request.headers, "user-agent", self.config.fallback_user_agent
                ),
            ),
        ]
        content_length = request.headers.get("content-length")
        if content_length is not None:
            headers.append(("Content-Length", content_length))
        return headers

    @staticmethod
    def has_body(request: Request) -> bool:
        content_length = request.headers.get("content-length")
        if content_length is not None:
            return content_length.strip() not in ("", "0")
        return "transfer-encoding" in request.headers

    def build_request(self, request: Request, target: str) -> httpx.Request:
        """
        Build the upstream request.

        Only ``Host`` and ``User-Agent`` are sent, plus ``Content-Length`` when
        the caller framed a body with it. A body is streamed straight from the
        inbound connection; httpx falls back to chunked encoding when no
        length is known.
        """
        try:
            url = self.upstream_url(target)
        except (httpx.InvalidURL, UnicodeError) as e:
            raise UpstreamConnectError(
                f"{self.config.upstream_origin}{target}", e
            ) from e

        content: Optional[AsyncIterator[bytes]] = None
        if self.has_body(request):
            content = request.stream()

        return httpx.Request(
            method=request.method,
            url=url,
            headers=self.build_headers(request),
            content=content,
        )

    async def open(self, upstream_request: httpx.Request) -> httpx.Response:
        """Send the request and return as soon as the status line and headers arrive."""
        try:
            return await self.client.send(
                upstream_request, stream=True, follow_redirects=False
            )
        except (httpx.HTTPError, ClientDisconnect) as e:
            raise UpstreamConnectError(str(upstream_request.url), e) from e

    async def relay_body(
        self, upstream_response: httpx.Response, target_url: str
    ) -> AsyncIterator[bytes]:
        """
        Yield the upstream body chunk by chunk, undecoded.

        The upstream response is closed whether the relay finishes, fails or
        is cancelled because the caller went away.
        """
        relayed = 0
        try:
            async for chunk in upstream_response.aiter_raw():
                relayed += len(chunk)
                yield chunk
        except httpx.HTTPError as e:
            error = UpstreamStreamError(target_url, relayed, e)
            log_exception_with_details(logger, f"Proxy stream error ({error}):", e)
            raise error from e
        finally:
            await upstream_response.aclose()

    @staticmethod
    def response_headers(upstream_response: httpx.Response) -> List[Tuple[bytes, bytes]]:
        """Upstream headers minus hop-by-hop ones, keeping order and duplicates."""
        relayed = []
        for name, value in upstream_response.headers.raw:
            name = name.lower()
            if name.decode("latin-1") in HOP_BY_HOP_HEADERS:
                continue
            relayed.append((name, value))
        return relayed

    async def forward(self, request: Request) -> Response:
        target = self.target_for(request)
        target_url = f"{self.config.upstream_origin}{target}"

        with traced_request(
            tracer,
            "proxy_request",
            request.method,
            target_url,
            start_message=f"Proxying request to: {target_url}",
        ) as span:
            try:
                upstream_request = self.build_request(request, target)
                upstream_response = await self.open(upstream_request)
            except UpstreamConnectError as e:
                span.set_attribute("proxy.error", "connect_failed")
                log_exception_with_details(logger, "Proxy error:", e.cause)
                return PlainTextResponse(f"Proxy error: {e.diagnostic}", status_code=500)
            except Exception as e:
                logger.error(f"Proxy error for {target_url}: {e}", exc_info=True)
                span.set_attribute("proxy.error", str(e))
                return PlainTextResponse(f"Proxy error: {e}", status_code=500)

            span.set_attribute("proxy.status_code", upstream_response.status_code)
            logger.debug(
                f"Upstream answered {upstream_response.status_code} for {target_url}"
            )

            response = StreamingResponse(
                self.relay_body(upstream_response, target_url),
                status_code=upstream_response.status_code,
                background=BackgroundTask(upstream_response.aclose),
            )
            response.raw_headers = self.response_headers(upstream_response)
            return response
