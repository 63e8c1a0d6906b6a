import logging

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.types import ASGIApp, Receive, Scope, Send

from cors_gateway.config import GatewayConfig
from cors_gateway.relay.upstream import UpstreamRelay
from cors_gateway.routing.classifier import Disposition, classify
from cors_gateway.static.responder import StaticAssetResponder

logger = logging.getLogger("uvicorn.error")


def preflight() -> Response:
    return Response(status_code=204)


def not_found() -> Response:
    return PlainTextResponse("Not Found", status_code=404)


class PreflightMiddleware:
    """
    Answer preflights before routing.

    Asterisk-form targets (``OPTIONS *``) never match a path route, so the
    classifier is consulted on the raw scope instead.
    """

    def __init__(self, app: ASGIApp, config: GatewayConfig) -> None:
        self.app = app
        self.config = config

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if (
            scope["type"] == "http"
            and classify(scope["method"], scope["path"], self.config)
            is Disposition.PREFLIGHT
        ):
            await preflight()(scope, receive, send)
            return
        await self.app(scope, receive, send)


def build_router(
    config: GatewayConfig,
    relay: UpstreamRelay,
    static: StaticAssetResponder,
) -> APIRouter:
    """Create the catch-all router for one gateway instance."""
    router = APIRouter()

    async def dispatch(request: Request) -> Response:
        target = relay.target_for(request)
        disposition = classify(request.method, target, config)
        logger.debug(f"{request.method} {target} -> {disposition.value}")

        if disposition is Disposition.PREFLIGHT:
            return preflight()
        if disposition is Disposition.FORWARD:
            return await relay.forward(request)
        if disposition is Disposition.STATIC_ASSET:
            return await static.respond(config.static_document)
        return not_found()

    # No method list: every verb reaches the classifier, unknown ones get a 404.
    router.add_route("/{path:path}", dispatch, methods=None, include_in_schema=False)
    return router
