import logging
from contextlib import asynccontextmanager
from typing import Optional, Sequence

import httpx
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import ReadableSpan, TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    SpanExporter,
    SpanExportResult,
)
from prometheus_client import CollectorRegistry, Info
from prometheus_fastapi_instrumentator import Instrumentator

from cors_gateway.config import GatewayConfig
from cors_gateway.cors import CORSHeaderMiddleware
from cors_gateway.relay.upstream import UpstreamRelay, build_timeout
from cors_gateway.routes import PreflightMiddleware, build_router
from cors_gateway.static.responder import StaticAssetResponder
from cors_gateway.vars import OTLP_ENDPOINT, OTLP_HEADERS, SERVICE_NAME

logger = logging.getLogger("uvicorn.error")


class FilteringSpanExporter(SpanExporter):
    """
    Wrapper exporter that filters out noisy ASGI body spans from streaming responses.
    A relayed download would otherwise produce one span per chunk.
    """

    def __init__(self, exporter: SpanExporter):
        self.exporter = exporter

    def export(self, spans: Sequence[ReadableSpan]) -> SpanExportResult:
        filtered_spans = [
            span
            for span in spans
            if not (
                span.attributes
                and span.attributes.get("asgi.event.type") == "http.response.body"
            )
        ]
        if filtered_spans:
            return self.exporter.export(filtered_spans)
        return SpanExportResult.SUCCESS

    def shutdown(self):
        return self.exporter.shutdown()

    def force_flush(self, timeout_millis: int = 30000):
        return self.exporter.force_flush(timeout_millis)


trace.set_tracer_provider(
    TracerProvider(resource=Resource.create({"service.name": SERVICE_NAME}))
)
tracer_provider = trace.get_tracer_provider()
if OTLP_ENDPOINT:
    otlp_exporter = OTLPSpanExporter(
        endpoint=OTLP_ENDPOINT,
        headers=((OTLP_HEADERS).split(",") if OTLP_HEADERS else None),
    )
    tracer_provider.add_span_processor(
        BatchSpanProcessor(FilteringSpanExporter(otlp_exporter))
    )


def create_app(
    config: Optional[GatewayConfig] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build a gateway application.

    ``transport`` replaces the network transport of the upstream client; tests
    pass an ``httpx.MockTransport`` to stand in for the upstream host.
    """
    config = config or GatewayConfig.from_env()
    client = httpx.AsyncClient(
        transport=transport,
        timeout=build_timeout(config),
        follow_redirects=False,
    )
    relay = UpstreamRelay(config, client)
    static = StaticAssetResponder(config.static_root)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(
            f"CORS Proxy server running at http://localhost:{config.listen_port}"
        )
        logger.info(
            f"Open http://localhost:{config.listen_port} in your browser to view the visualizer"
        )
        logger.info(f"Relaying {config.proxy_prefix}* to {config.upstream_origin}")
        try:
            yield
        finally:
            await client.aclose()

    app = FastAPI(
        title="cors-gateway",
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.config = config
    app.state.relay = relay

    registry = CollectorRegistry()
    instrumentator = Instrumentator(registry=registry)
    instrumentator.instrument(app)
    if config.expose_metrics:
        instrumentator.expose(app, endpoint=config.metrics_path)
    app_info = Info("fastapi_app_info", "Application Info", registry=registry)
    app_info.info({"app_name": SERVICE_NAME, "upstream": config.upstream_host})

    FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider)

    app.add_middleware(PreflightMiddleware, config=config)
    app.add_middleware(CORSHeaderMiddleware)
    app.include_router(build_router(config, relay, static))
    return app


app = create_app()
