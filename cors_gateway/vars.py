import os

SERVICE_NAME = os.getenv("SERVICE_NAME", "cors-gateway")
HOST = os.environ.get("HOST", "0.0.0.0")
PORT = int(os.environ.get("PORT", "3000"))
LOG_LEVEL = os.environ.get("LOG_LEVEL", "info").lower()

UPSTREAM_HOST = os.environ.get("UPSTREAM_HOST", "analytics.rashik.sh")
PROXY_PREFIX = os.environ.get("PROXY_PREFIX", "/api")
FALLBACK_USER_AGENT = os.environ.get(
    "FALLBACK_USER_AGENT", "Analytics Visualizer Proxy"
)
UPSTREAM_CONNECT_TIMEOUT = float(os.getenv("UPSTREAM_CONNECT_TIMEOUT", "10"))
UPSTREAM_READ_TIMEOUT = float(os.getenv("UPSTREAM_READ_TIMEOUT", "300"))

STATIC_ROOT = os.environ.get("STATIC_ROOT", ".")
STATIC_DOCUMENT = os.environ.get("STATIC_DOCUMENT", "visualizer.html")

OTLP_ENDPOINT = os.getenv("OTLP_ENDPOINT")
OTLP_HEADERS = os.getenv("OTLP_HEADERS", "")

EXPOSE_METRICS = os.getenv("EXPOSE_METRICS", "false").lower() == "true"
METRICS_PATH = os.getenv("METRICS_PATH", "/metrics")
