from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from cors_gateway import vars as env

UPSTREAM_SCHEME = "https"
UPSTREAM_PORT = 443


@dataclass(frozen=True)
class GatewayConfig:
    """
    Process-wide settings for one gateway instance.

    Built once at startup and handed to ``create_app``; nothing mutates it
    afterwards, so several gateways (e.g. one per test) can share a process.
    """

    listen_port: int = 3000
    listen_host: str = "0.0.0.0"
    upstream_host: str = "analytics.rashik.sh"
    upstream_port: int = UPSTREAM_PORT
    upstream_scheme: str = UPSTREAM_SCHEME
    proxy_prefix: str = "/api"
    root_paths: Tuple[str, ...] = ("/", "/index.html")
    static_root: Path = Path(".")
    static_document: str = "visualizer.html"
    fallback_user_agent: str = "Analytics Visualizer Proxy"
    connect_timeout: float = 10.0
    read_timeout: float = 300.0
    expose_metrics: bool = False
    metrics_path: str = "/metrics"

    @classmethod
    def from_env(cls) -> "GatewayConfig":
        return cls(
            listen_port=env.PORT,
            listen_host=env.HOST,
            upstream_host=env.UPSTREAM_HOST,
            proxy_prefix=env.PROXY_PREFIX,
            static_root=Path(env.STATIC_ROOT),
            static_document=env.STATIC_DOCUMENT,
            fallback_user_agent=env.FALLBACK_USER_AGENT,
            connect_timeout=env.UPSTREAM_CONNECT_TIMEOUT,
            read_timeout=env.UPSTREAM_READ_TIMEOUT,
            expose_metrics=env.EXPOSE_METRICS,
            metrics_path=env.METRICS_PATH,
        )

    @property
    def upstream_origin(self) -> str:
        if self.upstream_port == UPSTREAM_PORT and self.upstream_scheme == "https":
            return f"{self.upstream_scheme}://{self.upstream_host}"
        return f"{self.upstream_scheme}://{self.upstream_host}:{self.upstream_port}"
