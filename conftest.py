# Ensure tests import the gateway package from this checkout first, so that
# `import cors_gateway.*` resolves here even when another copy is installed.
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

SERVICE_ROOT = os.path.dirname(__file__)
if SERVICE_ROOT not in sys.path:
    sys.path.insert(0, SERVICE_ROOT)

from cors_gateway.config import GatewayConfig  # noqa: E402
from cors_gateway.utils_tests.constants import (  # noqa: E402
    TEST_UPSTREAM_HOST,
    VISUALIZER_HTML,
)
from cors_gateway.utils_tests.upstream_double import RecordingUpstream  # noqa: E402


@pytest.fixture
def static_root(tmp_path: Path) -> Path:
    (tmp_path / "visualizer.html").write_bytes(VISUALIZER_HTML)
    return tmp_path


@pytest.fixture
def gateway_config(static_root) -> GatewayConfig:
    return GatewayConfig(
        listen_port=3999,
        upstream_host=TEST_UPSTREAM_HOST,
        static_root=static_root,
    )


@pytest.fixture
def upstream() -> RecordingUpstream:
    """Upstream double answering 200 with an empty JSON list."""
    return RecordingUpstream(
        headers=[("content-type", "application/json")], body=b"[]"
    )


@pytest.fixture
def gateway_factory():
    """Build a TestClient around a gateway app; lifespans are closed on teardown."""
    from cors_gateway.server import create_app

    clients = []

    def _create(config: GatewayConfig, upstream: RecordingUpstream) -> TestClient:
        client = TestClient(create_app(config, transport=upstream.transport))
        client.__enter__()
        clients.append(client)
        return client

    yield _create

    for client in clients:
        client.__exit__(None, None, None)


@pytest.fixture
def gateway(gateway_factory, gateway_config, upstream) -> TestClient:
    return gateway_factory(gateway_config, upstream)
