from fastapi.testclient import TestClient
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse, Response
from starlette.routing import Route

from cors_gateway.cors import CORS_HEADERS, CORSHeaderMiddleware


def _app(handler):
    app = Starlette(routes=[Route("/", handler, methods=["GET"])])
    app.add_middleware(CORSHeaderMiddleware)
    return app


def test_headers_have_fixed_values():
    assert CORS_HEADERS == {
        "Access-Control-Allow-Origin": "*",
        "Access-Control-Allow-Methods": "GET, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }


def test_headers_added_without_origin_header():
    async def handler(request):
        return PlainTextResponse("ok")

    response = TestClient(_app(handler)).get("/")

    assert response.status_code == 200
    for name, value in CORS_HEADERS.items():
        assert response.headers[name] == value


def test_gateway_value_replaces_conflicting_header():
    async def handler(request):
        return Response(
            "ok",
            headers={
                "Access-Control-Allow-Origin": "https://only.example.com",
                "Access-Control-Allow-Methods": "GET, POST, DELETE",
                "X-Upstream": "kept",
            },
        )

    response = TestClient(_app(handler)).get("/")

    assert response.headers.get_list("access-control-allow-origin") == ["*"]
    assert response.headers.get_list("access-control-allow-methods") == ["GET, OPTIONS"]
    assert response.headers["x-upstream"] == "kept"


def test_framework_generated_errors_also_carry_headers():
    async def handler(request):
        return PlainTextResponse("ok")

    client = TestClient(_app(handler))

    not_found = client.get("/missing")
    not_allowed = client.post("/")

    assert not_found.status_code == 404
    assert not_allowed.status_code == 405
    for response in (not_found, not_allowed):
        assert response.headers["access-control-allow-origin"] == "*"
