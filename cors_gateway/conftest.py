import pytest
from starlette.requests import Request


@pytest.fixture
def make_request():
    """Build a real Starlette request from raw ASGI pieces."""

    def _make(
        method: str = "GET",
        raw_path: bytes = b"/api",
        query_string: bytes = b"",
        headers=None,
        body_chunks=None,
    ) -> Request:
        scope = {
            "type": "http",
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "path": raw_path.decode("latin-1"),
            "raw_path": raw_path,
            "query_string": query_string,
            "headers": [
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in (headers or {}).items()
            ],
            "client": ("127.0.0.1", 50000),
            "server": ("127.0.0.1", 3000),
        }
        messages = [
            {"type": "http.request", "body": chunk, "more_body": True}
            for chunk in (body_chunks or [])
        ]
        messages.append({"type": "http.request", "body": b"", "more_body": False})

        async def receive():
            return messages.pop(0)

        return Request(scope, receive)

    return _make
