from typing import Callable, Iterable, List, Optional

import httpx


def streamed_response(
    status_code: int = 200,
    headers: Optional[List[tuple]] = None,
    body: bytes = b"",
) -> httpx.Response:
    """
    A response whose body is still unread, like one coming off the network.

    ``httpx.Response(content=...)`` or ``json=...`` loads the body eagerly, after
    which ``aiter_raw`` refuses to run; the relay needs an unread stream.
    """
    headers = list(headers or [])
    if not any(name.lower() == "content-length" for name, _ in headers):
        headers.append(("Content-Length", str(len(body))))
    return httpx.Response(status_code, headers=headers, stream=httpx.ByteStream(body))


class RecordingUpstream:
    """
    httpx.MockTransport handler standing in for the upstream host.

    Every request it sees is kept in ``calls`` with its body already read, so
    tests can assert on exactly what the gateway sent.
    """

    def __init__(
        self,
        status_code: int = 200,
        headers: Optional[List[tuple]] = None,
        body: bytes = b"",
        chunks: Optional[Iterable[bytes]] = None,
        error: Optional[Exception] = None,
        responder: Optional[Callable[[httpx.Request], httpx.Response]] = None,
    ):
        self.status_code = status_code
        self.headers = headers or []
        self.body = body
        self.chunks = list(chunks) if chunks is not None else None
        self.error = error
        self.responder = responder
        self.calls: List[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        if self.error is not None:
            raise self.error
        if self.responder is not None:
            return self.responder(request)
        if self.chunks is not None:
            return httpx.Response(
                self.status_code,
                headers=self.headers,
                content=stream_chunks(self.chunks),
            )
        return streamed_response(self.status_code, self.headers, self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)

    @property
    def last(self) -> httpx.Request:
        return self.calls[-1]


async def stream_chunks(chunks: Iterable[bytes], fail_with: Optional[Exception] = None):
    for chunk in chunks:
        yield chunk
    if fail_with is not None:
        raise fail_with
