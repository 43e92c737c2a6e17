"""Pytest configuration and fixtures for fluent-fetch tests.

This file provides:
- RecordingHandler: httpx.MockTransport handler that records requests
- TrackingStream: response body stream that records reads and close()
- Fixtures: a recording handler and an httpx.Client wired to it
"""

from __future__ import annotations

from typing import Any, Callable, Generator, Iterable

import httpx
import pytest


class TrackingStream(httpx.SyncByteStream):
    """Response body that records whether it was consumed and closed.

    If *fail_after* is set, iteration raises httpx.ReadError after that many
    chunks, simulating a connection dropped mid-body.
    """

    def __init__(self, chunks: Iterable[bytes], fail_after: int | None = None) -> None:
        self._chunks = list(chunks)
        self._fail_after = fail_after
        self.chunks_read = 0
        self.closed = False

    def __iter__(self):
        for chunk in self._chunks:
            if self._fail_after is not None and self.chunks_read >= self._fail_after:
                raise httpx.ReadError("connection dropped")
            self.chunks_read += 1
            yield chunk

    @property
    def consumed(self) -> bool:
        return self.chunks_read == len(self._chunks)

    def close(self) -> None:
        self.closed = True


class RecordingHandler:
    """MockTransport handler returning a fixed response and recording requests.

    Set ``respond`` to a callable to compute responses per request instead.
    """

    def __init__(
        self,
        status_code: int = 200,
        content: bytes = b"",
        headers: dict[str, str] | None = None,
    ) -> None:
        self.status_code = status_code
        self.content = content
        self.headers = headers or {}
        self.respond: Callable[[httpx.Request], httpx.Response] | None = None
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        if self.respond is not None:
            return self.respond(request)
        return httpx.Response(self.status_code, content=self.content, headers=self.headers)

    @property
    def last(self) -> httpx.Request:
        assert self.requests, "no request was sent"
        return self.requests[-1]


def make_client(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> httpx.Client:
    """Create an httpx.Client that sends every request to *handler*."""
    return httpx.Client(transport=httpx.MockTransport(handler), **kwargs)


@pytest.fixture
def handler() -> RecordingHandler:
    return RecordingHandler()


@pytest.fixture
def client(handler: RecordingHandler) -> Generator[httpx.Client, None, None]:
    c = make_client(handler)
    try:
        yield c
    finally:
        c.close()
