"""HTTP response body exposed as a read-only binary file.

A ResponseFile owns a live streamed httpx.Response. The body can be read
once, front to back. Closing the file closes the response and returns the
connection to the pool, so it must always be closed; use it as a context
manager.
"""

from __future__ import annotations

import codecs
import io

import httpx

from fluent_fetch.files import response_file_info
from fluent_fetch.models import FileInfo

DEFAULT_CHUNK_SIZE = 64 * 1024


class ResponseFile(io.RawIOBase):
    """Streamed response body with file metadata.

    Usage:
        with fluent_fetch.get(url).open() as f:
            info = f.stat()
            for chunk in iter(lambda: f.read(8192), b""):
                ...

    Reading after close() raises ValueError. The stream is not seekable.
    """

    def __init__(self, response: httpx.Response, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        super().__init__()
        self._response = response
        self._chunks = response.iter_bytes(chunk_size)
        self._pending = b""
        self._info = response_file_info(response.url, response.headers)

    @property
    def response(self) -> httpx.Response:
        return self._response

    @property
    def url(self) -> httpx.URL:
        return self._response.url

    @property
    def headers(self) -> httpx.Headers:
        return self._response.headers

    @property
    def encoding(self) -> str:
        """Charset declared by the response, defaulting to UTF-8.

        A charset Python does not know also falls back to UTF-8.
        """
        charset = self._response.charset_encoding
        if charset:
            try:
                codecs.lookup(charset)
            except LookupError:
                charset = None
        return charset or "utf-8"

    def stat(self) -> FileInfo:
        return self._info

    def readable(self) -> bool:
        return True

    def readinto(self, buffer) -> int:
        if self.closed:
            raise ValueError("I/O operation on closed file.")
        while not self._pending:
            chunk = next(self._chunks, None)
            if chunk is None:
                return 0
            self._pending = chunk
        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def close(self) -> None:
        if self.closed:
            return
        try:
            self._response.close()
        finally:
            super().close()
