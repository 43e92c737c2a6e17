"""Error taxonomy and classification of HTTP error responses.

Responses with status >= 400 are turned into a StatusError subclass chosen
by status code. The semantic subclasses also derive from the matching
builtin exception, so ``except FileNotFoundError`` catches a 404 the same way
it catches a missing local file.
"""

from __future__ import annotations

import codecs
from enum import Enum

import httpx

# Cap on the response body excerpt carried by a StatusError.
MAX_ERROR_BODY = 4096
TRUNCATION_MARKER = "..."


class FetchError(Exception):
    """Base class for fluent-fetch errors."""


class LimiterError(FetchError):
    """Raised when a rate limiter cannot admit a request."""


class Cancelled(FetchError):
    """Raised when the request's context was cancelled before dispatch."""


class ContextDeadlineExceeded(FetchError, TimeoutError):
    """Raised when the request's context deadline passed before dispatch."""


class ErrorKind(str, Enum):
    """Semantic classification of an HTTP error status."""

    NOT_FOUND = "not found"
    PERMISSION_DENIED = "permission denied"
    DEADLINE_EXCEEDED = "deadline exceeded"
    INVALID = "invalid response"
    STATUS = "status"


class StatusError(FetchError):
    """Raised for a response with status >= 400.

    Attributes:
        kind: Semantic classification of the status.
        status_code: Numeric HTTP status.
        status: Verbatim status line, e.g. "418 I'm a teapot".
        url: URL of the failed request.
        body: Response body text, truncated to MAX_ERROR_BODY bytes.
    """

    kind = ErrorKind.STATUS

    def __init__(self, status_code: int, status: str, url: str, body: str) -> None:
        self.status_code = status_code
        self.status = status
        self.url = url
        self.body = body
        label = status if self.kind is ErrorKind.STATUS else self.kind.value
        super().__init__(f"{label}: {body}")

    def __str__(self) -> str:
        return self.args[0]


class NotFoundError(StatusError, FileNotFoundError):
    """404 Not Found."""

    kind = ErrorKind.NOT_FOUND


class PermissionDeniedError(StatusError, PermissionError):
    """403 Forbidden."""

    kind = ErrorKind.PERMISSION_DENIED


class DeadlineExceededError(StatusError, TimeoutError):
    """504 Gateway Timeout."""

    kind = ErrorKind.DEADLINE_EXCEEDED


class InvalidResponseError(StatusError, ValueError):
    """502 Bad Gateway."""

    kind = ErrorKind.INVALID


_STATUS_CLASSES: dict[int, type[StatusError]] = {
    404: NotFoundError,
    403: PermissionDeniedError,
    504: DeadlineExceededError,
    502: InvalidResponseError,
}


def truncate_body(data: bytes) -> str:
    """Decode an error body, cutting it at MAX_ERROR_BODY bytes.

    A UTF-8 sequence split by the cut is dropped rather than replaced, so a
    valid UTF-8 excerpt never encodes to more than MAX_ERROR_BODY bytes.
    """
    if len(data) > MAX_ERROR_BODY:
        # A non-final incremental decode holds back an incomplete tail
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        return decoder.decode(data[:MAX_ERROR_BODY]) + TRUNCATION_MARKER
    return data.decode("utf-8", errors="replace")


def classify(request: httpx.Request, response: httpx.Response) -> StatusError:
    """Drain and close an error response and build the matching StatusError.

    The body is always read to the end and the response closed, releasing
    the connection, before this returns. Errors raised while reading the
    body propagate.
    """
    try:
        data = response.read()
    finally:
        response.close()

    body = truncate_body(data)
    status = f"{response.status_code} {response.reason_phrase}".rstrip()
    error_class = _STATUS_CLASSES.get(response.status_code, StatusError)
    return error_class(response.status_code, status, str(request.url), body)
