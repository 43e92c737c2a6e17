"""Executor - Sends a materialized request and triages the response.

Sequence for one execution:
1. Materialize the builder (URL errors propagate).
2. Wait for rate-limit admission, if a limiter is attached.
3. Refuse to send if the attached context is already done.
4. Send with the body streamed; transport errors propagate unchanged.
5. Status >= 400 is classified into a StatusError, after the body has been
   drained and the connection released.

Errors are neither retried nor swallowed here.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx

from fluent_fetch.errors import classify
from fluent_fetch.materialize import materialize
from fluent_fetch.transport import default_client

if TYPE_CHECKING:
    from fluent_fetch.request import Request

logger = logging.getLogger(__name__)


def execute(request: "Request") -> tuple[httpx.Response, httpx.Request]:
    """Execute a builder and return the live response with the sent request.

    On success the response body is open and unread; the caller must close
    the response.

    Raises:
        httpx.InvalidURL: If the URL cannot be parsed.
        LimiterError: If the limiter rejects the request.
        Cancelled: If the context was cancelled before dispatch.
        ContextDeadlineExceeded: If the context deadline passed before dispatch.
        httpx.HTTPError: On transport failure (connect, timeout, ...).
        StatusError: If the response status is >= 400.
    """
    http_request = materialize(request)

    # Limiter admission does not observe request.ctx.
    if request.limiter is not None:
        request.limiter.wait()

    if request.ctx is not None:
        request.ctx.raise_if_done()
        remaining = request.ctx.remaining()
        if remaining is not None:
            # Time may have passed in the limiter; shrink the timeout to match.
            http_request.extensions["timeout"] = httpx.Timeout(remaining).as_dict()

    client = request.transport or default_client()
    display_url = _display_url(http_request.url)
    logger.debug("Sending %s %s", http_request.method, display_url)
    response = client.send(http_request, stream=True)
    logger.debug("Received %d for %s %s", response.status_code, http_request.method, display_url)

    if response.status_code >= 400:
        raise classify(http_request, response)
    return response, http_request


def _display_url(url: httpx.URL) -> str:
    """URL for log lines, without credentials."""
    if url.userinfo:
        return str(url.copy_with(username="", password=""))
    return str(url)
