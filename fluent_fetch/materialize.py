"""Materializer - Turns a Request builder into one httpx.Request.

Materialization only reads the builder. Each call produces a fresh
httpx.Request that belongs to a single execution.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from urllib.parse import urlencode

import httpx

from fluent_fetch.pairs import PairList
from fluent_fetch.transport import default_client

if TYPE_CHECKING:
    from fluent_fetch.request import Request

# Request extension key under which an attached Context travels.
CONTEXT_EXTENSION = "context"


def merge_query(url: httpx.URL, pairs: PairList) -> httpx.URL:
    """Merge query pairs into the URL's existing query parameters.

    Existing parameters are kept and non-omitted pair values are appended
    under their key. The merged query is re-encoded with keys sorted and each
    key's values in order. It replaces the original query only when it is
    non-empty.
    """
    values: dict[str, list[str]] = {}
    for key, value in url.params.multi_items():
        values.setdefault(key, []).append(value)
    pairs.inject(values)

    raw_query = urlencode([(key, v) for key in sorted(values) for v in values[key]])
    if not raw_query:
        return url
    return url.copy_with(query=raw_query.encode("ascii"))


def build_headers(pairs: PairList) -> list[tuple[str, str]]:
    """Flatten header pairs into (key, value) items, applying the omit rule."""
    values = pairs.inject({})
    return [(key, v) for key, vs in values.items() for v in vs]


def materialize(request: "Request") -> httpx.Request:
    """Build the outbound httpx.Request for a builder.

    The request is built with the transport client's build_request(), so the
    client's default headers apply unless a header pair overrides them.

    Raises:
        httpx.InvalidURL: If the builder's URL cannot be parsed.
    """
    url = merge_query(httpx.URL(request.url), request.queries)

    # Builder credentials always replace user-info embedded in the URL.
    if request.credentials is not None:
        url = url.copy_with(
            username=request.credentials.username,
            password=request.credentials.password or "",
        )
    elif url.userinfo:
        url = url.copy_with(username="", password="")

    kwargs: dict[str, Any] = {
        "headers": build_headers(request.headers),
        "content": request.content,
    }
    if request.ctx is not None:
        kwargs["extensions"] = {CONTEXT_EXTENSION: request.ctx}
        remaining = request.ctx.remaining()
        if remaining is not None:
            kwargs["timeout"] = remaining

    client = request.transport or default_client()
    http_request = client.build_request(request.method, url, **kwargs)

    if request.content:
        http_request.headers["Content-Length"] = str(len(request.content))
    if request.content_type:
        http_request.headers["Content-Type"] = request.content_type
    return http_request
