"""Shared default transport.

Requests without an explicit client use one process-wide httpx.Client,
created on first use from ClientConfig defaults. configure() replaces it.
"""

from __future__ import annotations

import threading
from typing import Any

import httpx

from fluent_fetch.models import ClientConfig
from fluent_fetch.ratelimit import RateLimiter

_default_client: httpx.Client | None = None
_default_lock = threading.Lock()


def build_client(config: ClientConfig) -> httpx.Client:
    """Create an httpx.Client from configuration."""
    headers = dict(config.headers)
    if config.user_agent:
        headers["User-Agent"] = config.user_agent

    kwargs: dict[str, Any] = {
        "headers": headers,
        "timeout": config.timeout,
        "follow_redirects": config.follow_redirects,
        "max_redirects": config.max_redirects,
    }
    return httpx.Client(**kwargs)


def default_client() -> httpx.Client:
    """Return the shared default client, creating it on first use."""
    global _default_client
    with _default_lock:
        if _default_client is None or _default_client.is_closed:
            _default_client = build_client(ClientConfig())
        return _default_client


def configure(config: ClientConfig) -> RateLimiter | None:
    """Replace the shared default client with one built from *config*.

    The previous default client is closed at once, which can abort a
    response still streaming from it (an open ResponseFile on another
    thread can fail mid-read). Call this before issuing requests, or
    give long-running readers their own client with Request.client().

    Rate limiters are attached per request, so the limiter described by
    ``config.rate_limit`` is returned for the caller to pass to
    Request.limit().

    Returns:
        A RateLimiter if the config has a rate_limit section, else None.
    """
    set_default_client(build_client(config))
    if config.rate_limit is None:
        return None
    return RateLimiter.from_config(config.rate_limit)


def set_default_client(client: httpx.Client) -> None:
    """Install *client* as the shared default, closing the previous one.

    Responses still streaming from the previous client can fail mid-read.
    """
    global _default_client
    with _default_lock:
        previous, _default_client = _default_client, client
    if previous is not None and previous is not client:
        previous.close()
