"""fluent-fetch - Fluent, immutable HTTP request builder on top of httpx.

    import fluent_fetch

    items = (
        fluent_fetch.get("https://api.example.com/items")
        .query("page", 2)
        .authorization("Bearer " + token)
        .read_json()
    )
"""

from fluent_fetch.config import ConfigError, load_config
from fluent_fetch.context import Context
from fluent_fetch.errors import (
    Cancelled,
    ContextDeadlineExceeded,
    DeadlineExceededError,
    ErrorKind,
    FetchError,
    InvalidResponseError,
    LimiterError,
    NotFoundError,
    PermissionDeniedError,
    StatusError,
)
from fluent_fetch.files import File, LocalFile, open_local
from fluent_fetch.models import ClientConfig, FileInfo, RateLimitConfig, UserInfo
from fluent_fetch.ratelimit import Limiter, RateLimiter
from fluent_fetch.request import Request, delete, get, new, post, put
from fluent_fetch.response_file import ResponseFile
from fluent_fetch.transport import configure, default_client, set_default_client

__all__ = [
    "Cancelled",
    "ClientConfig",
    "ConfigError",
    "Context",
    "ContextDeadlineExceeded",
    "DeadlineExceededError",
    "ErrorKind",
    "FetchError",
    "File",
    "FileInfo",
    "InvalidResponseError",
    "Limiter",
    "LimiterError",
    "LocalFile",
    "NotFoundError",
    "PermissionDeniedError",
    "RateLimitConfig",
    "RateLimiter",
    "Request",
    "ResponseFile",
    "StatusError",
    "UserInfo",
    "configure",
    "default_client",
    "delete",
    "get",
    "load_config",
    "new",
    "open_local",
    "post",
    "put",
    "set_default_client",
]
