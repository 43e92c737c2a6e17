"""Data models for fluent-fetch.

All models use Pydantic v2.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Request Models
# =============================================================================


class UserInfo(BaseModel):
    """Credentials placed in the user-info part of the request URL.

    httpx turns URL user-info into HTTP basic authentication.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    username: str = Field(description="User name")
    password: str | None = Field(default=None, description="Password, if any")


# =============================================================================
# Response Models
# =============================================================================


class FileInfo(BaseModel):
    """File metadata synthesized from a response (or read from a local file).

    Fields that the server did not report are None.
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    name: str = Field(description="Last path segment of the URL or file path")
    size: int | None = Field(default=None, description="Content-Length in bytes")
    modified: datetime | None = Field(default=None, description="Last-Modified time")
    content_type: str | None = Field(default=None, description="Content-Type header")
    url: str = Field(default="", description="Resolved URL (or local path)")
    is_dir: bool = Field(default=False, description="Always False for responses")


# =============================================================================
# Configuration Models
# =============================================================================


class RateLimitConfig(BaseModel):
    """Rate limiting configuration."""

    model_config = ConfigDict(extra="forbid")

    requests_per_second: float = Field(gt=0, description="Token refill rate")
    burst: int = Field(default=1, ge=1, description="Bucket capacity")


class ClientConfig(BaseModel):
    """Settings for the httpx client used as the default transport.

    For TLS or pool settings, build an httpx.Client directly and pass it with
    Request.client().
    """

    model_config = ConfigDict(extra="forbid")

    timeout: float = Field(default=30.0, gt=0, description="Request timeout in seconds")
    follow_redirects: bool = Field(default=True, description="Follow 3xx redirects")
    max_redirects: int = Field(default=10, ge=0, description="Redirect limit")
    headers: dict[str, str] = Field(
        default_factory=dict,
        description="Headers sent with every request (supports ${ENV_VAR} substitution)",
    )
    user_agent: str | None = Field(default=None, description="Default User-Agent")
    rate_limit: RateLimitConfig | None = Field(default=None, description="Rate limiting settings")
