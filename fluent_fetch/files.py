"""File-like handles with a stat() method.

HTTP responses (ResponseFile) and local files (LocalFile) share the same
read/close/stat surface so code that consumes one can consume the other.
"""

from __future__ import annotations

import io
import os
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Protocol, runtime_checkable

import httpx

from fluent_fetch.models import FileInfo


@runtime_checkable
class File(Protocol):
    """Readable binary handle that can describe itself."""

    def read(self, size: int = -1) -> bytes: ...

    def close(self) -> None: ...

    def stat(self) -> FileInfo: ...


class LocalFile(io.FileIO):
    """Local file opened for binary reading, with stat() returning FileInfo."""

    def stat(self) -> FileInfo:
        st = os.fstat(self.fileno())
        # name is the descriptor when opened from an fd
        path = str(self.name) if isinstance(self.name, int) else os.fsdecode(self.name)
        return FileInfo(
            name=os.path.basename(path),
            size=st.st_size,
            modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            url=path,
        )


def open_local(path: str | os.PathLike[str]) -> LocalFile:
    """Open a local file with the same surface as Request.open()."""
    return LocalFile(path, "rb")


def response_file_info(url: httpx.URL, headers: httpx.Headers) -> FileInfo:
    """Build FileInfo from a response URL and headers."""
    return FileInfo(
        name=_name_from_url(url),
        size=_parse_size(headers.get("content-length")),
        modified=_parse_http_date(headers.get("last-modified")),
        content_type=headers.get("content-type"),
        url=str(url),
    )


def _name_from_url(url: httpx.URL) -> str:
    """Last non-empty path segment. "" for the root path."""
    # httpx.URL.path is already percent-decoded
    segments = [s for s in url.path.split("/") if s]
    return segments[-1] if segments else ""


def _parse_size(value: str | None) -> int | None:
    if value is None:
        return None
    try:
        size = int(value.strip())
    except ValueError:
        return None
    return size if size >= 0 else None


def _parse_http_date(value: str | None) -> datetime | None:
    if not value:
        return None
    try:
        parsed = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if parsed.tzinfo is None:
        # HTTP dates are always GMT
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
