"""Request - Immutable fluent HTTP request builder.

Every configuration method returns a new Request and leaves the original
untouched, so a partially configured request can be reused as a template:

    api = fluent_fetch.get("https://api.example.com/items").user_agent("tool/1.0")
    page1 = api.query("page", 1).read_json()
    page2 = api.query("page", 2).read_json()

Terminal methods (open, read, read_string, read_json, read_xml, stat,
download, err) execute the request. They never modify the builder, so a
builder can be executed any number of times and from several threads.
"""

from __future__ import annotations

import contextlib
import dataclasses
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Sequence

import httpx

from fluent_fetch import codec
from fluent_fetch.context import Context
from fluent_fetch.executor import execute
from fluent_fetch.models import FileInfo, UserInfo
from fluent_fetch.pairs import PairList, PairValue, canonical_header_key
from fluent_fetch.ratelimit import Limiter
from fluent_fetch.response_file import ResponseFile

LOCAL_ORIGIN = "http://localhost"

# Permission bits for downloaded files: owner read/write only.
DOWNLOAD_MODE = 0o600


def normalize_url(url: str) -> str:
    """Normalize a builder URL.

    ``/path`` and ``:port/path`` are made absolute against
    ``http://localhost``. Any query string in the literal URL is removed;
    query parameters must be added with Request.query().
    """
    if url.startswith("/") or url.startswith(":"):
        url = LOCAL_ORIGIN + url
    head, hash_mark, fragment = url.partition("#")
    head = head.partition("?")[0]
    return head + hash_mark + fragment


@dataclass(frozen=True)
class Request:
    """Fluent request builder. Create one with new(), get(), post(), put() or delete()."""

    method: str
    url: str
    queries: PairList = field(default_factory=PairList)
    headers: PairList = field(default_factory=PairList)
    credentials: UserInfo | None = None
    content: bytes = b""
    content_type: str = ""
    limiter: Limiter | None = None
    ctx: Context | None = None
    transport: httpx.Client | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "url", normalize_url(self.url))

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    def client(self, client: httpx.Client) -> Request:
        """Send through *client* instead of the shared default client."""
        return dataclasses.replace(self, transport=client)

    def context(self, ctx: Context) -> Request:
        return dataclasses.replace(self, ctx=ctx)

    def query(self, key: str, *values: PairValue) -> Request:
        """Add a query parameter. The last of *values* is used.

        Values converting to "", "0" or "false" leave the parameter out.
        Adding the same key again sends both values.
        """
        return dataclasses.replace(self, queries=self.queries.add(key, *values))

    def header(self, key: str, *values: PairValue) -> Request:
        """Add a header; same value rules as query(). The key is canonicalized."""
        return dataclasses.replace(
            self, headers=self.headers.add(canonical_header_key(key), *values)
        )

    def user_agent(self, ua: str) -> Request:
        return self.header("User-Agent", ua)

    def authorization(self, auth_header: str) -> Request:
        return self.header("Authorization", auth_header)

    def user(self, username: str, password: str | None = None) -> Request:
        """Send basic-auth credentials through the URL user-info."""
        return dataclasses.replace(
            self, credentials=UserInfo(username=username, password=password)
        )

    def body(self, data: bytes | str, mime: str) -> Request:
        """Set a raw body and its Content-Type. A str is UTF-8 encoded."""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return dataclasses.replace(self, content=bytes(data), content_type=mime)

    def form(self, data: Mapping[str, str | Sequence[str]]) -> Request:
        return self.body(codec.encode_form(data), codec.FORM_MIME)

    def json(self, value: Any) -> Request:
        """Set a JSON body. Pydantic models are serialized with model_dump_json()."""
        return self.body(codec.encode_json(value), codec.JSON_MIME)

    def xml(self, data: Mapping[str, Any]) -> Request:
        """Set an XML body from a mapping with a single root key."""
        return self.body(codec.encode_xml(data), codec.XML_MIME)

    def limit(self, limiter: Limiter) -> Request:
        """Wait on *limiter* before sending. The limiter is shared, not copied."""
        return dataclasses.replace(self, limiter=limiter)

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def open(self) -> ResponseFile:
        """Execute and return the response body as an open file.

        The caller must close the file (or use it in a with block); an
        unclosed file holds on to its connection.
        """
        response, _ = execute(self)
        return ResponseFile(response)

    def read(self) -> bytes:
        with self.open() as f:
            return f.read()

    def read_string(self) -> str:
        """Read the whole body as text, using the response charset (UTF-8 by default)."""
        with self.open() as f:
            return f.read().decode(f.encoding, errors="replace")

    def read_json(self, target: Any = None) -> Any:
        """Decode the body as JSON, optionally validating into *target*."""
        with self.open() as f:
            return codec.decode_json(f, target)

    def read_xml(self, target: Any = None, force_list: set[str] | None = None) -> Any:
        """Decode the body as XML, optionally validating into *target*."""
        with self.open() as f:
            return codec.decode_xml(f, target, force_list)

    def stat(self) -> FileInfo:
        """Execute, discard the body and return the response's file metadata."""
        with self.open() as f:
            return f.stat()

    def download(self, name: str | os.PathLike[str]) -> Path:
        """Stream the body into the file *name*, readable by the owner only.

        The body is written to a temporary file next to *name* and renamed
        into place once complete, so *name* never holds a partial download.
        The parent directory must exist.
        """
        dest = Path(name)
        with self.open() as f:
            fd, temp_name = tempfile.mkstemp(dir=dest.parent, prefix=f".{dest.name}.", suffix=".part")
            try:
                with os.fdopen(fd, "wb") as out:
                    shutil.copyfileobj(f, out)
                os.chmod(temp_name, DOWNLOAD_MODE)
                os.replace(temp_name, dest)
            except BaseException:
                with contextlib.suppress(FileNotFoundError):
                    os.unlink(temp_name)
                raise
        return dest

    def err(self) -> None:
        """Execute for success or failure only. Raises on failure."""
        response, _ = execute(self)
        response.close()


def new(method: str, url: str) -> Request:
    return Request(method=method, url=url)


def get(url: str) -> Request:
    return new("GET", url)


def post(url: str) -> Request:
    return new("POST", url)


def put(url: str) -> Request:
    return new("PUT", url)


def delete(url: str) -> Request:
    return new("DELETE", url)
