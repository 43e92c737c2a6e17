"""Tests for config loading and the default transport.

Tests cover:
- YAML loading with ${ENV_VAR} substitution
- Error handling for missing files, bad YAML and invalid structure
- build_client applying headers, User-Agent and timeouts
- configure() replacing the shared default client
"""

from pathlib import Path

import httpx
import pytest

import fluent_fetch
from fluent_fetch import ClientConfig, ConfigError, RateLimiter, load_config
from fluent_fetch import transport
from fluent_fetch.transport import build_client, configure, default_client, set_default_client


@pytest.fixture
def isolated_default(monkeypatch: pytest.MonkeyPatch):
    """Give each test its own default client slot, closing what it created."""
    monkeypatch.setattr(transport, "_default_client", None)
    yield
    if transport._default_client is not None:
        transport._default_client.close()


def write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "client.yaml"
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    """Tests for load_config."""

    def test_full_config(self, tmp_path: Path) -> None:
        path = write_config(
            tmp_path,
            """
timeout: 5
follow_redirects: false
max_redirects: 3
user_agent: tool/1.0
headers:
  X-Team: core
rate_limit:
  requests_per_second: 4
  burst: 2
""",
        )

        config = load_config(path)

        assert config.timeout == 5.0
        assert config.follow_redirects is False
        assert config.max_redirects == 3
        assert config.user_agent == "tool/1.0"
        assert config.headers == {"X-Team": "core"}
        assert config.rate_limit is not None
        assert config.rate_limit.requests_per_second == 4.0
        assert config.rate_limit.burst == 2

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        config = load_config(write_config(tmp_path, ""))
        assert config == ClientConfig()
        assert config.timeout == 30.0
        assert config.follow_redirects is True
        assert config.max_redirects == 10

    def test_env_var_substitution(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("FETCH_TOKEN", "secret123")
        path = write_config(tmp_path, "headers:\n  Authorization: Bearer ${FETCH_TOKEN}\n")
        assert load_config(str(path)).headers == {"Authorization": "Bearer secret123"}

    def test_missing_env_var(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("FETCH_MISSING", raising=False)
        path = write_config(tmp_path, "user_agent: ${FETCH_MISSING}\n")
        with pytest.raises(ConfigError, match="FETCH_MISSING"):
            load_config(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "headers: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(path)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(path)

    def test_unknown_key(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "retries: 3\n")
        with pytest.raises(ConfigError, match="Invalid config structure"):
            load_config(path)

    def test_invalid_value(self, tmp_path: Path) -> None:
        path = write_config(tmp_path, "rate_limit:\n  requests_per_second: 0\n")
        with pytest.raises(ConfigError):
            load_config(path)


class TestBuildClient:
    """Tests for build_client."""

    def test_defaults(self) -> None:
        client = build_client(ClientConfig())
        try:
            assert client.follow_redirects is True
            assert client.max_redirects == 10
            assert client.timeout.read == 30.0
        finally:
            client.close()

    def test_headers_and_user_agent(self) -> None:
        config = ClientConfig(headers={"X-Team": "core"}, user_agent="tool/1.0", timeout=2.5)
        client = build_client(config)
        try:
            assert client.headers["x-team"] == "core"
            assert client.headers["user-agent"] == "tool/1.0"
            assert client.timeout.connect == 2.5
        finally:
            client.close()


class TestDefaultClient:
    """Tests for the shared default client."""

    def test_created_lazily_and_reused(self, isolated_default) -> None:
        first = default_client()
        assert default_client() is first

    def test_recreated_after_close(self, isolated_default) -> None:
        first = default_client()
        first.close()
        second = default_client()
        assert second is not first
        assert not second.is_closed

    def test_set_default_client_closes_previous(self, isolated_default) -> None:
        previous = default_client()
        replacement = httpx.Client()
        set_default_client(replacement)
        assert default_client() is replacement
        assert previous.is_closed

    def test_configure_returns_limiter(self, isolated_default) -> None:
        config = ClientConfig.model_validate(
            {"user_agent": "tool/2.0", "rate_limit": {"requests_per_second": 3, "burst": 2}}
        )
        limiter = configure(config)
        assert isinstance(limiter, RateLimiter)
        assert limiter.rate == 3.0
        assert limiter.burst == 2
        assert default_client().headers["user-agent"] == "tool/2.0"

    def test_configure_closes_previous_client_with_open_response(self, isolated_default) -> None:
        """Replacing the default does not wait for responses still open on the old one."""
        previous = httpx.Client(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"body"))
        )
        set_default_client(previous)
        f = fluent_fetch.get("/data").open()
        try:
            configure(ClientConfig())
            assert previous.is_closed
            assert default_client() is not previous
        finally:
            f.close()

    def test_configure_without_rate_limit(self, isolated_default) -> None:
        assert configure(ClientConfig()) is None
