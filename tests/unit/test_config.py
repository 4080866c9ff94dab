"""Tests for configuration module."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from crawlify.config import (
    ConfigManager,
    CrawlifyConfig,
    EnvVarNotFoundError,
    FetchConfig,
    SearchConfig,
    SearxngConfig,
    SummaryConfig,
    resolve_env_value,
)


@pytest.fixture
def manager(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ConfigManager:
    """Config manager that sees no config files outside the temp directory."""
    monkeypatch.chdir(tmp_path)
    manager = ConfigManager()
    manager.DEFAULT_USER_CONFIG_DIR = tmp_path / "home"
    return manager


class TestResolveEnvValue:
    """Tests for resolve_env_value function."""

    def test_plain_value(self):
        """Values without env: pass through."""
        assert resolve_env_value("literal") == "literal"
        assert resolve_env_value(None) is None

    def test_env_reference(self, monkeypatch):
        """env:NAME reads the environment."""
        monkeypatch.setenv("CRAWLIFY_TEST_VALUE", "from-env")

        assert resolve_env_value("env:CRAWLIFY_TEST_VALUE") == "from-env"

    def test_missing_env_strict(self):
        """A missing variable raises in strict mode."""
        with pytest.raises(EnvVarNotFoundError) as exc_info:
            resolve_env_value("env:CRAWLIFY_TEST_MISSING")

        assert exc_info.value.var_name == "CRAWLIFY_TEST_MISSING"

    def test_missing_env_lenient(self):
        """A missing variable is None when not strict."""
        assert resolve_env_value("env:CRAWLIFY_TEST_MISSING", strict=False) is None


class TestCrawlifyConfig:
    """Tests for configuration defaults and accessors."""

    def test_defaults(self):
        """Defaults match the documented behavior."""
        config = CrawlifyConfig()

        assert config.fetch.timeout == 20
        assert config.markdown.command == "html2markdown"
        assert config.markdown.timeout == 10
        assert config.browser.navigation_timeout_ms == 20_000
        assert config.browser.fallback_timeout_ms == 10_000
        assert config.screenshots.ttl_seconds == 6 * 60 * 60
        assert config.screenshots.cleanup_interval_seconds == 60 * 60
        assert config.server.port == 3000

    def test_summary_key_blank_is_missing(self, monkeypatch):
        """A blank key counts as missing."""
        monkeypatch.setenv("OPENROUTER_API_KEY", "   ")

        assert SummaryConfig().get_resolved_api_key() is None

    def test_summary_key_from_env(self, monkeypatch):
        """The summary key defaults to OPENROUTER_API_KEY."""
        monkeypatch.setenv("OPENROUTER_API_KEY", " sk-test ")

        assert SummaryConfig().get_resolved_api_key() == "sk-test"

    def test_proxy_from_env(self, monkeypatch):
        """The fetch proxy defaults to CRAWL_HTTP_PROXY."""
        assert FetchConfig().get_resolved_proxy() is None

        monkeypatch.setenv("CRAWL_HTTP_PROXY", "http://proxy.local:3128")

        assert FetchConfig().get_resolved_proxy() == "http://proxy.local:3128"

    def test_search_backend_selector(self, monkeypatch):
        """An unset selector resolves to an empty string."""
        assert SearchConfig().get_resolved_backend() == ""

        monkeypatch.setenv("CRAWLIFY_SEARCH_BACKEND", "brave")

        assert SearchConfig().get_resolved_backend() == "brave"

    def test_searxng_base_url_trailing_slash(self):
        """The SearXNG base URL loses its trailing slash."""
        config = SearxngConfig(base_url="https://searx.test/")

        assert config.get_resolved_base_url() == "https://searx.test"

    def test_screenshot_path_expands_user(self):
        """The screenshot directory expands ~."""
        config = CrawlifyConfig.model_validate({"screenshots": {"dir": "~/shots"}})

        assert config.screenshots.path == Path.home() / "shots"

    def test_invalid_values_rejected(self):
        """Out-of-range values fail validation."""
        with pytest.raises(ValidationError):
            CrawlifyConfig.model_validate({"markdown": {"timeout": 0}})
        with pytest.raises(ValidationError):
            CrawlifyConfig.model_validate({"server": {"port": 70000}})


class TestConfigManager:
    """Tests for ConfigManager."""

    def test_defaults_without_files(self, manager: ConfigManager):
        """No config file means defaults."""
        config = manager.load()

        assert config == CrawlifyConfig()
        assert manager.config_path is None

    def test_explicit_path(self, manager: ConfigManager, tmp_path: Path):
        """An explicit path is loaded and remembered."""
        path = tmp_path / "custom.json"
        path.write_text(json.dumps({"fetch": {"timeout": 5}}), encoding="utf-8")

        config = manager.load(config_path=path)

        assert config.fetch.timeout == 5
        assert manager.config_path == path

    def test_env_path(self, manager: ConfigManager, tmp_path: Path, monkeypatch):
        """CRAWLIFY_CONFIG points at a config file."""
        path = tmp_path / "env.json"
        path.write_text(json.dumps({"server": {"port": 8080}}), encoding="utf-8")
        monkeypatch.setenv("CRAWLIFY_CONFIG", str(path))

        assert manager.load().server.port == 8080

    def test_cwd_config(self, manager: ConfigManager, tmp_path: Path):
        """./crawlify.json is picked up."""
        (tmp_path / "crawlify.json").write_text(
            json.dumps({"markdown": {"command": "/opt/bin/h2m"}}), encoding="utf-8"
        )

        assert manager.load().markdown.command == "/opt/bin/h2m"

    def test_user_config(self, manager: ConfigManager, tmp_path: Path):
        """~/.crawlify/config.json is the last fallback."""
        home = tmp_path / "home"
        home.mkdir()
        (home / "config.json").write_text(
            json.dumps({"search": {"backend": "tavily"}}), encoding="utf-8"
        )

        assert manager.load().search.get_resolved_backend() == "tavily"

    def test_get_and_set(self, manager: ConfigManager):
        """Dot-separated keys read and write nested values."""
        manager.load()

        assert manager.get("search.timeout") == 20
        assert manager.get("search.nope", "fallback") == "fallback"

        manager.set("fetch.proxy", "http://127.0.0.1:8080")

        assert manager.config.fetch.get_resolved_proxy() == "http://127.0.0.1:8080"
