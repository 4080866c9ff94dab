"""Configuration management for crawlify."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field

from crawlify.constants import (
    CONFIG_FILENAME,
    DEFAULT_FALLBACK_NAVIGATION_TIMEOUT_MS,
    DEFAULT_FETCH_TIMEOUT,
    DEFAULT_FIRECRAWL_BASE_URL,
    DEFAULT_LOG_DIR,
    DEFAULT_LOG_LEVEL,
    DEFAULT_LOG_RETENTION,
    DEFAULT_LOG_ROTATION,
    DEFAULT_MARKDOWN_COMMAND,
    DEFAULT_MARKDOWN_TIMEOUT,
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_PROXY_ENV,
    DEFAULT_SCREENSHOT_CLEANUP_INTERVAL_SECONDS,
    DEFAULT_SCREENSHOT_DIR,
    DEFAULT_SCREENSHOT_TTL_SECONDS,
    DEFAULT_SCREENSHOT_URL_PREFIX,
    DEFAULT_SEARCH_BACKEND_ENV,
    DEFAULT_SEARCH_TIMEOUT,
    DEFAULT_SERVER_HOST,
    DEFAULT_SERVER_PORT,
    DEFAULT_SUMMARY_API_KEY_ENV,
    DEFAULT_SUMMARY_MAX_INPUT_CHARS,
    DEFAULT_SUMMARY_MODEL,
    DEFAULT_SUMMARY_TIMEOUT,
    DEFAULT_USER_AGENT,
)


class EnvVarNotFoundError(ValueError):
    """Raised when an environment variable referenced by env: syntax is not found."""

    def __init__(self, var_name: str) -> None:
        self.var_name = var_name
        super().__init__(f"Environment variable not found: {var_name}")


def resolve_env_value(value: str | None, strict: bool = True) -> str | None:
    """Resolve env:VAR_NAME syntax to actual environment variable value.

    Args:
        value: The value to resolve. If starts with "env:", looks up environment variable.
        strict: If True, raises EnvVarNotFoundError when variable not found.
                If False, returns None when variable not found.

    Returns:
        The resolved value, or None if env var not found and strict=False.

    Raises:
        EnvVarNotFoundError: If strict=True and environment variable not found.
    """
    if isinstance(value, str) and value.startswith("env:"):
        env_var = value[4:]
        env_value = os.environ.get(env_var)
        if env_value is None:
            if strict:
                raise EnvVarNotFoundError(env_var)
            return None
        return env_value
    return value


class _SecretMixin:
    """Shared accessor for models carrying an env:-resolvable api_key."""

    def get_resolved_api_key(self, strict: bool = False) -> str | None:
        """Get API key with env: syntax resolved, None when unset or blank."""
        api_key = getattr(self, "api_key", None)
        if not api_key:
            return None
        resolved = resolve_env_value(api_key, strict=strict)
        if resolved is None or not resolved.strip():
            return None
        return resolved.strip()


class FetchConfig(BaseModel):
    """Plain HTTP fetch configuration."""

    timeout: float = DEFAULT_FETCH_TIMEOUT  # seconds
    user_agent: str = DEFAULT_USER_AGENT
    proxy: str | None = DEFAULT_PROXY_ENV  # Supports env: syntax

    def get_resolved_proxy(self) -> str | None:
        """Get the raw proxy URL with env: syntax resolved."""
        if not self.proxy:
            return None
        return resolve_env_value(self.proxy, strict=False)


class BrowserConfig(BaseModel):
    """Headless browser configuration for rendering and screenshots."""

    headless: bool = True
    navigation_timeout_ms: int = Field(default=DEFAULT_NAVIGATION_TIMEOUT_MS, ge=1)
    fallback_timeout_ms: int = Field(
        default=DEFAULT_FALLBACK_NAVIGATION_TIMEOUT_MS, ge=1
    )


class MarkdownConfig(BaseModel):
    """External HTML to Markdown converter configuration."""

    command: str = DEFAULT_MARKDOWN_COMMAND  # Executable name or path
    timeout: float = Field(default=DEFAULT_MARKDOWN_TIMEOUT, gt=0)  # seconds


class SummaryConfig(_SecretMixin, BaseModel):
    """LLM summary configuration."""

    model: str = DEFAULT_SUMMARY_MODEL
    api_key: str | None = DEFAULT_SUMMARY_API_KEY_ENV  # Supports env: syntax
    timeout: float = DEFAULT_SUMMARY_TIMEOUT  # seconds
    max_input_chars: int = Field(default=DEFAULT_SUMMARY_MAX_INPUT_CHARS, ge=1)


class ScreenshotConfig(BaseModel):
    """Screenshot storage and cleanup configuration."""

    dir: str = DEFAULT_SCREENSHOT_DIR
    url_prefix: str = DEFAULT_SCREENSHOT_URL_PREFIX
    ttl_seconds: int = Field(default=DEFAULT_SCREENSHOT_TTL_SECONDS, ge=1)
    cleanup_interval_seconds: int = Field(
        default=DEFAULT_SCREENSHOT_CLEANUP_INTERVAL_SECONDS, ge=1
    )

    @property
    def path(self) -> Path:
        """Screenshot directory with ~ expanded."""
        return Path(self.dir).expanduser()


class FirecrawlConfig(_SecretMixin, BaseModel):
    """Firecrawl search API configuration."""

    api_key: str | None = "env:FIRECRAWL_API_KEY"
    base_url: str = DEFAULT_FIRECRAWL_BASE_URL


class BraveConfig(_SecretMixin, BaseModel):
    """Brave Search API configuration."""

    api_key: str | None = "env:BRAVE_API_KEY"
    country: str | None = None
    safesearch: Literal["off", "moderate", "strict"] | None = None


class TavilyConfig(_SecretMixin, BaseModel):
    """Tavily search API configuration."""

    api_key: str | None = "env:TAVILY_API_KEY"
    search_depth: Literal["basic", "advanced"] = "basic"


class SearxngConfig(BaseModel):
    """SearXNG instance configuration (no credentials)."""

    base_url: str | None = "env:SEARXNG_BASE_URL"
    language: str | None = None
    categories: str | None = None

    def get_resolved_base_url(self) -> str | None:
        """Get the instance base URL with env: syntax resolved."""
        if not self.base_url:
            return None
        resolved = resolve_env_value(self.base_url, strict=False)
        if resolved is None or not resolved.strip():
            return None
        return resolved.strip().rstrip("/")


class SearchConfig(BaseModel):
    """Web search configuration."""

    backend: str | None = DEFAULT_SEARCH_BACKEND_ENV  # Supports env: syntax
    timeout: float = DEFAULT_SEARCH_TIMEOUT  # seconds
    firecrawl: FirecrawlConfig = Field(default_factory=FirecrawlConfig)
    brave: BraveConfig = Field(default_factory=BraveConfig)
    tavily: TavilyConfig = Field(default_factory=TavilyConfig)
    searxng: SearxngConfig = Field(default_factory=SearxngConfig)

    def get_resolved_backend(self) -> str:
        """Get the backend selector, empty string when unset."""
        if not self.backend:
            return ""
        return resolve_env_value(self.backend, strict=False) or ""


class LogConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = DEFAULT_LOG_LEVEL
    dir: str | None = DEFAULT_LOG_DIR
    rotation: str = DEFAULT_LOG_ROTATION
    retention: str = DEFAULT_LOG_RETENTION


class ServerConfig(BaseModel):
    """HTTP API server configuration."""

    host: str = DEFAULT_SERVER_HOST
    port: int = Field(default=DEFAULT_SERVER_PORT, ge=1, le=65535)


class CrawlifyConfig(BaseModel):
    """Main configuration model."""

    fetch: FetchConfig = Field(default_factory=FetchConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    markdown: MarkdownConfig = Field(default_factory=MarkdownConfig)
    summary: SummaryConfig = Field(default_factory=SummaryConfig)
    screenshots: ScreenshotConfig = Field(default_factory=ScreenshotConfig)
    search: SearchConfig = Field(default_factory=SearchConfig)
    log: LogConfig = Field(default_factory=LogConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)


class ConfigManager:
    """Configuration manager for loading configs."""

    CONFIG_FILENAME = CONFIG_FILENAME
    DEFAULT_USER_CONFIG_DIR = Path.home() / ".crawlify"

    def __init__(self) -> None:
        self._config: CrawlifyConfig | None = None
        self._config_path: Path | None = None

    @property
    def config(self) -> CrawlifyConfig:
        """Get current configuration, loading if necessary."""
        if self._config is None:
            self._config = self.load()
        return self._config

    @property
    def config_path(self) -> Path | None:
        """Get the path of the loaded configuration file."""
        return self._config_path

    def load(
        self,
        config_path: Path | str | None = None,
        env_override: bool = True,
    ) -> CrawlifyConfig:
        """
        Load configuration from file with fallback chain.

        Priority (highest to lowest):
        1. Explicit config_path parameter
        2. CRAWLIFY_CONFIG environment variable
        3. ./crawlify.json (current directory)
        4. ~/.crawlify/config.json (user directory)
        5. Default values
        """
        config_data: dict[str, Any] = {}

        resolved_path = self._resolve_config_path(config_path, env_override)

        if resolved_path and resolved_path.exists():
            config_data = self._load_json(resolved_path)
            self._config_path = resolved_path

        self._config = CrawlifyConfig.model_validate(config_data)
        return self._config

    def _resolve_config_path(
        self,
        config_path: Path | str | None,
        env_override: bool,
    ) -> Path | None:
        """Resolve configuration file path based on priority."""
        if config_path:
            return Path(config_path)

        if env_override:
            env_path = os.environ.get("CRAWLIFY_CONFIG")
            if env_path:
                return Path(env_path)

        cwd_config = Path.cwd() / self.CONFIG_FILENAME
        if cwd_config.exists():
            return cwd_config

        user_config = self.DEFAULT_USER_CONFIG_DIR / "config.json"
        if user_config.exists():
            return user_config

        return None

    def _load_json(self, path: Path) -> dict[str, Any]:
        """Load JSON configuration file."""
        with open(path, encoding="utf-8") as f:
            return json.load(f)

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value by dot-separated key path.

        Example: config_manager.get("search.timeout")
        """
        parts = key.split(".")
        value: Any = self.config

        for part in parts:
            if isinstance(value, BaseModel):
                value = getattr(value, part, None)
            elif isinstance(value, dict):
                value = value.get(part)
            else:
                return default

            if value is None:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value by dot-separated key path.

        Example: config_manager.set("fetch.proxy", "http://127.0.0.1:8080")
        """
        parts = key.split(".")
        parent: Any = self.config
        for part in parts[:-1]:
            if isinstance(parent, BaseModel):
                parent = getattr(parent, part)
            elif isinstance(parent, dict):
                parent = parent[part]

        final_key = parts[-1]
        if isinstance(parent, BaseModel):
            setattr(parent, final_key, value)
        elif isinstance(parent, dict):
            parent[final_key] = value


# Global config manager instance
config_manager = ConfigManager()


def get_config() -> CrawlifyConfig:
    """Get the global configuration."""
    return config_manager.config
