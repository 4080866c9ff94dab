"""Pytest configuration and fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from crawlify.config import CrawlifyConfig

# Environment variables read through env: references in the default config
CRAWLIFY_ENV_VARS = [
    "OPENROUTER_API_KEY",
    "CRAWLIFY_SEARCH_BACKEND",
    "FIRECRAWL_API_KEY",
    "BRAVE_API_KEY",
    "TAVILY_API_KEY",
    "SEARXNG_BASE_URL",
    "CRAWL_HTTP_PROXY",
    "CRAWLIFY_CONFIG",
    "CRAWLIFY_LOG_DIR",
]


# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep the developer's keys and proxy out of every test."""
    for name in CRAWLIFY_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def config(tmp_path: Path) -> CrawlifyConfig:
    """Return a configuration isolated to the test's temp directory."""
    return CrawlifyConfig.model_validate(
        {
            "screenshots": {"dir": str(tmp_path / "screenshots")},
            "log": {"dir": None},
        }
    )


# =============================================================================
# HTML Fixtures
# =============================================================================


@pytest.fixture
def article_html() -> str:
    """Return a server-rendered page with plenty of text."""
    paragraph = "Server rendered content that is long enough to read. " * 5
    return f"""<html>
<head><title>Article</title><style>body {{ color: red; }}</style></head>
<body>
  <h1>Article Title</h1>
  <p>{paragraph}</p>
  <a href="/about">About us</a>
  <a href="https://example.com/docs">Docs</a>
</body>
</html>"""


@pytest.fixture
def spa_shell_html() -> str:
    """Return a client-rendered shell with no text."""
    return (
        '<html><head><script type="module" src="/assets/app.js"></script></head>'
        '<body><div id="root"></div></body></html>'
    )


# =============================================================================
# HTTP Fixtures
# =============================================================================


@pytest.fixture
def html_transport() -> Callable[..., httpx.MockTransport]:
    """Build a mock transport that serves a fixed response for every request."""

    def factory(
        body: str = "",
        status_code: int = 200,
        content_type: str | None = "text/html; charset=utf-8",
    ) -> httpx.MockTransport:
        headers = {"content-type": content_type} if content_type else {}

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                status_code, content=body.encode("utf-8"), headers=headers
            )

        return httpx.MockTransport(handler)

    return factory
