"""Web search with interchangeable backends.

The backend is chosen by ``search.backend`` (``CRAWLIFY_SEARCH_BACKEND`` by
default). An empty selector means Firecrawl; an unknown one fails before any
network call.

Usage:
    from crawlify.search import search_web

    result = await search_web("python asyncio", limit=5)
    for item in result.results:
        print(item.title, item.url)
"""

from __future__ import annotations

import httpx

from crawlify.config import SearchConfig, get_config
from crawlify.constants import DEFAULT_SEARCH_LIMIT
from crawlify.errors import SearchUnavailable
from crawlify.search.base import (
    ResultItem,
    SearchBackend,
    SearchBackendKind,
    SearchResult,
)
from crawlify.search.brave import BraveBackend
from crawlify.search.firecrawl import FirecrawlBackend
from crawlify.search.searxng import SearxngBackend
from crawlify.search.tavily import TavilyBackend

DEFAULT_BACKEND = SearchBackendKind.FIRECRAWL

BACKENDS: dict[SearchBackendKind, type[SearchBackend]] = {
    SearchBackendKind.FIRECRAWL: FirecrawlBackend,
    SearchBackendKind.BRAVE: BraveBackend,
    SearchBackendKind.TAVILY: TavilyBackend,
    SearchBackendKind.SEARXNG: SearxngBackend,
}

_unregistered = set(SearchBackendKind) - set(BACKENDS)
if _unregistered:
    raise RuntimeError(
        f"No search backend for: {', '.join(sorted(k.value for k in _unregistered))}"
    )


def resolve_backend_kind(selector: str | None) -> SearchBackendKind:
    """Map a backend selector string to a backend kind.

    Raises:
        SearchUnavailable: If the selector names no known backend
    """
    name = (selector or "").strip().lower()
    if not name:
        return DEFAULT_BACKEND
    try:
        return SearchBackendKind(name)
    except ValueError:
        raise SearchUnavailable(
            f"Search backend '{name}' is not supported."
        ) from None


def get_search_backend(
    config: SearchConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SearchBackend:
    """Instantiate the configured search backend."""
    config = config or get_config().search
    kind = resolve_backend_kind(config.get_resolved_backend())
    return BACKENDS[kind](config, transport=transport)


async def search_web(
    query: str,
    limit: int = DEFAULT_SEARCH_LIMIT,
    config: SearchConfig | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> SearchResult:
    """Search the web with the configured backend.

    Args:
        query: Search query
        limit: Maximum number of results
        config: Search configuration (defaults to the global config)
        transport: Custom httpx transport (used by tests)

    Returns:
        SearchResult with at most ``limit`` items

    Raises:
        SearchUnavailable: Backend unknown or not configured
        SearchUpstreamError: Backend call failed
    """
    backend = get_search_backend(config, transport=transport)
    return await backend.search(query, limit)


__all__ = [
    "BACKENDS",
    "BraveBackend",
    "FirecrawlBackend",
    "ResultItem",
    "SearchBackend",
    "SearchBackendKind",
    "SearchResult",
    "SearxngBackend",
    "TavilyBackend",
    "get_search_backend",
    "resolve_backend_kind",
    "search_web",
]
