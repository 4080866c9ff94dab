"""Search backend interface and shared request handling.

A backend only knows how to call its provider and where the items live in
the provider's response. Availability checks, HTTP error mapping, metadata
folding and truncation are shared here so every backend honors the same
contract.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar

import httpx
from loguru import logger

from crawlify.config import SearchConfig
from crawlify.constants import SEARCH_UNEXPECTED_MESSAGE
from crawlify.errors import CrawlifyError, SearchError, SearchUpstreamError
from crawlify.types import ResultItemDict


class SearchBackendKind(str, Enum):
    """Supported search backends."""

    FIRECRAWL = "firecrawl"
    BRAVE = "brave"
    TAVILY = "tavily"
    SEARXNG = "searxng"


@dataclass
class ResultItem:
    """One normalized search hit."""

    title: str | None
    description: str | None
    url: str | None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> ResultItemDict:
        return {
            "title": self.title,
            "description": self.description,
            "url": self.url,
            "metadata": self.metadata,
        }


@dataclass
class SearchResult:
    """Normalized search response."""

    query: str
    limit: int
    results: list[ResultItem]
    warning: str | None = None

    @property
    def count(self) -> int:
        return len(self.results)

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "limit": self.limit,
            "count": self.count,
            "results": [item.to_dict() for item in self.results],
            "warning": self.warning,
        }


def _optional_str(value: Any) -> str | None:
    return value if isinstance(value, str) else None


def build_item(
    raw: Any,
    *,
    description_key: str = "description",
    metadata: dict[str, Any] | None = None,
    skip: tuple[str, ...] = (),
) -> ResultItem:
    """Normalize one provider item.

    Fields other than title, url, the description field and ``skip`` are
    folded into metadata. Explicit ``metadata`` entries win over folded ones.
    """
    if not isinstance(raw, dict):
        raw = {}

    consumed = {"title", "url", description_key, *skip}
    folded = {key: value for key, value in raw.items() if key not in consumed}
    if metadata:
        folded.update(metadata)

    return ResultItem(
        title=_optional_str(raw.get("title")),
        description=_optional_str(raw.get(description_key)),
        url=_optional_str(raw.get("url")),
        metadata=folded,
    )


def list_at(body: dict[str, Any], *path: str) -> list[Any]:
    """Read a nested list from a response body, [] when absent."""
    value: Any = body
    for key in path:
        if not isinstance(value, dict):
            return []
        value = value.get(key)
    return value if isinstance(value, list) else []


class SearchBackend(ABC):
    """Base class for search providers.

    Subclasses implement ``check_available``, ``send`` and ``parse``.
    """

    kind: ClassVar[SearchBackendKind]

    def __init__(
        self,
        config: SearchConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or SearchConfig()
        self.transport = transport

    @abstractmethod
    def check_available(self) -> None:
        """Raise SearchUnavailable when credentials or endpoint are missing."""

    @abstractmethod
    async def send(
        self, client: httpx.AsyncClient, query: str, limit: int
    ) -> httpx.Response:
        """Issue the provider request."""

    @abstractmethod
    def parse(self, body: dict[str, Any]) -> tuple[list[ResultItem], str | None]:
        """Extract items and an optional warning from a provider response.

        Raises:
            SearchUpstreamError: If the body reports a failure
        """

    async def search(self, query: str, limit: int) -> SearchResult:
        """Run a search and normalize the response.

        Raises:
            SearchUnavailable: Before any network call, if not configured
            SearchUpstreamError: On transport failure, non-2xx status,
                non-JSON body or a failure reported in the body
            SearchError: On any other unexpected failure
        """
        self.check_available()

        client_kwargs: dict[str, Any] = {"timeout": self.config.timeout}
        if self.transport is not None:
            client_kwargs["transport"] = self.transport

        try:
            async with httpx.AsyncClient(**client_kwargs) as client:
                response = await self.send(client, query, limit)
        except httpx.HTTPError as e:
            logger.warning(f"{self.kind.value} search request failed: {e}")
            raise SearchUpstreamError() from e

        if not response.is_success:
            logger.warning(f"{self.kind.value} search returned HTTP {response.status_code}")
            raise SearchUpstreamError(status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as e:
            logger.warning(f"{self.kind.value} search returned invalid JSON: {e}")
            raise SearchUpstreamError() from e

        if not isinstance(body, dict):
            raise SearchUpstreamError()

        try:
            items, warning = self.parse(body)
        except CrawlifyError:
            raise
        except Exception as e:
            logger.exception(f"Failed to parse {self.kind.value} search response")
            raise SearchError(SEARCH_UNEXPECTED_MESSAGE) from e

        results = items[:limit]
        logger.debug(
            f"{self.kind.value} search '{query}': {len(results)} result(s)"
        )
        return SearchResult(query=query, limit=limit, results=results, warning=warning)
