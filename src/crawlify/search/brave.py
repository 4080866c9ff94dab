"""Brave Search API backend."""

from __future__ import annotations

from typing import Any

import httpx

from crawlify.constants import DEFAULT_BRAVE_SEARCH_URL
from crawlify.errors import SearchUnavailable
from crawlify.search.base import (
    ResultItem,
    SearchBackend,
    SearchBackendKind,
    build_item,
    list_at,
)

# Brave rejects count values above 20
_MAX_COUNT = 20


class BraveBackend(SearchBackend):
    kind = SearchBackendKind.BRAVE

    def check_available(self) -> None:
        if not self.config.brave.get_resolved_api_key():
            raise SearchUnavailable(
                "Search is unavailable because Brave API key is missing."
            )

    async def send(
        self, client: httpx.AsyncClient, query: str, limit: int
    ) -> httpx.Response:
        settings = self.config.brave
        params: dict[str, Any] = {"q": query, "count": min(limit, _MAX_COUNT)}
        if settings.country:
            params["country"] = settings.country
        if settings.safesearch:
            params["safesearch"] = settings.safesearch

        return await client.get(
            DEFAULT_BRAVE_SEARCH_URL,
            params=params,
            headers={
                "Accept": "application/json",
                "X-Subscription-Token": settings.get_resolved_api_key() or "",
            },
        )

    def parse(self, body: dict[str, Any]) -> tuple[list[ResultItem], str | None]:
        return [build_item(raw) for raw in list_at(body, "web", "results")], None
