"""Tavily search API backend."""

from __future__ import annotations

from typing import Any

import httpx

from crawlify.constants import DEFAULT_TAVILY_SEARCH_URL
from crawlify.errors import SearchUnavailable
from crawlify.search.base import (
    ResultItem,
    SearchBackend,
    SearchBackendKind,
    build_item,
    list_at,
)


class TavilyBackend(SearchBackend):
    kind = SearchBackendKind.TAVILY

    def check_available(self) -> None:
        if not self.config.tavily.get_resolved_api_key():
            raise SearchUnavailable(
                "Search is unavailable because Tavily API key is missing."
            )

    async def send(
        self, client: httpx.AsyncClient, query: str, limit: int
    ) -> httpx.Response:
        settings = self.config.tavily
        return await client.post(
            DEFAULT_TAVILY_SEARCH_URL,
            json={
                "query": query,
                "max_results": limit,
                "search_depth": settings.search_depth,
            },
            headers={"Authorization": f"Bearer {settings.get_resolved_api_key()}"},
        )

    def parse(self, body: dict[str, Any]) -> tuple[list[ResultItem], str | None]:
        items = [
            build_item(raw, description_key="content")
            for raw in list_at(body, "results")
        ]
        return items, None
