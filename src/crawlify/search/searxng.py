"""SearXNG backend for self-hosted metasearch instances.

The instance must have the JSON output format enabled.
"""

from __future__ import annotations

from typing import Any

import httpx

from crawlify.errors import SearchUnavailable
from crawlify.search.base import (
    ResultItem,
    SearchBackend,
    SearchBackendKind,
    build_item,
    list_at,
)


class SearxngBackend(SearchBackend):
    kind = SearchBackendKind.SEARXNG

    def check_available(self) -> None:
        if not self.config.searxng.get_resolved_base_url():
            raise SearchUnavailable(
                "Search is unavailable because SearXNG base URL is missing."
            )

    async def send(
        self, client: httpx.AsyncClient, query: str, limit: int
    ) -> httpx.Response:
        settings = self.config.searxng
        params: dict[str, Any] = {"q": query, "format": "json"}
        if settings.language:
            params["language"] = settings.language
        if settings.categories:
            params["categories"] = settings.categories

        return await client.get(
            f"{settings.get_resolved_base_url()}/search",
            params=params,
            headers={"Accept": "application/json"},
        )

    def parse(self, body: dict[str, Any]) -> tuple[list[ResultItem], str | None]:
        items = [
            build_item(raw, description_key="content")
            for raw in list_at(body, "results")
        ]
        return items, None
