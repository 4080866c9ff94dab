"""Firecrawl search backend (the default)."""

from __future__ import annotations

from typing import Any

import httpx

from crawlify.errors import SearchUnavailable, SearchUpstreamError
from crawlify.search.base import (
    ResultItem,
    SearchBackend,
    SearchBackendKind,
    build_item,
    list_at,
)


class FirecrawlBackend(SearchBackend):
    kind = SearchBackendKind.FIRECRAWL

    def check_available(self) -> None:
        if not self.config.firecrawl.get_resolved_api_key():
            raise SearchUnavailable(
                "Search is unavailable because Firecrawl API key is missing."
            )

    async def send(
        self, client: httpx.AsyncClient, query: str, limit: int
    ) -> httpx.Response:
        settings = self.config.firecrawl
        return await client.post(
            f"{settings.base_url.rstrip('/')}/v2/search",
            json={"query": query, "limit": limit, "sources": ["web"]},
            headers={"Authorization": f"Bearer {settings.get_resolved_api_key()}"},
        )

    def parse(self, body: dict[str, Any]) -> tuple[list[ResultItem], str | None]:
        if body.get("success") is not True:
            raise SearchUpstreamError()

        items = []
        for raw in list_at(body, "data", "web"):
            source = raw.get("metadata") if isinstance(raw, dict) else None
            source = source if isinstance(source, dict) else {}
            items.append(
                build_item(
                    raw,
                    skip=("metadata",),
                    metadata={
                        "source_url": source.get("sourceURL"),
                        "status_code": source.get("statusCode"),
                        "error": source.get("error"),
                    },
                )
            )

        warning = body.get("warning")
        return items, warning if isinstance(warning, str) else None
