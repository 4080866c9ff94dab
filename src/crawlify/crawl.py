"""Single-URL acquisition pipeline.

Flow:
1. Normalize the requested formats
2. Fetch the page over plain HTTP (the only fatal step)
3. Re-render in a browser when the response looks like a JS shell
4. Build every requested format concurrently, each isolated from the others
5. Assemble the result envelope

Markdown is an intermediate shared by the ``markdown`` and ``summary``
formats; it is converted at most once per crawl.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from typing import Any

import httpx
from loguru import logger

from crawlify.config import CrawlifyConfig, get_config
from crawlify.constants import (
    CRAWL_ID_PREFIX,
    DEFAULT_RENDERED_CONTENT_TYPE,
    HTML_ERROR_MESSAGE,
    LINKS_ERROR_MESSAGE,
    MARKDOWN_CONTENT_TYPE,
    MARKDOWN_ERROR_MESSAGE,
    MARKDOWN_TIMEOUT_MESSAGE,
    SCREENSHOT_ERROR_MESSAGE,
    SUMMARY_ERROR_MESSAGE,
)
from crawlify.errors import ConversionError
from crawlify.extract import extract_links, extract_plain_text
from crawlify.fetch import fetch_page
from crawlify.fetch_playwright import BrowserRenderer
from crawlify.markdown import MarkdownConverter
from crawlify.proxy import ProxyDescriptor, resolve_proxy
from crawlify.render import should_render
from crawlify.summary import SummaryGenerator
from crawlify.types import FormatKind, FormatPayload, error_payload, utc_timestamp


def normalize_formats(formats: Iterable[Any] | None) -> list[FormatKind]:
    """Drop unknown and duplicate format tokens, keeping first-seen order.

    Falls back to ``[html]`` when nothing valid remains.
    """
    normalized: list[FormatKind] = []
    for token in formats or ():
        if not isinstance(token, str):
            continue
        try:
            kind = FormatKind(token)
        except ValueError:
            continue
        if kind not in normalized:
            normalized.append(kind)
    return normalized or [FormatKind.HTML]


@dataclass(frozen=True)
class AcquisitionResult:
    """Envelope returned by a completed crawl."""

    url: str
    formats: dict[FormatKind, FormatPayload]
    id: str = field(default_factory=lambda: f"{CRAWL_ID_PREFIX}{uuid.uuid4()}")
    status: str = "completed"
    fetched_at: str = field(default_factory=utc_timestamp)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "status": self.status,
            "url": self.url,
            "fetched_at": self.fetched_at,
            "formats": {kind.value: payload for kind, payload in self.formats.items()},
        }


@dataclass
class _Page:
    """Working state of one crawl, shared by the format handlers."""

    url: str
    html: str
    content_type: str | None
    plain_text: str
    proxy: ProxyDescriptor | None
    converter: MarkdownConverter
    _markdown: asyncio.Task[str] | None = None

    def markdown(self) -> asyncio.Task[str]:
        """Markdown conversion task, started on first use."""
        if self._markdown is None:
            self._markdown = asyncio.ensure_future(self.converter.convert(self.html))
        return self._markdown

    def discard(self) -> None:
        if self._markdown is not None and not self._markdown.done():
            self._markdown.cancel()


FormatHandler = Callable[["Crawler", _Page], Awaitable[FormatPayload]]


async def _build_html(crawler: Crawler, page: _Page) -> FormatPayload:
    return {"content": page.html, "content_type": page.content_type}


async def _build_markdown(crawler: Crawler, page: _Page) -> FormatPayload:
    try:
        content = await page.markdown()
    except ConversionError as e:
        logger.warning(f"Markdown conversion failed for {page.url}: {e.message}")
        if e.timed_out:
            return error_payload(MARKDOWN_TIMEOUT_MESSAGE)
        return error_payload(MARKDOWN_ERROR_MESSAGE)
    return {"content": content, "content_type": MARKDOWN_CONTENT_TYPE}


async def _build_summary(crawler: Crawler, page: _Page) -> FormatPayload:
    source = page.plain_text
    if not source:
        try:
            source = await page.markdown()
        except ConversionError:
            source = ""
    return await crawler.summarizer.summarize(page.url, source)


async def _build_links(crawler: Crawler, page: _Page) -> FormatPayload:
    items = extract_links(page.html, page.url)
    return {"items": items, "count": len(items)}


async def _build_screenshot(crawler: Crawler, page: _Page) -> FormatPayload:
    try:
        return await crawler.renderer.screenshot(page.url, page.proxy)
    except Exception as e:
        logger.warning(f"Screenshot failed for {page.url}: {e}")
        return error_payload(SCREENSHOT_ERROR_MESSAGE)


_HANDLERS: dict[FormatKind, FormatHandler] = {
    FormatKind.HTML: _build_html,
    FormatKind.MARKDOWN: _build_markdown,
    FormatKind.SUMMARY: _build_summary,
    FormatKind.LINKS: _build_links,
    FormatKind.SCREENSHOT: _build_screenshot,
}

# Used when a handler fails in a way it does not handle itself
_FALLBACK_MESSAGES: dict[FormatKind, str] = {
    FormatKind.HTML: HTML_ERROR_MESSAGE,
    FormatKind.MARKDOWN: MARKDOWN_ERROR_MESSAGE,
    FormatKind.SUMMARY: SUMMARY_ERROR_MESSAGE,
    FormatKind.LINKS: LINKS_ERROR_MESSAGE,
    FormatKind.SCREENSHOT: SCREENSHOT_ERROR_MESSAGE,
}

_unhandled = set(FormatKind) - set(_HANDLERS) | set(FormatKind) - set(_FALLBACK_MESSAGES)
if _unhandled:
    raise RuntimeError(
        f"No format handler for: {', '.join(sorted(k.value for k in _unhandled))}"
    )


class Crawler:
    """Fetches one URL and produces the requested formats."""

    def __init__(
        self,
        config: CrawlifyConfig | None = None,
        renderer: BrowserRenderer | None = None,
        converter: MarkdownConverter | None = None,
        summarizer: SummaryGenerator | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or get_config()
        self.renderer = renderer or BrowserRenderer(
            self.config.browser,
            self.config.screenshots,
            user_agent=self.config.fetch.user_agent,
        )
        self.converter = converter or MarkdownConverter(self.config.markdown)
        self.summarizer = summarizer or SummaryGenerator(self.config.summary)
        self.transport = transport

    async def crawl(
        self, url: str, formats: Iterable[Any] | None = None
    ) -> AcquisitionResult:
        """Acquire a page and build each requested format.

        Args:
            url: Page URL
            formats: Requested format names; unknown and duplicate names are
                ignored, and an empty selection means ``["html"]``

        Returns:
            AcquisitionResult with one payload per requested format

        Raises:
            FetchError: If the plain fetch fails or returns a non-2xx status
        """
        kinds = normalize_formats(formats)
        proxy = resolve_proxy(self.config.fetch.get_resolved_proxy())

        fetched = await fetch_page(
            url, self.config.fetch, proxy=proxy, transport=self.transport
        )
        html = fetched.html
        content_type = fetched.content_type
        plain_text = extract_plain_text(html)

        if should_render(html, plain_text, content_type):
            logger.info(f"Rendering {url} in browser")
            rendered = await self.renderer.render(url, proxy)
            if rendered is not None and rendered.html:
                html = rendered.html
                content_type = (
                    rendered.content_type
                    or content_type
                    or DEFAULT_RENDERED_CONTENT_TYPE
                )
                plain_text = extract_plain_text(html)

        page = _Page(
            url=url,
            html=html,
            content_type=content_type,
            plain_text=plain_text,
            proxy=proxy,
            converter=self.converter,
        )

        try:
            payloads = await asyncio.gather(
                *(self._build(kind, page) for kind in kinds)
            )
        finally:
            page.discard()

        return AcquisitionResult(url=url, formats=dict(zip(kinds, payloads)))

    async def _build(self, kind: FormatKind, page: _Page) -> FormatPayload:
        try:
            return await _HANDLERS[kind](self, page)
        except Exception:
            logger.exception(f"Unexpected error building {kind.value} for {page.url}")
            return error_payload(_FALLBACK_MESSAGES[kind])


async def crawl_url(
    url: str,
    formats: Iterable[Any] | None = None,
    config: CrawlifyConfig | None = None,
) -> AcquisitionResult:
    """Crawl a single URL with default components."""
    return await Crawler(config).crawl(url, formats)
