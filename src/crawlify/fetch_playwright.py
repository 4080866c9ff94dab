"""Playwright-based rendering and screenshot capture.

Every call launches its own headless Chromium with a fresh context and tears
all of it down before returning. Nothing is pooled between requests.

Usage:
    from crawlify.fetch_playwright import BrowserRenderer

    renderer = BrowserRenderer()
    rendered = await renderer.render(url, proxy)
    if rendered is not None:
        html = rendered.html
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass
from importlib.util import find_spec
from typing import Any

from loguru import logger

from crawlify.config import BrowserConfig, ScreenshotConfig
from crawlify.constants import (
    DEFAULT_FALLBACK_WAIT_UNTIL,
    DEFAULT_NAVIGATION_WAIT_UNTIL,
    DEFAULT_USER_AGENT,
    SCREENSHOT_CONTENT_TYPE,
)
from crawlify.errors import RenderFailure, ScreenshotError
from crawlify.proxy import ProxyDescriptor
from crawlify.screenshots import allocate_screenshot, safe_remove
from crawlify.types import ScreenshotPayload, utc_timestamp


def is_playwright_available() -> bool:
    """Check if playwright is installed.

    Returns:
        True if playwright can be imported
    """
    return find_spec("playwright") is not None


@dataclass
class RenderedPage:
    """Result of a browser render."""

    html: str
    content_type: str | None = None


async def navigate_with_retry(
    page: Any, url: str, config: BrowserConfig | None = None
) -> Any:
    """Navigate, degrading from networkidle to domcontentloaded on timeout.

    Only a Playwright TimeoutError triggers the single retry. Other errors,
    and a failing retry, propagate.

    Returns:
        The navigation response (may be None)
    """
    from playwright.async_api import TimeoutError as PlaywrightTimeoutError

    config = config or BrowserConfig()
    try:
        return await page.goto(
            url,
            wait_until=DEFAULT_NAVIGATION_WAIT_UNTIL,
            timeout=config.navigation_timeout_ms,
        )
    except PlaywrightTimeoutError:
        logger.debug(
            f"networkidle timed out after {config.navigation_timeout_ms}ms, "
            f"retrying with {DEFAULT_FALLBACK_WAIT_UNTIL}: {url}"
        )
        return await page.goto(
            url,
            wait_until=DEFAULT_FALLBACK_WAIT_UNTIL,
            timeout=config.fallback_timeout_ms,
        )


async def _close_quietly(resource: Any, name: str, method: str = "close") -> None:
    if resource is None:
        return
    try:
        await getattr(resource, method)()
    except Exception as e:
        logger.debug(f"Failed to close browser {name}: {e}")


class BrowserRenderer:
    """Headless Chromium driver for rendering and screenshots."""

    def __init__(
        self,
        config: BrowserConfig | None = None,
        screenshot_config: ScreenshotConfig | None = None,
        user_agent: str = DEFAULT_USER_AGENT,
    ) -> None:
        self.config = config or BrowserConfig()
        self.screenshot_config = screenshot_config or ScreenshotConfig()
        self.user_agent = user_agent

    @asynccontextmanager
    async def _page(self, proxy: ProxyDescriptor | None) -> AsyncIterator[Any]:
        """Open a fresh browser, context and page.

        Page, context, browser and driver are each closed independently on
        exit; a failing close is logged and never masks the others.
        """
        from playwright.async_api import async_playwright

        playwright = None
        browser = None
        context = None
        page = None
        try:
            playwright = await async_playwright().start()

            launch_options: dict[str, Any] = {"headless": self.config.headless}
            if proxy is not None:
                launch_options["proxy"] = proxy.browser.to_playwright()

            browser = await playwright.chromium.launch(**launch_options)
            context = await browser.new_context(user_agent=self.user_agent)
            page = await context.new_page()
            yield page
        finally:
            await _close_quietly(page, "page")
            await _close_quietly(context, "context")
            await _close_quietly(browser, "browser")
            await _close_quietly(playwright, "driver", method="stop")

    async def render(
        self, url: str, proxy: ProxyDescriptor | None = None
    ) -> RenderedPage | None:
        """Render a page with JavaScript executed.

        Args:
            url: Page URL
            proxy: Resolved proxy, if any

        Returns:
            RenderedPage, or None when rendering is unavailable or fails
        """
        if not is_playwright_available():
            logger.debug("Playwright is not installed, skipping render")
            return None

        try:
            return await self._render(url, proxy)
        except Exception as e:
            logger.warning(f"Browser render failed for {url}: {e}")
            return None

    async def _render(self, url: str, proxy: ProxyDescriptor | None) -> RenderedPage:
        async with self._page(proxy) as page:
            response = await navigate_with_retry(page, url, self.config)

            html = await page.content()
            if not html:
                raise RenderFailure("Browser returned an empty document")

            content_type = None
            if response is not None:
                try:
                    content_type = await response.header_value("content-type")
                except Exception:
                    content_type = None

            return RenderedPage(html=html, content_type=content_type)

    async def screenshot(
        self, url: str, proxy: ProxyDescriptor | None = None
    ) -> ScreenshotPayload:
        """Capture a full-page PNG screenshot.

        The partially written file is deleted before any error propagates.

        Args:
            url: Page URL
            proxy: Resolved proxy, if any

        Returns:
            Screenshot payload with the public URL and capture time

        Raises:
            ScreenshotError: If Playwright is not installed
            Exception: Any navigation or capture error
        """
        if not is_playwright_available():
            raise ScreenshotError()

        target = allocate_screenshot(self.screenshot_config)
        try:
            async with self._page(proxy) as page:
                await navigate_with_retry(page, url, self.config)
                await page.screenshot(path=str(target.path), type="png", full_page=True)
        except BaseException:
            safe_remove(target.path)
            raise

        logger.debug(f"Screenshot saved: {target.path}")
        return {
            "url": target.url,
            "content_type": SCREENSHOT_CONTENT_TYPE,
            "captured_at": utc_timestamp(),
        }
