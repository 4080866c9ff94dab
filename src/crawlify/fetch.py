"""Plain HTTP page fetch.

This is the one network step whose failure aborts a crawl. Transport
failures map to 502; non-2xx responses keep their upstream status.
"""

from __future__ import annotations

from dataclasses import dataclass

import httpx
from loguru import logger

from crawlify.config import FetchConfig
from crawlify.errors import FetchError
from crawlify.proxy import ProxyDescriptor


@dataclass
class FetchedPage:
    """Body and metadata of a successful fetch."""

    html: str
    content_type: str | None
    status_code: int
    final_url: str


async def fetch_page(
    url: str,
    config: FetchConfig | None = None,
    proxy: ProxyDescriptor | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FetchedPage:
    """GET a URL, following redirects.

    Args:
        url: URL to fetch
        config: Fetch configuration (timeout, user agent)
        proxy: Resolved proxy, if any
        transport: Custom httpx transport (used by tests)

    Returns:
        FetchedPage with the decoded body

    Raises:
        FetchError: On transport failure (502) or a non-2xx status
    """
    config = config or FetchConfig()
    logger.debug(f"Fetching {url}")

    client_kwargs: dict = {
        "timeout": config.timeout,
        "follow_redirects": True,
        "headers": {"User-Agent": config.user_agent},
    }
    if transport is not None:
        client_kwargs["transport"] = transport
    elif proxy is not None:
        client_kwargs["proxy"] = proxy.http.url

    try:
        async with httpx.AsyncClient(**client_kwargs) as client:
            response = await client.get(url)
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(f"HTTP error fetching {url}: {type(e).__name__}: {e}")
        raise FetchError() from e

    if not response.is_success:
        logger.warning(f"HTTP {response.status_code} fetching {url}")
        raise FetchError(status_code=response.status_code)

    return FetchedPage(
        html=response.text,
        content_type=response.headers.get("content-type"),
        status_code=response.status_code,
        final_url=str(response.url),
    )
