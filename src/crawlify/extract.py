"""HTML text and link extraction.

Both extractors are pure functions over an HTML string and never raise:
unparsable input yields an empty result.
"""

from __future__ import annotations

import re
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from loguru import logger

from crawlify.types import LinkItem

# Elements whose text never reaches the reader
_NON_CONTENT_TAGS = ["script", "style", "noscript", "template"]

# href values that do not point at a fetchable document
_SKIPPED_SCHEME_RE = re.compile(r"^(javascript|mailto|tel|data):", re.IGNORECASE)
_ABSOLUTE_URL_RE = re.compile(r"^[a-zA-Z][a-zA-Z\d+.-]*:")


def _collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def extract_plain_text(html: str) -> str:
    """Extract the visible body text of an HTML document.

    Script, style, noscript and template contents are dropped and all runs of
    whitespace collapse to a single space.

    Args:
        html: Raw HTML content

    Returns:
        Plain text, or "" when the document has no text or cannot be parsed
    """
    if not html or not html.strip():
        return ""

    try:
        soup = BeautifulSoup(html, "html.parser")
        for element in soup(_NON_CONTENT_TAGS):
            element.decompose()
        if soup.body is not None:
            return _collapse_whitespace(soup.body.get_text(" "))
        # Without a body the title is the only head text left
        for element in soup("title"):
            element.decompose()
        return _collapse_whitespace(soup.get_text(" "))
    except Exception as e:
        logger.debug(f"Plain text extraction failed: {e}")
        return ""


def resolve_link(href: str, base_url: str) -> str | None:
    """Resolve an href against the page URL.

    Absolute URLs (any scheme) are returned untouched; protocol-relative and
    relative URLs are resolved against ``base_url``.

    Returns:
        Absolute URL, or None when the base URL cannot anchor the href
    """
    if _ABSOLUTE_URL_RE.match(href):
        return href

    try:
        base = urlsplit(base_url)
    except ValueError:
        return None

    if not base.scheme or not base.hostname:
        return None

    if href.startswith("//"):
        return f"{base.scheme}:{href}"

    try:
        return urljoin(base_url, href)
    except ValueError:
        return None


def extract_links(html: str, base_url: str) -> list[LinkItem]:
    """Extract a deduplicated list of absolute links from anchors.

    Fragment-only links and javascript:, mailto:, tel: and data: links are
    skipped. The first occurrence of each resolved URL wins.

    Args:
        html: Raw HTML content
        base_url: URL the HTML was fetched from

    Returns:
        List of {"url", "text"} items in document order
    """
    if not html or not html.strip():
        return []

    try:
        soup = BeautifulSoup(html, "html.parser")
    except Exception as e:
        logger.debug(f"Link extraction failed to parse HTML: {e}")
        return []

    links: list[LinkItem] = []
    seen: set[str] = set()

    for anchor in soup.find_all("a", href=True):
        href = str(anchor.get("href") or "").strip()

        if not href or href.startswith("#"):
            continue

        if _SKIPPED_SCHEME_RE.match(href):
            continue

        resolved = resolve_link(href, base_url)
        if not resolved or resolved in seen:
            continue

        text = _collapse_whitespace(anchor.get_text())
        links.append({"url": resolved, "text": text or None})
        seen.add(resolved)

    return links
