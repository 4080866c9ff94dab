"""Fetch-or-render decision.

Launching a browser is expensive, so a render is only requested when the
plain HTTP response looks like a client-side rendered shell: little or no
text, a known SPA mount point, or scripts with nothing else on the page.
"""

from __future__ import annotations

import re

from loguru import logger

from crawlify.constants import (
    RENDER_MIN_TEXT_LENGTH,
    RENDER_SHELL_TEXT_LENGTH,
    SPA_SHELL_PATTERNS,
)

_SPA_SHELL_RES = [re.compile(pattern, re.IGNORECASE) for pattern in SPA_SHELL_PATTERNS]
_SCRIPT_TAG_RE = re.compile(r"<script\b", re.IGNORECASE)
_HTML_CONTENT_TYPE_RE = re.compile(r"html", re.IGNORECASE)


def is_html_content_type(content_type: str | None) -> bool:
    """Check whether a content type is HTML-like.

    A missing content type counts as HTML-like.
    """
    if not content_type:
        return True
    return bool(_HTML_CONTENT_TYPE_RE.search(content_type))


def should_render(html: str, plain_text: str, content_type: str | None) -> bool:
    """Decide whether a page needs a browser render.

    Rules, first match wins:
    1. Blank HTML -> render
    2. Non-HTML content type -> never render
    3. More than 120 characters of text -> no render
    4. SPA shell signature (root/app/__next mount, React/Angular markers,
       module scripts) -> render
    5. Fewer than 20 characters of text with at least one script -> render
    6. Otherwise -> no render

    Args:
        html: Raw HTML from the plain fetch
        plain_text: Text extracted from that HTML
        content_type: Response content type, if any

    Returns:
        True when a browser render is warranted
    """
    trimmed = html.strip() if html else ""
    if not trimmed:
        logger.debug("Render decision: empty HTML")
        return True

    if not is_html_content_type(content_type):
        return False

    text_length = len(plain_text or "")
    if text_length > RENDER_MIN_TEXT_LENGTH:
        return False

    for pattern in _SPA_SHELL_RES:
        if pattern.search(trimmed):
            logger.debug(f"Render decision: SPA shell pattern '{pattern.pattern}'")
            return True

    if text_length < RENDER_SHELL_TEXT_LENGTH and _SCRIPT_TAG_RE.search(trimmed):
        logger.debug(f"Render decision: script shell with {text_length} chars of text")
        return True

    return False
