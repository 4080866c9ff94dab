"""Common type definitions for crawlify.

Payload shapes are plain JSON-ready dictionaries; the TypedDicts below
document them for type checkers.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, TypedDict, Union


class FormatKind(str, Enum):
    """Output formats a crawl can produce."""

    HTML = "html"
    MARKDOWN = "markdown"
    SUMMARY = "summary"
    LINKS = "links"
    SCREENSHOT = "screenshot"


class ErrorPayload(TypedDict):
    """Uniform failure shape for a single format (or a whole request)."""

    status: str  # Always "error"
    message: str


class ContentPayload(TypedDict):
    """Success shape for html, markdown and summary formats."""

    content: str
    content_type: str | None


class LinkItem(TypedDict):
    """One extracted link."""

    url: str
    text: str | None  # Anchor text, None when the anchor has no text


class LinksPayload(TypedDict):
    """Success shape for the links format."""

    items: list[LinkItem]
    count: int


class ScreenshotPayload(TypedDict):
    """Success shape for the screenshot format."""

    url: str  # Public URL of the screenshot file
    content_type: str
    captured_at: str  # ISO-8601 timestamp


FormatPayload = Union[ContentPayload, LinksPayload, ScreenshotPayload, ErrorPayload]
SummaryPayload = Union[ContentPayload, ErrorPayload]


class ResultItemDict(TypedDict):
    """Normalized search result item."""

    title: str | None
    description: str | None
    url: str | None
    metadata: dict[str, Any]


def error_payload(message: str) -> ErrorPayload:
    """Build the uniform error payload."""
    return {"status": "error", "message": message}


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with millisecond precision and a Z suffix."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")
