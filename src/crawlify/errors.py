"""Exception hierarchy for crawlify.

Every error that can reach a caller carries an HTTP-style status code and
renders to the uniform ``{"status": "error", "message": ...}`` payload used
by both the HTTP API and the CLI.

Error Hierarchy:
    CrawlifyError (base)
    ├── FetchError (primary page fetch failed, aborts the crawl)
    ├── RenderFailure (browser render failed, recovered by the crawler)
    ├── ConversionError (HTML to Markdown conversion failed)
    ├── ScreenshotError (screenshot capture failed)
    └── SearchError
        ├── SearchUnavailable (backend not configured or not supported)
        └── SearchUpstreamError (backend call failed)

Usage:
    try:
        result = await crawl_url(url, formats)
    except FetchError as e:
        return JSONResponse(e.to_payload(), status_code=e.status_code)
"""

from __future__ import annotations

from crawlify.constants import (
    DEFAULT_FETCH_ERROR_STATUS,
    FETCH_ERROR_MESSAGE,
    MARKDOWN_ERROR_MESSAGE,
    SCREENSHOT_ERROR_MESSAGE,
    SEARCH_ERROR_MESSAGE,
)


class CrawlifyError(Exception):
    """Base exception for all crawlify errors.

    Attributes:
        message: User-facing message
        status_code: HTTP-style status code describing the failure
    """

    default_status_code = 500

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code or self.default_status_code

    def to_payload(self) -> dict[str, str]:
        """Render the error as the uniform error payload."""
        return {"status": "error", "message": self.message}


class FetchError(CrawlifyError):
    """Raised when the primary page fetch fails or returns a non-2xx status."""

    default_status_code = DEFAULT_FETCH_ERROR_STATUS

    def __init__(
        self,
        message: str = FETCH_ERROR_MESSAGE,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)


class RenderFailure(CrawlifyError):
    """Raised inside the browser renderer when a render cannot complete."""

    default_status_code = 502


class ConversionError(CrawlifyError):
    """Raised when the external HTML to Markdown converter fails.

    Attributes:
        timed_out: True when the converter was killed at its deadline
    """

    default_status_code = 500

    def __init__(
        self, message: str = MARKDOWN_ERROR_MESSAGE, *, timed_out: bool = False
    ) -> None:
        super().__init__(message)
        self.timed_out = timed_out


class ScreenshotError(CrawlifyError):
    """Raised when a screenshot cannot be captured."""

    default_status_code = 502

    def __init__(self, message: str = SCREENSHOT_ERROR_MESSAGE) -> None:
        super().__init__(message)


class SearchError(CrawlifyError):
    """Base exception for search failures."""

    default_status_code = 502


class SearchUnavailable(SearchError):
    """Raised when the selected search backend cannot be used.

    Covers unsupported backend names and missing credentials or endpoints.
    Raised before any network call is made.
    """

    default_status_code = 503


class SearchUpstreamError(SearchError):
    """Raised when a search backend call fails or reports failure."""

    def __init__(
        self,
        message: str = SEARCH_ERROR_MESSAGE,
        *,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message, status_code=status_code)
