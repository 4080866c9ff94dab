"""Tests for the exception hierarchy."""

from __future__ import annotations

import pytest

from crawlify.errors import (
    ConversionError,
    CrawlifyError,
    FetchError,
    RenderFailure,
    ScreenshotError,
    SearchError,
    SearchUnavailable,
    SearchUpstreamError,
)


class TestCrawlifyError:
    """Tests for status codes and payloads."""

    @pytest.mark.parametrize(
        ("error", "status_code"),
        [
            (FetchError(), 502),
            (FetchError(status_code=404), 404),
            (RenderFailure("x"), 502),
            (ConversionError(), 500),
            (ScreenshotError(), 502),
            (SearchError("x"), 502),
            (SearchUnavailable("x"), 503),
            (SearchUpstreamError(), 502),
            (SearchUpstreamError(status_code=429), 429),
        ],
    )
    def test_status_codes(self, error: CrawlifyError, status_code: int):
        """Each error carries its default or explicit status."""
        assert error.status_code == status_code

    def test_payload(self):
        """Errors render to the uniform error payload."""
        assert FetchError().to_payload() == {
            "status": "error",
            "message": "Unable to fetch the requested URL.",
        }

    def test_hierarchy(self):
        """Search errors share a base; everything is a CrawlifyError."""
        assert issubclass(SearchUnavailable, SearchError)
        assert issubclass(SearchUpstreamError, SearchError)
        for cls in (FetchError, RenderFailure, ConversionError, ScreenshotError, SearchError):
            assert issubclass(cls, CrawlifyError)

    def test_conversion_timeout_flag(self):
        """ConversionError records whether the converter was killed."""
        assert ConversionError().timed_out is False
        assert ConversionError("slow", timed_out=True).timed_out is True
