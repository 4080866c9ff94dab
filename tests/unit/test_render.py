"""Tests for the fetch-or-render decision."""

from __future__ import annotations

import pytest

from crawlify.extract import extract_plain_text
from crawlify.render import is_html_content_type, should_render


class TestIsHtmlContentType:
    """Tests for is_html_content_type function."""

    @pytest.mark.parametrize(
        "content_type",
        ["text/html", "text/html; charset=utf-8", "application/xhtml+xml", "TEXT/HTML"],
    )
    def test_html_like(self, content_type: str):
        """Recognizes HTML-like content types case-insensitively."""
        assert is_html_content_type(content_type) is True

    def test_missing_content_type_counts_as_html(self):
        """A missing content type is treated as HTML-like."""
        assert is_html_content_type(None) is True
        assert is_html_content_type("") is True

    def test_non_html(self):
        """Rejects non-HTML content types."""
        assert is_html_content_type("application/pdf") is False
        assert is_html_content_type("application/json") is False


class TestShouldRender:
    """Tests for should_render function."""

    def test_blank_html_renders(self):
        """Blank HTML always asks for a render."""
        assert should_render("", "", "text/html") is True
        assert should_render("   \n", "", "application/pdf") is True

    def test_pdf_never_renders(self, spa_shell_html: str):
        """Non-HTML content types never render, even for shell markup."""
        assert should_render(spa_shell_html, "", "application/pdf") is False

    def test_root_mount_renders_regardless_of_short_text(self):
        """An id="root" mount with little text renders."""
        html = '<html><body><div id="root"></div></body></html>'
        assert should_render(html, "", "text/html") is True
        assert should_render(html, "Loading the application now", "text/html") is True

    def test_long_text_does_not_render(self, spa_shell_html: str):
        """More than 120 characters of text means the page is server rendered."""
        text = "x" * 121
        assert should_render(spa_shell_html, text, "text/html") is False

    def test_exactly_threshold_text_checks_patterns(self, spa_shell_html: str):
        """Exactly 120 characters still falls through to the shell checks."""
        assert should_render(spa_shell_html, "x" * 120, "text/html") is True

    @pytest.mark.parametrize(
        "marker",
        [
            '<div id="app"></div>',
            '<div id="__next"></div>',
            "<div data-reactroot></div>",
            '<app-root ng-version="17.0.0"></app-root>',
            '<script src="/main.js" type="module"></script>',
            '<DIV ID="ROOT"></DIV>',
        ],
    )
    def test_spa_signatures_render(self, marker: str):
        """Each SPA shell signature triggers a render."""
        html = f"<html><body>{marker}</body></html>"
        assert should_render(html, "Some text here", "text/html") is True

    def test_scripts_with_tiny_text_render(self):
        """Fewer than 20 characters of text plus a script renders."""
        html = "<html><body><script src='/bundle.js'></script><p>Hi</p></body></html>"
        assert should_render(html, "Hi", "text/html") is True

    def test_bodiless_script_shell_renders(self):
        """A titled shell without a body tag still counts as having no text."""
        html = (
            "<!doctype html><html><head><title>Acme Customer Analytics Dashboard</title>"
            '<script src="/bundle.js"></script></head></html>'
        )
        assert should_render(html, extract_plain_text(html), "text/html") is True

    def test_scripts_with_moderate_text_do_not_render(self):
        """Scripts alone do not render once there is enough text."""
        html = "<html><body><script src='/bundle.js'></script><p>...</p></body></html>"
        assert should_render(html, "A sentence that is long enough", "text/html") is False

    def test_short_static_page_does_not_render(self):
        """A short page without scripts or markers stays as fetched."""
        html = "<html><body><p>Hello</p></body></html>"
        assert should_render(html, "Hello", "text/html") is False

    def test_missing_content_type_uses_html_rules(self, spa_shell_html: str):
        """A response without content type goes through the HTML rules."""
        assert should_render(spa_shell_html, "", None) is True
