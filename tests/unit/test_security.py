"""Tests for error message sanitization."""

from __future__ import annotations

from crawlify.security import sanitize_error_message


class TestSanitizeErrorMessage:
    """Tests for sanitize_error_message function."""

    def test_plain_message_unchanged(self):
        """Messages without paths pass through."""
        assert sanitize_error_message("Invalid model") == "Invalid model"

    def test_unix_path(self):
        """Absolute Unix paths are replaced."""
        result = sanitize_error_message("Failed to open /var/lib/crawlify/data.json")

        assert result == "Failed to open [PATH]"

    def test_home_directory_user(self):
        """Home-directory user names never survive."""
        result = sanitize_error_message("Missing /home/alice/projects/key.txt")

        assert "alice" not in result
        assert "projects" not in result

    def test_windows_user(self):
        """Windows user profile names never survive."""
        result = sanitize_error_message(r"Missing C:\Users\bob\key.txt")

        assert "bob" not in result

    def test_urls_kept(self):
        """URLs are not mistaken for paths."""
        message = "Model not found, see https://openrouter.ai/docs/models"

        assert sanitize_error_message(message) == message

    def test_accepts_exceptions(self):
        """Exceptions are converted to their message."""
        error = FileNotFoundError("No such file: /tmp/crawlify/x.png")

        assert sanitize_error_message(error) == "No such file: [PATH]"
