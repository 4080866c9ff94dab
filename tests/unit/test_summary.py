"""Tests for LLM summaries."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from crawlify.config import SummaryConfig
from crawlify.constants import (
    SUMMARY_CONTENT_TYPE,
    SUMMARY_EMPTY_MESSAGE,
    SUMMARY_ERROR_MESSAGE,
    SUMMARY_MISSING_KEY_MESSAGE,
    SUMMARY_RATE_LIMIT_MESSAGE,
)
from crawlify.summary import (
    FragmentCompletion,
    MessageCompletion,
    SummaryGenerator,
    TextCompletion,
    completion_text,
    extract_provider_message,
    parse_completion,
)


class ProviderError(Exception):
    """Stand-in for a provider exception carrying the upstream response."""

    def __init__(self, status_code: int, body: Any = None) -> None:
        super().__init__(f"provider returned {status_code}")
        self.status_code = status_code
        self.response = httpx.Response(status_code, json=body if body is not None else {})


def _response(message: Any) -> dict[str, Any]:
    return {"choices": [{"message": message}]}


@pytest.fixture
def generator() -> SummaryGenerator:
    return SummaryGenerator(SummaryConfig(api_key="test-key"))


class TestParseCompletion:
    """Tests for parse_completion and completion_text."""

    def test_message_is_string(self):
        """A bare string message is a TextCompletion."""
        assert parse_completion(_response("Hello")) == TextCompletion("Hello")

    def test_content_is_string(self):
        """String content is a MessageCompletion."""
        completion = parse_completion(_response({"role": "assistant", "content": "Hi"}))

        assert completion == MessageCompletion("Hi")
        assert completion_text(completion) == "Hi"

    def test_content_fragments(self):
        """Text fragments are collected and joined with a blank line."""
        completion = parse_completion(
            _response(
                {
                    "content": [
                        {"type": "text", "text": "First."},
                        {"type": "image_url", "image_url": "x"},
                        {"type": "text", "text": "Second."},
                    ]
                }
            )
        )

        assert completion == FragmentCompletion(("First.", "Second."))
        assert completion_text(completion) == "First.\n\nSecond."

    def test_fragments_on_message_mapping(self):
        """Fragments stored directly on the message mapping are found."""
        completion = parse_completion(
            _response({"0": {"type": "text", "text": "Only."}, "content": None})
        )

        assert completion == FragmentCompletion(("Only.",))

    @pytest.mark.parametrize(
        "response",
        [None, {}, {"choices": []}, {"choices": [{}]}, _response({"content": None})],
    )
    def test_unreadable_responses(self, response):
        """Responses without text normalize to None."""
        assert parse_completion(response) is None

    def test_pydantic_style_response(self):
        """Objects exposing model_dump() are read through it."""

        class FakeModelResponse:
            def model_dump(self) -> dict[str, Any]:
                return _response({"content": "Dumped."})

        assert parse_completion(FakeModelResponse()) == MessageCompletion("Dumped.")


class TestExtractProviderMessage:
    """Tests for extract_provider_message function."""

    def test_prefers_metadata_raw(self):
        """error.metadata.raw wins over error.message."""
        body = {"error": {"message": "Generic", "metadata": {"raw": "Specific"}}}

        assert extract_provider_message(body) == "Specific"

    def test_falls_back_to_message(self):
        """error.message is used when there is no raw metadata."""
        assert extract_provider_message({"error": {"message": "Bad key"}}) == "Bad key"

    @pytest.mark.parametrize("body", [None, "text", {}, {"error": "flat"}])
    def test_no_detail(self, body):
        """Bodies without a structured error yield None."""
        assert extract_provider_message(body) is None


class TestSummarize:
    """Tests for SummaryGenerator.summarize."""

    @pytest.mark.asyncio
    async def test_empty_content(self, generator: SummaryGenerator):
        """Blank content is reported without calling the provider."""
        with patch("crawlify.summary.litellm.acompletion", new=AsyncMock()) as mock:
            result = await generator.summarize("https://a.test", "   ")

        assert result == {"status": "error", "message": SUMMARY_EMPTY_MESSAGE}
        mock.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_api_key(self):
        """Without an API key the summary is an error payload, never an exception."""
        generator = SummaryGenerator(SummaryConfig())

        with patch("crawlify.summary.litellm.acompletion", new=AsyncMock()) as mock:
            result = await generator.summarize("https://a.test", "Some content")

        assert result == {"status": "error", "message": SUMMARY_MISSING_KEY_MESSAGE}
        mock.assert_not_called()

    @pytest.mark.asyncio
    async def test_api_key_from_env(self, monkeypatch: pytest.MonkeyPatch):
        """The default config reads OPENROUTER_API_KEY."""
        monkeypatch.setenv("OPENROUTER_API_KEY", "env-key")
        generator = SummaryGenerator(SummaryConfig())

        with patch(
            "crawlify.summary.litellm.acompletion",
            new=AsyncMock(return_value=_response({"content": "Ok."})),
        ) as mock:
            await generator.summarize("https://a.test", "Some content")

        assert mock.call_args.kwargs["api_key"] == "env-key"

    @pytest.mark.asyncio
    async def test_success(self, generator: SummaryGenerator):
        """A successful completion returns trimmed plain text."""
        with patch(
            "crawlify.summary.litellm.acompletion",
            new=AsyncMock(return_value=_response({"content": "  A short summary.  "})),
        ):
            result = await generator.summarize("https://a.test", "Page text")

        assert result == {"content": "A short summary.", "content_type": SUMMARY_CONTENT_TYPE}

    @pytest.mark.asyncio
    async def test_request_shape(self, generator: SummaryGenerator):
        """The prompt names the URL and the input is truncated."""
        content = "word " * 2000
        with patch(
            "crawlify.summary.litellm.acompletion",
            new=AsyncMock(return_value=_response("Done.")),
        ) as mock:
            await generator.summarize("https://a.test/page", content)

        kwargs = mock.call_args.kwargs
        assert kwargs["model"] == generator.config.model
        assert kwargs["timeout"] == generator.config.timeout
        system, user = kwargs["messages"]
        assert system["role"] == "system"
        assert "two sentences" in system["content"]
        assert "https://a.test/page" in user["content"]
        excerpt = user["content"].split("\n\n", 1)[1]
        assert len(excerpt) == generator.config.max_input_chars

    @pytest.mark.asyncio
    async def test_empty_completion(self, generator: SummaryGenerator):
        """An empty completion is a generic failure."""
        with patch(
            "crawlify.summary.litellm.acompletion",
            new=AsyncMock(return_value=_response({"content": "   "})),
        ):
            result = await generator.summarize("https://a.test", "Page text")

        assert result == {"status": "error", "message": SUMMARY_ERROR_MESSAGE}

    @pytest.mark.asyncio
    async def test_rate_limited(self, generator: SummaryGenerator):
        """HTTP 429 maps to the rate-limit message."""
        with patch(
            "crawlify.summary.litellm.acompletion",
            new=AsyncMock(side_effect=ProviderError(429)),
        ):
            result = await generator.summarize("https://a.test", "Page text")

        assert result == {"status": "error", "message": SUMMARY_RATE_LIMIT_MESSAGE}

    @pytest.mark.asyncio
    async def test_provider_detail(self, generator: SummaryGenerator):
        """Provider error details are surfaced in the message."""
        error = ProviderError(400, {"error": {"message": "Invalid model"}})
        with patch(
            "crawlify.summary.litellm.acompletion", new=AsyncMock(side_effect=error)
        ):
            result = await generator.summarize("https://a.test", "Page text")

        assert result == {
            "status": "error",
            "message": "Failed to generate summary: Invalid model",
        }

    @pytest.mark.asyncio
    async def test_unexpected_error(self, generator: SummaryGenerator):
        """Errors without provider detail fall back to the generic message."""
        with patch(
            "crawlify.summary.litellm.acompletion",
            new=AsyncMock(side_effect=RuntimeError("boom")),
        ):
            result = await generator.summarize("https://a.test", "Page text")

        assert result == {"status": "error", "message": SUMMARY_ERROR_MESSAGE}
