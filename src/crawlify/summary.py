"""LLM page summaries.

``summarize`` never raises: every outcome, including configuration problems
and provider failures, is returned as either a content payload or the uniform
error payload.

Chat completion responses come in several shapes depending on the provider.
They are normalized into one of three variants before the text is read:

- ``TextCompletion``: the message itself is a string
- ``MessageCompletion``: the message content is a string
- ``FragmentCompletion``: the content (or the message mapping itself) holds
  ``{"type": "text", "text": ...}`` fragments
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Union

import litellm
from loguru import logger

from crawlify.config import SummaryConfig
from crawlify.constants import (
    SUMMARY_CONTENT_TYPE,
    SUMMARY_EMPTY_MESSAGE,
    SUMMARY_ERROR_MESSAGE,
    SUMMARY_MISSING_KEY_MESSAGE,
    SUMMARY_RATE_LIMIT_MESSAGE,
    SUMMARY_SYSTEM_PROMPT,
)
from crawlify.security import sanitize_error_message
from crawlify.types import SummaryPayload, error_payload


@dataclass(frozen=True)
class TextCompletion:
    text: str


@dataclass(frozen=True)
class MessageCompletion:
    content: str


@dataclass(frozen=True)
class FragmentCompletion:
    fragments: tuple[str, ...]


Completion = Union[TextCompletion, MessageCompletion, FragmentCompletion]


def _text_fragments(values: Iterable[Any]) -> tuple[str, ...]:
    return tuple(
        value["text"]
        for value in values
        if isinstance(value, dict)
        and value.get("type") == "text"
        and isinstance(value.get("text"), str)
    )


def _as_dict(response: Any) -> dict[str, Any] | None:
    if isinstance(response, dict):
        return response
    model_dump = getattr(response, "model_dump", None)
    if callable(model_dump):
        dumped = model_dump()
        if isinstance(dumped, dict):
            return dumped
    return None


def parse_completion(response: Any) -> Completion | None:
    """Normalize a chat completion response into a Completion variant.

    Accepts a plain dict or a pydantic response object (litellm
    ``ModelResponse``). Only the first choice is considered.

    Returns:
        The matching variant, or None when no text can be found
    """
    data = _as_dict(response)
    if not data:
        return None

    choices = data.get("choices")
    if not isinstance(choices, list) or not choices:
        return None

    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    if not message:
        return None

    if isinstance(message, str):
        return TextCompletion(message)

    if not isinstance(message, dict):
        return None

    content = message.get("content")
    if isinstance(content, str):
        return MessageCompletion(content)

    if isinstance(content, list):
        fragments = _text_fragments(content)
        if fragments:
            return FragmentCompletion(fragments)

    fragments = _text_fragments(message.values())
    if fragments:
        return FragmentCompletion(fragments)

    return None


def completion_text(completion: Completion) -> str:
    """Get the text carried by a Completion variant."""
    if isinstance(completion, TextCompletion):
        return completion.text
    if isinstance(completion, MessageCompletion):
        return completion.content
    return "\n\n".join(completion.fragments)


def extract_provider_message(body: Any) -> str | None:
    """Pull a human-readable reason out of a provider error body.

    ``error.metadata.raw`` wins over ``error.message``.
    """
    if not isinstance(body, dict):
        return None

    error = body.get("error")
    if not isinstance(error, dict):
        return None

    metadata = error.get("metadata")
    if isinstance(metadata, dict) and isinstance(metadata.get("raw"), str):
        return metadata["raw"]

    message = error.get("message")
    if isinstance(message, str):
        return message

    return None


def _error_body(error: Exception) -> Any:
    """Best-effort JSON body of the upstream response behind an error."""
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        return body

    response = getattr(error, "response", None)
    if response is None:
        return None
    try:
        return response.json()
    except Exception:
        return None


def _is_rate_limited(error: Exception) -> bool:
    if isinstance(error, litellm.RateLimitError):
        return True
    return getattr(error, "status_code", None) == 429


class SummaryGenerator:
    """Short LLM summaries of page content."""

    def __init__(self, config: SummaryConfig | None = None) -> None:
        self.config = config or SummaryConfig()

    def build_messages(self, url: str, content: str) -> list[dict[str, str]]:
        excerpt = content[: self.config.max_input_chars]
        return [
            {"role": "system", "content": SUMMARY_SYSTEM_PROMPT},
            {
                "role": "user",
                "content": (
                    f"Summarize the following content from {url} "
                    f"in no more than two sentences:\n\n{excerpt}"
                ),
            },
        ]

    async def summarize(self, url: str, content: str) -> SummaryPayload:
        """Summarize page content in at most two sentences.

        Args:
            url: Page URL, included in the prompt
            content: Plain text or Markdown to summarize

        Returns:
            {"content", "content_type"} on success, error payload otherwise
        """
        trimmed = (content or "").strip()
        if not trimmed:
            return error_payload(SUMMARY_EMPTY_MESSAGE)

        api_key = self.config.get_resolved_api_key()
        if not api_key:
            return error_payload(SUMMARY_MISSING_KEY_MESSAGE)

        try:
            response = await litellm.acompletion(
                model=self.config.model,
                messages=self.build_messages(url, trimmed),
                api_key=api_key,
                timeout=self.config.timeout,
            )
        except Exception as e:
            return self._map_error(e)

        try:
            completion = parse_completion(response)
        except Exception as e:
            logger.warning(f"Unreadable summary response for {url}: {e}")
            completion = None

        text = completion_text(completion).strip() if completion else ""
        if not text:
            logger.warning(f"Empty summary received for {url}")
            return error_payload(SUMMARY_ERROR_MESSAGE)

        return {"content": text, "content_type": SUMMARY_CONTENT_TYPE}

    def _map_error(self, error: Exception) -> SummaryPayload:
        if _is_rate_limited(error):
            logger.warning("Summary provider rate limited the request")
            return error_payload(SUMMARY_RATE_LIMIT_MESSAGE)

        detail = extract_provider_message(_error_body(error))
        logger.warning(f"Summary generation failed: {type(error).__name__}: {error}")
        if detail:
            return error_payload(
                f"Failed to generate summary: {sanitize_error_message(detail)}"
            )
        return error_payload(SUMMARY_ERROR_MESSAGE)


async def summarize(
    url: str, content: str, config: SummaryConfig | None = None
) -> SummaryPayload:
    """Summarize content with a one-off generator."""
    return await SummaryGenerator(config).summarize(url, content)
