"""Centralized constants for crawlify.

This module contains all hardcoded constants used throughout the codebase.
Grouping them here makes it easier to:
- Find and modify default values
- Keep user-facing messages identical across the CLI and the HTTP API
- Maintain consistency across modules
"""

from __future__ import annotations

# =============================================================================
# Page Fetch
# =============================================================================

DEFAULT_USER_AGENT = "CrawlifyBot/1.0"
DEFAULT_FETCH_TIMEOUT = 20  # seconds
DEFAULT_FETCH_ERROR_STATUS = 502
FETCH_ERROR_MESSAGE = "Unable to fetch the requested URL."
DEFAULT_PROXY_ENV = "env:CRAWL_HTTP_PROXY"

# =============================================================================
# Render Decision
# =============================================================================

# Plain text longer than this is treated as a server-rendered page
RENDER_MIN_TEXT_LENGTH = 120
# Plain text shorter than this, with scripts present, is treated as a JS shell
RENDER_SHELL_TEXT_LENGTH = 20

# Mount points and framework markers left behind by client-side rendering
SPA_SHELL_PATTERNS = [
    r'id="root"',
    r'id="app"',
    r'id="__next"',
    r"data-reactroot",
    r"ng-version",
    r'<script[^>]+type="module"',
]

DEFAULT_RENDERED_CONTENT_TYPE = "text/html; charset=utf-8"

# =============================================================================
# Extraction
# =============================================================================

HTML_ERROR_MESSAGE = "Failed to extract HTML."
LINKS_ERROR_MESSAGE = "Failed to extract links."
CRAWL_ID_PREFIX = "crawl_"

# =============================================================================
# Browser (Playwright)
# =============================================================================

DEFAULT_NAVIGATION_TIMEOUT_MS = 20_000  # networkidle attempt
DEFAULT_FALLBACK_NAVIGATION_TIMEOUT_MS = 10_000  # domcontentloaded retry
DEFAULT_NAVIGATION_WAIT_UNTIL = "networkidle"
DEFAULT_FALLBACK_WAIT_UNTIL = "domcontentloaded"

# =============================================================================
# Markdown Conversion
# =============================================================================

DEFAULT_MARKDOWN_COMMAND = "html2markdown"
DEFAULT_MARKDOWN_TIMEOUT = 10  # seconds, hard kill
MARKDOWN_CONTENT_TYPE = "text/markdown; charset=utf-8"
MARKDOWN_ERROR_MESSAGE = "Failed to convert HTML to Markdown."
MARKDOWN_TIMEOUT_MESSAGE = "html2markdown conversion timed out"

# =============================================================================
# Summary (LLM)
# =============================================================================

DEFAULT_SUMMARY_MODEL = "openrouter/google/gemini-2.5-flash-lite"
DEFAULT_SUMMARY_API_KEY_ENV = "env:OPENROUTER_API_KEY"
DEFAULT_SUMMARY_TIMEOUT = 20  # seconds
DEFAULT_SUMMARY_MAX_INPUT_CHARS = 4000
SUMMARY_CONTENT_TYPE = "text/plain; charset=utf-8"
SUMMARY_SYSTEM_PROMPT = (
    "You summarize webpage content into concise English responses "
    "no longer than two sentences."
)
SUMMARY_EMPTY_MESSAGE = "Summary is unavailable for empty content."
SUMMARY_MISSING_KEY_MESSAGE = (
    "Summary is unavailable because OpenRouter API key is missing."
)
SUMMARY_RATE_LIMIT_MESSAGE = (
    "Summary is temporarily rate limited. Please try again soon."
)
SUMMARY_ERROR_MESSAGE = "Failed to generate summary."

# =============================================================================
# Screenshots
# =============================================================================

DEFAULT_SCREENSHOT_DIR = "./public/screenshots"
DEFAULT_SCREENSHOT_URL_PREFIX = "/screenshots"
SCREENSHOT_CONTENT_TYPE = "image/png"
SCREENSHOT_FILE_PREFIX = "screenshot_"
SCREENSHOT_ERROR_MESSAGE = "Failed to capture screenshot."
DEFAULT_SCREENSHOT_TTL_SECONDS = 6 * 60 * 60  # 6 hours
DEFAULT_SCREENSHOT_CLEANUP_INTERVAL_SECONDS = 60 * 60  # 1 hour
MIN_SCREENSHOT_CLEANUP_INTERVAL_SECONDS = 30

# =============================================================================
# Search
# =============================================================================

DEFAULT_SEARCH_BACKEND_ENV = "env:CRAWLIFY_SEARCH_BACKEND"
DEFAULT_SEARCH_TIMEOUT = 20  # seconds
DEFAULT_SEARCH_LIMIT = 5
MAX_SEARCH_LIMIT = 10
SEARCH_ERROR_MESSAGE = "Unable to complete search request."
SEARCH_UNEXPECTED_MESSAGE = "Unexpected error occurred while searching."

DEFAULT_FIRECRAWL_BASE_URL = "https://api.firecrawl.dev"
DEFAULT_BRAVE_SEARCH_URL = "https://api.search.brave.com/res/v1/web/search"
DEFAULT_TAVILY_SEARCH_URL = "https://api.tavily.com/search"

# =============================================================================
# HTTP API
# =============================================================================

API_PREFIX = "/api/v1"
DEFAULT_SERVER_HOST = "127.0.0.1"
DEFAULT_SERVER_PORT = 3000
CRAWL_UNEXPECTED_MESSAGE = "Unexpected error occurred while crawling."
VALIDATION_ERROR_MESSAGE = "The given data was invalid."

# =============================================================================
# Logging
# =============================================================================

DEFAULT_LOG_LEVEL = "DEBUG"
DEFAULT_LOG_DIR = "~/.crawlify/logs"
DEFAULT_LOG_ROTATION = "10 MB"
DEFAULT_LOG_RETENTION = "7 days"

# =============================================================================
# Paths and Filenames
# =============================================================================

CONFIG_FILENAME = "crawlify.json"
