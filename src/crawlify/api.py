"""HTTP API for crawling and search.

Endpoints:
- ``POST /api/v1/crawl``: body ``{url, formats?}``, returns the crawl envelope
- ``POST /api/v1/search``: body ``{query, limit?}``, returns normalized results
- ``GET /screenshots/<file>``: serves captured screenshots

Error responses:
- 422 ``{"message", "errors": {field: [message]}}`` for invalid input
- 400 for a body that is not valid JSON, 404 for unknown routes
- CrawlifyError subclasses map to their own status and payload
- Anything else is logged and mapped to a generic message

Request bodies are parsed and validated by hand so that error messages stay
field-oriented instead of following pydantic's format.
"""

from __future__ import annotations

import json
import re
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any
from urllib.parse import urlsplit

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from loguru import logger
from starlette.exceptions import HTTPException as StarletteHTTPException

from crawlify import __version__
from crawlify.config import CrawlifyConfig, get_config
from crawlify.constants import (
    API_PREFIX,
    CRAWL_UNEXPECTED_MESSAGE,
    DEFAULT_SEARCH_LIMIT,
    MAX_SEARCH_LIMIT,
    SEARCH_UNEXPECTED_MESSAGE,
    VALIDATION_ERROR_MESSAGE,
)
from crawlify.crawl import Crawler
from crawlify.errors import CrawlifyError
from crawlify.screenshots import ScreenshotCleanup
from crawlify.search import search_web
from crawlify.types import FormatKind, error_payload

_SUPPORTED_FORMATS = {kind.value for kind in FormatKind}
_SCHEME_RE = re.compile(r"^[a-zA-Z][a-zA-Z\d+.-]*$")
_MIN_QUERY_LENGTH = 2

ValidationErrors = dict[str, list[str]]


class InvalidJSON(Exception):
    """Request body could not be decoded as JSON."""


def is_valid_url(value: str) -> bool:
    """Check that a string is an absolute URL."""
    try:
        parsed = urlsplit(value.strip())
        _ = parsed.port  # ValueError for a malformed port
    except ValueError:
        return False

    if not parsed.scheme or not _SCHEME_RE.match(parsed.scheme):
        return False
    if parsed.scheme.lower() in ("http", "https"):
        return bool(parsed.hostname)
    return bool(parsed.netloc or parsed.path)


def validate_crawl_request(body: dict[str, Any]) -> ValidationErrors:
    errors: ValidationErrors = {}

    url = body.get("url")
    if "url" not in body:
        errors["url"] = ["The url field is required."]
    elif not isinstance(url, str) or not is_valid_url(url):
        errors["url"] = ["The url field must be a valid URL."]

    if "formats" in body:
        formats = body["formats"]
        if not isinstance(formats, list):
            errors["formats"] = ["The formats field must be an array."]
        else:
            for index, token in enumerate(formats):
                if not isinstance(token, str) or token not in _SUPPORTED_FORMATS:
                    errors[f"formats.{index}"] = [
                        f"The selected formats.{index} is invalid."
                    ]

    return errors


def validate_search_request(body: dict[str, Any]) -> ValidationErrors:
    errors: ValidationErrors = {}

    query = body.get("query")
    if "query" not in body:
        errors["query"] = ["The query field is required."]
    elif not isinstance(query, str):
        errors["query"] = ["The query field must be a string."]
    elif len(query.strip()) < _MIN_QUERY_LENGTH:
        errors["query"] = [
            f"The query field must be at least {_MIN_QUERY_LENGTH} characters."
        ]

    if "limit" in body:
        limit = _as_integer(body["limit"])
        if limit is None:
            errors["limit"] = ["The limit field must be an integer."]
        elif limit < 1:
            errors["limit"] = ["The limit field must be at least 1."]
        elif limit > MAX_SEARCH_LIMIT:
            errors["limit"] = [
                f"The limit field may not be greater than {MAX_SEARCH_LIMIT}."
            ]

    return errors


def _as_integer(value: Any) -> int | None:
    # JSON has no separate integer type, so 5.0 counts; booleans do not
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def _validation_response(errors: ValidationErrors) -> JSONResponse:
    return JSONResponse(
        {"message": VALIDATION_ERROR_MESSAGE, "errors": errors}, status_code=422
    )


def _error_response(error: CrawlifyError) -> JSONResponse:
    return JSONResponse(error.to_payload(), status_code=error.status_code)


async def _read_body(request: Request) -> dict[str, Any]:
    raw = await request.body()
    if not raw.strip():
        return {}
    try:
        body = json.loads(raw)
    except ValueError as e:
        raise InvalidJSON() from e
    return body if isinstance(body, dict) else {}


def create_app(
    config: CrawlifyConfig | None = None,
    crawler: Crawler | None = None,
) -> FastAPI:
    """Build the API application.

    Args:
        config: Configuration (defaults to the global config)
        crawler: Crawler to serve requests with (built from config if omitted)

    Returns:
        FastAPI application
    """
    config = config or get_config()
    crawler = crawler or Crawler(config)
    cleanup = ScreenshotCleanup(config.screenshots)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        cleanup.start()
        try:
            yield
        finally:
            await cleanup.stop()

    app = FastAPI(title="crawlify", version=__version__, lifespan=lifespan)
    app.state.config = config
    app.state.crawler = crawler

    @app.exception_handler(InvalidJSON)
    async def invalid_json_handler(request: Request, exc: InvalidJSON) -> JSONResponse:
        return JSONResponse(error_payload("Invalid JSON payload."), status_code=400)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        message = "Not Found" if exc.status_code == 404 else str(exc.detail)
        return JSONResponse(error_payload(message), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(f"Unhandled error on {request.url.path}")
        return JSONResponse(error_payload("Internal server error."), status_code=500)

    @app.post(f"{API_PREFIX}/crawl")
    async def crawl(request: Request) -> JSONResponse:
        body = await _read_body(request)
        errors = validate_crawl_request(body)
        if errors:
            return _validation_response(errors)

        try:
            result = await crawler.crawl(body["url"].strip(), body.get("formats"))
        except CrawlifyError as e:
            return _error_response(e)
        except Exception:
            logger.exception(f"Unexpected error crawling {body['url']}")
            return JSONResponse(
                error_payload(CRAWL_UNEXPECTED_MESSAGE), status_code=502
            )

        return JSONResponse(result.to_dict())

    @app.post(f"{API_PREFIX}/search")
    async def search(request: Request) -> JSONResponse:
        body = await _read_body(request)
        errors = validate_search_request(body)
        if errors:
            return _validation_response(errors)

        limit = _as_integer(body.get("limit"))
        if limit is None:
            limit = DEFAULT_SEARCH_LIMIT

        try:
            result = await search_web(body["query"].strip(), limit, config.search)
        except CrawlifyError as e:
            return _error_response(e)
        except Exception:
            logger.exception("Unexpected error during search")
            return JSONResponse(
                error_payload(SEARCH_UNEXPECTED_MESSAGE), status_code=502
            )

        return JSONResponse(result.to_dict())

    screenshot_dir = config.screenshots.path
    screenshot_dir.mkdir(parents=True, exist_ok=True)
    app.mount(
        config.screenshots.url_prefix.rstrip("/") or "/screenshots",
        StaticFiles(directory=str(screenshot_dir)),
        name="screenshots",
    )

    return app
