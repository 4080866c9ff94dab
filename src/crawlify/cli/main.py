"""Command-line interface for crawlify."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import click
from click import Context
from dotenv import load_dotenv
from loguru import logger

from crawlify.cli.console import get_console, get_stderr_console
from crawlify.cli.logging_config import print_version, setup_logging
from crawlify.config import ConfigManager, CrawlifyConfig
from crawlify.constants import DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT
from crawlify.crawl import crawl_url
from crawlify.errors import CrawlifyError
from crawlify.screenshots import prune_expired_screenshots
from crawlify.search import search_web
from crawlify.security import sanitize_error_message
from crawlify.types import FormatKind

# Load .env file from current directory and parent directories
load_dotenv()


def _print_json(data: Any) -> None:
    get_console().print_json(json.dumps(data, ensure_ascii=False))


def _fail(ctx: Context, error: CrawlifyError) -> None:
    get_stderr_console().print_json(json.dumps(error.to_payload(), ensure_ascii=False))
    ctx.exit(1)


def _manager(ctx: Context) -> ConfigManager:
    return ctx.find_root().obj["config_manager"]


def _config(ctx: Context) -> CrawlifyConfig:
    return _manager(ctx).config


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, path_type=Path),
    default=None,
    help="Path to configuration file.",
)
@click.option(
    "--verbose",
    is_flag=True,
    help="Enable verbose output.",
)
@click.option(
    "--version",
    "-v",
    is_flag=True,
    callback=print_version,
    expose_value=False,
    is_eager=True,
    help="Show version and exit.",
)
@click.pass_context
def app(ctx: Context, config_path: Path | None, verbose: bool) -> None:
    """Crawl web pages into HTML, Markdown, summaries, links and screenshots."""
    manager = ConfigManager()
    cfg = manager.load(config_path=config_path)
    setup_logging(
        verbose=verbose,
        log_dir=cfg.log.dir,
        log_level=cfg.log.level,
        rotation=cfg.log.rotation,
        retention=cfg.log.retention,
    )
    if manager.config_path:
        logger.debug(f"Loaded config from {manager.config_path}")
    ctx.ensure_object(dict)
    ctx.obj["config_manager"] = manager


@app.command()
@click.argument("url")
@click.option(
    "--format",
    "-f",
    "formats",
    multiple=True,
    type=click.Choice([kind.value for kind in FormatKind], case_sensitive=False),
    help="Output format (repeatable). Defaults to html.",
)
@click.option(
    "--proxy",
    default=None,
    help="Proxy URL for the fetch and the browser (overrides CRAWL_HTTP_PROXY).",
)
@click.pass_context
def crawl(ctx: Context, url: str, formats: tuple[str, ...], proxy: str | None) -> None:
    """Crawl a single URL and print the result as JSON."""
    manager = _manager(ctx)
    if proxy:
        manager.set("fetch.proxy", proxy)
    cfg = manager.config

    try:
        result = asyncio.run(
            crawl_url(url, [token.lower() for token in formats], config=cfg)
        )
    except CrawlifyError as e:
        _fail(ctx, e)
        return

    _print_json(result.to_dict())


@app.command()
@click.argument("query")
@click.option(
    "--limit",
    "-n",
    type=click.IntRange(1, MAX_SEARCH_LIMIT),
    default=DEFAULT_SEARCH_LIMIT,
    show_default=True,
    help="Maximum number of results.",
)
@click.option(
    "--backend",
    "-b",
    default=None,
    help="Search backend (firecrawl, brave, tavily, searxng).",
)
@click.pass_context
def search(ctx: Context, query: str, limit: int, backend: str | None) -> None:
    """Search the web and print normalized results as JSON."""
    manager = _manager(ctx)
    if backend:
        manager.set("search.backend", backend)
    cfg = manager.config

    query = query.strip()
    if len(query) < 2:
        raise click.BadParameter("must be at least 2 characters.", param_hint="QUERY")

    try:
        result = asyncio.run(search_web(query, limit, config=cfg.search))
    except CrawlifyError as e:
        _fail(ctx, e)
        return

    _print_json(result.to_dict())


@app.command()
@click.option("--host", default=None, help="Bind address.")
@click.option(
    "--port",
    type=click.IntRange(1, 65535),
    default=None,
    envvar="PORT",
    help="Bind port (defaults to $PORT, then the configured port).",
)
@click.pass_context
def serve(ctx: Context, host: str | None, port: int | None) -> None:
    """Run the HTTP API server."""
    import uvicorn

    from crawlify.api import create_app

    manager = _manager(ctx)
    cfg = manager.config
    host = host or manager.get("server.host")
    port = port or manager.get("server.port")

    logger.info(f"Serving crawlify API on http://{host}:{port}")
    uvicorn.run(create_app(cfg), host=host, port=port, log_config=None)


@app.command()
@click.option(
    "--ttl",
    type=click.IntRange(min=1),
    default=None,
    help="Maximum screenshot age in seconds (defaults to the configured TTL).",
)
@click.pass_context
def cleanup(ctx: Context, ttl: int | None) -> None:
    """Delete expired screenshots once."""
    cfg = _config(ctx)
    directory = cfg.screenshots.path

    try:
        removed = prune_expired_screenshots(
            directory, ttl or cfg.screenshots.ttl_seconds
        )
    except OSError as e:
        get_stderr_console().print(
            f"[red]Failed to clean screenshots: {sanitize_error_message(e)}[/red]"
        )
        ctx.exit(1)
        return

    get_console().print(f"Removed {removed} expired screenshot(s)")


if __name__ == "__main__":
    app()
