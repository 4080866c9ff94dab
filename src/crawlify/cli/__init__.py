"""CLI package for crawlify.

Usage:
    from crawlify.cli import app
"""

from __future__ import annotations

from crawlify.cli.main import app

__all__ = ["app"]
