"""Crawlify - single-URL content acquisition and web search normalization."""

from __future__ import annotations

__version__ = "0.3.0"
