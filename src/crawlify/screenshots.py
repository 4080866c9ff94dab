"""Screenshot file storage and TTL cleanup.

Screenshots are written as ``screenshot_<uuid>.png`` into the configured
directory and served under the configured URL prefix. Nothing tracks them
after the request returns; a periodic sweep deletes files older than the TTL.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from crawlify.config import ScreenshotConfig
from crawlify.constants import (
    MIN_SCREENSHOT_CLEANUP_INTERVAL_SECONDS,
    SCREENSHOT_FILE_PREFIX,
)


@dataclass(frozen=True)
class ScreenshotFile:
    """Allocated location of one screenshot."""

    path: Path
    url: str


def allocate_screenshot(config: ScreenshotConfig) -> ScreenshotFile:
    """Reserve a unique screenshot path and its public URL.

    The directory is created if missing; the file itself is not.
    """
    directory = config.path
    directory.mkdir(parents=True, exist_ok=True)

    filename = f"{SCREENSHOT_FILE_PREFIX}{uuid.uuid4()}.png"
    prefix = config.url_prefix.rstrip("/")
    return ScreenshotFile(path=directory / filename, url=f"{prefix}/{filename}")


def safe_remove(path: Path | None) -> None:
    """Delete a file, ignoring a file that is already gone."""
    if path is None:
        return
    try:
        path.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.debug(f"Could not remove {path.name}: {e}")


def prune_expired_screenshots(
    directory: Path | str, ttl_seconds: float, now: float | None = None
) -> int:
    """Delete PNG files older than the TTL.

    Only regular ``*.png`` files whose modification time is at least
    ``ttl_seconds`` old are removed. A missing directory, or a file that
    disappears mid-sweep, is not an error.

    Args:
        directory: Screenshot directory
        ttl_seconds: Maximum file age
        now: Reference time (defaults to the current time)

    Returns:
        Number of files deleted
    """
    directory = Path(directory)
    current = time.time() if now is None else now

    try:
        entries = list(directory.iterdir())
    except FileNotFoundError:
        return 0

    removed = 0
    for entry in entries:
        if entry.suffix != ".png":
            continue

        try:
            if not entry.is_file():
                continue
            mtime = entry.stat().st_mtime
        except FileNotFoundError:
            continue

        if current - mtime < ttl_seconds:
            continue

        try:
            entry.unlink()
            removed += 1
        except FileNotFoundError:
            continue

    if removed:
        logger.info(f"Pruned {removed} expired screenshot(s) from {directory}")
    return removed


class ScreenshotCleanup:
    """Background task that sweeps the screenshot directory periodically.

    The first sweep runs immediately on start; later sweeps run every
    ``cleanup_interval_seconds`` (never more often than every 30 seconds).
    A failing sweep is logged and does not stop the schedule.
    """

    def __init__(self, config: ScreenshotConfig) -> None:
        self.config = config
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return max(
            self.config.cleanup_interval_seconds,
            MIN_SCREENSHOT_CLEANUP_INTERVAL_SECONDS,
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start the sweep loop; a second call is a no-op."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """Cancel the sweep loop and wait for it to finish."""
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    def sweep(self) -> int:
        """Run one sweep, logging instead of raising."""
        try:
            return prune_expired_screenshots(
                self.config.path, self.config.ttl_seconds
            )
        except Exception:
            logger.exception("Failed to clean screenshots directory")
            return 0

    async def _run(self) -> None:
        while True:
            await asyncio.to_thread(self.sweep)
            await asyncio.sleep(self.interval)
