"""HTML to Markdown conversion through an external converter process.

The converter is a standalone executable (``html2markdown`` by default) that
reads HTML on stdin and writes Markdown on stdout. Each conversion spawns one
process with a hard deadline:

1. Resolve and check the executable
2. Spawn it with no arguments
3. Write the full HTML to stdin, then close it
4. Drain stdout and stderr concurrently (no pipe-buffer deadlock)
5. Kill the process if the deadline passes
6. Classify the outcome: output, non-zero exit, timeout or spawn failure
"""

from __future__ import annotations

import asyncio
import os
import shutil

from loguru import logger

from crawlify.config import MarkdownConfig
from crawlify.constants import MARKDOWN_ERROR_MESSAGE, MARKDOWN_TIMEOUT_MESSAGE
from crawlify.errors import ConversionError


class MarkdownConverter:
    """Bounded-lifetime wrapper around the external Markdown converter."""

    def __init__(self, config: MarkdownConfig | None = None) -> None:
        self.config = config or MarkdownConfig()

    def resolve_executable(self) -> str:
        """Locate the converter executable.

        A command containing a path separator is used as-is; a bare name is
        looked up on PATH.

        Raises:
            ConversionError: If the executable is missing or not executable
        """
        command = self.config.command
        if os.sep in command or (os.altsep and os.altsep in command):
            path = os.path.expanduser(command)
            if os.path.isfile(path) and os.access(path, os.X_OK):
                return path
        else:
            found = shutil.which(command)
            if found:
                return found

        raise ConversionError(f"{command} binary missing or not executable")

    async def convert(self, html: str) -> str:
        """Convert HTML to Markdown.

        Args:
            html: HTML document

        Returns:
            Markdown with trailing newlines removed

        Raises:
            ConversionError: If the converter is unavailable, fails to start,
                exits non-zero, or exceeds its deadline
        """
        executable = self.resolve_executable()

        try:
            process = await asyncio.create_subprocess_exec(
                executable,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise ConversionError(f"Failed to start markdown converter: {e}") from e

        try:
            # communicate() closes stdin after writing and ignores a broken
            # pipe if the process exits before reading everything
            stdout, stderr = await asyncio.wait_for(
                process.communicate(html.encode("utf-8")),
                timeout=self.config.timeout,
            )
        except asyncio.TimeoutError:
            await _kill(process)
            logger.warning(
                f"Markdown converter exceeded {self.config.timeout}s deadline, killed"
            )
            raise ConversionError(MARKDOWN_TIMEOUT_MESSAGE, timed_out=True) from None
        except BaseException:
            await _kill(process)
            raise

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()
            logger.debug(
                f"Markdown converter exited with {process.returncode}: {message}"
            )
            raise ConversionError(message or MARKDOWN_ERROR_MESSAGE)

        return stdout.decode("utf-8", errors="replace").rstrip("\r\n")


async def _kill(process: asyncio.subprocess.Process) -> None:
    """Force-terminate a converter process and reap it."""
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        pass
    await process.wait()


async def html_to_markdown(html: str, config: MarkdownConfig | None = None) -> str:
    """Convert HTML to Markdown with a one-off converter."""
    return await MarkdownConverter(config).convert(html)
