"""Scrubbing of error text before it reaches users."""

from __future__ import annotations

import re

# Absolute paths not preceded by a URL scheme or another path character
_UNIX_PATH_RE = re.compile(r"(?<![\w:/.\-])/[a-zA-Z0-9_\-.]+(?:/[a-zA-Z0-9_\-.]*)+")
_WINDOWS_PATH_RE = re.compile(r"[A-Za-z]:\\[a-zA-Z0-9_\-\\. ]+")
_UNC_PATH_RE = re.compile(r"\\\\[a-zA-Z0-9_\-\\. ]+")


def sanitize_error_message(error: Exception | str) -> str:
    """Remove filesystem paths and home-directory user names from error text.

    URLs are left intact.

    Args:
        error: Exception or message to sanitize

    Returns:
        Sanitized message
    """
    msg = str(error)

    # User names first, so the generic path pass still sees a path
    msg = re.sub(r"/home/[^/\s]+/", "/home/[USER]/", msg)
    msg = re.sub(r"C:\\Users\\[^\\]+\\", r"C:\\Users\\[USER]\\", msg)

    msg = _UNIX_PATH_RE.sub("[PATH]", msg)
    msg = _WINDOWS_PATH_RE.sub("[PATH]", msg)
    msg = _UNC_PATH_RE.sub("[PATH]", msg)

    return msg
