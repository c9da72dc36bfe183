"""
Client-facing error messages.

Paths under the configured video roots are already visible to the client
(listings carry `absolutePath`), so they are kept. Any other path, such as
the app data directory or a tool location, is replaced with `[path]`.
"""
from __future__ import annotations

import os
import re
from typing import Any, Iterable

from .log import get_logger

logger = get_logger(__name__)

MAX_MESSAGE_LENGTH = 200

_PATH_RE = re.compile(r"(?:[A-Za-z]:\\|\\\\|(?<![\w:/?&=#%])/(?!/))[^\s'\"]*")


def _debug_mode() -> bool:
    return os.getenv("VG_DEBUG", "").strip().lower() in ("1", "true", "yes", "on")


def _is_visible(path: str, roots: tuple[str, ...]) -> bool:
    key = os.path.normcase(path.rstrip("\\/.,;:)"))
    for root in roots:
        root_key = os.path.normcase(root.rstrip("\\/"))
        if key == root_key or key.startswith(root_key + os.sep):
            return True
    return False


def sanitize_error_message(exc: Any, fallback: str, visible_roots: Iterable[str] = ()) -> str:
    """
    Build `"<fallback>: <detail>"` for an API error, or just `fallback`.

    Args:
        exc: Exception (or any value) whose text becomes the detail.
        fallback: Generic message for the failed operation.
        visible_roots: Configured roots whose paths may appear verbatim.
    """
    fallback = fallback or "An error occurred"
    raw = "" if exc is None else str(exc)
    if not raw:
        return fallback

    if _debug_mode():
        logger.debug("Unmasked error detail: %s", raw)
        return f"{fallback}: {raw[:MAX_MESSAGE_LENGTH]}"

    roots = tuple(str(r) for r in visible_roots if r)

    def _mask(match: re.Match) -> str:
        path = match.group(0)
        return path if _is_visible(path, roots) else "[path]"

    detail = " ".join(_PATH_RE.sub(_mask, raw).split())
    return f"{fallback}: {detail[:MAX_MESSAGE_LENGTH]}" if detail else fallback
