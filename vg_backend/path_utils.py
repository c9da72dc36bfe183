"""
Shared path normalization and containment helpers.

All checks here are lexical: they never touch the filesystem, so they behave
the same for paths that do not exist (yet).
"""

from __future__ import annotations

import os


def strip_trailing_separators(value: str) -> str:
    """`/a/b/` -> `/a/b`; a bare root (`/`, `C:\\`) is returned unchanged."""
    stripped = value.rstrip("/\\" if os.name == "nt" else "/")
    if not stripped or (os.name == "nt" and stripped.endswith(":")):
        return value
    return stripped


def path_key(value: str) -> str:
    """Comparison key: normalized and case-folded where the platform is case-insensitive."""
    return os.path.normcase(os.path.normpath(value))


def is_same_path(path1: str, path2: str) -> bool:
    return path_key(path1) == path_key(path2)


def has_traversal(value: str) -> bool:
    """
    True when `value` contains `.`/`..` segments that normalization would fold.

    The parent directory as written is compared to the parent directory of the
    normalized path; any difference means the literal path does not say where
    it really points.
    """
    literal_parent = os.path.dirname(strip_trailing_separators(value))
    normalized_parent = os.path.dirname(os.path.normpath(value))
    return os.path.normcase(literal_parent) != os.path.normcase(normalized_parent)


def is_sub_path(parent: str, child: str) -> bool:
    """
    True when `child` is strictly below `parent`.

    The relative path from parent to child must be non-empty, must not begin
    with a `..` segment and must not be absolute (different drive on Windows).
    """
    try:
        relative = os.path.relpath(path_key(child), path_key(parent))
    except ValueError:
        return False
    if not relative or relative == os.curdir:
        return False
    if relative == os.pardir or relative.startswith(os.pardir + os.sep):
        return False
    return not os.path.isabs(relative)
