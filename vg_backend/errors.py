"""
Catalog error taxonomy.

Authorization failures always propagate. Tool, cache and display failures are
caught by best-effort callers and turned into degraded output.
"""

from __future__ import annotations

from typing import Optional

from .shared import ErrorCode


class CatalogError(Exception):
    """Base class for catalog errors; carries a stable error code."""

    code: ErrorCode = ErrorCode.INVALID_INPUT

    def __init__(self, message: str, *, path: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path


class PathNotAllowed(CatalogError):
    """The path is outside every configured root (or tries to escape one)."""

    code = ErrorCode.FORBIDDEN

    def __init__(self, path: str) -> None:
        super().__init__(f"Path {path} is not in the config.", path=path)


class NotFound(CatalogError):
    code = ErrorCode.NOT_FOUND

    def __init__(self, path: str) -> None:
        super().__init__(f"Path {path} does not exist.", path=path)


class NotADirectory(CatalogError):
    code = ErrorCode.NOT_A_DIRECTORY

    def __init__(self, path: str) -> None:
        super().__init__(f"Path {path} is not a directory.", path=path)


class ExternalToolFailure(CatalogError):
    """A probe/transcode/history subprocess failed; `diagnostic` holds its stderr."""

    def __init__(
        self,
        tool: str,
        message: str,
        *,
        code: ErrorCode | str = ErrorCode.FFPROBE_ERROR,
        diagnostic: str = "",
        path: Optional[str] = None,
    ) -> None:
        super().__init__(f"{tool}: {message}", path=path)
        self.tool = tool
        self.diagnostic = diagnostic
        self.code = code  # type: ignore[assignment]


class CacheCorruption(CatalogError):
    """A persisted record failed schema validation."""

    code = ErrorCode.CACHE_CORRUPTION

    def __init__(self, namespace: str, key: str, detail: str) -> None:
        super().__init__(f"Corrupt {namespace} record for {key}: {detail}")
        self.namespace = namespace
        self.key = key


class ConfigInvalid(CatalogError):
    code = ErrorCode.CONFIG_INVALID
