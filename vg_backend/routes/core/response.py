"""
Response utilities for route handlers.
"""

import math
from typing import Iterable

from aiohttp import web

from vg_backend.errors import CatalogError
from vg_backend.shared import ErrorCode, Result, sanitize_error_message


def safe_error_message(exc: Exception, generic_message: str, visible_roots: Iterable[str] = ()) -> str:
    """Client-facing message; paths outside `visible_roots` are masked (unless `VG_DEBUG`)."""
    return sanitize_error_message(exc, generic_message, visible_roots)


def _json_response(result: Result, status: int | None = None):
    """
    Convert Result to JSON response.

    Business and validation errors are HTTP 200 with `ok: false`; an explicit
    status is only for unhandled failures.
    """
    if status is None:
        status = 200

    payload = _sanitize_json_payload(
        {
            "ok": result.ok,
            "data": result.data,
            "error": result.error,
            "code": result.code,
            "meta": result.meta,
        }
    )
    return web.json_response(payload, status=status)


def _error_response(exc: CatalogError, generic_message: str, visible_roots: Iterable[str] = ()):
    code = exc.code if isinstance(exc.code, (ErrorCode, str)) else ErrorCode.INVALID_INPUT
    return _json_response(Result.Err(code, safe_error_message(exc, generic_message, visible_roots)))


def _sanitize_json_payload(value):
    """
    Normalize payload values so they are always valid strict JSON.
    - Converts NaN/Infinity floats to None.
    - Recurses through dict/list/tuple containers.
    """
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if isinstance(value, dict):
        return {k: _sanitize_json_payload(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_sanitize_json_payload(v) for v in value]
    return value
