"""
Observability helpers (request id + timing) for aiohttp routes.
"""

from __future__ import annotations

import time
from typing import Any
from uuid import uuid4

from aiohttp import web

from .shared import get_logger, request_id_var
from .utils import env_bool

logger = get_logger(__name__)

MS_PER_S = 1000.0
_APPKEY_OBS_INSTALLED = web.AppKey("vg_observability_installed", bool)


def _new_request_id() -> str:
    return uuid4().hex


def _get_request_id(request: web.Request) -> str:
    rid = (request.headers.get("X-Request-ID") or "").strip()
    return rid[:128] if rid else _new_request_id()


def _attach_request_id_header(response: Any, rid: str) -> None:
    headers = getattr(response, "headers", None)
    if headers is not None:
        headers["X-Request-ID"] = rid


def _emit_request_log(request: web.Request, *, status: int | None, duration_ms: float, error: str | None) -> None:
    if status is not None and status >= 500:
        logger.error("%s %s -> %s (%.1fms): %s", request.method, request.path, status, duration_ms, error or "")
    elif status is not None and status >= 400:
        logger.warning("%s %s -> %s (%.1fms)", request.method, request.path, status, duration_ms)
    elif env_bool("VG_OBS_LOG_ALL", False):
        logger.info("%s %s -> %s (%.1fms)", request.method, request.path, status, duration_ms)


@web.middleware
async def request_context_middleware(request: web.Request, handler):
    """Add request-id correlation and lightweight request logging."""
    rid = _get_request_id(request)
    request["vg_request_id"] = rid
    token = request_id_var.set(rid)
    start = time.perf_counter()
    status: int | None = None
    error: str | None = None
    try:
        response = await handler(request)
        status = int(getattr(response, "status", 200) or 200)
        _attach_request_id_header(response, rid)
        return response
    except web.HTTPException as exc:
        status = int(exc.status)
        error = exc.reason
        _attach_request_id_header(exc, rid)
        raise
    except Exception as exc:
        status = 500
        error = f"{exc.__class__.__name__}: {exc}"
        raise
    finally:
        duration_ms = (time.perf_counter() - start) * MS_PER_S
        request["vg_duration_ms"] = duration_ms
        _emit_request_log(request, status=status, duration_ms=duration_ms, error=error)
        request_id_var.reset(token)


def ensure_observability(app: web.Application) -> None:
    """Install the request-context middleware once per app."""
    if app.get(_APPKEY_OBS_INSTALLED):
        return
    app.middlewares.append(request_context_middleware)
    app[_APPKEY_OBS_INSTALLED] = True
