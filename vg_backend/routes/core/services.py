"""
Access to the service container from route handlers.
"""
from typing import Optional

from aiohttp import web

from vg_backend.features.catalog import Catalog
from vg_backend.shared import ErrorCode, Result

APP_KEY_SERVICES: web.AppKey[dict] = web.AppKey("vg_services", dict)


def _require_services(request: web.Request) -> tuple[Optional[dict], Optional[Result]]:
    services = request.app.get(APP_KEY_SERVICES)
    if not services:
        return None, Result.Err(ErrorCode.SERVICE_UNAVAILABLE, "Services are not initialized")
    return services, None


def _require_catalog(request: web.Request) -> tuple[Optional[Catalog], Optional[Result]]:
    services, error = _require_services(request)
    if error is not None or services is None:
        return None, error
    catalog = services.get("catalog")
    if catalog is None:
        return None, Result.Err(ErrorCode.SERVICE_UNAVAILABLE, "Catalog is not initialized")
    return catalog, None
