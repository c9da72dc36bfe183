"""
Route registration and aiohttp application factory.
"""

from __future__ import annotations

from aiohttp import web

from vg_backend.deps import dispose_services
from vg_backend.observability import ensure_observability
from vg_backend.shared import get_logger
from vg_backend.utils import is_dev

from .core import APP_KEY_SERVICES
from .handlers import register_catalog_routes, register_thumbnail_routes, register_version_routes

logger = get_logger(__name__)


@web.middleware
async def dev_cors_middleware(request: web.Request, handler):
    """Allow any origin in development mode (frontend dev server on another port)."""
    response = await handler(request)
    response.headers["Access-Control-Allow-Origin"] = "*"
    return response


def register_all_routes() -> web.RouteTableDef:
    routes = web.RouteTableDef()
    register_version_routes(routes)
    register_catalog_routes(routes)
    register_thumbnail_routes(routes)
    return routes


def create_app(services: dict, *, dispose_on_cleanup: bool = True) -> web.Application:
    """
    Build the aiohttp application around an initialized service container.

    With `dispose_on_cleanup`, the services are disposed when the app shuts down.
    """
    app = web.Application()
    ensure_observability(app)
    if is_dev():
        app.middlewares.append(dev_cors_middleware)
    app[APP_KEY_SERVICES] = services
    app.add_routes(register_all_routes())

    if dispose_on_cleanup:
        async def _cleanup(_app: web.Application) -> None:
            await dispose_services(services)

        app.on_cleanup.append(_cleanup)

    logger.debug("Registered %d routes", len(app.router.routes()))
    return app
