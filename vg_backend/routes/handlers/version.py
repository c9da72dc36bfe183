"""
Version reporting endpoint.
"""
from aiohttp import web

from vg_backend.shared import Result
from vg_shared.version import get_version_info

from ..core import _json_response


def register_version_routes(routes: web.RouteTableDef) -> None:
    """Expose the installed Video Grid version."""

    async def _get_version(_request: web.Request) -> web.Response:
        return _json_response(Result.Ok(get_version_info()))

    routes.get("/api")(_get_version)
