"""
Thumbnail endpoint: serves the image file itself.
"""
from aiohttp import web

from vg_backend.config import THUMBNAIL_CACHE_MAX_AGE_S
from vg_backend.errors import PathNotAllowed
from vg_backend.shared import ErrorCode, Result, get_logger

from ..core import _json_response, _require_catalog, safe_error_message

logger = get_logger(__name__)


def register_thumbnail_routes(routes: web.RouteTableDef) -> None:
    @routes.get("/api/thumbnail")
    async def get_thumbnail(request: web.Request) -> web.StreamResponse:
        catalog, error = _require_catalog(request)
        if error is not None:
            return _json_response(error, status=503)
        path = (request.query.get("path") or "").strip()
        if not path:
            return web.FileResponse(path=catalog.placeholder_path)

        try:
            thumbnail = await catalog.thumbnail_for(path)
        except PathNotAllowed as exc:
            return _json_response(
                Result.Err(ErrorCode.FORBIDDEN, safe_error_message(exc, "Path is not allowed", catalog.config().folders)),
                status=403,
            )

        response = web.FileResponse(path=thumbnail)
        if thumbnail != catalog.placeholder_path:
            response.headers["Cache-Control"] = f"public, max-age={THUMBNAIL_CACHE_MAX_AGE_S}"
        return response
