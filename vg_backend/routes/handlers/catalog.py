"""
Catalog endpoints: home, directory listings, annotations and desktop actions.

Every path arrives as a query parameter and goes through the catalog, which
authorizes it before touching the filesystem.
"""
from aiohttp import web
from pydantic import ValidationError

from vg_backend.errors import CatalogError
from vg_backend.features.annotations import DirConfig
from vg_backend.shared import ErrorCode, Result, get_logger
from vg_backend.utils import parse_bool

from ..core import _error_response, _json_response, _read_json, _require_catalog

logger = get_logger(__name__)


def _query_path(request: web.Request, name: str) -> str:
    return (request.query.get(name) or "").strip()


def register_catalog_routes(routes: web.RouteTableDef) -> None:
    @routes.get("/api/home")
    async def get_home(request: web.Request) -> web.Response:
        catalog, error = _require_catalog(request)
        if error is not None:
            return _json_response(error)
        records = await catalog.home_records()
        return _json_response(Result.Ok({"items": records}))

    @routes.get("/api/list")
    async def get_list(request: web.Request) -> web.Response:
        catalog, error = _require_catalog(request)
        if error is not None:
            return _json_response(error)
        directory = _query_path(request, "dir")
        if not directory:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "No directory specified"))
        extra_info = parse_bool(request.query.get("extraInfo"), False)

        try:
            is_top_level = catalog.is_top_level(directory)
            dir_config = await catalog.get_dir_config(directory)
            records = await catalog.list_display_records(directory, include_extra=extra_info)
            previous_dir = catalog.previous_dir(directory)
        except CatalogError as exc:
            return _error_response(exc, "Failed to list directory", catalog.config().folders)

        return _json_response(
            Result.Ok(
                {
                    "dir": directory,
                    "isTopLevel": is_top_level,
                    "previousDir": previous_dir,
                    "dirConfig": dir_config.to_dict(),
                    "extraInfo": extra_info,
                    "items": records,
                }
            )
        )

    @routes.post("/api/dir-config")
    async def post_dir_config(request: web.Request) -> web.Response:
        catalog, error = _require_catalog(request)
        if error is not None:
            return _json_response(error)
        directory = _query_path(request, "dir")
        if not directory:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "No directory specified"))

        body = await _read_json(request)
        if not body.ok:
            return _json_response(body)
        try:
            dir_config = DirConfig.model_validate(body.data or {})
        except ValidationError as exc:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, f"Invalid directory config: {exc.error_count()} error(s)"))

        try:
            await catalog.set_dir_config(directory, dir_config)
        except CatalogError as exc:
            return _error_response(exc, "Failed to save directory config", catalog.config().folders)
        return _json_response(Result.Ok({"dirConfig": dir_config.to_dict()}))

    @routes.post("/api/open")
    async def post_open(request: web.Request) -> web.Response:
        catalog, error = _require_catalog(request)
        if error is not None:
            return _json_response(error)
        path = _query_path(request, "path")
        if not path:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "No path specified"))
        try:
            opened = await catalog.open(path)
        except CatalogError as exc:
            return _error_response(exc, "Failed to open file", catalog.config().folders)
        return _json_response(Result.Ok(opened))

    @routes.post("/api/done")
    async def post_done(request: web.Request) -> web.Response:
        catalog, error = _require_catalog(request)
        if error is not None:
            return _json_response(error)
        path = _query_path(request, "path")
        if not path:
            return _json_response(Result.Err(ErrorCode.INVALID_INPUT, "No path specified"))
        done = parse_bool(request.query.get("done"), False)
        try:
            await catalog.set_done(path, done)
        except CatalogError as exc:
            return _error_response(exc, "Failed to update watched flag", catalog.config().folders)
        return _json_response(Result.Ok({"done": done}))
