"""Route handler registration functions."""
from .catalog import register_catalog_routes
from .thumbnails import register_thumbnail_routes
from .version import register_version_routes

__all__ = ["register_catalog_routes", "register_thumbnail_routes", "register_version_routes"]
