"""HTTP routes."""
from .registry import create_app, register_all_routes

__all__ = ["create_app", "register_all_routes"]
