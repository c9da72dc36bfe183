"""Shared helpers for route handlers."""
from .request_json import _read_json
from .response import _error_response, _json_response, safe_error_message
from .services import APP_KEY_SERVICES, _require_catalog, _require_services

__all__ = [
    "APP_KEY_SERVICES",
    "_error_response",
    "_json_response",
    "_read_json",
    "_require_catalog",
    "_require_services",
    "safe_error_message",
]
