"""Backend-facing alias for shared utilities."""

from __future__ import annotations

from vg_shared import (
    VIDEO_EXTENSIONS,
    ErrorCode,
    Result,
    format_timestamp,
    get_logger,
    is_video_file,
    log_success,
    request_id_var,
    resolve_log_level,
    sanitize_error_message,
    timer,
)

__all__ = [
    "Result",
    "ErrorCode",
    "get_logger",
    "log_success",
    "request_id_var",
    "resolve_log_level",
    "format_timestamp",
    "timer",
    "VIDEO_EXTENSIONS",
    "is_video_file",
    "sanitize_error_message",
]
