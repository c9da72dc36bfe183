"""Shared utilities for Video Grid."""
from .errors import sanitize_error_message
from .log import get_logger, log_success, request_id_var, resolve_log_level
from .result import Result
from .time import format_timestamp, now, timer
from .types import VIDEO_EXTENSIONS, ErrorCode, is_video_file

__all__ = [
    "Result",
    "get_logger",
    "log_success",
    "request_id_var",
    "resolve_log_level",
    "now",
    "format_timestamp",
    "timer",
    "ErrorCode",
    "VIDEO_EXTENSIONS",
    "is_video_file",
    "sanitize_error_message",
]
