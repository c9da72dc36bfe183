"""
Shared types, enums, and constants.
"""
import os
from enum import Enum
from typing import Final


class ErrorCode(str, Enum):
    """Standardized error codes (string enum)."""

    # Client / validation
    INVALID_INPUT = "INVALID_INPUT"
    INVALID_JSON = "INVALID_JSON"
    NOT_FOUND = "NOT_FOUND"
    NOT_A_DIRECTORY = "NOT_A_DIRECTORY"
    FORBIDDEN = "FORBIDDEN"

    # Feature / service availability
    DEGRADED = "DEGRADED"
    UNSUPPORTED = "UNSUPPORTED"
    TOOL_MISSING = "TOOL_MISSING"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"

    # Server / infrastructure
    DB_ERROR = "DB_ERROR"
    TIMEOUT = "TIMEOUT"
    CACHE_CORRUPTION = "CACHE_CORRUPTION"
    CONFIG_INVALID = "CONFIG_INVALID"

    # Tool / parsing
    FFPROBE_ERROR = "FFPROBE_ERROR"
    FFMPEG_ERROR = "FFMPEG_ERROR"
    HISTORY_ERROR = "HISTORY_ERROR"
    PARSE_ERROR = "PARSE_ERROR"


# Video containers recognized by MPC-HC (lowercase, with leading dot).
# ".rar" is deliberately absent.
VIDEO_EXTENSIONS: Final[frozenset[str]] = frozenset({
    ".avi", ".mpg", ".mpeg", ".mpe", ".m1v", ".m2v", ".mpv2", ".mp2v",
    ".pva", ".evo", ".m2p", ".ts", ".tp", ".trp", ".m2t", ".m2ts", ".mts",
    ".rec", ".ssif", ".vob", ".ifo", ".mkv", ".mk3d", ".webm", ".mp4",
    ".m4v", ".mp4v", ".mpv4", ".hdmov", ".mov", ".3gp", ".3gpp", ".3g2",
    ".3gp2", ".flv", ".f4v", ".ogm", ".ogv", ".rm", ".rmvb", ".ram",
    ".wmv", ".wmp", ".wm", ".asf", ".smk", ".bik", ".fli", ".flc", ".flic",
    ".dsm", ".dsv", ".dsa", ".dss", ".ivf", ".divx", ".amv", ".mxf", ".dv",
    ".dav", ".mpls", ".bdmv", ".swf",
})


def is_video_file(filename: str) -> bool:
    """
    Check a file name against the video extension allow-list.

    Args:
        filename: File name or path

    Returns:
        True when the (case-insensitive) extension is a known video container
    """
    ext = os.path.splitext(filename)[1].lower()
    return ext in VIDEO_EXTENSIONS
