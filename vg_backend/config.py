"""
Process-level tunables for Video Grid.

User-facing settings (root folders, display flags, host/port) live in the
JSON config file handled by `features.config`; everything here is read from
environment variables once at import time.
"""
import logging
import os
import sys
from pathlib import Path

from .utils import env_bool

logger = logging.getLogger(__name__)


def _env_raw(*names: str, default: str | None = None) -> str | None:
    for name in names:
        if not name:
            continue
        val = os.getenv(name)
        if val is not None and str(val).strip() != "":
            return str(val).strip()
    return default


def _env_int(default: int, *names: str, min_value: int | None = None, max_value: int | None = None) -> int:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid integer for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_float(default: float, *names: str, min_value: float | None = None, max_value: float | None = None) -> float:
    raw = _env_raw(*names)
    if raw is None:
        return default
    try:
        value = float(raw)
    except (TypeError, ValueError):
        logger.warning("Invalid float for %s=%r, using default=%s", names[0] if names else "<unknown>", raw, default)
        return default
    if min_value is not None and value < min_value:
        logger.warning("Value too small for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, min_value)
        value = min_value
    if max_value is not None and value > max_value:
        logger.warning("Value too large for %s=%s, clamped to %s", names[0] if names else "<unknown>", value, max_value)
        value = max_value
    return value


def _env_bool(default: bool, *names: str) -> bool:
    for name in names:
        if name and name in os.environ:
            return env_bool(name, default)
    return default


def _resolve_app_data_dir() -> Path:
    env_path = _env_raw("VG_APP_DATA_DIR")
    if env_path:
        try:
            return Path(env_path).expanduser().resolve()
        except (OSError, RuntimeError):
            logger.warning("Failed to resolve VG_APP_DATA_DIR: %s, using fallback", env_path)
    return (Path.home() / ".videogrid").resolve()


# Platform detection
IS_WINDOWS = sys.platform == "win32"

APP_DATA_DIR_PATH = _resolve_app_data_dir()

CONFIG_FILENAME = "config.json"
DATA_SUBDIR = "data"
THUMBNAIL_SUBDIR = "thumbnails"
KV_DB_FILENAME = "kv.sqlite"
PLACEHOLDER_FILENAME = "placeholder.png"

# External tool overrides (portable vs. system-wide)
FFPROBE_BIN = _env_raw("VG_FFPROBE_PATH", default="ffprobe")
FFMPEG_BIN = _env_raw("VG_FFMPEG_PATH", default="ffmpeg")
REG_BIN = _env_raw("VG_REG_PATH", default="reg.exe")

# Tool timeouts
FFPROBE_TIMEOUT = _env_float(10.0, "VG_FFPROBE_TIMEOUT", min_value=1.0, max_value=120.0)
FFMPEG_TIMEOUT = _env_float(60.0, "VG_FFMPEG_TIMEOUT", min_value=1.0, max_value=600.0)
HISTORY_TIMEOUT = _env_float(10.0, "VG_HISTORY_TIMEOUT", min_value=1.0, max_value=120.0)

# Thumbnail generation
THUMBNAIL_WIDTH = _env_int(512, "VG_THUMBNAIL_WIDTH", min_value=16, max_value=4096)
THUMBNAIL_SEEK_RATIO = _env_float(0.2, "VG_THUMBNAIL_SEEK_RATIO", min_value=0.0, max_value=0.99)

# Stat cache
STAT_CACHE_TTL_SECONDS = _env_float(60.0, "VG_STAT_CACHE_TTL_SECONDS", min_value=0.0, max_value=3600.0)
STAT_CACHE_SHARDS = _env_int(16, "VG_STAT_CACHE_SHARDS", min_value=1, max_value=256)

# Database tuning
DB_TIMEOUT = _env_float(30.0, "VG_DB_TIMEOUT", min_value=1.0, max_value=300.0)
DB_MAX_CONNECTIONS = _env_int(4, "VG_DB_MAX_CONNECTIONS", min_value=1, max_value=64)

# Config file watcher
CONFIG_WATCH_ENABLED = _env_bool(True, "VG_CONFIG_WATCH")
CONFIG_DEBOUNCE_MS = _env_int(300, "VG_CONFIG_DEBOUNCE_MS", min_value=0, max_value=60_000)

# HTTP caching of generated thumbnails (30 days)
THUMBNAIL_CACHE_MAX_AGE_S = 86400 * 30

# Concurrent display-record builds per listing
LIST_CONCURRENCY = _env_int(16, "VG_LIST_CONCURRENCY", min_value=1, max_value=256)

# Upper bound on JSON request bodies
MAX_JSON_BYTES = _env_int(64 * 1024, "VG_MAX_JSON_SIZE", min_value=1024, max_value=10 * 1024 * 1024)
