"""
Dependency injection - builds services.
Simple, debug-friendly DI without framework magic.
"""

from __future__ import annotations

from pathlib import Path

from .adapters.db.kv_store import KVStore
from .adapters.fs.stat_cache import StatCache
from .adapters.tools import FFmpeg, FFProbe, MediaHistorySource
from .config import (
    APP_DATA_DIR_PATH,
    CONFIG_FILENAME,
    CONFIG_WATCH_ENABLED,
    DATA_SUBDIR,
    DB_MAX_CONNECTIONS,
    DB_TIMEOUT,
    FFMPEG_BIN,
    FFMPEG_TIMEOUT,
    FFPROBE_BIN,
    FFPROBE_TIMEOUT,
    HISTORY_TIMEOUT,
    KV_DB_FILENAME,
    PLACEHOLDER_FILENAME,
    REG_BIN,
    STAT_CACHE_SHARDS,
    STAT_CACHE_TTL_SECONDS,
    THUMBNAIL_SUBDIR,
)
from .errors import ConfigInvalid
from .features.annotations import AnnotationStore
from .features.catalog import Catalog
from .features.config import ConfigLifecycle
from .features.thumbnails import ensure_placeholder
from .shared import ErrorCode, Result, get_logger, log_success

logger = get_logger(__name__)


def initialize_directories(app_data_dir: Path) -> dict[str, Path]:
    data_dir = app_data_dir / DATA_SUBDIR
    thumbnail_dir = data_dir / THUMBNAIL_SUBDIR
    for directory in (app_data_dir, data_dir, thumbnail_dir):
        directory.mkdir(parents=True, exist_ok=True)
    return {"app": app_data_dir, "data": data_dir, "thumbnails": thumbnail_dir}


def _log_tool_availability(ffprobe: FFProbe, ffmpeg: FFmpeg, history: MediaHistorySource) -> None:
    if ffprobe.is_available():
        log_success(logger, "ffprobe is available")
    else:
        logger.warning("ffprobe not found - video info will be unavailable")
    if ffmpeg.is_available():
        log_success(logger, "ffmpeg is available")
    else:
        logger.warning("ffmpeg not found - thumbnails will fall back to the placeholder")
    if not history.is_available():
        logger.info("MPC-HC history is unavailable on this platform")


async def build_services(app_data_dir: str | Path | None = None, *, watch_config: bool | None = None) -> Result[dict]:
    """
    Build all services (DI container).

    Args:
        app_data_dir: Application data directory (default: config.APP_DATA_DIR_PATH)
        watch_config: Start the config file watcher (default: config.CONFIG_WATCH_ENABLED)

    Returns:
        Result[dict] of service instances
    """
    logger.info("Building services...")
    root = Path(app_data_dir) if app_data_dir is not None else APP_DATA_DIR_PATH
    try:
        dirs = initialize_directories(root)
    except OSError as exc:
        logger.error("Failed to initialize directories: %s", exc)
        return Result.Err(ErrorCode.SERVICE_UNAVAILABLE, f"Failed to initialize directories: {exc}")

    lifecycle = ConfigLifecycle(root / CONFIG_FILENAME)
    try:
        lifecycle.load()
    except ConfigInvalid as exc:
        logger.error("Invalid config file %s: %s", lifecycle.config_path, exc)
        return Result.Err(ErrorCode.CONFIG_INVALID, str(exc))

    kv = KVStore(dirs["data"] / KV_DB_FILENAME, max_connections=DB_MAX_CONNECTIONS, timeout=DB_TIMEOUT)
    opened = await kv.open()
    if not opened.ok:
        return Result.Err(opened.code, opened.error or "Failed to open key-value store")

    try:
        placeholder = ensure_placeholder(dirs["data"] / PLACEHOLDER_FILENAME)
    except OSError as exc:
        await kv.aclose()
        logger.error("Failed to write placeholder image: %s", exc)
        return Result.Err(ErrorCode.SERVICE_UNAVAILABLE, f"Failed to write placeholder image: {exc}")

    ffprobe = FFProbe(bin_name=FFPROBE_BIN or "ffprobe", timeout=FFPROBE_TIMEOUT)
    ffmpeg = FFmpeg(ffprobe, bin_name=FFMPEG_BIN or "ffmpeg", timeout=FFMPEG_TIMEOUT)
    history = MediaHistorySource(bin_name=REG_BIN or "reg.exe", timeout=HISTORY_TIMEOUT)
    _log_tool_availability(ffprobe, ffmpeg, history)

    store = AnnotationStore(kv)
    catalog = Catalog(
        lifecycle.current,
        store=store,
        stat_cache=StatCache(STAT_CACHE_TTL_SECONDS, STAT_CACHE_SHARDS),
        ffprobe=ffprobe,
        ffmpeg=ffmpeg,
        history_source=history,
        thumbnail_dir=str(dirs["thumbnails"]),
        placeholder_path=placeholder,
    )

    services = {
        "config": lifecycle,
        "kv": kv,
        "store": store,
        "ffprobe": ffprobe,
        "ffmpeg": ffmpeg,
        "history": history,
        "catalog": catalog,
        "paths": dirs,
    }

    if CONFIG_WATCH_ENABLED if watch_config is None else watch_config:
        await lifecycle.start()

    log_success(logger, "All services initialized")
    return Result.Ok(services)


async def dispose_services(services: dict) -> None:
    """
    Dispose of all services, ensuring each resource is cleaned up independently.
    Errors in one service disposal do not prevent others from being disposed.
    """
    lifecycle = services.get("config")
    if lifecycle is not None:
        try:
            await lifecycle.stop()
        except (OSError, RuntimeError) as exc:
            logger.warning("Error stopping config watcher: %s", exc)

    kv = services.get("kv")
    if kv is not None:
        await kv.aclose()
    logger.debug("Services disposed")
