"""
Annotation and metadata cache store.

Thin typed layer over `KVStore`. Records are validated on read; a record that
no longer matches its schema is deleted and treated as a cache miss.
Store failures degrade to defaults for reads (logged) and are returned as
`Result` for writes.
"""

from __future__ import annotations

from typing import Any, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError

from ...adapters.db.kv_store import KVStore
from ...errors import CacheCorruption
from ...shared import ErrorCode, Result, get_logger
from .schema import DirConfig, VideoInfo

logger = get_logger(__name__)

M = TypeVar("M", bound=BaseModel)

NS_DONE = "done"
NS_LAST_POSITION = "lastPosition"
NS_VIDEO_INFO = "videoInfo"
NS_DIR_CONFIG = "dirConfig"

NAMESPACES = (NS_DONE, NS_LAST_POSITION, NS_VIDEO_INFO, NS_DIR_CONFIG)


def _validate_model(namespace: str, key: str, model: Type[M], value: Any) -> M:
    try:
        return model.model_validate(value)
    except ValidationError as exc:
        raise CacheCorruption(namespace, key, str(exc)) from exc


def _validate_number(namespace: str, key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise CacheCorruption(namespace, key, f"expected a number, got {type(value).__name__}")
    return float(value)


class AnnotationStore:
    def __init__(self, kv: KVStore):
        self.kv = kv

    async def _read(self, namespace: str, key: str) -> Optional[Any]:
        res = await self.kv.get(namespace, key)
        if res.ok:
            return res.data if res.meta.get("found") else None
        if res.code == ErrorCode.PARSE_ERROR.value:
            await self._drop_corrupt(CacheCorruption(namespace, key, res.error or "undecodable"))
        else:
            logger.warning("Read %s/%s failed: %s", namespace, key, res.error)
        return None

    async def _drop_corrupt(self, exc: CacheCorruption) -> None:
        logger.warning("%s; deleting record", exc)
        res = await self.kv.delete(exc.namespace, exc.key)
        if not res.ok:
            logger.warning("Failed to delete corrupt record %s/%s: %s", exc.namespace, exc.key, res.error)

    async def _write(self, namespace: str, key: str, value: Any) -> Result[bool]:
        res = await self.kv.set(namespace, key, value)
        if not res.ok:
            logger.warning("Write %s/%s failed: %s", namespace, key, res.error)
        return res

    # Watched flag

    async def get_done(self, identity: str) -> bool:
        value = await self._read(NS_DONE, identity)
        return value is True

    async def set_done(self, identity: str, done: bool) -> Result[bool]:
        return await self._write(NS_DONE, identity, bool(done))

    # Last playback position (seconds)

    async def get_last_position(self, identity: str) -> Optional[float]:
        value = await self._read(NS_LAST_POSITION, identity)
        if value is None:
            return None
        try:
            return _validate_number(NS_LAST_POSITION, identity, value)
        except CacheCorruption as exc:
            await self._drop_corrupt(exc)
            return None

    async def set_last_position(self, identity: str, seconds: float) -> Result[bool]:
        return await self._write(NS_LAST_POSITION, identity, float(seconds))

    async def delete_last_position(self, identity: str) -> Result[bool]:
        return await self.kv.delete(NS_LAST_POSITION, identity)

    # Probe results

    async def get_video_info(self, identity: str) -> Optional[VideoInfo]:
        value = await self._read(NS_VIDEO_INFO, identity)
        if value is None:
            return None
        try:
            return _validate_model(NS_VIDEO_INFO, identity, VideoInfo, value)
        except CacheCorruption as exc:
            await self._drop_corrupt(exc)
            return None

    async def set_video_info(self, identity: str, info: VideoInfo) -> Result[bool]:
        return await self._write(NS_VIDEO_INFO, identity, info.to_dict())

    async def delete_video_info(self, identity: str) -> Result[bool]:
        return await self.kv.delete(NS_VIDEO_INFO, identity)

    # Per-directory display config

    async def get_dir_config(self, directory: str) -> DirConfig:
        value = await self._read(NS_DIR_CONFIG, directory)
        if value is None:
            return DirConfig()
        try:
            return _validate_model(NS_DIR_CONFIG, directory, DirConfig, value)
        except CacheCorruption as exc:
            await self._drop_corrupt(exc)
            return DirConfig()

    async def set_dir_config(self, directory: str, config: DirConfig) -> Result[bool]:
        return await self._write(NS_DIR_CONFIG, directory, config.to_dict())

    async def clear_namespace(self, namespace: str) -> Result[int]:
        """Remove every record of one namespace in a single transaction."""
        if namespace not in NAMESPACES:
            return Result.Err(ErrorCode.INVALID_INPUT, f"Unknown namespace: {namespace}")
        return await self.kv.delete_prefix(namespace)
