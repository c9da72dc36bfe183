"""
Catalog entry: one file or directory under a configured root.

An entry resolves its filesystem metadata lazily, at most once per instance,
and derives a content-sensitive identity from it. The identity keys every
cached artifact (thumbnail file, annotations, probe results).
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import os
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Generic, Mapping, Optional, TypeVar

from ...adapters.fs.stat_cache import FileInfo
from ...errors import CatalogError, ExternalToolFailure, PathNotAllowed
from ...shared import format_timestamp, get_logger
from ..annotations.schema import VideoInfo
from ..history.reconciler import UNKNOWN_POSITION

if TYPE_CHECKING:
    from .service import Catalog

logger = get_logger(__name__)

T = TypeVar("T")

EPOCH_ISO = format_timestamp(0)


class MemoizedStat(Generic[T]):
    """
    Compute-once async cell.

    Concurrent first callers share one fetch. A failed fetch is not stored, so
    the next call tries again.
    """

    def __init__(self, fetch: Callable[[], Awaitable[T]]):
        self._fetch = fetch
        self._value: Optional[T] = None
        self._lock = asyncio.Lock()
        self.fetch_count = 0

    @property
    def is_loaded(self) -> bool:
        return self._value is not None

    async def get(self) -> T:
        if self._value is not None:
            return self._value
        async with self._lock:
            if self._value is None:
                self.fetch_count += 1
                self._value = await self._fetch()
        return self._value


def path_hash(absolute_path: str) -> str:
    """Unpadded base64url of sha1(path)."""
    digest = hashlib.sha1(absolute_path.encode("utf-8")).digest()
    return base64.urlsafe_b64encode(digest).decode("ascii").rstrip("=")


def make_identity(absolute_path: str, size: int) -> str:
    """
    `<path hash>_<size in KiB as hex>`.

    Rewriting a file with a different size (to the KiB) gives it a new
    identity, which invalidates everything cached under the old one.
    """
    return f"{path_hash(absolute_path)}_{max(0, int(size)) // 1024:x}"


class Entry:
    def __init__(self, catalog: "Catalog", name: str, is_directory: bool, is_file: bool, absolute_path: str):
        self.catalog = catalog
        self.name = name
        self.is_directory = bool(is_directory)
        self.is_file = bool(is_file)
        self.absolute_path = absolute_path
        self._stat: MemoizedStat[FileInfo] = MemoizedStat(self._load_stat)

    def __repr__(self) -> str:
        kind = "dir" if self.is_directory else "file" if self.is_file else "other"
        return f"Entry({self.absolute_path!r}, {kind})"

    async def _load_stat(self) -> FileInfo:
        self.catalog.gateway.assert_allowed(self.absolute_path)
        return await self.catalog.stat_cache.astat(self.absolute_path)

    async def get_stat(self) -> FileInfo:
        """
        Filesystem metadata, fetched once per entry.

        Raises:
            PathNotAllowed: the path left the configured roots.
            OSError: the path cannot be stat'ed (e.g. it no longer exists).
        """
        return await self._stat.get()

    async def get_identity(self) -> str:
        stat = await self.get_stat()
        return make_identity(self.absolute_path, stat.size)

    async def get_thumbnail_path(self) -> str:
        return os.path.join(self.catalog.thumbnail_dir, f"{await self.get_identity()}.jpg")

    async def generate_thumbnail(self) -> str:
        """Path of this entry's thumbnail, generating or recursing as needed."""
        return await self.catalog.thumbnails.resolve(self)

    async def get_last_position(self, snapshot: Optional[Mapping[str, float]] = None) -> float:
        if self.is_directory:
            return UNKNOWN_POSITION
        identity = await self.get_identity()
        return await self.catalog.history.last_position(self.absolute_path, identity, snapshot)

    async def clear_last_position_cache(self) -> None:
        await self.catalog.history.clear(await self.get_identity())

    async def get_video_info(self) -> Optional[VideoInfo]:
        """
        Probe result for this file, served from cache when possible.

        Raises:
            ExternalToolFailure: the probe failed or returned unusable output.
        """
        if not self.is_file:
            return None
        identity = await self.get_identity()
        store = self.catalog.store
        cached = await store.get_video_info(identity)
        if cached is not None:
            return cached

        res = await self.catalog.ffprobe.get_video_info(self.absolute_path)
        if not res.ok or not res.data:
            raise ExternalToolFailure(
                "ffprobe",
                res.error or "probe failed",
                code=res.code,
                diagnostic=str(res.meta.get("stderr") or ""),
                path=self.absolute_path,
            )
        try:
            info = VideoInfo.model_validate(res.data)
        except ValueError as exc:
            raise ExternalToolFailure("ffprobe", f"unusable probe output: {exc}", path=self.absolute_path) from exc
        await store.set_video_info(identity, info)
        return info

    async def get_done(self) -> bool:
        return await self.catalog.store.get_done(await self.get_identity())

    async def set_done(self, done: bool) -> None:
        identity = await self.get_identity()
        res = await self.catalog.store.set_done(identity, done)
        if not res.ok:
            raise CatalogError(res.error or "Failed to save watched flag", path=self.absolute_path)

    async def _extra_info(self, snapshot: Optional[Mapping[str, float]]) -> Dict[str, Any]:
        extra: Dict[str, Any] = {"lastPosition": UNKNOWN_POSITION, "videoInfo": None}
        try:
            extra["lastPosition"] = await self.get_last_position(snapshot)
        except PathNotAllowed:
            raise
        except (CatalogError, OSError) as exc:
            logger.debug("No last position for %s: %s", self.absolute_path, exc)
        if self.is_file:
            try:
                info = await self.get_video_info()
                extra["videoInfo"] = info.to_dict() if info else None
            except PathNotAllowed:
                raise
            except (CatalogError, OSError) as exc:
                logger.debug("No video info for %s: %s", self.absolute_path, exc)
        return extra

    async def to_display_record(
        self,
        include_extra: bool = False,
        snapshot: Optional[Mapping[str, float]] = None,
    ) -> Dict[str, Any]:
        """
        Plain record for listings.

        Never fails for a vanished path: it is reported with size -1, the
        epoch as modification time and `missing: true`. Probe and history
        failures only blank the corresponding `extraInfo` field.
        """
        record: Dict[str, Any] = {
            "name": self.name,
            "isDirectory": self.is_directory,
            "isFile": self.is_file,
            "absolutePath": self.absolute_path,
            "size": -1,
            "dateModified": EPOCH_ISO,
            "done": False,
            "missing": True,
        }
        try:
            stat = await self.get_stat()
        except OSError as exc:
            logger.debug("Stat failed for %s: %s", self.absolute_path, exc)
            if include_extra:
                record["extraInfo"] = {"lastPosition": UNKNOWN_POSITION, "videoInfo": None}
            return record

        record["size"] = stat.size
        record["dateModified"] = format_timestamp(stat.mtime) if stat.mtime is not None else EPOCH_ISO
        record["missing"] = False
        record["done"] = await self.get_done()
        if include_extra:
            record["extraInfo"] = await self._extra_info(snapshot)
        return record
