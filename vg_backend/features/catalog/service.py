"""
Catalog service: the entry point callers use to browse configured roots.

Owns the collaborators (gateway, stat cache, annotation store, tools) and
exposes the operations the HTTP layer needs.
"""

from __future__ import annotations

import asyncio
import os
import time
from typing import Any, AsyncIterator, Callable, Dict, List, Mapping, Optional

from ...adapters.fs.stat_cache import StatCache
from ...adapters.tools.ffmpeg import FFmpeg
from ...adapters.tools.ffprobe import FFProbe
from ...adapters.tools.launcher import launch_default
from ...adapters.tools.media_history import MediaHistorySource
from ...config import LIST_CONCURRENCY
from ...errors import CatalogError, NotFound
from ...path_utils import strip_trailing_separators
from ...shared import Result, get_logger, timer
from ..annotations.schema import DirConfig
from ..annotations.store import AnnotationStore
from ..config.schema import AppConfig
from ..history.reconciler import HistoryReconciler
from ..thumbnails.resolver import ThumbnailResolver
from .entry import Entry
from .gateway import PathGateway
from .lister import DirectoryLister
from .sorting import sort_records

logger = get_logger(__name__)


class Catalog:
    def __init__(
        self,
        config_provider: Callable[[], AppConfig],
        *,
        store: AnnotationStore,
        stat_cache: StatCache,
        ffprobe: FFProbe,
        ffmpeg: FFmpeg,
        history_source: MediaHistorySource,
        thumbnail_dir: str,
        placeholder_path: str,
        opener: Callable[[str], Result[dict]] = launch_default,
        list_concurrency: int = LIST_CONCURRENCY,
    ):
        self.config = config_provider
        self.store = store
        self.stat_cache = stat_cache
        self.ffprobe = ffprobe
        self.history_source = history_source
        self.thumbnail_dir = thumbnail_dir
        self.placeholder_path = placeholder_path
        self._opener = opener
        self._list_concurrency = max(1, int(list_concurrency))

        self.gateway = PathGateway(config_provider)
        self.lister = DirectoryLister(self)
        self.history = HistoryReconciler(store)
        self.thumbnails = ThumbnailResolver(self, ffmpeg, placeholder_path)

    # Navigation

    def home(self) -> List[Entry]:
        """One directory entry per configured root, in configuration order."""
        return [Entry(self, folder, True, False, folder) for folder in self.config().folders]

    def list(self, directory: str) -> AsyncIterator[Entry]:
        return self.lister.list(directory)

    async def get_entry(self, path: str) -> Entry:
        """
        Entry for an arbitrary authorized path.

        Raises:
            PathNotAllowed: `path` is outside the configured roots.
            NotFound: `path` does not exist.
        """
        self.gateway.assert_allowed(path)
        try:
            info = await self.stat_cache.astat(path)
        except FileNotFoundError as exc:
            raise NotFound(path) from exc
        name = os.path.basename(strip_trailing_separators(path)) or path
        return Entry(self, name, info.is_dir, info.is_file, path)

    def is_top_level(self, path: str) -> bool:
        return self.gateway.is_top_level(path)

    def previous_dir(self, path: str) -> str:
        return self.gateway.previous_dir(path)

    # Display

    async def _fetch_history_snapshot(self) -> Dict[str, float]:
        res = await self.history_source.snapshot()
        if not res.ok:
            logger.debug("Playback history unavailable: %s", res.error)
            return {}
        return res.data or {}

    async def home_records(self) -> List[Dict[str, Any]]:
        return await asyncio.gather(*(entry.to_display_record() for entry in self.home()))

    async def list_display_records(self, directory: str, include_extra: bool = False) -> List[Mapping[str, Any]]:
        """
        Display records of `directory`, sorted by its display config.

        Records are built concurrently; a failure building one record never
        affects the others except for authorization errors, which propagate.
        """
        dir_config = await self.get_dir_config(directory)
        snapshot: Optional[Dict[str, float]] = await self._fetch_history_snapshot() if include_extra else None
        semaphore = asyncio.Semaphore(self._list_concurrency)

        async def _build(entry: Entry) -> Dict[str, Any]:
            async with semaphore:
                return await entry.to_display_record(include_extra, snapshot)

        with timer(f"list {directory}", logger):
            entries = [entry async for entry in self.list(directory)]
            records = await asyncio.gather(*(_build(entry) for entry in entries))

        by_name: Dict[str, Dict[str, Any]] = {record["name"]: record for record in records}
        return sort_records(by_name.values(), dir_config)

    async def thumbnail_for(self, path: str) -> str:
        """Thumbnail for a grid cell; the placeholder on anything but an authorization failure."""
        self.gateway.assert_allowed(path)
        try:
            entry = await self.get_entry(path)
        except NotFound:
            return self.placeholder_path
        return await self.thumbnails.resolve_or_placeholder(entry)

    # Annotations

    async def get_dir_config(self, directory: str) -> DirConfig:
        self.gateway.assert_allowed(directory)
        return await self.store.get_dir_config(directory)

    async def set_dir_config(self, directory: str, config: DirConfig) -> None:
        self.gateway.assert_allowed(directory)
        res = await self.store.set_dir_config(directory, config)
        if not res.ok:
            raise CatalogError(res.error or "Failed to save directory config", path=directory)

    async def set_done(self, path: str, done: bool) -> None:
        entry = await self.get_entry(path)
        await entry.set_done(done)
        if done and self.config().bring_folder_to_top_done:
            await self.bring_folder_to_top(path)

    # Desktop integration

    async def open(self, path: str) -> Dict[str, Any]:
        """Launch `path` with the default application, then apply the configured touches."""
        self.gateway.assert_allowed(path)
        if not await asyncio.to_thread(os.path.exists, path):
            raise NotFound(path)
        res = await asyncio.to_thread(self._opener, path)
        if not res.ok:
            raise CatalogError(res.error or "Failed to open file", path=path)

        config = self.config()
        if config.bring_folder_to_top:
            await self.bring_folder_to_top(path)
        if config.update_date_accessed:
            await self.update_date_accessed(path)
        return res.data or {}

    async def update_date_accessed(self, path: str) -> None:
        """Set the access time to now, keeping the modification time."""
        self.gateway.assert_allowed(path)
        self.stat_cache.invalidate(path)
        try:
            info = await self.stat_cache.astat(path)
        except FileNotFoundError as exc:
            raise NotFound(path) from exc
        now = time.time()
        mtime = info.mtime if info.mtime is not None else now
        await asyncio.to_thread(os.utime, path, (now, mtime))
        self.stat_cache.invalidate(path)
        logger.debug("Touched access time of %s", path)

    async def bring_folder_to_top(self, path: str) -> None:
        """Touch the parent directory of `path` so access-time sorted views list it first."""
        self.gateway.assert_allowed(path)
        parent = os.path.dirname(strip_trailing_separators(path))
        if not parent or not self.gateway.is_allowed(parent):
            logger.debug("Parent of %s is outside the configured roots; not touching it", path)
            return
        if not await asyncio.to_thread(os.path.isdir, parent):
            return
        await self.update_date_accessed(parent)
