"""
Thumbnail resolver.

Files: the cached `<identity>.jpg` when present, otherwise one frame grabbed
with ffmpeg. Concurrent requests for the same identity share a single
generation.

Directories: `cover.jpg`, then `cover.png`, then the first child (files
before subdirectories, natural name order) whose thumbnail is not the
placeholder. Recursion tracks resolved directory paths so symlink loops end
at the placeholder instead of recursing forever.
"""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING, Dict, Optional, Set

from ...adapters.tools.ffmpeg import FFmpeg
from ...errors import CatalogError, ExternalToolFailure, PathNotAllowed
from ...shared import get_logger
from ..catalog.sorting import natural_key

if TYPE_CHECKING:
    from ..catalog.entry import Entry
    from ..catalog.service import Catalog

logger = get_logger(__name__)

COVER_NAMES = ("cover.jpg", "cover.png")


class ThumbnailResolver:
    def __init__(self, catalog: "Catalog", ffmpeg: FFmpeg, placeholder_path: str):
        self.catalog = catalog
        self.ffmpeg = ffmpeg
        self.placeholder_path = placeholder_path
        self._inflight: Dict[str, "asyncio.Future[str]"] = {}

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def resolve(self, entry: "Entry", _visited: Optional[Set[str]] = None) -> str:
        """
        Thumbnail path for `entry`.

        Raises:
            PathNotAllowed: the entry is outside the configured roots.
            ExternalToolFailure: generating a file thumbnail failed.
            CatalogError: the entry is neither a file nor a directory.
            OSError: the entry vanished.
        """
        stat = await entry.get_stat()
        if stat.is_file:
            return await self._resolve_file(entry)
        if stat.is_dir:
            return await self._resolve_directory(entry, set() if _visited is None else _visited)
        raise CatalogError(f"Not a file or directory: {entry.absolute_path}", path=entry.absolute_path)

    async def resolve_or_placeholder(self, entry: "Entry") -> str:
        """Like `resolve`, but anything except an authorization failure yields the placeholder."""
        try:
            return await self.resolve(entry)
        except PathNotAllowed:
            raise
        except (CatalogError, OSError) as exc:
            logger.debug("Thumbnail for %s falls back to placeholder: %s", entry.absolute_path, exc)
            return self.placeholder_path

    async def _resolve_file(self, entry: "Entry") -> str:
        identity = await entry.get_identity()
        thumbnail_path = await entry.get_thumbnail_path()
        if await asyncio.to_thread(os.path.isfile, thumbnail_path):
            return thumbnail_path
        return await self._generate_once(identity, entry.absolute_path, thumbnail_path)

    async def _generate_once(self, identity: str, video_path: str, thumbnail_path: str) -> str:
        while True:
            pending = self._inflight.get(identity)
            if pending is None:
                break
            try:
                return await asyncio.shield(pending)
            except asyncio.CancelledError:
                if pending.cancelled():
                    # The generating caller was cancelled; try again ourselves.
                    continue
                raise

        future: "asyncio.Future[str]" = asyncio.get_running_loop().create_future()
        self._inflight[identity] = future
        try:
            if await asyncio.to_thread(os.path.isfile, thumbnail_path):
                future.set_result(thumbnail_path)
                return thumbnail_path
            res = await self.ffmpeg.generate_thumbnail(video_path, thumbnail_path)
            if not res.ok:
                raise ExternalToolFailure(
                    "ffmpeg",
                    res.error or "thumbnail generation failed",
                    code=res.code,
                    diagnostic=str(res.meta.get("stderr") or ""),
                    path=video_path,
                )
            logger.debug("Generated thumbnail %s for %s", thumbnail_path, video_path)
            future.set_result(thumbnail_path)
            return thumbnail_path
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            if not future.done():
                future.set_exception(exc)
                # Mark retrieved; waiters (if any) re-raise it themselves.
                future.exception()
            raise
        finally:
            self._inflight.pop(identity, None)

    async def _resolve_directory(self, entry: "Entry", visited: Set[str]) -> str:
        directory = entry.absolute_path
        real = await asyncio.to_thread(os.path.realpath, directory)
        key = os.path.normcase(real)
        if key in visited:
            logger.warning("Directory cycle detected at %s", directory)
            return self.placeholder_path
        visited.add(key)

        gateway = self.catalog.gateway
        for cover_name in COVER_NAMES:
            cover = os.path.join(directory, cover_name)
            if gateway.is_allowed(cover) and await asyncio.to_thread(os.path.isfile, cover):
                return cover

        children = [child async for child in self.catalog.list(directory)]
        children.sort(key=lambda c: (not c.is_file, natural_key(c.name)))
        for child in children:
            try:
                thumbnail = await self.resolve(child, visited)
            except PathNotAllowed:
                raise
            except (CatalogError, OSError) as exc:
                logger.debug("Skipping child %s for directory thumbnail: %s", child.absolute_path, exc)
                continue
            if thumbnail != self.placeholder_path:
                return thumbnail
        return self.placeholder_path
