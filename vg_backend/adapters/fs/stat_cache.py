"""
Short-TTL memoization of filesystem stat lookups.

Listing and thumbnail resolution stat the same paths over and over within a
single request burst; file size and timestamps rarely change inside a minute.
Entries expire after the TTL. Anything that changes a path's timestamps must
call `invalidate(path)` itself: there is no implicit invalidation.
"""

from __future__ import annotations

import asyncio
import os
import stat as stat_mod
import threading
import time
import zlib
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple

from ...config import STAT_CACHE_SHARDS, STAT_CACHE_TTL_SECONDS
from ...shared import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class FileInfo:
    """Immutable snapshot of the stat fields the catalog uses."""

    size: int
    mtime: Optional[float]
    atime: Optional[float]
    is_file: bool
    is_dir: bool

    @classmethod
    def from_stat_result(cls, st: os.stat_result) -> "FileInfo":
        mode = st.st_mode
        return cls(
            size=int(st.st_size),
            mtime=float(st.st_mtime) if st.st_mtime is not None else None,
            atime=float(st.st_atime) if st.st_atime is not None else None,
            is_file=stat_mod.S_ISREG(mode),
            is_dir=stat_mod.S_ISDIR(mode),
        )


class _Shard:
    __slots__ = ("lock", "entries")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.entries: Dict[str, Tuple[FileInfo, float]] = {}


class StatCache:
    """
    Path -> FileInfo cache with a fixed TTL.

    Entries are spread over independent shards (each with its own lock) so
    unrelated directories never contend on a single mutex. Failed lookups are
    not cached.
    """

    def __init__(
        self,
        ttl_seconds: float = STAT_CACHE_TTL_SECONDS,
        shards: int = STAT_CACHE_SHARDS,
        *,
        clock: Callable[[], float] = time.monotonic,
        stat_fn: Callable[[str], os.stat_result] = os.stat,
    ):
        self.ttl = max(0.0, float(ttl_seconds))
        self._clock = clock
        self._stat_fn = stat_fn
        self._shards: List[_Shard] = [_Shard() for _ in range(max(1, int(shards)))]

    def _shard_for(self, path: str) -> _Shard:
        idx = zlib.crc32(path.encode("utf-8", errors="surrogatepass")) % len(self._shards)
        return self._shards[idx]

    def _lookup(self, path: str) -> Optional[FileInfo]:
        shard = self._shard_for(path)
        with shard.lock:
            hit = shard.entries.get(path)
            if hit is None:
                return None
            info, inserted_at = hit
            if self._clock() - inserted_at >= self.ttl:
                shard.entries.pop(path, None)
                return None
            return info

    def _store(self, path: str, info: FileInfo) -> None:
        shard = self._shard_for(path)
        with shard.lock:
            shard.entries[path] = (info, self._clock())

    def stat(self, path: str) -> FileInfo:
        """
        Same as `os.stat`, but memoized for `ttl` seconds.

        Raises:
            OSError: the path cannot be stat'ed (not cached).
        """
        cached = self._lookup(path)
        if cached is not None:
            return cached
        info = FileInfo.from_stat_result(self._stat_fn(path))
        self._store(path, info)
        return info

    async def astat(self, path: str) -> FileInfo:
        """Async variant of `stat`; cache misses hit the disk on a worker thread."""
        cached = self._lookup(path)
        if cached is not None:
            return cached
        st = await asyncio.to_thread(self._stat_fn, path)
        info = FileInfo.from_stat_result(st)
        self._store(path, info)
        return info

    def invalidate(self, path: str) -> None:
        shard = self._shard_for(path)
        with shard.lock:
            shard.entries.pop(path, None)

    def invalidate_all(self) -> None:
        for shard in self._shards:
            with shard.lock:
                shard.entries.clear()

    def __len__(self) -> int:
        total = 0
        for shard in self._shards:
            with shard.lock:
                total += len(shard.entries)
        return total
