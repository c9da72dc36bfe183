"""
Last-playback-position reconciliation.

The external player history is authoritative whenever it has an entry for a
path: the value is written through to the cache. When it has none, the last
cached value is served instead of "unknown", so a history that was pruned or
rotated does not wipe positions the user already saw.
"""

from __future__ import annotations

from typing import Mapping, Optional

from ...adapters.tools.media_history import lookup_position
from ...shared import get_logger
from ..annotations.store import AnnotationStore

logger = get_logger(__name__)

UNKNOWN_POSITION = -1.0


class HistoryReconciler:
    def __init__(self, store: AnnotationStore):
        self.store = store

    async def last_position(self, path: str, identity: str, snapshot: Optional[Mapping[str, float]]) -> float:
        """Return the position in seconds for `path`, or -1 when unknown everywhere."""
        seconds = lookup_position(snapshot or {}, path)
        if seconds < 0:
            cached = await self.store.get_last_position(identity)
            return cached if cached is not None else UNKNOWN_POSITION

        res = await self.store.set_last_position(identity, seconds)
        if not res.ok:
            logger.debug("Could not cache last position for %s: %s", identity, res.error)
        return seconds

    async def clear(self, identity: str) -> None:
        await self.store.delete_last_position(identity)
