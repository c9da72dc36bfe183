"""
Directory listing.

Yields catalog entries for the immediate children of an authorized
directory. Files are limited to known video containers; directories are
always listed. Entries come out in filesystem enumeration order; callers
sort the display records.
"""

from __future__ import annotations

import asyncio
import os
from typing import TYPE_CHECKING, AsyncIterator, List, NamedTuple

from ...errors import NotADirectory, NotFound
from ...shared import get_logger, is_video_file
from .entry import Entry

if TYPE_CHECKING:
    from .service import Catalog

logger = get_logger(__name__)


class _Child(NamedTuple):
    name: str
    is_dir: bool
    is_file: bool


def _scan(directory: str) -> List[_Child]:
    children: List[_Child] = []
    with os.scandir(directory) as it:
        for dirent in it:
            try:
                is_dir = dirent.is_dir()
                is_file = dirent.is_file()
            except OSError:
                is_dir = is_file = False
            children.append(_Child(dirent.name, is_dir, is_file))
    return children


class DirectoryLister:
    def __init__(self, catalog: "Catalog"):
        self.catalog = catalog

    def _keep(self, child: _Child, hide_dotfiles: bool) -> bool:
        if hide_dotfiles and child.name.startswith("."):
            return False
        if child.is_dir:
            return True
        if child.is_file:
            return is_video_file(child.name)
        # Sockets, broken links and the like have nothing to show.
        return False

    async def list(self, directory: str) -> AsyncIterator[Entry]:
        """
        Iterate entries of `directory`.

        Raises:
            PathNotAllowed: `directory` is outside the configured roots.
            NotFound: `directory` does not exist.
            NotADirectory: `directory` is a file.
        """
        gateway = self.catalog.gateway
        gateway.assert_allowed(directory)
        try:
            info = await self.catalog.stat_cache.astat(directory)
        except FileNotFoundError as exc:
            raise NotFound(directory) from exc
        if not info.is_dir:
            raise NotADirectory(directory)

        try:
            children = await asyncio.to_thread(_scan, directory)
        except FileNotFoundError as exc:
            raise NotFound(directory) from exc
        except NotADirectoryError as exc:
            raise NotADirectory(directory) from exc

        hide_dotfiles = self.catalog.config().hide_dotfiles
        for child in children:
            if not self._keep(child, hide_dotfiles):
                continue
            child_path = os.path.join(directory, child.name)
            if not gateway.is_allowed(child_path):
                logger.debug("Skipping child outside roots: %s", child_path)
                continue
            yield Entry(self.catalog, child.name, child.is_dir, child.is_file, child_path)
