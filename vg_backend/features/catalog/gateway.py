"""
Path authorization gateway.

Every filesystem-touching operation asks this gateway first. A path is
allowed when it is absolute, contains no `.`/`..` traversal, and is either a
configured root or strictly below one. The check is purely lexical and reads
the current configuration snapshot once per call, so a concurrent config
reload never yields a half-old/half-new answer.
"""

from __future__ import annotations

import os
from typing import Callable

from ...errors import PathNotAllowed
from ...path_utils import has_traversal, is_same_path, is_sub_path, strip_trailing_separators
from ...shared import get_logger
from ..config.schema import AppConfig

logger = get_logger(__name__)


class PathGateway:
    def __init__(self, config_provider: Callable[[], AppConfig]):
        self._config_provider = config_provider

    @property
    def roots(self) -> tuple[str, ...]:
        return self._config_provider().folders

    def is_allowed(self, path: str) -> bool:
        if not isinstance(path, str) or not path or "\x00" in path:
            return False
        if not os.path.isabs(path):
            logger.debug("Rejected relative path: %s", path)
            return False
        if has_traversal(path):
            logger.debug("Rejected path with traversal segments: %s", path)
            return False

        roots = self._config_provider().folders
        for root in roots:
            if is_same_path(root, path) or is_sub_path(root, path):
                return True
        return False

    def assert_allowed(self, path: str) -> None:
        """Raise `PathNotAllowed` unless `is_allowed(path)`."""
        if not self.is_allowed(path):
            raise PathNotAllowed(path)

    def is_top_level(self, path: str) -> bool:
        """True when `path` is one of the configured roots."""
        self.assert_allowed(path)
        return any(is_same_path(root, path) for root in self._config_provider().folders)

    def previous_dir(self, path: str) -> str:
        """Parent directory for navigation; "" for a configured root."""
        if self.is_top_level(path):
            return ""
        return os.path.dirname(strip_trailing_separators(path))
