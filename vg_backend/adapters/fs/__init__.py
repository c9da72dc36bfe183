"""Filesystem adapters."""
from .stat_cache import FileInfo, StatCache

__all__ = ["FileInfo", "StatCache"]
