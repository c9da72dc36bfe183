"""Thumbnail resolution for files and directories."""
from .placeholder import ensure_placeholder
from .resolver import ThumbnailResolver

__all__ = ["ThumbnailResolver", "ensure_placeholder"]
