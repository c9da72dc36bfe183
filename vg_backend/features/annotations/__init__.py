"""Persisted annotations (watched flag, positions) and cached metadata."""
from .schema import DirConfig, VideoInfo
from .store import AnnotationStore

__all__ = ["AnnotationStore", "DirConfig", "VideoInfo"]
