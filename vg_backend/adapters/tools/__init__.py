"""Command-line tool adapters."""
from .ffmpeg import FFmpeg
from .ffprobe import FFProbe
from .launcher import launch_default
from .media_history import MediaHistorySource, rfe_hash

__all__ = ["FFmpeg", "FFProbe", "MediaHistorySource", "launch_default", "rfe_hash"]
