"""
FFmpeg adapter: extracts a single downscaled frame as a JPEG thumbnail.
"""
import math
import os
from pathlib import Path
from typing import List, Optional
from uuid import uuid4

from ...config import FFMPEG_TIMEOUT, THUMBNAIL_SEEK_RATIO, THUMBNAIL_WIDTH
from ...shared import ErrorCode, Result, get_logger
from .ffprobe import FFProbe
from .process import communicate_with_timeout, resolve_executable, spawn_process, validate_media_path

logger = get_logger(__name__)


class FFmpeg:
    """
    FFmpeg wrapper for thumbnail generation.

    Never raises exceptions (except cancellation) - always returns Result.
    The output file only ever appears complete: frames are written to a
    temporary sibling and renamed into place on success.
    """

    def __init__(
        self,
        probe: FFProbe,
        bin_name: str = "ffmpeg",
        timeout: Optional[float] = None,
        width: int = THUMBNAIL_WIDTH,
        seek_ratio: float = THUMBNAIL_SEEK_RATIO,
    ):
        self.probe = probe
        self.bin = bin_name
        self.timeout = float(timeout) if timeout is not None else float(FFMPEG_TIMEOUT)
        self.width = int(width)
        self.seek_ratio = float(seek_ratio)
        self._resolved_bin: Optional[str] = resolve_executable(bin_name, "ffmpeg")
        self._available = self._resolved_bin is not None

    def is_available(self) -> bool:
        return self._available

    def _build_frame_cmd(self, video_path: str, seek_seconds: int, output_path: str) -> List[str]:
        return [
            self._resolved_bin or self.bin,
            "-y",
            "-v", "error",
            "-ss", str(seek_seconds),
            "-i", video_path,
            "-vf", f"scale={self.width}:-1",
            "-vframes", "1",
            output_path,
        ]

    def seek_target(self, duration: float) -> int:
        """Whole seconds into the video where the frame is taken."""
        if not math.isfinite(duration) or duration <= 0:
            return 0
        return int(math.floor(duration * self.seek_ratio))

    async def generate_thumbnail(self, video_path: str, thumbnail_path: str) -> Result[str]:
        """
        Probe the duration, seek to 20% of it and extract one frame.

        Args:
            video_path: Absolute path of the source video
            thumbnail_path: Final JPEG path

        Returns:
            Result with `thumbnail_path` on success
        """
        checked = validate_media_path(video_path)
        if not checked.ok:
            return Result.Err(checked.code, checked.error or "Invalid path")
        if not self._available:
            return Result.Err(ErrorCode.TOOL_MISSING, "ffmpeg not found in PATH")

        duration_res = await self.probe.get_duration(video_path)
        if not duration_res.ok or duration_res.data is None:
            return Result.Err(duration_res.code, duration_res.error or "ffprobe failed", **duration_res.meta)
        target = self.seek_target(duration_res.data)
        logger.debug("Video duration: %s seconds, seeking to %ss", duration_res.data, target)

        final = Path(thumbnail_path)
        tmp = final.with_name(f"{final.stem}.{uuid4().hex}.tmp{final.suffix}")
        try:
            try:
                process = await spawn_process(self._build_frame_cmd(video_path, target, str(tmp)))
            except OSError as exc:
                return Result.Err(ErrorCode.FFMPEG_ERROR, str(exc))
            communicated = await communicate_with_timeout(process, self.timeout, "ffmpeg")
            if not communicated.ok or communicated.data is None:
                return Result.Err(communicated.code, communicated.error or "ffmpeg failed")
            output = communicated.data
            if output.returncode != 0 or not tmp.is_file():
                stderr_msg = output.stderr.strip()
                logger.error("Error executing ffmpeg for %s: %s", video_path, stderr_msg)
                return Result.Err(
                    ErrorCode.FFMPEG_ERROR,
                    f"Error executing ffmpeg: {output.returncode}",
                    stderr=stderr_msg,
                    returncode=output.returncode,
                )
            os.replace(tmp, final)
        except OSError as exc:
            return Result.Err(ErrorCode.FFMPEG_ERROR, f"Failed to store thumbnail: {exc}")
        finally:
            _unlink_quietly(tmp)
        logger.debug("Thumbnail generated at: %s", final)
        return Result.Ok(str(final))


def _unlink_quietly(path: Path) -> None:
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.debug("Failed to remove temp thumbnail %s: %s", path, exc)
