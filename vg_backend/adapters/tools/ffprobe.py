"""
FFprobe adapter for video duration and stream metadata.
"""
import json
from typing import List, Optional

from ...config import FFPROBE_TIMEOUT
from ...shared import ErrorCode, Result, get_logger
from .process import (
    ProcessOutput,
    communicate_with_timeout,
    resolve_executable,
    spawn_process,
    validate_media_path,
)

logger = get_logger(__name__)


class FFProbe:
    """
    FFprobe wrapper for video metadata extraction.

    Never raises exceptions - always returns Result.
    """

    def __init__(self, bin_name: str = "ffprobe", timeout: Optional[float] = None):
        """
        Initialize FFprobe adapter.

        Args:
            bin_name: FFprobe binary name or path
            timeout: Command timeout in seconds
        """
        self.bin = bin_name
        self.timeout = float(timeout) if timeout is not None else float(FFPROBE_TIMEOUT)
        self._resolved_bin: Optional[str] = resolve_executable(bin_name, "ffprobe")
        self._available = self._resolved_bin is not None

    def is_available(self) -> bool:
        """Check if ffprobe is available."""
        return self._available

    def _build_duration_cmd(self, path: str) -> List[str]:
        return [
            self._resolved_bin or self.bin,
            "-v", "error",
            "-show_entries", "format=duration",
            "-of", "default=noprint_wrappers=1:nokey=1",
            path,
        ]

    def _build_video_info_cmd(self, path: str) -> List[str]:
        return [
            self._resolved_bin or self.bin,
            "-v", "error",
            "-select_streams", "v:0",
            "-show_entries", "stream=codec_name,width,height",
            "-show_entries", "format=duration",
            "-of", "json",
            path,
        ]

    async def _run(self, cmd: List[str], path: str) -> Result[ProcessOutput]:
        if not self._available:
            return Result.Err(ErrorCode.TOOL_MISSING, "ffprobe not found in PATH")
        try:
            process = await spawn_process(cmd)
        except OSError as exc:
            logger.error("ffprobe spawn failed for %s: %s", path, exc)
            return Result.Err(ErrorCode.FFPROBE_ERROR, str(exc))
        communicated = await communicate_with_timeout(process, self.timeout, "ffprobe")
        if not communicated.ok or communicated.data is None:
            return communicated
        output = communicated.data
        if output.returncode != 0:
            stderr_msg = output.stderr.strip()
            logger.warning("ffprobe error for %s: %s", path, stderr_msg)
            return Result.Err(
                ErrorCode.FFPROBE_ERROR,
                f"Error executing ffprobe: {stderr_msg or 'command failed'}, {output.returncode}",
                stderr=stderr_msg,
                returncode=output.returncode,
            )
        return communicated

    async def get_duration(self, path: str) -> Result[float]:
        """
        Get video duration in seconds.

        Args:
            path: Video file path

        Returns:
            Result with duration as float
        """
        checked = validate_media_path(path)
        if not checked.ok:
            return Result.Err(checked.code, checked.error or "Invalid path")
        res = await self._run(self._build_duration_cmd(checked.data or path), path)
        if not res.ok or res.data is None:
            return Result.Err(res.code, res.error or "ffprobe failed", **res.meta)
        text = res.data.stdout.strip()
        try:
            return Result.Ok(float(text))
        except ValueError:
            return Result.Err(ErrorCode.PARSE_ERROR, f"Invalid duration output: {text[:80]!r}")

    async def get_video_info(self, path: str) -> Result[dict]:
        """
        Probe codec name, width, height and duration of the first video stream.

        Returns:
            Result with `{"codecName", "width", "height", "duration"}`
        """
        checked = validate_media_path(path)
        if not checked.ok:
            return Result.Err(checked.code, checked.error or "Invalid path")
        res = await self._run(self._build_video_info_cmd(checked.data or path), path)
        if not res.ok or res.data is None:
            return Result.Err(res.code, res.error or "ffprobe failed", **res.meta)
        return self._parse_video_info(res.data.stdout, path)

    def _parse_video_info(self, stdout: str, path: str) -> Result[dict]:
        if not stdout.strip():
            logger.warning("ffprobe returned empty output for %s", path)
            return Result.Err(ErrorCode.FFPROBE_ERROR, "No ffprobe output")
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError as exc:
            logger.error("ffprobe JSON parse error: %s", exc)
            return Result.Err(ErrorCode.PARSE_ERROR, f"Failed to parse ffprobe output: {exc}")
        if not isinstance(data, dict):
            return Result.Err(ErrorCode.PARSE_ERROR, "Invalid ffprobe output format")
        streams = data.get("streams") or []
        if not streams or not isinstance(streams[0], dict):
            return Result.Err(ErrorCode.PARSE_ERROR, "No video stream found")
        stream = streams[0]
        fmt = data.get("format") or {}
        try:
            return Result.Ok(
                {
                    "codecName": str(stream.get("codec_name") or ""),
                    "width": int(stream.get("width") or 0),
                    "height": int(stream.get("height") or 0),
                    "duration": float(fmt.get("duration")),
                }
            )
        except (TypeError, ValueError) as exc:
            return Result.Err(ErrorCode.PARSE_ERROR, f"Incomplete ffprobe output: {exc}")
