"""
Executable resolution and async subprocess execution shared by tool adapters.
"""

from __future__ import annotations

import asyncio
import os
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ProcessOutput:
    returncode: Optional[int]
    stdout: str
    stderr: str


def is_safe_executable_token(raw: str) -> bool:
    if not raw:
        return False
    if "\x00" in raw or "\n" in raw or "\r" in raw:
        return False
    if any(ch in raw for ch in ("&", "|", ";", ">", "<")):
        return False
    return True


def resolve_executable(bin_name: str, expected_prefix: str) -> Optional[str]:
    """
    Resolve a configured tool to an executable path.

    Rejects values that look like shell fragments and binaries whose file name
    does not start with `expected_prefix` (so `VG_FFPROBE_PATH=rm` is refused).
    """
    raw = (bin_name or "").strip()
    if not is_safe_executable_token(raw):
        return None
    resolved = shutil.which(raw)
    if not resolved:
        try:
            candidate = Path(raw)
            if candidate.is_file():
                resolved = str(candidate.resolve(strict=True))
        except (OSError, RuntimeError, ValueError):
            return None
    if not resolved:
        return None
    if not Path(resolved).name.lower().startswith(expected_prefix):
        return None
    return resolved


def validate_media_path(path: str) -> Result[str]:
    """Refuse paths that could be read as tool options or break argv."""
    raw = str(path or "").strip()
    if not raw:
        return Result.Err(ErrorCode.INVALID_INPUT, "Empty path")
    if raw.startswith("-"):
        return Result.Err(ErrorCode.INVALID_INPUT, "Path must not start with '-'")
    if "\x00" in raw or "\n" in raw or "\r" in raw:
        return Result.Err(ErrorCode.INVALID_INPUT, "Path contains control characters")
    return Result.Ok(raw)


async def spawn_process(cmd: List[str]) -> asyncio.subprocess.Process:
    return await asyncio.create_subprocess_exec(
        *cmd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
        stdin=asyncio.subprocess.DEVNULL,
        close_fds=os.name != "nt",
    )


async def communicate_with_timeout(
    process: asyncio.subprocess.Process,
    timeout: float,
    label: str,
) -> Result[ProcessOutput]:
    """
    Wait for `process` to finish; kill it on timeout or cancellation.
    """
    try:
        stdout_b, stderr_b = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        _kill(process)
        logger.error("%s timeout after %ss", label, timeout)
        return Result.Err(ErrorCode.TIMEOUT, f"{label} timeout after {timeout}s")
    except asyncio.CancelledError:
        _kill(process)
        raise
    stdout = (stdout_b or b"").decode("utf-8", errors="replace")
    stderr = (stderr_b or b"").decode("utf-8", errors="replace")
    return Result.Ok(ProcessOutput(process.returncode, stdout, stderr))


def _kill(process: asyncio.subprocess.Process) -> None:
    try:
        process.kill()
    except ProcessLookupError:
        pass
