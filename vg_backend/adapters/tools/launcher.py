"""
Open a file with the operating system's default application.
"""
import os
import shutil
import subprocess
import sys
from typing import List

from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)


def _open_command(path: str) -> List[str]:
    if sys.platform == "darwin":
        return ["open", path]
    return ["xdg-open", path]


def launch_default(path: str) -> Result[dict]:
    """Hand `path` to the desktop's default handler; never raises."""
    if os.name == "nt":
        try:
            os.startfile(path)  # type: ignore[attr-defined]
        except OSError as exc:
            return Result.Err(ErrorCode.DEGRADED, f"Failed to open file: {exc}")
        return Result.Ok({"opened": True, "method": "startfile"})

    command = _open_command(path)
    if not shutil.which(command[0]):
        return Result.Err(ErrorCode.TOOL_MISSING, f"{command[0]} not found in PATH")
    try:
        subprocess.Popen(
            command,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            shell=False,
        )
    except OSError as exc:
        return Result.Err(ErrorCode.DEGRADED, f"Failed to open file: {exc}")
    logger.debug("Launched %s", command)
    return Result.Ok({"opened": True, "method": command[0]})
