"""
MPC-HC playback history source.

MPC-HC keeps its resume positions in the registry under
`HKCU\\Software\\MPC-HC\\MPC-HC\\MediaHistory\\<hash>` with a `FilePosition`
DWORD in milliseconds. `<hash>` is MPC-HC's "RFE hash" of the file path.
A snapshot is a flat `{hash: seconds}` mapping taken with `reg.exe query`.
"""
import base64
import hashlib
from typing import Dict, Mapping, Optional

from ...config import HISTORY_TIMEOUT, IS_WINDOWS, REG_BIN
from ...shared import ErrorCode, Result, get_logger
from .process import communicate_with_timeout, resolve_executable, spawn_process

logger = get_logger(__name__)

MEDIA_HISTORY_KEY = "HKEY_CURRENT_USER\\Software\\MPC-HC\\MPC-HC\\MediaHistory"
_SHORT_HASH_LEN = 12


def short_hash(data: bytes) -> str:
    """First 12 characters of base64(sha1(data)), as MPC-HC's getShortHash."""
    digest = hashlib.sha1(data).digest()
    return base64.b64encode(digest).decode("ascii")[:_SHORT_HASH_LEN]


def rfe_hash(path: str) -> str:
    """MPC-HC's getRFEHash: short hash of the lowercased path in UTF-16LE."""
    return short_hash(path.lower().encode("utf-16-le"))


def parse_reg_query_output(text: str) -> Dict[str, float]:
    """
    Parse `reg query <key> /s /v FilePosition` output.

    Sample:
        HKEY_CURRENT_USER\\Software\\MPC-HC\\MPC-HC\\MediaHistory\\B0UIHYuw0TP9
            FilePosition    REG_DWORD    0x1d4c0

    Zero positions are dropped; they carry no more information than "unknown".
    """
    history: Dict[str, float] = {}
    prefix = MEDIA_HISTORY_KEY + "\\"
    lines = text.splitlines()
    i = 0
    while i < len(lines):
        line = lines[i]
        if prefix not in line:
            i += 1
            continue
        key = line.strip().split("\\")[-1]
        next_line = lines[i + 1] if i + 1 < len(lines) else ""
        fields = next_line.split()
        if len(fields) < 3 or fields[0] != "FilePosition":
            i += 1
            continue
        try:
            seconds = int(fields[2], 16) / 1000
        except ValueError:
            seconds = 0
        if seconds > 0:
            history[key] = seconds
        i += 2
    return history


def lookup_position(snapshot: Mapping[str, float], path: str) -> float:
    """Position in seconds for `path` in `snapshot`, or -1 when absent."""
    key = rfe_hash(path)
    if key in snapshot:
        return float(snapshot[key])
    return -1


class MediaHistorySource:
    """
    Takes point-in-time snapshots of the MPC-HC history.

    Never raises; on non-Windows hosts or tool failure the snapshot is empty.
    """

    def __init__(self, bin_name: str = REG_BIN, timeout: Optional[float] = None, enabled: Optional[bool] = None):
        self.bin = bin_name
        self.timeout = float(timeout) if timeout is not None else float(HISTORY_TIMEOUT)
        self.enabled = IS_WINDOWS if enabled is None else bool(enabled)
        self._resolved_bin: Optional[str] = resolve_executable(bin_name, "reg") if self.enabled else None

    def is_available(self) -> bool:
        return self.enabled and self._resolved_bin is not None

    async def snapshot(self) -> Result[Dict[str, float]]:
        if not self.is_available():
            return Result.Ok({}, unsupported=True)
        cmd = [self._resolved_bin or self.bin, "query", MEDIA_HISTORY_KEY, "/s", "/v", "FilePosition"]
        try:
            process = await spawn_process(cmd)
        except OSError as exc:
            logger.warning("Media history query failed to start: %s", exc)
            return Result.Err(ErrorCode.HISTORY_ERROR, str(exc))
        communicated = await communicate_with_timeout(process, self.timeout, "reg query")
        if not communicated.ok or communicated.data is None:
            return Result.Err(communicated.code, communicated.error or "reg query failed")
        output = communicated.data
        if output.returncode != 0:
            # reg.exe exits 1 when MPC-HC has never stored any history.
            logger.debug("Media history query exited %s: %s", output.returncode, output.stderr.strip())
            return Result.Err(ErrorCode.HISTORY_ERROR, output.stderr.strip() or "reg query failed")
        return Result.Ok(parse_reg_query_output(output.stdout))
