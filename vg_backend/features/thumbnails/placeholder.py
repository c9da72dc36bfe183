"""
Placeholder image served when nothing better exists.
"""

from __future__ import annotations

import os
import uuid
from pathlib import Path

from PIL import Image

from ...shared import get_logger

logger = get_logger(__name__)

PLACEHOLDER_SIZE = (1, 1)
PLACEHOLDER_COLOR = (0, 0, 0, 0)


def ensure_placeholder(path: str | Path) -> str:
    """Write a transparent 1x1 PNG at `path` unless one is already there."""
    target = Path(path)
    if target.is_file() and target.stat().st_size > 0:
        return str(target)
    target.parent.mkdir(parents=True, exist_ok=True)
    tmp = target.with_name(f"{target.stem}.{uuid.uuid4().hex}.tmp{target.suffix}")
    try:
        with Image.new("RGBA", PLACEHOLDER_SIZE, PLACEHOLDER_COLOR) as img:
            img.save(tmp, format="PNG")
        os.replace(tmp, target)
    finally:
        if tmp.exists():
            tmp.unlink()
    logger.debug("Placeholder image written to %s", target)
    return str(target)
