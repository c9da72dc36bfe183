from __future__ import annotations

import re
from importlib import metadata
from pathlib import Path
from typing import TypedDict

DISTRIBUTION_NAME = "videogrid"


class VersionInfo(TypedDict):
    name: str
    version: str


def _find_pyproject_version() -> str:
    pyproject_path = Path(__file__).resolve().parent.parent / "pyproject.toml"
    try:
        raw = pyproject_path.read_text(encoding="utf-8")
    except OSError:
        return "0.0.0"
    match = re.search(r'^version\s*=\s*"(.*?)"', raw, flags=re.MULTILINE)
    return match.group(1).strip() if match else "0.0.0"


def get_version() -> str:
    try:
        return metadata.version(DISTRIBUTION_NAME)
    except metadata.PackageNotFoundError:
        return _find_pyproject_version()


def get_version_info() -> VersionInfo:
    return {"name": DISTRIBUTION_NAME, "version": get_version()}
