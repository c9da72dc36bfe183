"""
Natural ordering and display-record sorting.
"""

from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Iterable, List, Mapping, Tuple

from ..annotations.schema import DirConfig

_CHUNK_RE = re.compile(r"(\d+)")


def natural_key(name: str) -> Tuple[Tuple[int, int, str], ...]:
    """
    Sort key comparing digit runs by value: "ep2" < "ep10".

    Numbers sort before text at the same position; text compares
    case-insensitively with the original string as a final tie-break.
    """
    parts = []
    for chunk in _CHUNK_RE.split(name):
        if not chunk:
            continue
        if chunk.isdigit():
            parts.append((0, int(chunk), chunk))
        else:
            parts.append((1, 0, chunk.casefold()))
    parts.append((-1, 0, name))
    return tuple(parts)


def _date_value(record: Mapping[str, Any]) -> float | None:
    raw = record.get("dateModified")
    if not raw or record.get("missing"):
        return None
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00")).timestamp()
    except ValueError:
        return None


def _size_value(record: Mapping[str, Any]) -> float | None:
    size = record.get("size")
    if not isinstance(size, (int, float)) or size < 0:
        return None
    return float(size)


def sort_records(records: Iterable[Mapping[str, Any]], config: DirConfig | None = None) -> List[Mapping[str, Any]]:
    """
    Sort display records by the directory's sort key and order.

    Records without a usable date or size (missing files) always go last,
    whatever the order. Ties fall back to natural name order.
    """
    config = config or DirConfig()
    items = list(records)
    reverse = config.order == "desc"

    by_name = sorted(items, key=lambda r: natural_key(str(r.get("name", ""))), reverse=reverse)
    if config.sort == "name":
        return by_name

    value_of = _date_value if config.sort == "dateModified" else _size_value
    known = [r for r in by_name if value_of(r) is not None]
    unknown = [r for r in by_name if value_of(r) is None]
    # sorted() is stable, so equal values keep natural name order.
    known.sort(key=lambda r: value_of(r), reverse=reverse)
    return known + unknown
