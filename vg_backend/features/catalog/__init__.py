"""Catalog: authorization, entries, listing and sorting."""
from .entry import Entry, MemoizedStat, make_identity
from .gateway import PathGateway
from .service import Catalog
from .sorting import natural_key, sort_records

__all__ = [
    "Catalog",
    "Entry",
    "MemoizedStat",
    "PathGateway",
    "make_identity",
    "natural_key",
    "sort_records",
]
