"""Database adapters."""
from .kv_store import KVStore

__all__ = ["KVStore"]
