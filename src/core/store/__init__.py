from __future__ import annotations

from pathlib import Path

from .base import SnapshotStore
from .json_store import JsonFileStore
from .memory import MemoryStore
from .merge import MergeResult, merge_batch, merge_record
from .ports import PropertyStore
from .queries import apply_query, compute_store_stats

STORE_BACKENDS = ("json", "memory")


def open_store(backend: str = "json", data_dir: str | Path = "data") -> SnapshotStore:
    """Build the configured store backend."""
    name = backend.strip().lower()
    if name == "memory":
        return MemoryStore()
    if name == "json":
        return JsonFileStore(data_dir)
    raise ValueError(f"unknown store backend {backend!r}; expected one of {STORE_BACKENDS}")


__all__ = [
    "STORE_BACKENDS",
    "JsonFileStore",
    "MemoryStore",
    "MergeResult",
    "PropertyStore",
    "SnapshotStore",
    "apply_query",
    "compute_store_stats",
    "merge_batch",
    "merge_record",
    "open_store",
]
