# src/core/store/ports.py
"""Persistence port consumed by the import pipeline.

The core never knows the storage medium; any backend that satisfies this
contract (memory, JSON file, ...) can be injected at construction.
"""

from __future__ import annotations

from collections.abc import Iterable
from contextlib import AbstractContextManager
from typing import Protocol

from src.schemas.models import CanonicalProperty, PropertyQuery, StoreStats


class PropertyStore(Protocol):
    """Document-store operations required by the merge engine and its callers."""

    def get_all(self) -> list[CanonicalProperty]:
        ...

    def get_by_id(self, record_id: str) -> CanonicalProperty | None:
        ...

    def upsert(self, record: CanonicalProperty) -> CanonicalProperty:
        ...

    def get_stats(self) -> StoreStats:
        ...

    def query(self, q: PropertyQuery) -> tuple[list[CanonicalProperty], int]:
        ...

    def replace_all(self, records: Iterable[CanonicalProperty]) -> None:
        """Persist the whole collection as one atomic write."""
        ...

    def exclusive(self, *, blocking: bool = True) -> AbstractContextManager[None]:
        """Single-writer boundary shared by every trigger path."""
        ...
