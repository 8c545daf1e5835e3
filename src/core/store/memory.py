# src/core/store/memory.py

from __future__ import annotations

from src.schemas.models import CanonicalProperty

from .base import SnapshotStore


class MemoryStore(SnapshotStore):
    """Process-local store; the snapshot is the only copy. Used by tests and dry runs."""

    def _write(self, records: tuple[CanonicalProperty, ...]) -> None:
        # Nothing to persist beyond the snapshot swap done by the base class
        return None
