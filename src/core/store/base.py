# src/core/store/base.py
"""
Snapshot-backed store skeleton.

Every backend keeps the whole collection as an immutable in-memory snapshot;
readers see either the previous or the next snapshot, never a mix. Writers
serialize through one re-entrant lock exposed as `exclusive()`, which is the
single-writer boundary shared by scheduled runs, manual triggers and direct
upserts. Subclasses decide how a snapshot is persisted (`_write`) and may
reload it when the lock is first taken (`_refresh`), so a handle never merges
into a snapshot older than what another handle already wrote.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from src.core.errors import StoreBusyError
from src.schemas.models import CanonicalProperty, PropertyQuery, StoreStats

from .merge import merge_batch
from .queries import apply_query, compute_store_stats

logger = logging.getLogger(__name__)


class SnapshotStore:
    def __init__(self, records: Iterable[CanonicalProperty] = (), *, lock: threading.RLock | None = None) -> None:
        self._lock = lock if lock is not None else threading.RLock()
        self._depth = 0
        self._records: tuple[CanonicalProperty, ...] = tuple(records)

    # ---------- Writer boundary ----------

    @contextmanager
    def exclusive(self, *, blocking: bool = True) -> Iterator[None]:
        """
        Hold the writer lock. With blocking=False a concurrent writer makes
        this raise StoreBusyError instead of queueing.
        """
        if not self._lock.acquire(blocking=blocking):
            raise StoreBusyError("store is busy: another import is in progress")
        try:
            self._depth += 1
            if self._depth == 1:
                self._refresh()
            yield
        finally:
            self._depth -= 1
            self._lock.release()

    # ---------- Reads ----------

    def get_all(self) -> list[CanonicalProperty]:
        return list(self._records)

    def get_by_id(self, record_id: str) -> CanonicalProperty | None:
        for rec in self._records:
            if rec.id == record_id:
                return rec
        return None

    def get_stats(self) -> StoreStats:
        return compute_store_stats(self._records)

    def query(self, q: PropertyQuery) -> tuple[list[CanonicalProperty], int]:
        return apply_query(self._records, q)

    # ---------- Writes ----------

    def upsert(self, record: CanonicalProperty) -> CanonicalProperty:
        """Merge a single record through the same path as a feed batch."""
        result = merge_batch([record], self)
        if not result.records:
            raise ValueError(f"record {record.id!r} failed validation and was not stored")
        return result.records[0]

    def replace_all(self, records: Iterable[CanonicalProperty]) -> None:
        snapshot = tuple(records)
        with self.exclusive():
            self._write(snapshot)
            self._records = snapshot
        logger.debug("%s snapshot replaced (%d records)", type(self).__name__, len(snapshot))

    def _refresh(self) -> None:
        """Called with the lock freshly held; backends with shared storage reload here."""

    def _write(self, records: tuple[CanonicalProperty, ...]) -> None:
        """Persist `records`; must leave the previous state intact when it raises."""
        raise NotImplementedError

    def __len__(self) -> int:
        return len(self._records)
