# src/core/store/merge.py
"""
Upsert merge engine.

Reconciles a transformed batch against the persisted snapshot:
  1) match by stored id, else by stored external_id (first match wins)
  2) matched   → replace every mutable field, keep id + created_at → "updated"
  3) unmatched → insert with created_at = updated_at = now         → "imported"
  4) a record failing validation → "error", the batch continues
  5) one whole-collection write after the batch

Later occurrences in the same batch match the earlier ones, so a duplicated
external id leaves exactly one record carrying the last values.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import ValidationError

from src.core.errors import PersistenceError
from src.schemas.models import CanonicalProperty, utc_now

from .ports import PropertyStore

logger = logging.getLogger(__name__)

BatchItem = CanonicalProperty | Mapping[str, Any]


@dataclass(frozen=True)
class MergeResult:
    imported: int = 0
    updated: int = 0
    errors: int = 0
    records: tuple[CanonicalProperty, ...] = field(default_factory=tuple)


class SnapshotIndex:
    """In-memory working copy keyed by id, with an external_id → id side index."""

    def __init__(self, records: Iterable[CanonicalProperty]) -> None:
        self._by_id: dict[str, CanonicalProperty] = {}
        self._by_external: dict[str, str] = {}
        for rec in records:
            self.put(rec)

    def match(self, record_id: str | None, external_id: str | None) -> CanonicalProperty | None:
        if record_id and record_id in self._by_id:
            return self._by_id[record_id]
        if external_id and external_id in self._by_external:
            return self._by_id.get(self._by_external[external_id])
        return None

    def put(self, rec: CanonicalProperty) -> None:
        self._by_id[rec.id] = rec
        if rec.external_id:
            self._by_external[rec.external_id] = rec.id

    def values(self) -> list[CanonicalProperty]:
        return list(self._by_id.values())


def _as_payload(item: BatchItem) -> dict[str, Any]:
    if isinstance(item, CanonicalProperty):
        return item.model_dump()
    if isinstance(item, Mapping):
        return dict(item)
    raise TypeError(f"unsupported batch item: {type(item).__name__}")


def merge_record(current: CanonicalProperty | None, payload: Mapping[str, Any], now: datetime) -> CanonicalProperty:
    """
    Build the record to store. Raises ValidationError / ValueError when the
    merged payload is not a valid CanonicalProperty.
    """
    if current is None:
        data = dict(payload)
        data["id"] = data.get("id") or data.get("external_id")
        if not data["id"]:
            raise ValueError("record carries neither id nor external_id")
        data["created_at"] = now
        data["updated_at"] = now
        return CanonicalProperty.model_validate(data)

    data = {k: payload[k] for k in CanonicalProperty.mutable_fields() if k in payload}
    if data.get("external_id") is None:
        data["external_id"] = current.external_id
    data["id"] = current.id
    data["created_at"] = current.created_at
    data["updated_at"] = now
    return CanonicalProperty.model_validate(data)


def merge_batch(batch: Iterable[BatchItem], store: PropertyStore, *, now: datetime | None = None) -> MergeResult:
    """
    Merge a batch into the store under its writer lock and persist once.

    Raises PersistenceError (from the store) when the final write fails; the
    previously persisted snapshot is then left untouched and the error carries
    the batch counts.
    """
    stamp = now or utc_now()
    imported = updated = errors = 0
    merged: list[CanonicalProperty] = []

    with store.exclusive():
        index = SnapshotIndex(store.get_all())
        for position, item in enumerate(batch):
            try:
                payload = _as_payload(item)
                current = index.match(payload.get("id"), payload.get("external_id"))
                rec = merge_record(current, payload, stamp)
            except (ValidationError, ValueError, TypeError) as e:
                errors += 1
                logger.warning("Merge rejected batch item #%d: %s", position, e)
                continue

            index.put(rec)
            merged.append(rec)
            if current is None:
                imported += 1
            else:
                updated += 1

        try:
            store.replace_all(index.values())
        except PersistenceError as e:
            e.imported, e.updated, e.rejected = imported, updated, errors
            raise

    logger.info("Merge complete: %d new, %d updated, %d errors", imported, updated, errors)
    return MergeResult(imported=imported, updated=updated, errors=errors, records=tuple(merged))
