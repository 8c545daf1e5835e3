# src/core/store/json_store.py
"""
JSON document store.

Layout of `<data_dir>/properties.json`:

    {"properties": [ {...CanonicalProperty...}, ... ], "updated_at": "<iso>"}

Each write goes to a temp file in the same directory and is swapped in with
one rename, so a crash or disk error mid-write leaves the previous document
in place.

Rows that no longer validate (e.g. written by an older release) are kept
verbatim and written back untouched until a record with the same id replaces
them. Handles opened on the same document share one writer lock and reload
the document whenever they take it, so they never overwrite each other.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from src.core.errors import PersistenceError
from src.schemas.models import CanonicalProperty, utc_now

from .base import SnapshotStore

logger = logging.getLogger(__name__)

DOCUMENT_NAME = "properties.json"

_PATH_LOCKS: dict[Path, threading.RLock] = {}
_PATH_LOCKS_GUARD = threading.Lock()


def _lock_for(path: Path) -> threading.RLock:
    """One writer lock per document, shared by every handle in the process."""
    key = path.resolve()
    with _PATH_LOCKS_GUARD:
        return _PATH_LOCKS.setdefault(key, threading.RLock())


def _row_id(row: Any) -> Any:
    return row.get("id") if isinstance(row, dict) else None


def _read_document(path: Path) -> tuple[list[CanonicalProperty], list[Any]]:
    """Load the document as (valid records, rows that failed validation)."""
    if not path.exists():
        return [], []
    try:
        doc: Any = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as e:
        raise PersistenceError(f"cannot read store document {path}: {e}") from e

    items = doc.get("properties", []) if isinstance(doc, dict) else doc
    if not isinstance(items, list):
        raise PersistenceError(f"store document {path} has no 'properties' list")

    out: list[CanonicalProperty] = []
    unreadable: list[Any] = []
    for i, item in enumerate(items):
        try:
            out.append(CanonicalProperty.model_validate(item))
        except ValidationError as e:
            logger.warning("Keeping invalid stored record #%d in %s as is: %s", i, path.name, e)
            unreadable.append(item)
    return out, unreadable


class JsonFileStore(SnapshotStore):
    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)
        self.path = self.data_dir / DOCUMENT_NAME
        records, self._unreadable = _read_document(self.path)
        super().__init__(records, lock=_lock_for(self.path))
        logger.info("JSON store opened at %s (%d records)", self.path, len(self))

    def _refresh(self) -> None:
        records, self._unreadable = _read_document(self.path)
        self._records = tuple(records)

    def _write(self, records: tuple[CanonicalProperty, ...]) -> None:
        ids = {r.id for r in records}
        kept = [row for row in self._unreadable if _row_id(row) not in ids]
        payload = {
            "properties": [r.model_dump(mode="json") for r in records] + kept,
            "updated_at": utc_now().isoformat(),
        }
        tmp_path: Path | None = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", prefix="properties_", suffix=".part", delete=False, dir=str(self.data_dir)
            ) as tf:
                tmp_path = Path(tf.name)
                json.dump(payload, tf, ensure_ascii=False, indent=2)
                tf.flush()
                os.fsync(tf.fileno())
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)
            raise PersistenceError(f"failed to write {self.path}: {e}") from e
        self._unreadable = kept
