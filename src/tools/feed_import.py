# src/tools/feed_import.py
"""
Feed import job: fetch → parse → locate → transform → merge, as one run.

Pipeline:
  1) fetch the feed (URL via core.fetch.fetch_feed, or a local file)
  2) core.normalize.parse_feed_listings(raw) → listing nodes
  3) core.normalize.transform_listings(nodes) → CanonicalProperty batch + per-listing failures
  4) core.store.merge_batch(batch, store) → one atomic snapshot write

The whole run holds the store writer lock, so scheduled runs, manual
triggers and direct upserts never interleave. A fetch or parse failure aborts
the run before anything is written. `request_stop()` abandons the current
batch at the next checkpoint (after fetch, after parse, before merge).

This module is the single integration point for the CLI and for schedulers.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from src.core.errors import FeedImportError, PersistenceError
from src.core.fetch import FetchError, fetch_feed
from src.core.normalize import parse_feed_listings, transform_listings
from src.core.store import PropertyStore, merge_batch
from src.schemas.models import FeedPolicy, FeedSnapshot, ImportRunStats, RunStatus, utc_now

logger = logging.getLogger(__name__)

Fetcher = Callable[..., FeedSnapshot]


class _RunCancelled(Exception):
    """Internal: a stop was requested and the batch is abandoned."""


class FeedImportJob:
    """
    One configured import job. `run()` may be called repeatedly (e.g. by a
    scheduler); each call is an independent run against the same store.
    """

    def __init__(
        self,
        store: PropertyStore,
        policy: FeedPolicy | None = None,
        *,
        url: str | None = None,
        file: str | Path | None = None,
        source: str = "xml_feed",
        currency: str = "EUR",
        fetcher: Fetcher = fetch_feed,
    ) -> None:
        if url and file:
            raise ValueError("Pass either `url` or `file`, not both.")
        self.store = store
        self.policy = policy or FeedPolicy()
        self.url = url or (None if file else self.policy.url)
        self.file = Path(file) if file else None
        self.source = source
        self.currency = currency
        self.fetcher = fetcher
        self._stop = threading.Event()

    # ---------- Control ----------

    def request_stop(self) -> None:
        """Ask the running import to abandon its batch at the next checkpoint."""
        logger.info("Stop requested for feed import")
        self._stop.set()

    def _checkpoint(self, stage: str) -> None:
        if self._stop.is_set():
            raise _RunCancelled(stage)

    # ---------- Stages ----------

    @property
    def base_url(self) -> str | None:
        return self.policy.base_url or self.url

    def _load_raw(self) -> bytes:
        if self.file is not None:
            try:
                return self.file.read_bytes()
            except OSError as e:
                raise FetchError(f"cannot read feed file {self.file}: {e}") from e
        snapshot = self.fetcher(self.url, policy=self.policy)
        return snapshot.content

    # ---------- Run ----------

    def run(self, *, wait: bool = False, raise_errors: bool = False) -> ImportRunStats:
        """
        Execute one import run and return its stats.

        wait=False makes a concurrent run raise StoreBusyError; wait=True queues
        behind it. Fatal failures (fetch, parse, persistence) come back as a
        "failed" run unless raise_errors=True, in which case they propagate.
        """
        self._stop.clear()
        start_time = utc_now()
        t0 = time.perf_counter()
        total = imported = updated = errors = 0
        status: RunStatus = "completed"
        error: str | None = None

        with self.store.exclusive(blocking=wait):
            logger.info("Feed import started (%s)", self.file or self.url)
            try:
                raw = self._load_raw()
                self._checkpoint("fetch")

                nodes = parse_feed_listings(raw)
                total = len(nodes)
                self._checkpoint("parse")

                batch, failures = transform_listings(
                    nodes,
                    source=self.source,
                    currency=self.currency,
                    base_url=self.base_url,
                    now=start_time,
                )
                errors = len(failures)
                self._checkpoint("transform")

                result = merge_batch(batch, self.store, now=start_time)
                imported, updated = result.imported, result.updated
                errors += result.errors
            except _RunCancelled as c:
                status = "cancelled"
                logger.warning("Feed import cancelled after %s stage; batch abandoned", c)
            except FeedImportError as e:
                if isinstance(e, PersistenceError):
                    imported, updated = e.imported, e.updated
                    errors += e.rejected
                status = "failed"
                error = f"{type(e).__name__}: {e}"
                logger.error("Feed import failed: %s", error)
                if raise_errors:
                    raise

        stats = _finalize(start_time, t0, total, imported, updated, errors, status, error)
        logger.info("Feed import finished: %s", stats.summary())
        return stats


def _finalize(
    start_time: datetime,
    t0: float,
    total: int,
    imported: int,
    updated: int,
    errors: int,
    status: RunStatus,
    error: str | None,
) -> ImportRunStats:
    return ImportRunStats(
        total=total,
        imported=imported,
        updated=updated,
        errors=errors,
        start_time=start_time,
        end_time=utc_now(),
        duration=max(time.perf_counter() - t0, 0.0),
        status=status,
        error=error,
    )


def run_feed_import(
    store: PropertyStore,
    *,
    url: str | None = None,
    file: str | Path | None = None,
    policy: FeedPolicy | None = None,
    source: str = "xml_feed",
    currency: str = "EUR",
    wait: bool = False,
) -> ImportRunStats:
    """Convenience wrapper for one-shot callers."""
    job = FeedImportJob(store, policy, url=url, file=file, source=source, currency=currency)
    return job.run(wait=wait)


__all__ = ["FeedImportJob", "run_feed_import"]
