# src/core/fetch/feed_fetcher.py
"""
Blocking feed fetcher with a hard timeout, a streamed size cap and an optional
raw-payload archive.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

import requests

from src.schemas.models import FeedPolicy, FeedSnapshot

from .cache import _sha256, archive_paths
from .errors import FeedTooLargeError, NetworkError, fetch_error_guard

logger = logging.getLogger(__name__)

_STREAM_CHUNK = 256 * 1024  # 256 KiB

# -------------------------
# Internal HTTP helpers
# -------------------------


def _read_capped(resp: requests.Response, max_bytes: int, url: str) -> bytes:
    declared = resp.headers.get("Content-Length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise FeedTooLargeError(f"{url} declares {int(declared)} bytes (limit {max_bytes})")

    buf = bytearray()
    for chunk in resp.iter_content(chunk_size=_STREAM_CHUNK):
        if not chunk:
            continue
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise FeedTooLargeError(f"{url} exceeded {max_bytes} bytes")
    return bytes(buf)


def _http_get(url: str, pol: FeedPolicy) -> tuple[int, bytes]:
    resp = requests.get(
        url,
        headers={"User-Agent": pol.user_agent, "Accept": "application/xml, text/xml, */*"},
        timeout=pol.timeout_s,
        stream=True,
    )
    try:
        if resp.status_code >= 400 and not pol.allow_non_200:
            raise NetworkError(f"HTTP {resp.status_code} for {url}")
        return resp.status_code, _read_capped(resp, pol.max_bytes, url)
    finally:
        resp.close()


def _write_archive(url: str, archive_dir: Path, status: int, content: bytes, digest: str, fetched_at: datetime) -> Path:
    paths = archive_paths(url, archive_dir)
    paths["root"].mkdir(parents=True, exist_ok=True)
    paths["feed_raw"].write_bytes(content)

    now = fetched_at.isoformat()
    meta = {"last_fetched_at": now, "status_code": status, "bytes": len(content), "sha256": digest}
    if paths["meta"].exists():
        try:
            prev = json.loads(paths["meta"].read_text(encoding="utf-8"))
            prev.setdefault("first_fetched_at", now)
            prev.update(meta)
            meta = prev
        except ValueError:
            logger.warning("Ignoring unreadable archive meta at %s", paths["meta"])
            meta["first_fetched_at"] = now
    else:
        meta["first_fetched_at"] = now
    paths["meta"].write_text(json.dumps(meta), encoding="utf-8")
    return paths["feed_raw"]


# -------------------------
# Public API
# -------------------------


def fetch_feed(url: str | None = None, *, policy: FeedPolicy | None = None) -> FeedSnapshot:
    """
    Fetch the feed once. No retries.

    Raises:
      NetworkError       on transport failure, timeout or HTTP >= 400
      FeedTooLargeError  when the body (declared or streamed) exceeds policy.max_bytes

    Archiving is best-effort: a failed archive write is logged, never fatal.
    """
    pol = policy or FeedPolicy()
    target = url or pol.url

    logger.info("Fetching feed from %s (timeout=%.1fs, max=%d bytes)", target, pol.timeout_s, pol.max_bytes)
    with fetch_error_guard():
        status, content = _http_get(target, pol)

    fetched_at = datetime.now(timezone.utc)
    digest = _sha256(content)
    archive_path: Path | None = None
    if pol.archive_dir is not None:
        try:
            archive_path = _write_archive(target, pol.archive_dir, status, content, digest, fetched_at)
        except OSError as e:
            logger.warning("Could not archive feed payload under %s: %s", pol.archive_dir, e)

    logger.info("Feed fetched: status=%d, %d bytes, sha256=%s", status, len(content), digest[:12])
    return FeedSnapshot(
        url=target,
        fetched_at=fetched_at,
        status_code=status,
        content=content,
        bytes_size=len(content),
        sha256=digest,
        archive_path=archive_path,
    )
