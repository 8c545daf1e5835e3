# src/core/fetch/cache.py
"""
Deterministic on-disk archive layout for fetched feed payloads.
"""

from __future__ import annotations

from hashlib import sha256 as _sha256lib
from pathlib import Path


def _sha256(data: bytes | str) -> str:
    if isinstance(data, str):
        data = data.encode("utf-8", errors="ignore")
    return _sha256lib(data).hexdigest()


def archive_paths(url: str, base_dir: Path) -> dict[str, Path]:
    """
    Build a stable archive directory based on sha256(url) prefix.

    Layout (under base/<hash16>/):
      - feed.raw.xml   (payload of the latest successful fetch)
      - meta.json      (first/last fetched_at, status_code, bytes, sha256)
    """
    h = _sha256(url)[:16]
    root = (base_dir / h).resolve()

    return {
        "root": root,
        "feed_raw": root / "feed.raw.xml",
        "meta": root / "meta.json",
    }
