# src/tools/__init__.py
"""
Listing feed sync: tools package

Exports only modules that live under `src/tools`:
  - FeedImportJob      (from .feed_import)
  - run_feed_import    (from .feed_import)

Anything outside `src/tools` (e.g., core store backends) should be imported
directly from its own package, not re-exported here.
"""

from __future__ import annotations

from .feed_import import FeedImportJob, run_feed_import

__all__ = ["FeedImportJob", "run_feed_import"]
