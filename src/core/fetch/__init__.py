# src/core/fetch/__init__.py
from .cache import _sha256, archive_paths
from .errors import (
    FETCH_ERRORS,
    FeedTooLargeError,
    FetchError,
    NetworkError,
    classify_fetch_error,
    fetch_error_guard,
)
from .feed_fetcher import fetch_feed

__all__ = [
    "FetchError",
    "NetworkError",
    "FeedTooLargeError",
    "FETCH_ERRORS",
    "classify_fetch_error",
    "fetch_error_guard",
    "archive_paths",
    "_sha256",
    "fetch_feed",
]
