# src/core/fetch/errors.py
"""
Typed errors + utilities for the feed fetcher.

Exports
-------
- FetchError, NetworkError, FeedTooLargeError
- FETCH_ERRORS
- classify_fetch_error(exc)
- fetch_error_guard()
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

import requests

from src.core.errors import FeedImportError

# =========================
# Exception types
# =========================


class FetchError(FeedImportError):
    """Base class for feed fetch failures. Always fatal to the run."""


class NetworkError(FetchError):
    """HTTP/transport failure (connection, timeout, bad status)."""


class FeedTooLargeError(FetchError):
    """Response exceeded the configured maximum size."""


# Selector tuple for grouped exception handling
FETCH_ERRORS = (
    NetworkError,
    FeedTooLargeError,
)

# =========================
# Classification helpers
# =========================


def classify_fetch_error(exc: Exception) -> FetchError:
    """
    Map arbitrary exceptions raised while fetching to a typed FetchError.

    Heuristics:
      - FetchError subclasses → passed through
      - requests.Timeout → NetworkError("timed out ...")
      - any other requests.RequestException → NetworkError
      - OSError (socket/SSL below requests) → NetworkError
      - Fallback → FetchError
    """
    if isinstance(exc, FetchError):
        return exc

    if isinstance(exc, requests.Timeout):
        return NetworkError(f"timed out: {exc}")
    if isinstance(exc, requests.RequestException):
        return NetworkError(f"{type(exc).__name__}: {exc}")
    if isinstance(exc, OSError):
        return NetworkError(f"{type(exc).__name__}: {exc}")

    return FetchError(f"{type(exc).__name__}: {exc}")


@contextmanager
def fetch_error_guard() -> Iterator[None]:
    """Context manager to normalize unexpected exceptions from fetcher internals."""
    try:
        yield
    except FETCH_ERRORS:
        raise
    except Exception as exc:  # noqa: BLE001
        raise classify_fetch_error(exc) from exc


__all__ = [
    "FetchError",
    "NetworkError",
    "FeedTooLargeError",
    "FETCH_ERRORS",
    "classify_fetch_error",
    "fetch_error_guard",
]
