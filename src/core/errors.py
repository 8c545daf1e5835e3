# src/core/errors.py
"""
Typed errors for the feed import pipeline.

Exports
-------
- FeedImportError        (base for every run-fatal failure)
- ParseError             (feed markup is not well-formed)
- TransformError         (a single listing could not be mapped)
- ListingRejected        (listing dropped by the insufficient-data policy)
- PersistenceError       (snapshot write failed)
- StoreBusyError         (another run holds the store writer lock)
"""

from __future__ import annotations


class FeedImportError(RuntimeError):
    """Base class for failures that abort an import run."""


class ParseError(FeedImportError):
    """Raw feed could not be parsed into a node tree."""


class PersistenceError(FeedImportError):
    """
    The merged snapshot could not be written back to the store. When raised
    out of a merge, `imported`/`updated`/`rejected` carry what the batch
    would have written.
    """

    imported: int = 0
    updated: int = 0
    rejected: int = 0


class StoreBusyError(FeedImportError):
    """The store writer lock is held by another run."""


class TransformError(ValueError):
    """One listing node could not be transformed; the batch continues."""

    def __init__(self, message: str, *, listing_id: str | None = None) -> None:
        super().__init__(message)
        self.listing_id = listing_id


class ListingRejected(TransformError):
    """Listing carries neither a usable price nor a usable area."""


__all__ = [
    "FeedImportError",
    "ParseError",
    "PersistenceError",
    "StoreBusyError",
    "TransformError",
    "ListingRejected",
]
