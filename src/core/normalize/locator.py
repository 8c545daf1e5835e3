"""
Listing locator: find the repeated per-listing nodes in a parsed feed.

Feed revisions have wrapped listings in different containers. Each known
shape is one named path of container keys, tried in priority order through
the field resolver (so casing drift is tolerated). The first strategy that
yields listings wins; the generic child scan is the last resort.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import NamedTuple

from .feed_tree import RawNode
from .fields import resolve

logger = logging.getLogger(__name__)


class LocatorStrategy(NamedTuple):
    name: str
    path: tuple[str, ...]


# Priority-ordered known container shapes (root tag first)
KNOWN_SHAPES: tuple[LocatorStrategy, ...] = (
    LocatorStrategy("export/realty-object", ("Export", "RealtyObject")),
    LocatorStrategy("export/realty-objects", ("Export", "RealtyObjects", "RealtyObject")),
    LocatorStrategy("export/objects", ("Export", "Objects", "Object")),
    LocatorStrategy("feed/properties", ("Feed", "Properties", "Property")),
    LocatorStrategy("properties", ("Properties", "Property")),
    LocatorStrategy("root/properties", ("Root", "Properties", "Property")),
    LocatorStrategy("listings", ("Listings", "Listing")),
    LocatorStrategy("objects", ("Objects", "Object")),
)


def _nodes(values: Sequence[object] | None) -> list[RawNode]:
    return [v for v in values or [] if isinstance(v, dict)]


def _follow(root: RawNode, path: Sequence[str]) -> list[RawNode]:
    """Walk container keys (first occurrence at each level) and return the leaf node set."""
    current: list[RawNode] = [root]
    for depth, key in enumerate(path):
        found = _nodes(resolve(current[0], [key]))
        if not found:
            return []
        current = found if depth == len(path) - 1 else found[:1]
    return current


def _scan_children(root: RawNode) -> list[RawNode]:
    """
    Fallback: look one level below the root element for an element collection,
    preferring the first one that repeats.
    """
    top = _nodes(next(iter(root.values()), None))
    if not top:
        return []
    first_seen: list[RawNode] = []
    for key, values in top[0].items():
        children = _nodes(values)
        if len(children) > 1:
            logger.info("Listing container found by child scan: %r (%d nodes)", key, len(children))
            return children
        if children and not first_seen:
            first_seen = children
    return first_seen


def locate_listings(root: RawNode, strategies: Sequence[LocatorStrategy] = KNOWN_SHAPES) -> list[RawNode]:
    """
    Return the listing nodes of a parsed feed, or [] when nothing is
    recognizable (not an error: the run completes with zero listings).
    """
    if not root:
        return []
    for strategy in strategies:
        found = _follow(root, strategy.path)
        if found:
            logger.info("Listing container matched shape %s (%d nodes)", strategy.name, len(found))
            return found

    found = _scan_children(root)
    if not found:
        logger.warning("No recognizable listing container; root keys=%s", list(root))
    return found


__all__ = ["LocatorStrategy", "KNOWN_SHAPES", "locate_listings"]
