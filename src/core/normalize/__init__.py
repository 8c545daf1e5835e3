# src/core/normalize/__init__.py
from __future__ import annotations

from .feed_tree import RawNode, parse_feed
from .fields import collect_urls, resolve, split_list, to_bool, to_number, to_text
from .listing_feed import transform_listing, transform_listings
from .locator import locate_listings

__all__ = [
    "RawNode",
    "parse_feed",
    "resolve",
    "to_number",
    "to_bool",
    "to_text",
    "split_list",
    "collect_urls",
    "locate_listings",
    "transform_listing",
    "transform_listings",
    "parse_feed_listings",
]


def parse_feed_listings(raw: bytes | str) -> list[RawNode]:
    """
    Convenience facade: raw markup → listing nodes.
    Raises ParseError on malformed markup; [] when no container is recognized.
    """
    return locate_listings(parse_feed(raw))
