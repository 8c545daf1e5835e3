# src/core/store/queries.py
"""Read-side helpers shared by every store backend: aggregate stats and listing queries."""

from __future__ import annotations

from collections import Counter, defaultdict
from collections.abc import Sequence
from typing import Any

from src.schemas.models import CanonicalProperty, PriceStats, PropertyQuery, RegionStats, StoreStats

UNKNOWN_REGION = "Unknown"
SORT_DIRECTIONS = ("asc", "desc")


def compute_store_stats(records: Sequence[CanonicalProperty]) -> StoreStats:
    """
    Counts by status/type, per-region price totals, and min/max/avg over
    positive prices (unpriced listings do not drag the average to zero).
    """
    by_status = Counter(r.status.value for r in records)
    by_type = Counter(r.type.value for r in records)

    regions: dict[str, list[float]] = defaultdict(list)
    for r in records:
        regions[r.region or UNKNOWN_REGION].append(r.price)

    by_region = [
        RegionStats(
            region=name,
            count=len(prices),
            total_price=sum(prices),
            avg_price=sum(prices) / len(prices),
        )
        for name, prices in sorted(regions.items(), key=lambda kv: (-len(kv[1]), kv[0]))
    ]

    priced = [r.price for r in records if r.price > 0]
    price = PriceStats(min=min(priced), max=max(priced), avg=sum(priced) / len(priced)) if priced else PriceStats()

    return StoreStats(
        total=len(records),
        by_status=dict(by_status),
        by_type=dict(by_type),
        by_region=by_region,
        price=price,
    )


def parse_sort(sort: str | None) -> tuple[str, bool] | None:
    """'price_desc' → ("price", True). Raises ValueError on an unknown field or direction."""
    if not sort:
        return None
    field_name, _, direction = sort.rpartition("_")
    if direction not in SORT_DIRECTIONS or field_name not in CanonicalProperty.model_fields:
        raise ValueError(f"unsupported sort: {sort!r} (expected '<field>_asc' or '<field>_desc')")
    return field_name, direction == "desc"


def _matches(r: CanonicalProperty, q: PropertyQuery) -> bool:
    if q.type is not None and r.type != q.type:
        return False
    if q.status is not None and r.status != q.status:
        return False
    if q.region and (r.region or "").casefold() != q.region.casefold():
        return False
    if q.min_price is not None and r.price < q.min_price:
        return False
    if q.max_price is not None and r.price > q.max_price:
        return False
    if q.text:
        needle = q.text.casefold()
        haystack = (r.title, r.region or "", r.type.value)
        if not any(needle in h.casefold() for h in haystack):
            return False
    return True


def _sort_value(value: Any) -> Any:
    # Enums sort by value; None is handled by the caller
    return getattr(value, "value", value)


def apply_query(records: Sequence[CanonicalProperty], q: PropertyQuery) -> tuple[list[CanonicalProperty], int]:
    """
    Filter → sort → paginate. Returns (page, total matches before pagination).
    Records missing the sort field always come last.
    """
    hits = [r for r in records if _matches(r, q)]

    order = parse_sort(q.sort)
    if order is not None:
        field_name, descending = order
        present = [r for r in hits if getattr(r, field_name) is not None]
        missing = [r for r in hits if getattr(r, field_name) is None]
        present.sort(key=lambda r: _sort_value(getattr(r, field_name)), reverse=descending)
        hits = present + missing

    return hits[q.offset : q.offset + q.limit], len(hits)


__all__ = ["UNKNOWN_REGION", "apply_query", "compute_store_stats", "parse_sort"]
