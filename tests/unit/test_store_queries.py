# tests/unit/test_store_queries.py
from __future__ import annotations

import pytest

from src.core.store import MemoryStore
from src.core.store.queries import UNKNOWN_REGION, parse_sort
from src.schemas.labels import PropertyStatus, PropertyType
from src.schemas.models import PropertyQuery
from tests.utils import make_property


@pytest.fixture
def populated_store() -> MemoryStore:
    return MemoryStore(
        [
            make_property("A", title="Sea view apartment", price=200000.0, region="Limassol"),
            make_property("B", title="Villa Aphrodite", type=PropertyType.villa, price=1000000.0, region="Paphos"),
            make_property("C", title="Old house", type=PropertyType.house, price=0.0, area_total=120.0, region=None),
            make_property(
                "D", title="City flat", price=150000.0, region="limassol", status=PropertyStatus.sold
            ),
        ]
    )


def test_stats_counts_and_price_band(populated_store: MemoryStore) -> None:
    stats = populated_store.get_stats()

    assert stats.total == 4
    assert stats.by_status == {"available": 3, "sold": 1}
    assert stats.by_type == {"apartment": 2, "villa": 1, "house": 1}
    # Unpriced listings stay out of the price band
    assert stats.price.min == 150000.0
    assert stats.price.max == 1000000.0
    assert stats.price.avg == pytest.approx(450000.0)


def test_stats_by_region_uses_unknown_bucket(populated_store: MemoryStore) -> None:
    regions = {r.region: r for r in populated_store.get_stats().by_region}
    assert UNKNOWN_REGION in regions
    assert regions[UNKNOWN_REGION].count == 1
    assert regions["Paphos"].avg_price == 1000000.0


def test_stats_on_empty_store() -> None:
    stats = MemoryStore().get_stats()
    assert stats.total == 0
    assert stats.price.avg == 0.0
    assert stats.by_region == []


def test_query_filters(populated_store: MemoryStore) -> None:
    page, total = populated_store.query(PropertyQuery(type=PropertyType.apartment))
    assert total == 2

    page, total = populated_store.query(PropertyQuery(region="LIMASSOL"))
    assert {r.id for r in page} == {"A", "D"}

    page, total = populated_store.query(PropertyQuery(status=PropertyStatus.sold))
    assert [r.id for r in page] == ["D"]

    page, total = populated_store.query(PropertyQuery(min_price=160000, max_price=900000))
    assert [r.id for r in page] == ["A"]


def test_query_text_searches_title_region_and_type(populated_store: MemoryStore) -> None:
    assert {r.id for r in populated_store.query(PropertyQuery(text="villa"))[0]} == {"B"}
    assert {r.id for r in populated_store.query(PropertyQuery(text="paph"))[0]} == {"B"}
    assert {r.id for r in populated_store.query(PropertyQuery(text="HOUSE"))[0]} == {"C"}


def test_query_sort_and_pagination(populated_store: MemoryStore) -> None:
    page, total = populated_store.query(PropertyQuery(sort="price_desc", limit=2))
    assert total == 4
    assert [r.id for r in page] == ["B", "A"]

    page, _ = populated_store.query(PropertyQuery(sort="price_desc", limit=2, offset=2))
    assert [r.id for r in page] == ["D", "C"]


def test_records_missing_the_sort_field_come_last(populated_store: MemoryStore) -> None:
    page, _ = populated_store.query(PropertyQuery(sort="region_asc"))
    assert page[-1].id == "C"


def test_parse_sort() -> None:
    assert parse_sort("area_total_asc") == ("area_total", False)
    assert parse_sort(None) is None
    with pytest.raises(ValueError):
        parse_sort("price_sideways")
    with pytest.raises(ValueError):
        parse_sort("nope_asc")
