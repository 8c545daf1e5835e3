# tests/utils.py
"""
Single source of truth for test data, factories, and canonical payloads.
Update values here to cascade across the test suite.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

from src.core.fetch.cache import _sha256
from src.schemas.labels import PropertyStatus, PropertyType
from src.schemas.models import CanonicalProperty, FeedPolicy, FeedSnapshot

# -----------------------------
# Global defaults (edit once)
# -----------------------------

DEFAULT_FEED_URL = "https://feeds.example.com/export.xml"
DEFAULT_NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

# Export/RealtyObject shape with a mix of element ids, attribute ids,
# multi-language text, reference nodes and nested image objects.
SAMPLE_FEED_XML = """<?xml version="1.0" encoding="UTF-8"?>
<Export date="2024-05-01">
  <RealtyObject>
    <Id>A-100</Id>
    <Title><en>Sea view apartment</en><ru>Квартира с видом на море</ru></Title>
    <ObjectType><Id>3</Id><Name><en>Apartment</en></Name></ObjectType>
    <Price currency="EUR">185,000</Price>
    <AreaTotal>85.5</AreaTotal>
    <NumBedrooms>2</NumBedrooms>
    <NumBathrooms>1</NumBathrooms>
    <Region><Id>1</Id><Name><en>Limassol</en></Name></Region>
    <Coords>34.6786, 33.0413</Coords>
    <Description><en>&lt;p&gt;Bright &lt;b&gt;flat&lt;/b&gt;&lt;/p&gt;</en></Description>
    <Features>
      <Feature><en>Pool</en></Feature>
      <Feature><en>Parking</en></Feature>
      <Feature><en>Pool</en></Feature>
    </Features>
    <Images>
      <MainImage>https://cdn.example.com/a100/main.jpg</MainImage>
      <AdditionalImages>
        <AdditionalImage>https://cdn.example.com/a100/1.jpg</AdditionalImage>
        <AdditionalImage>/media/a100/2.jpg</AdditionalImage>
        <AdditionalImage>https://cdn.example.com/a100/main.jpg</AdditionalImage>
      </AdditionalImages>
    </Images>
    <IsSold>false</IsSold>
    <IsReserved>true</IsReserved>
  </RealtyObject>
  <RealtyObject Id="B-200">
    <Title>Villa Aphrodite</Title>
    <ObjectType>Villa</ObjectType>
    <Price>1250000</Price>
    <Area>320</Area>
    <Rooms>6</Rooms>
    <NumBedrooms>4</NumBedrooms>
    <Region>Paphos</Region>
    <Active>false</Active>
  </RealtyObject>
  <RealtyObject>
    <Id>C-300</Id>
    <Title>Placeholder without data</Title>
    <Price>0</Price>
  </RealtyObject>
</Export>
"""

# Lowercase Feed/Properties/Property shape
PROPERTIES_FEED_XML = """<feed>
  <properties>
    <property>
      <ref>P1</ref>
      <name>Townhouse in Larnaca</name>
      <type>Townhouse</type>
      <price>250000</price>
      <size>140 sqm</size>
      <bedrooms>3</bedrooms>
      <city>Larnaca</city>
      <images>
        <image>https://img.example.com/p1/1.jpg</image>
        <image>https://img.example.com/p1/2.jpg</image>
      </images>
    </property>
    <property>
      <ref>P2</ref>
      <name>Building plot</name>
      <type>Land plot</type>
      <price>90000</price>
      <sold>yes</sold>
    </property>
  </properties>
</feed>
"""

# No known container: only the generic child scan finds the listings
UNKNOWN_SHAPE_FEED_XML = """<catalog version="2">
  <meta><generated>2024-05-01</generated></meta>
  <item><Id>U1</Id><Title>First</Title><Price>1000</Price></item>
  <item><Id>U2</Id><Title>Second</Title><Price>2000</Price></item>
</catalog>
"""

EMPTY_FEED_XML = "<Export></Export>"


# -----------------------------
# Feed builders
# -----------------------------


def realty_object(
    obj_id: str | None = "X-1",
    *,
    title: str | None = "Test listing",
    price: Any = 100000,
    area: Any = 50,
    extra: str = "",
) -> str:
    """One <RealtyObject> element; pass None to omit a field."""
    parts = ["<RealtyObject>"]
    if obj_id is not None:
        parts.append(f"<Id>{obj_id}</Id>")
    if title is not None:
        parts.append(f"<Title>{title}</Title>")
    if price is not None:
        parts.append(f"<Price>{price}</Price>")
    if area is not None:
        parts.append(f"<AreaTotal>{area}</AreaTotal>")
    parts.append(extra)
    parts.append("</RealtyObject>")
    return "".join(parts)


def make_feed_xml(*objects: str) -> str:
    return "<Export>" + "".join(objects) + "</Export>"


def make_feed_snapshot(content: bytes | str, url: str = DEFAULT_FEED_URL) -> FeedSnapshot:
    data = content.encode("utf-8") if isinstance(content, str) else content
    return FeedSnapshot(
        url=url,
        fetched_at=DEFAULT_NOW,
        status_code=200,
        content=data,
        bytes_size=len(data),
        sha256=_sha256(data),
    )


def static_fetcher(content: bytes | str) -> Callable[..., FeedSnapshot]:
    """Fetcher stand-in that always returns the same payload and records calls."""

    def _fetch(url: str | None = None, *, policy: FeedPolicy | None = None) -> FeedSnapshot:
        _fetch.calls.append(url)  # type: ignore[attr-defined]
        return make_feed_snapshot(content, url or DEFAULT_FEED_URL)

    _fetch.calls = []  # type: ignore[attr-defined]
    return _fetch


def failing_fetcher(exc: Exception) -> Callable[..., FeedSnapshot]:
    def _fetch(url: str | None = None, *, policy: FeedPolicy | None = None) -> FeedSnapshot:
        raise exc

    return _fetch


# -----------------------------
# Model factories
# -----------------------------


def make_property(
    record_id: str = "A-100",
    *,
    external_id: str | None = "__same__",
    title: str = "Sea view apartment",
    type: PropertyType = PropertyType.apartment,
    status: PropertyStatus = PropertyStatus.available,
    price: float = 185000.0,
    area_total: float = 85.5,
    region: str | None = "Limassol",
    created_at: datetime = DEFAULT_NOW,
    updated_at: datetime = DEFAULT_NOW,
    **overrides: Any,
) -> CanonicalProperty:
    """
    Canonical record with sane defaults. external_id defaults to the record id
    (the common case of a feed-supplied identifier).
    """
    data: dict[str, Any] = {
        "id": record_id,
        "external_id": record_id if external_id == "__same__" else external_id,
        "title": title,
        "type": type,
        "status": status,
        "price": price,
        "area_total": area_total,
        "region": region,
        "created_at": created_at,
        "updated_at": updated_at,
    }
    data.update(overrides)
    return CanonicalProperty(**data)


def make_listing_node(**fields: Any) -> dict[str, list[Any]]:
    """RawNode literal: every value wrapped in a list, the way the parser emits it."""
    return {k: v if isinstance(v, list) else [v] for k, v in fields.items()}
