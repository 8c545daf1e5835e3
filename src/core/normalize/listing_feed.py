"""
Deterministic listing normalizer (feed RawNode → CanonicalProperty).

One raw listing node becomes one CanonicalProperty, or is rejected:
  - identifier from the first present id-like field; synthesized when absent
  - title from multi-language text, "Property {id}" fallback
  - type via the synonym table, status via the flag cascade
  - numbers via the dirty-string coercer, images via the URL collector
  - listings with neither a usable price nor a usable area are rejected
"""

from __future__ import annotations

import logging
import secrets
import time
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from bs4 import BeautifulSoup
from pydantic import ValidationError

from src.core.errors import ListingRejected, TransformError
from src.schemas.labels import detect_property_type, resolve_status
from src.schemas.models import CanonicalProperty, utc_now

from .feed_tree import TEXT_KEY, RawNode
from .fields import (
    collect_urls,
    first,
    resolve,
    scalar_text,
    split_list,
    to_bool,
    to_flag,
    to_int,
    to_number,
    to_text,
    to_text_list,
)

# ---------- Candidate key tables (priority order) ----------

ID_KEYS = ("Id", "ObjectId", "Reference", "Ref", "ObjectCode", "Code")
TITLE_KEYS = ("Title", "Name", "Header", "Alias")
DESCRIPTION_KEYS = ("Description", "Desc", "Text", "Body")
TYPE_KEYS = ("ObjectType", "PropertyType", "Type", "Category", "Kind")
LABEL_KEYS = ("Name", "Title", "Value")

SOLD_KEYS = ("IsSold", "Sold")
RESERVED_KEYS = ("IsReserved", "Reserved")
ACTIVE_KEYS = ("Active", "IsActive", "Published")

PRICE_KEYS = ("Price", "PriceValue", "Cost", "SalePrice")
AREA_KEYS = ("AreaTotal", "TotalArea", "Area", "CoveredArea", "Size", "Sqm")
ROOMS_KEYS = ("Rooms", "NumRooms", "RoomCount")
BEDROOMS_KEYS = ("NumBedrooms", "Bedrooms", "Beds")
BATHROOMS_KEYS = ("NumBathrooms", "Bathrooms", "Baths")

REGION_KEYS = ("Region", "Province", "State")
DISTRICT_KEYS = ("District", "Locations", "Location", "Community")
CITY_KEYS = ("City", "Town", "Municipality")
ADDRESS_KEYS = ("Address", "Street")
COORDS_KEYS = ("Coords", "Coordinates", "GeoPoint", "Geo")
LATITUDE_KEYS = ("Latitude", "Lat")
LONGITUDE_KEYS = ("Longitude", "Lng", "Lon")

FEATURE_KEYS = ("Features", "Amenities", "Facilities")
IMAGE_KEYS = ("Images", "Photos", "Pictures", "Gallery")
YEAR_KEYS = ("YearBuilt", "BuildYear", "Year")
FLOOR_KEYS = ("Floor", "FloorNumber")
FURNISHED_KEYS = ("Furnished", "IsFurnished")

logger = logging.getLogger(__name__)

# ---------- Helpers ----------


def synthesize_id(prefix: str = "gen") -> str:
    """Time-based id with a random suffix. Not stable across runs."""
    return f"{prefix}-{int(time.time() * 1000)}-{secrets.token_hex(4)}"


def _label_text(value: Any) -> str | None:
    """Text of a label-like value: a plain string, a language node, or a {Id, Name} reference node."""
    v = first(value)
    if isinstance(v, dict):
        own = scalar_text(v.get(TEXT_KEY))
        if own:
            return own
        named = resolve(v, LABEL_KEYS)
        if named is not None:
            return to_text(named)
    return to_text(v)


def _strip_markup(text: str | None) -> str | None:
    if not text or "<" not in text:
        return text
    plain = BeautifulSoup(text, "html.parser").get_text(" ", strip=True)
    return plain or None


def _non_negative(x: float | None) -> float | None:
    return x if x is not None and x >= 0 else None


def _coordinates(node: RawNode) -> tuple[float | None, float | None]:
    lat = lng = None
    coords = scalar_text(resolve(node, COORDS_KEYS))
    if coords:
        parts = [p for p in coords.replace(";", ",").split(",") if p.strip()]
        if len(parts) == 2:
            lat, lng = to_number(parts[0]), to_number(parts[1])
    if lat is None or lng is None:
        lat, lng = to_number(resolve(node, LATITUDE_KEYS)), to_number(resolve(node, LONGITUDE_KEYS))

    if lat is None or lng is None or not (-90 <= lat <= 90) or not (-180 <= lng <= 180):
        return None, None
    if lat == 0 and lng == 0:
        return None, None
    return lat, lng


def _features(node: RawNode) -> list[str]:
    raw = resolve(node, FEATURE_KEYS)
    if raw is None:
        return []
    out: list[str] = []
    for item in to_text_list(raw):
        out.extend(split_list(item) if any(d in item for d in ",;|") else [item])
    return out


# ---------- Public API ----------


def resolve_identifier(node: RawNode, candidates: Sequence[str] = ID_KEYS) -> str | None:
    """First present, non-empty feed identifier, or None."""
    for key in candidates:
        s = scalar_text(resolve(node, [key]))
        if s:
            return s
    return None


def transform_listing(
    node: RawNode,
    *,
    source: str = "xml_feed",
    currency: str = "EUR",
    base_url: str | None = None,
    now: datetime | None = None,
) -> CanonicalProperty:
    """
    Map one raw listing node to a CanonicalProperty.

    Raises:
      ListingRejected  price <= 0 and area_total <= 0 (absent counts as 0)
      TransformError   the mapped values fail model validation
    """
    if not isinstance(node, dict):
        raise TransformError(f"listing node is not an element: {type(node).__name__}")

    external_id = resolve_identifier(node)
    record_id = external_id or synthesize_id()

    price = _non_negative(to_number(resolve(node, PRICE_KEYS))) or 0.0
    area_total = _non_negative(to_number(resolve(node, AREA_KEYS))) or 0.0
    if price <= 0 and area_total <= 0:
        raise ListingRejected(f"listing {record_id}: no usable price or area", listing_id=record_id)

    bedrooms = to_int(resolve(node, BEDROOMS_KEYS))
    rooms = to_int(resolve(node, ROOMS_KEYS))
    latitude, longitude = _coordinates(node)
    stamp = now or utc_now()

    data: dict[str, Any] = {
        "id": record_id,
        "external_id": external_id,
        "title": to_text(resolve(node, TITLE_KEYS)) or f"Property {record_id}",
        "type": detect_property_type(_label_text(resolve(node, TYPE_KEYS))),
        "status": resolve_status(
            sold=to_bool(resolve(node, SOLD_KEYS)),
            reserved=to_bool(resolve(node, RESERVED_KEYS)),
            active=to_bool(resolve(node, ACTIVE_KEYS)),
        ),
        "price": price,
        "currency": currency,
        "area_total": area_total,
        "rooms": max(rooms if rooms is not None else (bedrooms or 0), 0),
        "bedrooms": max(bedrooms or 0, 0),
        "bathrooms": max(to_int(resolve(node, BATHROOMS_KEYS)) or 0, 0),
        "region": _label_text(resolve(node, REGION_KEYS)),
        "district": _label_text(resolve(node, DISTRICT_KEYS)),
        "city": _label_text(resolve(node, CITY_KEYS)),
        "address": to_text(resolve(node, ADDRESS_KEYS)),
        "latitude": latitude,
        "longitude": longitude,
        "description": _strip_markup(to_text(resolve(node, DESCRIPTION_KEYS))),
        "year_built": to_int(resolve(node, YEAR_KEYS)),
        "floor": to_int(resolve(node, FLOOR_KEYS)),
        "furnished": to_flag(resolve(node, FURNISHED_KEYS)),
        "features": _features(node),
        "images": collect_urls(resolve(node, IMAGE_KEYS), base_url=base_url),
        "source": source,
        "created_at": stamp,
        "updated_at": stamp,
    }

    year = data["year_built"]
    if year is not None and not (1700 <= year <= 2200):
        data["year_built"] = None

    try:
        return CanonicalProperty.model_validate(data)
    except ValidationError as e:
        raise TransformError(f"listing {record_id}: {e.error_count()} invalid field(s): {e}", listing_id=record_id) from e


def transform_listings(
    nodes: Sequence[RawNode],
    *,
    source: str = "xml_feed",
    currency: str = "EUR",
    base_url: str | None = None,
    now: datetime | None = None,
) -> tuple[list[CanonicalProperty], list[TransformError]]:
    """Transform a batch; per-listing failures are collected, never raised."""
    records: list[CanonicalProperty] = []
    failures: list[TransformError] = []
    for index, node in enumerate(nodes):
        try:
            records.append(transform_listing(node, source=source, currency=currency, base_url=base_url, now=now))
        except TransformError as e:
            logger.warning("Skipping listing #%d: %s", index, e)
            failures.append(e)
    return records, failures


__all__ = ["ID_KEYS", "resolve_identifier", "synthesize_id", "transform_listing", "transform_listings"]
