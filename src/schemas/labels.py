# src/schemas/labels.py
from __future__ import annotations

from collections.abc import Iterable, Mapping
from enum import Enum

# =========================
# Canonical label enums
# =========================


class PropertyType(str, Enum):
    apartment = "apartment"
    villa = "villa"
    house = "house"
    studio = "studio"
    penthouse = "penthouse"
    plot = "plot"
    land = "land"
    commercial = "commercial"
    townhouse = "townhouse"


class PropertyStatus(str, Enum):
    available = "available"
    reserved = "reserved"
    sold = "sold"
    off_market = "off_market"


# =========================
# Phrase maps (feed vocabulary → canonical)
# =========================

# Order matters: matching is by substring, so compound words must come before
# the shorter words they contain ("penthouse"/"townhouse" before "house",
# "studio apartment" → studio, "land plot" → plot).
PROPERTY_TYPE_SYNONYMS: Mapping[PropertyType, tuple[str, ...]] = {
    PropertyType.penthouse: ("penthouse", "пентхаус", "ρετιρέ", "ρετιρε"),
    PropertyType.townhouse: ("townhouse", "town house", "таунхаус", "таун-хаус"),
    PropertyType.studio: ("studio", "студия", "στούντιο", "στουντιο"),
    PropertyType.villa: ("villa", "вилла", "βίλα", "βιλα"),
    PropertyType.apartment: ("apartment", "flat", "апартамент", "квартир", "διαμέρισμα", "διαμερισμα"),
    PropertyType.house: ("house", "bungalow", "maisonette", "detached", "дом", "коттедж", "κατοικία", "σπίτι", "μονοκατοικία"),
    PropertyType.plot: ("plot", "участок", "οικόπεδο", "οικοπεδο"),
    PropertyType.land: ("land", "земля", "земельн", "χωράφι"),
    PropertyType.commercial: (
        "commercial",
        "office",
        "shop",
        "retail",
        "warehouse",
        "hotel",
        "коммерческ",
        "офис",
        "магазин",
        "εμπορικ",
        "γραφείο",
        "κατάστημα",
    ),
}

DEFAULT_PROPERTY_TYPE = PropertyType.apartment
DEFAULT_PROPERTY_STATUS = PropertyStatus.available


def detect_property_type(
    text: str | None,
    synonyms: Mapping[PropertyType, Iterable[str]] = PROPERTY_TYPE_SYNONYMS,
) -> PropertyType:
    """
    Case-insensitive substring match of a feed type label against the synonym
    table. Unknown or empty labels map to the default (apartment).
    """
    if not text:
        return DEFAULT_PROPERTY_TYPE
    low = text.casefold()
    for label, words in synonyms.items():
        if any(w.casefold() in low for w in words):
            return label
    return DEFAULT_PROPERTY_TYPE


def resolve_status(*, sold: bool, reserved: bool, active: bool) -> PropertyStatus:
    """
    Priority cascade: sold → reserved → not active → available.
    Flags are strict booleans, so a listing without an active flag is off the market.
    """
    if sold:
        return PropertyStatus.sold
    if reserved:
        return PropertyStatus.reserved
    if not active:
        return PropertyStatus.off_market
    return PropertyStatus.available


__all__ = [
    "PropertyType",
    "PropertyStatus",
    "PROPERTY_TYPE_SYNONYMS",
    "DEFAULT_PROPERTY_TYPE",
    "DEFAULT_PROPERTY_STATUS",
    "detect_property_type",
    "resolve_status",
]
