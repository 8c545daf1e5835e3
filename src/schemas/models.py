# src/schemas/models.py

from __future__ import annotations

import math
from datetime import datetime, timezone
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.schemas.labels import DEFAULT_PROPERTY_STATUS, DEFAULT_PROPERTY_TYPE, PropertyStatus, PropertyType

DEFAULT_FEED_URL = "https://antariahomes.com/export.xml"
DEFAULT_MAX_FEED_BYTES = 50 * 1024 * 1024  # 50 MiB


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


# =========================
# Fetch inputs / outputs
# =========================


class FeedPolicy(BaseModel):
    """
    Fetch policy for the feed source.

    The feed fetch is the only blocking step of an import run, so it always
    carries an explicit timeout and a hard cap on the response size.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="ignore")

    url: str = Field(DEFAULT_FEED_URL, description="Feed endpoint fetched on every run.")
    timeout_s: float = Field(
        30.0,
        gt=0,
        description="HTTP timeout in seconds (connect and read).",
    )
    max_bytes: int = Field(
        DEFAULT_MAX_FEED_BYTES,
        gt=0,
        description="Maximum accepted response size; larger payloads abort the run.",
    )
    user_agent: str = Field(
        "listing-feed-sync/0.3 (+feed-import)",
        description="User-Agent string used in HTTP requests.",
    )
    allow_non_200: bool = Field(
        False,
        description="If False, raise on any HTTP status >= 400.",
    )
    base_url: str | None = Field(
        None,
        description="Base for resolving relative image URLs. Defaults to the feed URL itself.",
    )
    archive_dir: Path | None = Field(
        None,
        description="If set, the raw payload of every successful fetch is archived here.",
    )


class FeedSnapshot(BaseModel):
    """One fetched feed payload."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True, extra="ignore")

    url: str
    fetched_at: datetime
    status_code: int
    content: bytes = Field(repr=False)
    bytes_size: int
    sha256: str
    archive_path: Path | None = None


# =========================
# Canonical listing
# =========================


class CanonicalProperty(BaseModel):
    """Normalized property record, independent of the originating feed shape."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(..., min_length=1, description="Stable record id; equals the feed id when the feed supplies one.")
    external_id: str | None = Field(None, description="Feed-assigned identifier used to correlate re-imports.")
    title: str = Field(..., min_length=1)
    type: PropertyType = DEFAULT_PROPERTY_TYPE
    status: PropertyStatus = DEFAULT_PROPERTY_STATUS

    price: float = Field(0.0, ge=0, description="List price; currency is fixed per deployment.")
    currency: str = "EUR"
    area_total: float = Field(0.0, ge=0, description="Total area in square metres.")
    rooms: int = Field(0, ge=0)
    bedrooms: int = Field(0, ge=0)
    bathrooms: int = Field(0, ge=0)

    region: str | None = None
    district: str | None = None
    city: str | None = None
    address: str | None = None
    latitude: float | None = Field(None, ge=-90, le=90)
    longitude: float | None = Field(None, ge=-180, le=180)

    description: str | None = None
    year_built: int | None = Field(None, ge=1700, le=2200)
    floor: int | None = None
    furnished: bool | None = None

    features: list[str] = Field(default_factory=list, description="Free-text features; order is not significant.")
    images: list[str] = Field(default_factory=list, description="Absolute URLs; the main image comes first.")

    source: str = "xml_feed"
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @field_validator("features", "images")
    @classmethod
    def _dedupe_preserving_order(cls, v: list[str]) -> list[str]:
        seen: set[str] = set()
        out: list[str] = []
        for item in v:
            s = item.strip()
            if s and s not in seen:
                seen.add(s)
                out.append(s)
        return out

    @field_validator("price", "area_total")
    @classmethod
    def _finite(cls, v: float) -> float:
        if not math.isfinite(v):
            raise ValueError("must be a finite number")
        return v

    @model_validator(mode="after")
    def _coordinates_pair(self) -> CanonicalProperty:
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be given together")
        return self

    # Fields owned by the store rather than by the feed
    @classmethod
    def mutable_fields(cls) -> tuple[str, ...]:
        return tuple(k for k in cls.model_fields if k not in {"id", "created_at"})


# =========================
# Run + store reporting
# =========================

RunStatus = Literal["completed", "failed", "cancelled"]


class ImportRunStats(BaseModel):
    """Outcome of one import run. Returned and logged, never persisted."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    total: int = Field(0, ge=0, description="Listings seen in the feed.")
    imported: int = Field(0, ge=0, description="Records inserted on first sighting.")
    updated: int = Field(0, ge=0, description="Records matched and updated in place.")
    errors: int = Field(0, ge=0, description="Listings rejected or failing validation.")
    start_time: datetime
    end_time: datetime
    duration: float = Field(0.0, ge=0, description="Wall-clock seconds.")
    status: RunStatus = "completed"
    error: str | None = Field(None, description="Human-readable reason when the run failed.")

    @property
    def ok(self) -> bool:
        return self.status == "completed"

    def summary(self) -> str:
        line = (
            f"{self.status}: total={self.total}, imported={self.imported}, "
            f"updated={self.updated}, errors={self.errors}, duration={self.duration:.2f}s"
        )
        return f"{line} ({self.error})" if self.error else line


class RegionStats(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    region: str
    count: int
    total_price: float
    avg_price: float


class PriceStats(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    min: float = 0.0
    max: float = 0.0
    avg: float = 0.0


class StoreStats(BaseModel):
    """Aggregate counts over the persisted collection."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    total: int = 0
    by_status: dict[str, int] = Field(default_factory=dict)
    by_type: dict[str, int] = Field(default_factory=dict)
    by_region: list[RegionStats] = Field(default_factory=list)
    price: PriceStats = Field(default_factory=PriceStats)


class PropertyQuery(BaseModel):
    """Listing filters, sort and pagination over the persisted collection."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    type: PropertyType | None = None
    status: PropertyStatus | None = None
    region: str | None = None
    min_price: float | None = Field(None, ge=0)
    max_price: float | None = Field(None, ge=0)
    text: str | None = Field(None, description="Case-insensitive search over title, region and type.")
    sort: str | None = Field(None, description="'<field>_<asc|desc>', e.g. 'price_asc'.")
    limit: int = Field(100, ge=1, le=10_000)
    offset: int = Field(0, ge=0)
