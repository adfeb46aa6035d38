"""
Domain Entities: POI discovery

Coordinates, POI candidates and the ranked, deduplicated result set
returned by a discovery call. Pure value objects: no provider-specific
parsing lives here.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from poi_engine.shared.geo import haversine_meters


@dataclass(frozen=True, slots=True)
class Coordinate:
    """WGS84 latitude/longitude pair."""

    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        return -90.0 <= self.latitude <= 90.0 and -180.0 <= self.longitude <= 180.0

    def distance_to(self, other: Coordinate) -> float:
        """Great-circle distance in meters."""
        return haversine_meters(self.latitude, self.longitude, other.latitude, other.longitude)

    def rounded(self, places: int = 3) -> tuple[float, float]:
        return (round(self.latitude, places), round(self.longitude, places))


class POICategory(str, Enum):
    """Coarse POI category used for ranking and type scoring."""

    HISTORICAL_SITE = "historical_site"
    MUSEUM = "museum"
    PARK = "park"
    NATIONAL_PARK = "national_park"
    TEMPLE = "temple"
    BEACH = "beach"
    MOUNTAIN = "mountain"
    VIEWPOINT = "viewpoint"
    SHOPPING_CENTER = "shopping_center"
    CULTURAL_CENTER = "cultural_center"
    AMUSEMENT_PARK = "amusement_park"
    RESTAURANT = "restaurant"
    OTHER = "other"


@dataclass(frozen=True)
class POICandidate:
    """
    A place returned by a geo-search provider.

    ``distance_meters`` is measured from the search center. ``keyword`` is
    the discovery keyword that produced the candidate and ``provider_type``
    the provider's own type tag, when it has one.
    """

    name: str
    coordinate: Coordinate
    address: str | None = None
    category: POICategory = POICategory.OTHER
    distance_meters: float = 0.0
    keyword: str | None = None
    provider_type: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary."""
        return dataclasses.asdict(self)


@dataclass(frozen=True, slots=True)
class KeywordSearchRequest:
    """One keyword-scoped search issued during discovery fan-out."""

    keyword: str
    center: Coordinate
    radius_meters: float
    per_keyword_limit: int


@dataclass
class AggregationStats:
    """Statistics from a discovery aggregation."""

    total_input: int = 0
    unique: int = 0
    duplicates_removed: int = 0
    truncated: int = 0
    failed_keywords: list[str] = field(default_factory=list)
    by_keyword: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "total_input": self.total_input,
            "unique": self.unique,
            "duplicates_removed": self.duplicates_removed,
            "truncated": self.truncated,
            "failed_keywords": list(self.failed_keywords),
            "by_keyword": dict(self.by_keyword),
        }


@dataclass(frozen=True)
class RankedPOISet:
    """
    Distance-sorted, deduplicated discovery result.

    Invariants:
    - items are non-decreasing in ``distance_meters``
    - no two items share a dedup key
    - ``len(items) <= max_size``

    ``error`` is an ExceptionGroup of the per-keyword failures when every
    keyword search failed, and None otherwise.
    """

    items: tuple[POICandidate, ...] = ()
    max_size: int = 50
    error: BaseExceptionGroup | None = field(default=None, compare=False)
    stats: AggregationStats = field(default_factory=AggregationStats, compare=False)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self):
        return iter(self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def within(self, distance_meters: float) -> list[POICandidate]:
        """Items no farther than ``distance_meters`` from the search center."""
        return [item for item in self.items if item.distance_meters <= distance_meters]

    def by_category(self, category: POICategory | str) -> list[POICandidate]:
        """Items of one category, in distance order."""
        wanted = POICategory(category)
        return [item for item in self.items if item.category is wanted]
