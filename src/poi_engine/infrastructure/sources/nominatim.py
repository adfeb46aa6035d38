"""
OpenStreetMap Nominatim Integration

Keyword-scoped place search around a center point.

API Documentation: https://nominatim.org/release-docs/latest/api/Search/

Rate Limits:
- Public instance: 1 req/sec, a descriptive User-Agent is mandatory

Concurrent keyword searches queue on the client's token bucket at the
policy rate. The engine container hands every client of the public
instance the same limiter.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from poi_engine.application.discovery.categorizer import categorize_place
from poi_engine.domain.entities import Coordinate, POICandidate
from poi_engine.infrastructure.sources.base_client import BaseAPIClient
from poi_engine.shared.async_utils import RateLimiter
from poi_engine.shared.exceptions import ProviderError
from poi_engine.shared.geo import bounding_box

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

NOMINATIM_API_BASE = "https://nominatim.openstreetmap.org"

DEFAULT_USER_AGENT = "poi-discovery-engine/0.1"

# Usage policy of the public instance, requests per second
NOMINATIM_MAX_RATE = 1.0

# Address parts tried in order for each slot of "road, city, state"
_ROAD_KEYS = ("road", "pedestrian", "footway", "street")
_CITY_KEYS = ("city", "town", "village", "suburb", "city_district")
_STATE_KEYS = ("state", "province", "region", "county")


def format_address(address: dict[str, Any] | None) -> str | None:
    """Build "road, city, state" from a Nominatim ``address`` object."""
    if not address:
        return None
    parts: list[str] = []
    for keys in (_ROAD_KEYS, _CITY_KEYS, _STATE_KEYS):
        value = next((address[key] for key in keys if address.get(key)), None)
        if value and value not in parts:
            parts.append(value)
    return ", ".join(parts) or None


class NominatimClient(BaseAPIClient):
    """
    Nominatim geo-search client.

    Usage:
        async with NominatimClient(user_agent="my-app/1.0") as client:
            places = await client.search("temple", Coordinate(22.284, 114.150), 2000, 25)
    """

    _service_name = "Nominatim"

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        base_url: str = NOMINATIM_API_BASE,
        timeout: float = 10.0,
        language: str | None = None,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Nominatim client.

        Args:
            user_agent: Identifying User-Agent required by the usage policy
            base_url: Nominatim instance (public one by default)
            timeout: Request timeout in seconds
            language: Preferred ``Accept-Language`` for place names
            rate_limiter: Limiter shared by clients of the same instance
                          (a private one at the policy rate if None)
            transport: Optional httpx transport
        """
        headers = {"User-Agent": user_agent, "Accept": "application/json"}
        if language:
            headers["Accept-Language"] = language
        super().__init__(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            rate_limiter=rate_limiter or RateLimiter(rate=NOMINATIM_MAX_RATE),
            transport=transport,
        )

    async def search(
        self,
        keyword: str,
        center: Coordinate,
        radius_meters: float,
        limit: int,
    ) -> list[POICandidate]:
        """
        Search places matching ``keyword`` inside the radius box.

        Returns:
            Candidates inside ``radius_meters``, nearest first

        Raises:
            ProviderError: on HTTP, network or payload failure
        """
        min_lon, min_lat, max_lon, max_lat = bounding_box(center.latitude, center.longitude, radius_meters)
        params = {
            "q": keyword,
            "format": "jsonv2",
            "addressdetails": 1,
            "limit": limit,
            "viewbox": f"{min_lon:.6f},{max_lat:.6f},{max_lon:.6f},{min_lat:.6f}",
            "bounded": 1,
        }
        data = await self._make_request("/search", params=params)
        if data is None:
            return []
        if not isinstance(data, list):
            raise ProviderError(f"unexpected search payload for '{keyword}'", provider=self._service_name)

        candidates = []
        for item in data:
            candidate = self._parse_place(item, center, keyword)
            if candidate is not None and candidate.distance_meters <= radius_meters:
                candidates.append(candidate)
        candidates.sort(key=lambda c: c.distance_meters)
        logger.debug(f"Nominatim: {len(candidates)} places for '{keyword}' near {center}")
        return candidates[:limit]

    def _parse_place(self, item: dict[str, Any], center: Coordinate, keyword: str) -> POICandidate | None:
        """Decode one search hit; skip hits without a usable name or position."""
        try:
            coordinate = Coordinate(float(item["lat"]), float(item["lon"]))
        except (KeyError, TypeError, ValueError):
            logger.debug(f"Nominatim: skipping hit without coordinates: {item.get('display_name')}")
            return None

        name = item.get("name") or (item.get("display_name") or "").split(",")[0].strip()
        if not name:
            return None

        osm_class = item.get("category") or item.get("class")
        osm_type = item.get("type")
        provider_type = f"{osm_class}={osm_type}" if osm_class and osm_type else osm_type

        return POICandidate(
            name=name,
            coordinate=coordinate,
            address=format_address(item.get("address")),
            category=categorize_place(name, keyword, provider_type),
            distance_meters=center.distance_to(coordinate),
            keyword=keyword,
            provider_type=provider_type,
        )
