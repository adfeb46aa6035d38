"""Tests for NominatimClient - request building and hit decoding."""

import asyncio
from unittest.mock import AsyncMock

import httpx
import pytest

from poi_engine.application.discovery import DeduplicatingAggregator
from poi_engine.domain.entities import Coordinate, POICategory
from poi_engine.infrastructure.sources.nominatim import NominatimClient, format_address
from poi_engine.shared.async_utils import RateLimiter
from poi_engine.shared.exceptions import ProviderError

CENTER = Coordinate(22.2840, 114.1500)

MAN_MO = {
    "lat": "22.2841",
    "lon": "114.1501",
    "name": "Man Mo Temple",
    "display_name": "Man Mo Temple, Hollywood Road, Sheung Wan, Hong Kong Island",
    "category": "amenity",
    "type": "place_of_worship",
    "address": {"road": "Hollywood Road", "suburb": "Sheung Wan", "state": "Hong Kong Island"},
}
PMQ = {
    "lat": "22.2836",
    "lon": "114.1519",
    "display_name": "PMQ, Aberdeen Street, Central",
    "class": "tourism",
    "type": "attraction",
}
FAR_AWAY = {"lat": "22.5000", "lon": "114.1500", "name": "Sheung Shui Temple", "type": "place_of_worship"}


@pytest.fixture
def client():
    return NominatimClient(user_agent="test-suite/1.0")


# ============================================================
# Init
# ============================================================


class TestInit:
    def test_headers(self):
        c = NominatimClient(user_agent="test-suite/1.0", language="zh-HK")
        assert c._client.headers["User-Agent"] == "test-suite/1.0"
        assert c._client.headers["Accept-Language"] == "zh-HK"

    def test_private_rate_limiter_by_default(self):
        client = NominatimClient()
        assert client.rate_limiter is not NominatimClient().rate_limiter
        assert client.request_interval == 1.0

    def test_injected_rate_limiter(self):
        limiter = RateLimiter(rate=2.0)
        assert NominatimClient(rate_limiter=limiter).rate_limiter is limiter


# ============================================================
# search
# ============================================================


class TestSearch:
    async def test_request_params(self, client):
        client._make_request = AsyncMock(return_value=[])
        await client.search("temple", CENTER, 2000, 25)

        path = client._make_request.call_args.args[0]
        params = client._make_request.call_args.kwargs["params"]
        assert path == "/search"
        assert params["q"] == "temple"
        assert params["format"] == "jsonv2"
        assert params["limit"] == 25
        assert params["bounded"] == 1
        min_lon, max_lat, max_lon, min_lat = (float(v) for v in params["viewbox"].split(","))
        assert min_lon < CENTER.longitude < max_lon
        assert min_lat < CENTER.latitude < max_lat

    async def test_decodes_hits(self, client):
        client._make_request = AsyncMock(return_value=[PMQ, MAN_MO])
        places = await client.search("temple", CENTER, 2000, 25)

        assert [p.name for p in places] == ["Man Mo Temple", "PMQ"]
        man_mo = places[0]
        assert man_mo.address == "Hollywood Road, Sheung Wan, Hong Kong Island"
        assert man_mo.provider_type == "amenity=place_of_worship"
        assert man_mo.category == POICategory.TEMPLE
        assert man_mo.keyword == "temple"
        assert man_mo.distance_meters < 50

    async def test_name_from_display_name(self, client):
        client._make_request = AsyncMock(return_value=[PMQ])
        places = await client.search("landmark", CENTER, 2000, 25)
        assert places[0].name == "PMQ"
        assert places[0].provider_type == "tourism=attraction"
        assert places[0].address is None

    async def test_outside_radius_dropped(self, client):
        client._make_request = AsyncMock(return_value=[MAN_MO, FAR_AWAY])
        places = await client.search("temple", CENTER, 2000, 25)
        assert [p.name for p in places] == ["Man Mo Temple"]

    async def test_limit(self, client):
        client._make_request = AsyncMock(return_value=[MAN_MO, PMQ])
        assert len(await client.search("temple", CENTER, 2000, 1)) == 1

    async def test_bad_hits_skipped(self, client):
        client._make_request = AsyncMock(return_value=[{"name": "No position"}, {"lat": "x", "lon": "1"}, MAN_MO])
        places = await client.search("temple", CENTER, 2000, 25)
        assert [p.name for p in places] == ["Man Mo Temple"]

    async def test_none_payload(self, client):
        client._make_request = AsyncMock(return_value=None)
        assert await client.search("temple", CENTER, 2000, 25) == []

    async def test_unexpected_payload(self, client):
        client._make_request = AsyncMock(return_value={"error": "bad request"})
        with pytest.raises(ProviderError):
            await client.search("temple", CENTER, 2000, 25)

    async def test_provider_error_propagates(self, client):
        client._make_request = AsyncMock(side_effect=ProviderError("HTTP 503", provider="Nominatim"))
        with pytest.raises(ProviderError):
            await client.search("temple", CENTER, 2000, 25)


class TestFormatAddress:
    def test_full(self):
        assert format_address({"road": "Nathan Road", "city": "Kowloon", "state": "Hong Kong"}) == (
            "Nathan Road, Kowloon, Hong Kong"
        )

    def test_fallback_keys(self):
        assert format_address({"pedestrian": "Temple Street", "town": "Yau Ma Tei"}) == "Temple Street, Yau Ma Tei"

    def test_duplicates_skipped(self):
        assert format_address({"city": "Singapore", "state": "Singapore"}) == "Singapore"

    @pytest.mark.parametrize("address", [None, {}, {"postcode": "999077"}])
    def test_empty(self, address):
        assert format_address(address) is None


# ============================================================
# Discovery across event loops
# ============================================================


class TestAcrossEventLoops:
    def test_discovery_in_two_event_loops(self):
        """One client and limiter reused by two ``asyncio.run`` calls."""
        limiter = RateLimiter(rate=1.0, per=0.02)
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json=[MAN_MO]))
        client = NominatimClient(user_agent="test-suite/1.0", rate_limiter=limiter, transport=transport)
        aggregator = DeduplicatingAggregator(client, keyword_timeout=5.0, rate_limiter=limiter)
        keywords = ["temple", "museum", "park", "market"]

        first = asyncio.run(aggregator.discover(CENTER, 2000, keywords, 25, 50))
        second = asyncio.run(aggregator.discover(CENTER, 2000, keywords, 25, 50))

        for ranked in (first, second):
            assert ranked.error is None
            assert ranked.stats.failed_keywords == []
            assert [poi.name for poi in ranked] == ["Man Mo Temple"]
