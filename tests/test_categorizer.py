"""Tests for categorizer.py - provider tag, name and keyword layers."""

import pytest

from poi_engine.application.discovery.categorizer import DEFAULT_DISCOVERY_KEYWORDS, categorize_place
from poi_engine.domain.entities import POICategory


class TestCategorizePlace:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("Man Mo Temple", POICategory.TEMPLE),
            ("Hong Kong Museum of Art", POICategory.MUSEUM),
            ("Victoria Park", POICategory.PARK),
            ("Repulse Bay Beach", POICategory.BEACH),
            ("Ocean Park Aquarium", POICategory.AMUSEMENT_PARK),
            ("Kruger National Park", POICategory.NATIONAL_PARK),
            ("Harbour City Shopping Mall", POICategory.SHOPPING_CENTER),
            ("Sky Terrace Observation Deck", POICategory.VIEWPOINT),
            ("Edinburgh Castle", POICategory.HISTORICAL_SITE),
            ("文武廟", POICategory.TEMPLE),
            ("香港博物館", POICategory.MUSEUM),
            ("Somewhere", POICategory.OTHER),
        ],
    )
    def test_by_name(self, name, expected):
        assert categorize_place(name) == expected

    def test_provider_type_wins(self):
        assert categorize_place("Man Mo", provider_type="tourism=museum") == POICategory.MUSEUM
        assert categorize_place("Tai Mo Shan", provider_type="natural:peak") == POICategory.MOUNTAIN
        assert categorize_place("Lions Nature Education Centre", provider_type="viewpoint") == POICategory.VIEWPOINT

    def test_unknown_provider_type_falls_through(self):
        assert categorize_place("Man Mo Temple", provider_type="amenity=bench") == POICategory.TEMPLE

    def test_keyword_fallback(self):
        assert categorize_place("Lin Heung", keyword="famous restaurant") == POICategory.RESTAURANT
        assert categorize_place("PMQ", keyword="heritage site") == POICategory.HISTORICAL_SITE

    def test_name_wins_over_keyword(self):
        assert categorize_place("Hong Kong Museum of History", keyword="temple") == POICategory.MUSEUM

    def test_mall_needs_word_boundary(self):
        assert categorize_place("Smallville") == POICategory.OTHER


class TestDefaultKeywords:
    def test_fifteen_unique_keywords(self):
        assert len(DEFAULT_DISCOVERY_KEYWORDS) == 15
        assert len(set(DEFAULT_DISCOVERY_KEYWORDS)) == 15

    def test_every_default_keyword_categorizes(self):
        unmapped = {"tourist attraction", "zoo", "botanical garden"} - set(DEFAULT_DISCOVERY_KEYWORDS)
        assert not unmapped
        for keyword in ("museum", "temple", "national park", "scenic spot", "palace"):
            assert categorize_place("Unnamed", keyword=keyword) != POICategory.OTHER
