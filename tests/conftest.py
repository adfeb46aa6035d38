"""
Pytest configuration and shared fixtures.
"""

from __future__ import annotations

import asyncio
from collections.abc import Collection, Mapping

import pytest

from poi_engine.domain.entities import Coordinate, LanguageCandidate, POICandidate, POICategory

# ============================================================
# Fake Providers
# ============================================================


class FakeGeoProvider:
    """
    In-memory GeoSearchProvider.

    ``results`` maps a keyword to a candidate list or to an exception to
    raise. ``delays`` optionally delays a keyword's answer (seconds).
    """

    def __init__(
        self,
        results: Mapping[str, list[POICandidate] | Exception],
        delays: Mapping[str, float] | None = None,
    ) -> None:
        self.results = dict(results)
        self.delays = dict(delays or {})
        self.calls: list[tuple[str, int]] = []

    async def search(
        self,
        keyword: str,
        center: Coordinate,
        radius_meters: float,
        limit: int,
    ) -> list[POICandidate]:
        self.calls.append((keyword, limit))
        delay = self.delays.get(keyword)
        if delay:
            await asyncio.sleep(delay)
        outcome = self.results.get(keyword, [])
        if isinstance(outcome, Exception):
            raise outcome
        return list(outcome)


class FakeKnowledgeBase:
    """
    In-memory KnowledgeBaseProvider keyed by language code.

    Values are a candidate, None ("not found") or an exception to raise.
    Records started, finished and cancelled lookups. Languages listed in
    ``stubborn`` swallow cancellation and keep working for their delay again.
    """

    def __init__(
        self,
        articles: Mapping[str, LanguageCandidate | Exception | None],
        delays: Mapping[str, float] | None = None,
        stubborn: Collection[str] = (),
    ) -> None:
        self.articles = dict(articles)
        self.delays = dict(delays or {})
        self.stubborn = set(stubborn)
        self.started: list[str] = []
        self.finished: list[str] = []
        self.cancelled: list[str] = []

    async def lookup(self, title: str, language_code: str) -> LanguageCandidate | None:
        self.started.append(language_code)
        try:
            delay = self.delays.get(language_code)
            if delay:
                await asyncio.sleep(delay)
        except asyncio.CancelledError:
            self.cancelled.append(language_code)
            if language_code not in self.stubborn:
                raise
            await asyncio.sleep(self.delays[language_code])
        self.finished.append(language_code)
        outcome = self.articles.get(language_code)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


# ============================================================
# Entity Factories
# ============================================================


def make_poi(
    name: str,
    distance: float,
    address: str | None = None,
    category: POICategory = POICategory.OTHER,
    coordinate: Coordinate | None = None,
) -> POICandidate:
    return POICandidate(
        name=name,
        coordinate=coordinate or Coordinate(22.284, 114.150),
        address=address,
        category=category,
        distance_meters=distance,
    )


def make_article(
    title: str,
    language_code: str = "en",
    description: str | None = None,
    coordinate: Coordinate | None = None,
) -> LanguageCandidate:
    return LanguageCandidate(
        language_code=language_code,
        title=title,
        summary=f"{title} is a place.",
        thumbnail_url=f"https://upload.example.org/{language_code}.jpg",
        description=description,
        coordinate=coordinate,
        page_url=f"https://{language_code}.wikipedia.org/wiki/{title.replace(' ', '_')}",
    )


@pytest.fixture
def hong_kong() -> Coordinate:
    """Central, Hong Kong (near Man Mo Temple)."""
    return Coordinate(22.2840, 114.1500)


@pytest.fixture
def man_mo_article(hong_kong: Coordinate) -> LanguageCandidate:
    return make_article(
        "Man Mo Temple",
        "en",
        description="Temple in Sheung Wan, Hong Kong",
        coordinate=Coordinate(22.2841, 114.1501),
    )
