"""
DeduplicatingAggregator - keyword fan-out discovery with nearest-wins dedup.

This module merges many keyword-scoped geo searches into one result:
1. One search task per keyword, each with a hard timeout. When the
   provider is rate limited, each budget also covers the time the search
   spends queued for its request slot
2. Barrier on all tasks; failures contribute nothing
3. Stable sort by distance, then a single dedup pass keeping the nearest
   copy of each ``normalize(name) | normalize(address)`` key
4. Truncation to ``max_results``

Architecture Decision:
    Each keyword task returns into its own slot of the gather result, so the
    merged order depends only on keyword order and distances, never on
    which search finished first.

Example:
    >>> aggregator = DeduplicatingAggregator(NominatimClient())
    >>> ranked = await aggregator.discover(
    ...     Coordinate(22.284, 114.150), 2000, ["temple", "museum"], 25, 50
    ... )
    >>> [poi.name for poi in ranked][:2]
    ['Man Mo Temple', 'Hong Kong Museum of Art']
"""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Sequence

from poi_engine.application.resolution.text_features import normalize
from poi_engine.domain.entities import (
    AggregationStats,
    Coordinate,
    KeywordSearchRequest,
    POICandidate,
    POICategory,
    RankedPOISet,
)
from poi_engine.domain.ports import GeoSearchProvider
from poi_engine.shared.async_utils import RateLimiter, run_with_timeout
from poi_engine.shared.exceptions import InvalidParameterError, create_error_group

from .categorizer import categorize_place

logger = logging.getLogger(__name__)


def dedup_key(candidate: POICandidate) -> str:
    """Composite key identifying the same place across searches."""
    return f"{normalize(candidate.name)}|{normalize(candidate.address or '')}"


def validate_discovery_request(
    center: Coordinate,
    radius_meters: float,
    keywords: Sequence[str],
    per_keyword_limit: int,
    max_results: int,
) -> list[str]:
    """
    Check caller preconditions before any I/O.

    Returns the cleaned keyword list (blank entries and duplicates dropped).

    Raises:
        InvalidParameterError: on any structural misuse
    """
    if not center.is_valid:
        raise InvalidParameterError("center", center, "latitude in [-90, 90] and longitude in [-180, 180]")
    if radius_meters <= 0:
        raise InvalidParameterError("radius_meters", radius_meters, "a positive number of meters")
    if per_keyword_limit <= 0:
        raise InvalidParameterError("per_keyword_limit", per_keyword_limit, "a positive integer")
    if max_results <= 0:
        raise InvalidParameterError("max_results", max_results, "a positive integer")
    cleaned = list(dict.fromkeys(k.strip() for k in keywords if k and k.strip()))
    if not cleaned:
        raise InvalidParameterError("keywords", list(keywords), "at least one non-blank keyword")
    return cleaned


class DeduplicatingAggregator:
    """
    Runs keyword searches concurrently and merges them into a ``RankedPOISet``.

    Keeps no results between calls; one instance may serve concurrent discoveries.
    """

    def __init__(
        self,
        provider: GeoSearchProvider,
        *,
        keyword_timeout: float = 15.0,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        """
        Args:
            provider: Keyword-scoped geo search
            keyword_timeout: Hard timeout of one search once its request may start
            rate_limiter: The limiter ``provider`` queues its requests on, if any
        """
        self._provider = provider
        self._keyword_timeout = keyword_timeout
        self._rate_limiter = rate_limiter
        # Searches dispatched by any discovery of this instance and not yet finished
        self._in_flight = 0

    def keyword_budget(self) -> float:
        """
        Timeout of a keyword search dispatched now.

        The search queues behind the limiter backlog and the searches already
        in flight before its request may start, so that wait is added to its
        budget. In-flight searches that already hold a slot are counted twice,
        which only lengthens the budget.
        """
        if self._rate_limiter is None:
            return self._keyword_timeout
        queued = self._rate_limiter.backlog() + self._in_flight * self._rate_limiter.interval
        return self._keyword_timeout + queued

    async def discover(
        self,
        center: Coordinate,
        radius_meters: float,
        keywords: Sequence[str],
        per_keyword_limit: int = 25,
        max_results: int = 50,
    ) -> RankedPOISet:
        """
        Discover POIs around ``center``.

        Never raises for provider failures. When every keyword search fails
        the result is empty and ``error`` holds an ExceptionGroup of the
        individual failures.
        """
        cleaned = validate_discovery_request(center, radius_meters, keywords, per_keyword_limit, max_results)
        requests = [
            KeywordSearchRequest(
                keyword=keyword,
                center=center,
                radius_meters=radius_meters,
                per_keyword_limit=per_keyword_limit,
            )
            for keyword in cleaned
        ]

        outcomes = await asyncio.gather(
            *(self._search(request) for request in requests),
            return_exceptions=True,
        )

        result_lists: list[list[POICandidate]] = []
        errors: list[Exception] = []
        failed: list[str] = []
        for request, outcome in zip(requests, outcomes, strict=True):
            if isinstance(outcome, Exception):
                logger.warning(f"Keyword search '{request.keyword}' failed: {outcome}")
                errors.append(outcome)
                failed.append(request.keyword)
                result_lists.append([])
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result_lists.append(outcome)

        if errors and len(errors) == len(requests):
            logger.warning(f"All {len(requests)} keyword searches failed around {center}")
            return RankedPOISet(
                items=(),
                max_size=max_results,
                error=create_error_group(f"All {len(requests)} keyword searches failed", errors),
                stats=AggregationStats(failed_keywords=failed, by_keyword={k: 0 for k in cleaned}),
            )

        ranked = self.merge(result_lists, max_results)
        ranked.stats.failed_keywords.extend(failed)
        for request, candidates in zip(requests, result_lists, strict=True):
            ranked.stats.by_keyword[request.keyword] = len(candidates)

        logger.info(
            f"Discovered {len(ranked)} POIs from {ranked.stats.total_input} candidates "
            f"({len(cleaned)} keywords, {len(failed)} failed)"
        )
        return ranked

    @staticmethod
    def merge(result_lists: Sequence[Sequence[POICandidate]], max_results: int) -> RankedPOISet:
        """
        Merge per-keyword candidate lists into a ranked, deduplicated set.

        Pure function of its input: concatenation order is the list order,
        the sort is stable, and the nearest copy of each key survives.
        """
        working = [candidate for candidates in result_lists for candidate in candidates]
        working.sort(key=lambda c: c.distance_meters)

        seen: set[str] = set()
        unique: list[POICandidate] = []
        for candidate in working:
            key = dedup_key(candidate)
            if key in seen:
                continue
            seen.add(key)
            unique.append(candidate)

        items = tuple(unique[:max_results])
        stats = AggregationStats(
            total_input=len(working),
            unique=len(unique),
            duplicates_removed=len(working) - len(unique),
            truncated=len(unique) - len(items),
        )
        return RankedPOISet(items=items, max_size=max_results, stats=stats)

    async def _search(self, request: KeywordSearchRequest) -> list[POICandidate]:
        timeout = self.keyword_budget()
        self._in_flight += 1
        try:
            candidates = await run_with_timeout(
                self._provider.search(
                    request.keyword,
                    request.center,
                    request.radius_meters,
                    request.per_keyword_limit,
                ),
                timeout,
                operation=f"search '{request.keyword}'",
                provider="geo_search",
            )
        finally:
            self._in_flight -= 1
        return [self._annotate(candidate, request) for candidate in list(candidates)[: request.per_keyword_limit]]

    @staticmethod
    def _annotate(candidate: POICandidate, request: KeywordSearchRequest) -> POICandidate:
        """Tag a candidate with its keyword and fill in a missing category."""
        changes: dict[str, object] = {}
        if candidate.keyword is None:
            changes["keyword"] = request.keyword
        if candidate.category is POICategory.OTHER:
            category = categorize_place(candidate.name, request.keyword, candidate.provider_type)
            if category is not POICategory.OTHER:
                changes["category"] = category
        return dataclasses.replace(candidate, **changes) if changes else candidate
