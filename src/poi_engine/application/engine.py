"""
POIEngine - facade over discovery and resolution.

Two operations:
- ``discover_nearby``: keyword fan-out search around a point
- ``resolve_poi``: map one POI name to a knowledge-base article

The engine owns no cross-call state. The resolution cache and the refresh
cooldown policy are injected collaborators; without them every call goes
straight to the providers.

Example:
    >>> engine = POIEngine(aggregator, resolver, cache=TTLResolutionCache())
    >>> nearby = await engine.discover_nearby(Coordinate(22.284, 114.150))
    >>> result = await engine.resolve_poi(nearby.items[0].name, nearby.items[0].coordinate)
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Sequence

from poi_engine.config import EngineSettings
from poi_engine.domain.entities import (
    Coordinate,
    RankedPOISet,
    ResolutionResult,
    Resolved,
    Unresolved,
    UnresolvedReason,
)
from poi_engine.domain.ports import RefreshCooldownPolicy, ResolutionCache
from poi_engine.shared.exceptions import InvalidParameterError

from .discovery import DEFAULT_DISCOVERY_KEYWORDS, DeduplicatingAggregator
from .resolution import MultiLanguageResolver, normalize

logger = logging.getLogger(__name__)


class POIEngine:
    """
    Discovery and resolution behind one object.

    Args:
        aggregator: Keyword fan-out discovery
        resolver: Multi-language resolver
        cache: Optional resolution cache (must be thread-safe)
        cooldown: Optional per-session refresh cooldown policy
        settings: Defaults for radius, limits and result size
    """

    def __init__(
        self,
        aggregator: DeduplicatingAggregator,
        resolver: MultiLanguageResolver,
        *,
        cache: ResolutionCache | None = None,
        cooldown: RefreshCooldownPolicy | None = None,
        settings: EngineSettings | None = None,
    ) -> None:
        self._aggregator = aggregator
        self._resolver = resolver
        self._cache = cache
        self._cooldown = cooldown
        self._settings = settings or EngineSettings()

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    async def discover_nearby(
        self,
        center: Coordinate,
        radius_meters: float | None = None,
        max_results: int | None = None,
        keywords: Sequence[str] | None = None,
        per_keyword_limit: int | None = None,
    ) -> RankedPOISet:
        """
        Find POIs around ``center``, nearest first.

        Omitted arguments fall back to the engine settings and the default
        tourism keyword set.

        Raises:
            InvalidParameterError: for an invalid center, radius, limit or keyword list
        """
        return await self._aggregator.discover(
            center,
            self._settings.search_radius_meters if radius_meters is None else radius_meters,
            DEFAULT_DISCOVERY_KEYWORDS if keywords is None else keywords,
            self._settings.per_keyword_limit if per_keyword_limit is None else per_keyword_limit,
            self._settings.max_results if max_results is None else max_results,
        )

    async def resolve_poi(
        self,
        name: str,
        hint: Coordinate | None = None,
        *,
        session_id: str | None = None,
        force_refresh: bool = False,
    ) -> ResolutionResult:
        """
        Resolve ``name`` to a knowledge-base article.

        Order of checks:
        1. a cached ``Resolved`` that still scores as acceptable is served
           (skipped when ``force_refresh``)
        2. the cooldown policy may deny a new resolution for ``session_id``
        3. the resolver runs and a ``Resolved`` outcome is cached

        Raises:
            InvalidParameterError: for a blank name or an invalid hint
        """
        if not name or not name.strip():
            raise InvalidParameterError("name", name, "a non-blank POI name")
        if hint is not None and not hint.is_valid:
            raise InvalidParameterError("hint", hint, "latitude in [-90, 90] and longitude in [-180, 180]")

        key = self.cache_key(name, hint)
        if not force_refresh:
            cached = self._revalidated(key, name, hint)
            if cached is not None:
                logger.info(f"Resolved '{name}' -> '{cached.title}' from cache")
                return cached

        if session_id is not None and self._cooldown is not None and not self._cooldown.allow(session_id):
            remaining = self._cooldown.remaining(session_id)
            logger.debug(f"Resolution of '{name}' denied for session {session_id}: {remaining:.1f}s left")
            return Unresolved(
                tried_languages=(),
                reason=UnresolvedReason.COOLDOWN,
                retry_after=remaining,
            )

        result = await self._resolver.resolve(name, hint)
        if isinstance(result, Resolved) and self._cache is not None:
            self._cache.put(key, result)
        return result

    def _revalidated(self, key: str, name: str, hint: Coordinate | None) -> Resolved | None:
        """Cached result re-scored against the current query, or None if unusable."""
        if self._cache is None:
            return None
        cached = self._cache.get(key)
        if not isinstance(cached, Resolved):
            return None
        score = self._resolver.scorer.score(name, cached.to_candidate(), hint)
        if not score.accepted:
            logger.debug(f"Cached '{cached.title}' no longer accepted for '{name}': {score.breakdown}")
            return None
        return dataclasses.replace(cached, score=score, from_cache=True, trace=())

    @staticmethod
    def cache_key(name: str, hint: Coordinate | None = None) -> str:
        """``normalize(name)`` plus the hint rounded to about 100 m."""
        if hint is None:
            return normalize(name)
        lat, lon = hint.rounded(3)
        return f"{normalize(name)}|{lat:.3f},{lon:.3f}"
