"""
Domain Ports

Boundary interfaces the engine depends on. Concrete providers live in the
infrastructure layer; tests substitute in-memory fakes.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from .entities import Coordinate, LanguageCandidate, POICandidate, ResolutionResult


@runtime_checkable
class GeoSearchProvider(Protocol):
    """Keyword-scoped place search around a center point."""

    async def search(
        self,
        keyword: str,
        center: Coordinate,
        radius_meters: float,
        limit: int,
    ) -> list[POICandidate]:
        """
        Return at most ``limit`` candidates for ``keyword``.

        Raises:
            ProviderError: network, HTTP or parse failure
        """
        ...


@runtime_checkable
class KnowledgeBaseProvider(Protocol):
    """Article lookup in one language edition of a knowledge base."""

    async def lookup(self, title: str, language_code: str) -> LanguageCandidate | None:
        """
        Return the best article for ``title`` or None when not found.

        Raises:
            ProviderError: network, HTTP or parse failure
        """
        ...


@runtime_checkable
class ResolutionCache(Protocol):
    """Cross-call cache of resolution results. Must be safe for concurrent use."""

    def get(self, key: str) -> ResolutionResult | None: ...

    def put(self, key: str, value: ResolutionResult) -> None: ...


@runtime_checkable
class RefreshCooldownPolicy(Protocol):
    """Gates how often one caller session may start a new resolution."""

    def allow(self, session_id: str) -> bool: ...

    def remaining(self, session_id: str) -> float: ...
