"""
Domain Entities

Core value objects for POI discovery and resolution.
"""

from __future__ import annotations

from .poi import (
    AggregationStats,
    Coordinate,
    KeywordSearchRequest,
    POICandidate,
    POICategory,
    RankedPOISet,
)
from .resolution import (
    LanguageCandidate,
    MatchScore,
    ResolutionResult,
    Resolved,
    ResolverPhase,
    ResolverState,
    Unresolved,
    UnresolvedReason,
)

__all__ = [
    # Discovery
    "Coordinate",
    "POICategory",
    "POICandidate",
    "KeywordSearchRequest",
    "AggregationStats",
    "RankedPOISet",
    # Resolution
    "LanguageCandidate",
    "MatchScore",
    "ResolverPhase",
    "ResolverState",
    "UnresolvedReason",
    "Resolved",
    "Unresolved",
    "ResolutionResult",
]
