"""
Domain Layer

Contains:
- entities: POI candidates, ranked sets, match scores, resolution results
- ports: provider, cache and cooldown interfaces
"""

from .entities import (
    Coordinate,
    LanguageCandidate,
    MatchScore,
    POICandidate,
    POICategory,
    RankedPOISet,
    ResolutionResult,
    Resolved,
    Unresolved,
    UnresolvedReason,
)
from .ports import (
    GeoSearchProvider,
    KnowledgeBaseProvider,
    RefreshCooldownPolicy,
    ResolutionCache,
)

__all__ = [
    "Coordinate",
    "POICategory",
    "POICandidate",
    "RankedPOISet",
    "LanguageCandidate",
    "MatchScore",
    "Resolved",
    "Unresolved",
    "UnresolvedReason",
    "ResolutionResult",
    "GeoSearchProvider",
    "KnowledgeBaseProvider",
    "ResolutionCache",
    "RefreshCooldownPolicy",
]
