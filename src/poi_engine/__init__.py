"""
POI Engine - nearby place discovery and knowledge-base resolution

Finds points of interest around a location by fanning out keyword searches
to a geo-search provider, then maps a chosen POI to its encyclopedia
article across several language editions.

Usage:
    from poi_engine import Coordinate, EngineSettings
    from poi_engine.container import EngineContainer

    container = EngineContainer()
    container.config.from_dict(EngineSettings.from_env().to_dict())
    engine = container.engine()

    nearby = await engine.discover_nearby(Coordinate(22.284, 114.150), radius_meters=2000)
    result = await engine.resolve_poi(nearby.items[0].name, nearby.items[0].coordinate)
    if result.is_resolved:
        print(result.title, result.score.breakdown)
"""

from .application import DeduplicatingAggregator, MultiLanguageResolver, POIEngine, ResolutionScorer
from .config import EngineSettings, configure_logging
from .domain import (
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
from .shared.exceptions import InvalidParameterError, POIEngineError, ProviderError

__version__ = "0.1.0"

__all__ = [
    # Facade
    "POIEngine",
    "DeduplicatingAggregator",
    "MultiLanguageResolver",
    "ResolutionScorer",
    # Configuration
    "EngineSettings",
    "configure_logging",
    # Entities
    "Coordinate",
    "POICandidate",
    "POICategory",
    "RankedPOISet",
    "LanguageCandidate",
    "MatchScore",
    "ResolutionResult",
    "Resolved",
    "Unresolved",
    "UnresolvedReason",
    # Errors
    "POIEngineError",
    "ProviderError",
    "InvalidParameterError",
]
