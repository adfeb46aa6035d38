"""
Application Layer - Use cases

Contains:
- discovery: keyword fan-out discovery with nearest-wins dedup
- resolution: scoring and multi-language knowledge-base resolution
- engine: POIEngine facade
"""

from .discovery import DEFAULT_DISCOVERY_KEYWORDS, DeduplicatingAggregator, categorize_place
from .engine import POIEngine
from .resolution import MultiLanguageResolver, ResolutionScorer, ScoringConstants

__all__ = [
    "POIEngine",
    "DeduplicatingAggregator",
    "MultiLanguageResolver",
    "ResolutionScorer",
    "ScoringConstants",
    "categorize_place",
    "DEFAULT_DISCOVERY_KEYWORDS",
]
