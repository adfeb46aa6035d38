"""
Discovery - nearby POI search across many keywords.

- aggregator: concurrent keyword fan-out, nearest-wins dedup, truncation
- categorizer: provider type / name / keyword categorization
"""

from .aggregator import DeduplicatingAggregator, dedup_key, validate_discovery_request
from .categorizer import DEFAULT_DISCOVERY_KEYWORDS, categorize_place

__all__ = [
    "DeduplicatingAggregator",
    "dedup_key",
    "validate_discovery_request",
    "categorize_place",
    "DEFAULT_DISCOVERY_KEYWORDS",
]
