"""
Resolution - map a POI name to a knowledge-base article.

- text_features: normalization, synonyms, place-type detection
- scorer: three-dimensional ResolutionScorer, weights and thresholds
- language_priority: per-name language order
- query_variants: search fallbacks for a name
- resolver: concurrent MultiLanguageResolver
"""

from .language_priority import language_priority
from .query_variants import generate_query_variants
from .resolver import MultiLanguageResolver
from .scorer import (
    DEFAULT_SCORING,
    DimensionWeights,
    ResolutionScorer,
    ScoringConstants,
    confidence_threshold,
    dynamic_weights,
    geographic_score,
    semantic_similarity,
    type_score,
)
from .text_features import QueryFeatures, extract_features, normalize

__all__ = [
    "MultiLanguageResolver",
    "ResolutionScorer",
    "ScoringConstants",
    "DEFAULT_SCORING",
    "DimensionWeights",
    "dynamic_weights",
    "confidence_threshold",
    "semantic_similarity",
    "geographic_score",
    "type_score",
    "QueryFeatures",
    "extract_features",
    "normalize",
    "language_priority",
    "generate_query_variants",
]
