"""
ResolutionScorer - three-dimensional matching of knowledge-base candidates.

A candidate article is scored against a POI query along three independent
dimensions:

1. Semantic: name similarity (token overlap, Jaccard, Levenshtein, n-grams)
2. Geographic: step-function decay of the query/candidate distance,
   widened for large place categories
3. Type: agreement between the place types named by query and candidate

The dimensions are blended with weights chosen from query features, and
the result is compared against a feature-dependent confidence threshold.

Architecture Decision:
    Every function here is pure and synchronous. Weighting and thresholds
    take ``QueryFeatures``, never raw text, so each can be tested alone.

Example:
    >>> scorer = ResolutionScorer()
    >>> candidate = LanguageCandidate(language_code="en", title="Shearith Israel")
    >>> score = scorer.score("Congregation Sherith Israel", candidate)
    >>> score.weights[1]
    0.0
    >>> score.accepted
    True
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import NamedTuple

from rapidfuzz.distance import Indel, Levenshtein

from poi_engine.application.discovery.categorizer import categorize_place
from poi_engine.domain.entities import Coordinate, LanguageCandidate, MatchScore, POICategory

from .text_features import (
    QueryFeatures,
    canonical_cjk,
    char_ngrams,
    cjk_content,
    content_words,
    detect_type_groups,
    expand_with_synonyms,
    extract_features,
    normalize,
    tokenize,
    types_related,
)

logger = logging.getLogger(__name__)


# =============================================================================
# Constants
# =============================================================================


@dataclass(frozen=True)
class ScoringConstants:
    """
    Tuned scoring constants.

    These were chosen empirically; override them per scorer instead of
    editing the defaults.
    """

    fast_path_threshold: float = 0.8
    token_overlap_floor: float = 0.6
    multi_token_score: float = 0.95
    related_type_score: float = 0.6
    unrelated_type_score: float = 0.1
    unknown_type_score: float = 0.0
    baseline_threshold: float = 0.6
    exact_threshold: float = 0.85
    short_query_threshold: float = 0.55
    short_query_length: int = 10
    long_query_length: int = 30
    fuzzy_token_similarity: float = 0.8
    fuzzy_token_min_length: int = 4
    cjk_segment_min_length: int = 2
    # Semantic blend: token overlap, Jaccard, Levenshtein, trigram
    blend: tuple[float, float, float, float] = (0.3, 0.25, 0.25, 0.2)


DEFAULT_SCORING = ScoringConstants()

# Distance steps in km (upper bound inclusive) after tolerance scaling
GEO_STEPS: tuple[tuple[float, float], ...] = (
    (0.1, 1.0),
    (0.5, 0.95),
    (1.0, 0.85),
    (2.0, 0.7),
    (5.0, 0.5),
    (10.0, 0.3),
)

# Large places tolerate larger offsets between their point and the query
CATEGORY_TOLERANCE: dict[POICategory, float] = {
    POICategory.NATIONAL_PARK: 5.0,
    POICategory.PARK: 3.0,
    POICategory.MOUNTAIN: 3.0,
    POICategory.BEACH: 2.0,
    POICategory.AMUSEMENT_PARK: 1.5,
}


class DimensionWeights(NamedTuple):
    """Weights for (semantic, geographic, type)."""

    semantic: float
    geographic: float
    type: float

    def normalized(self, *, has_geographic: bool = True) -> DimensionWeights:
        """Zero the geographic weight when it has no data, then rescale to sum 1."""
        geographic = self.geographic if has_geographic else 0.0
        total = self.semantic + geographic + self.type
        if total <= 0:
            return DimensionWeights(1.0, 0.0, 0.0)
        return DimensionWeights(self.semantic / total, geographic / total, self.type / total)


PROXIMITY_WEIGHTS = DimensionWeights(0.3, 0.6, 0.1)
TYPE_FOCUSED_WEIGHTS = DimensionWeights(0.4, 0.3, 0.3)
LONG_QUERY_WEIGHTS = DimensionWeights(0.6, 0.3, 0.1)
DEFAULT_WEIGHTS = DimensionWeights(0.5, 0.4, 0.1)


# =============================================================================
# Weighting and thresholds
# =============================================================================


def dynamic_weights(
    features: QueryFeatures,
    constants: ScoringConstants = DEFAULT_SCORING,
) -> DimensionWeights:
    """Pick dimension weights from query features."""
    if features.has_proximity:
        return PROXIMITY_WEIGHTS
    if features.has_type_words:
        return TYPE_FOCUSED_WEIGHTS
    if features.length > constants.long_query_length:
        return LONG_QUERY_WEIGHTS
    return DEFAULT_WEIGHTS


def confidence_threshold(
    features: QueryFeatures,
    constants: ScoringConstants = DEFAULT_SCORING,
) -> float:
    """Minimum combined score a candidate needs to be accepted."""
    if features.wants_exact:
        return constants.exact_threshold
    if features.length < constants.short_query_length:
        return constants.short_query_threshold
    return constants.baseline_threshold


# =============================================================================
# Dimensions
# =============================================================================


def _clamp(value: float) -> float:
    if math.isnan(value):
        return 0.0
    return max(0.0, min(1.0, value))


def _jaccard(left: set[str], right: set[str]) -> float:
    union = left | right
    return len(left & right) / len(union) if union else 0.0


def shared_token_count(
    left: tuple[str, ...] | list[str],
    right: tuple[str, ...] | list[str],
    constants: ScoringConstants = DEFAULT_SCORING,
) -> int:
    """
    Count tokens shared by two word lists, allowing near-spellings.

    Tokens of at least ``fuzzy_token_min_length`` characters also match
    when their normalized Levenshtein similarity reaches
    ``fuzzy_token_similarity`` (so "sherith" matches "shearith").
    """
    unused = list(dict.fromkeys(right))
    shared = 0
    for token in dict.fromkeys(left):
        for i, other in enumerate(unused):
            if token == other or (
                len(token) >= constants.fuzzy_token_min_length
                and len(other) >= constants.fuzzy_token_min_length
                and Levenshtein.normalized_similarity(token, other) >= constants.fuzzy_token_similarity
            ):
                shared += 1
                del unused[i]
                break
    return shared


def shared_segment_count(left: str, right: str, constants: ScoringConstants = DEFAULT_SCORING) -> int:
    """
    Count distinct runs of CJK text common to both names.

    Runs shorter than ``cjk_segment_min_length`` characters are ignored,
    so "上海" and "上海自然" share one segment while "文武" and "文" share none.
    """
    if not left or not right:
        return 0
    return sum(
        1
        for op in Indel.opcodes(left, right)
        if op.tag == "equal" and op.src_end - op.src_start >= constants.cjk_segment_min_length
    )


def _blend(signals: tuple[float, float, float, float], constants: ScoringConstants) -> float:
    return sum(weight * signal for weight, signal in zip(constants.blend, signals, strict=True))


def _floor_by_overlap(blend: float, shared: int, constants: ScoringConstants) -> float:
    if shared >= 2:
        return max(blend, constants.multi_token_score)
    if shared >= 1:
        return max(blend, constants.token_overlap_floor)
    return blend


def semantic_similarity(
    features: QueryFeatures,
    title: str,
    constants: ScoringConstants = DEFAULT_SCORING,
) -> float:
    """Name similarity in [0, 1] between the query and a candidate title."""
    candidate_norm = normalize(title)
    if not features.normalized or not candidate_norm:
        return 0.0
    if features.normalized == candidate_norm:
        return 1.0

    if features.is_cjk:
        # No whitespace tokens: bigrams feed the blend, shared segments set the floor
        query_text = canonical_cjk(features.normalized)
        candidate_text = canonical_cjk(candidate_norm)
        if query_text == candidate_text:
            return 1.0
        query_grams = char_ngrams(query_text, 2)
        candidate_grams = char_ngrams(candidate_text, 2)
        shared = shared_segment_count(cjk_content(query_text), cjk_content(candidate_text), constants)
        overlap = len(query_grams & candidate_grams) / len(query_grams) if query_grams else 0.0
        jaccard = _jaccard(query_grams, candidate_grams)
        levenshtein = Levenshtein.normalized_similarity(query_text, candidate_text)
        trigram = _jaccard(char_ngrams(query_text, 3), char_ngrams(candidate_text, 3))
    else:
        query_words = features.content_words
        candidate_words = tuple(content_words(candidate_norm))
        shared = shared_token_count(query_words, candidate_words, constants)
        overlap = _jaccard(
            expand_with_synonyms(features.tokens),
            expand_with_synonyms(tokenize(candidate_norm)),
        )
        union_size = len(set(query_words)) + len(set(candidate_words)) - shared
        jaccard = shared / union_size if union_size > 0 else 0.0
        levenshtein = Levenshtein.normalized_similarity(features.normalized, candidate_norm)
        trigram = _jaccard(char_ngrams(features.normalized, 3), char_ngrams(candidate_norm, 3))

    blend = _blend((overlap, jaccard, levenshtein, trigram), constants)
    return _clamp(_floor_by_overlap(blend, shared, constants))


def geographic_score(distance_meters: float, category: POICategory = POICategory.OTHER) -> float:
    """Step-function mapping of distance to [0, 1], scaled by category size."""
    tolerance = CATEGORY_TOLERANCE.get(category, 1.0)
    km = max(0.0, distance_meters) / tolerance / 1000.0
    for limit, score in GEO_STEPS:
        if km <= limit:
            return score
    return max(0.0, 0.2 - km / 100.0)


def type_score(
    query_groups: frozenset[str],
    candidate_groups: frozenset[str],
    constants: ScoringConstants = DEFAULT_SCORING,
) -> tuple[float, bool]:
    """
    Score type agreement and report a conflict.

    Returns ``(score, conflict)``. A conflict means both sides name a place
    type and the types are neither equal nor related.
    """
    if not query_groups or not candidate_groups:
        return constants.unknown_type_score, False
    if query_groups & candidate_groups:
        return 1.0, False
    if any(types_related(q, c) for q in query_groups for c in candidate_groups):
        return constants.related_type_score, False
    return constants.unrelated_type_score, True


def candidate_type_groups(candidate: LanguageCandidate) -> frozenset[str]:
    """Place types of a candidate; its description wins over its title."""
    if candidate.description:
        groups = detect_type_groups(candidate.description)
        if groups:
            return groups
    return detect_type_groups(candidate.title)


def candidate_category(candidate: LanguageCandidate) -> POICategory:
    if candidate.description:
        category = categorize_place(candidate.description)
        if category is not POICategory.OTHER:
            return category
    return categorize_place(candidate.title)


# =============================================================================
# Scorer
# =============================================================================


class ResolutionScorer:
    """
    Scores knowledge-base candidates against a POI query.

    Stateless apart from its constants; safe to share across tasks.
    """

    def __init__(self, constants: ScoringConstants = DEFAULT_SCORING) -> None:
        self.constants = constants

    @property
    def fast_path_threshold(self) -> float:
        return self.constants.fast_path_threshold

    def score(
        self,
        query: str | QueryFeatures,
        candidate: LanguageCandidate,
        hint: Coordinate | None = None,
        candidate_location: Coordinate | None = None,
    ) -> MatchScore:
        features = query if isinstance(query, QueryFeatures) else extract_features(query)
        location = candidate_location if candidate_location is not None else candidate.coordinate

        semantic = semantic_similarity(features, candidate.title, self.constants)

        has_geographic = hint is not None and location is not None
        distance: float | None = None
        geographic = 0.0
        if has_geographic:
            distance = hint.distance_to(location)
            geographic = geographic_score(distance, candidate_category(candidate))

        type_value, conflict = type_score(
            features.type_groups,
            candidate_type_groups(candidate),
            self.constants,
        )

        weights = dynamic_weights(features, self.constants).normalized(has_geographic=has_geographic)
        combined = _clamp(
            weights.semantic * semantic + weights.geographic * geographic + weights.type * type_value
        )

        result = MatchScore(
            semantic=_clamp(semantic),
            geographic=_clamp(geographic),
            type=_clamp(type_value),
            combined=combined,
            weights=(weights.semantic, weights.geographic, weights.type),
            threshold=confidence_threshold(features, self.constants),
            type_conflict=conflict,
            distance_meters=distance,
            edit_distance=Levenshtein.distance(features.normalized, normalize(candidate.title)),
        )
        logger.debug(
            f"Scored '{candidate.title}' ({candidate.language_code}) for '{features.text}': "
            f"{result.breakdown} (threshold {result.threshold:.2f}, conflict={conflict})"
        )
        return result

    def is_fast_path(self, score: MatchScore) -> bool:
        """High-confidence match that ends a resolution immediately."""
        return score.accepted and score.combined >= self.constants.fast_path_threshold

    @staticmethod
    def rank_key(score: MatchScore, language_rank: int) -> tuple[float, float, int, int]:
        """
        Sort key for accepted candidates, best first.

        Higher combined score, then nearer distance (unknown last), then
        smaller edit distance, then earlier language.
        """
        distance = score.distance_meters if score.distance_meters is not None else math.inf
        return (-score.combined, distance, score.edit_distance, language_rank)
