"""
Domain Entities: POI resolution

Knowledge-base candidates, match scores and the terminal result of a
resolution call. A result is either ``Resolved`` or ``Unresolved``; callers
branch on the variant, never on exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .poi import Coordinate


@dataclass(frozen=True)
class LanguageCandidate:
    """Article found by one per-language knowledge-base lookup."""

    language_code: str
    title: str
    summary: str = ""
    thumbnail_url: str | None = None
    description: str | None = None
    coordinate: Coordinate | None = None
    page_url: str | None = None


@dataclass(frozen=True)
class MatchScore:
    """
    Three-dimensional match between a query and a candidate.

    All dimensions and ``combined`` lie in [0, 1]. ``weights`` are the
    effective (renormalized) weights ``(semantic, geographic, type)``.
    ``threshold`` is the confidence threshold the scorer applied to this
    query; it has no default so it always comes from the scoring constants.
    """

    semantic: float
    geographic: float
    type: float
    combined: float
    weights: tuple[float, float, float]
    threshold: float
    type_conflict: bool = False
    distance_meters: float | None = None
    edit_distance: int = 0

    @property
    def accepted(self) -> bool:
        """Whether the candidate passes the confidence threshold and the type guard."""
        return not self.type_conflict and self.combined >= self.threshold

    @property
    def breakdown(self) -> str:
        return f"S:{self.semantic:.2f} G:{self.geographic:.2f} T:{self.type:.2f} = {self.combined:.2f}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "semantic": round(self.semantic, 4),
            "geographic": round(self.geographic, 4),
            "type": round(self.type, 4),
            "combined": round(self.combined, 4),
            "weights": list(self.weights),
            "threshold": self.threshold,
            "accepted": self.accepted,
            "type_conflict": self.type_conflict,
            "distance_meters": self.distance_meters,
        }


class ResolverPhase(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    RESOLVED = "resolved"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True, slots=True)
class ResolverState:
    """One step of the resolver state machine, e.g. ``SEARCHING(2)``."""

    phase: ResolverPhase
    language_index: int | None = None

    def __str__(self) -> str:
        if self.language_index is None:
            return self.phase.name
        return f"{self.phase.name}({self.language_index})"


class UnresolvedReason(str, Enum):
    """Why a resolution ended without a match."""

    NO_MATCH = "no_match"
    COOLDOWN = "cooldown"


@dataclass(frozen=True)
class Resolved:
    """Accepted knowledge-base match for a POI."""

    title: str
    summary: str
    thumbnail_url: str | None
    language_code: str
    score: MatchScore
    page_url: str | None = None
    description: str | None = None
    coordinate: Coordinate | None = None
    trace: tuple[ResolverState, ...] = field(default=(), compare=False)
    from_cache: bool = field(default=False, compare=False)

    @property
    def is_resolved(self) -> bool:
        return True

    @classmethod
    def from_candidate(
        cls,
        candidate: LanguageCandidate,
        score: MatchScore,
        trace: tuple[ResolverState, ...] = (),
    ) -> Resolved:
        return cls(
            title=candidate.title,
            summary=candidate.summary,
            thumbnail_url=candidate.thumbnail_url,
            language_code=candidate.language_code,
            score=score,
            page_url=candidate.page_url,
            description=candidate.description,
            coordinate=candidate.coordinate,
            trace=trace,
        )

    def to_candidate(self) -> LanguageCandidate:
        """Rebuild the candidate this result was made from (used for revalidation)."""
        return LanguageCandidate(
            language_code=self.language_code,
            title=self.title,
            summary=self.summary,
            thumbnail_url=self.thumbnail_url,
            description=self.description,
            coordinate=self.coordinate,
            page_url=self.page_url,
        )


@dataclass(frozen=True)
class Unresolved:
    """Terminal "nothing found" outcome of a resolution call."""

    tried_languages: tuple[str, ...]
    reason: UnresolvedReason = UnresolvedReason.NO_MATCH
    error: Exception | None = field(default=None, compare=False)
    retry_after: float | None = None
    trace: tuple[ResolverState, ...] = field(default=(), compare=False)

    @property
    def is_resolved(self) -> bool:
        return False


ResolutionResult = Resolved | Unresolved
