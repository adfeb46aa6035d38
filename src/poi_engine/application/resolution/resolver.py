"""
MultiLanguageResolver - concurrent knowledge-base lookup across languages.

State machine per call:

    IDLE -> SEARCHING(i) ... -> RESOLVED(i) | EXHAUSTED

Languages are tried in priority order, ``fanout`` at a time. Each lookup
runs in its own task under a hard timeout and is scored as soon as it
completes. A fast-path match cancels every sibling lookup and returns at
once; otherwise the best accepted candidate across all waves wins.

A failing or timed-out lookup only removes that language from the race.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Sequence

from poi_engine.domain.entities import (
    Coordinate,
    LanguageCandidate,
    MatchScore,
    ResolutionResult,
    Resolved,
    ResolverPhase,
    ResolverState,
    Unresolved,
    UnresolvedReason,
)
from poi_engine.domain.ports import KnowledgeBaseProvider
from poi_engine.shared.async_utils import cancel_pending, run_with_timeout
from poi_engine.shared.exceptions import (
    AllLanguagesExhaustedError,
    ConfigurationError,
    NoAcceptedMatchError,
    NoCandidatesFoundError,
)

from .language_priority import language_priority
from .scorer import ResolutionScorer, confidence_threshold
from .text_features import QueryFeatures, extract_features

logger = logging.getLogger(__name__)


class MultiLanguageResolver:
    """
    Resolves a POI name to a knowledge-base article.

    Holds no per-call state; concurrent ``resolve`` calls are independent.

    Example:
        >>> resolver = MultiLanguageResolver(WikipediaClient(), fanout=4)
        >>> result = await resolver.resolve("Man Mo Temple", Coordinate(22.284, 114.150))
        >>> result.is_resolved
        True
    """

    def __init__(
        self,
        knowledge_base: KnowledgeBaseProvider,
        scorer: ResolutionScorer | None = None,
        *,
        fanout: int = 4,
        language_timeout: float = 8.0,
        priority: Callable[[str], Sequence[str]] = language_priority,
    ) -> None:
        if fanout < 1:
            raise ConfigurationError(f"fanout must be >= 1, got {fanout}")
        if language_timeout <= 0:
            raise ConfigurationError(f"language_timeout must be > 0, got {language_timeout}")
        self._knowledge_base = knowledge_base
        self._scorer = scorer or ResolutionScorer()
        self._fanout = fanout
        self._language_timeout = language_timeout
        self._priority = priority

    @property
    def scorer(self) -> ResolutionScorer:
        return self._scorer

    async def resolve(
        self,
        name: str,
        hint: Coordinate | None = None,
        languages: Sequence[str] | None = None,
    ) -> ResolutionResult:
        """
        Resolve ``name`` near ``hint``.

        Args:
            name: POI name as shown to the user
            hint: Known location of the POI, if any
            languages: Explicit language order; defaults to ``language_priority(name)``

        Returns:
            ``Resolved`` or ``Unresolved``; provider failures never escape.
        """
        order = tuple(languages) if languages is not None else tuple(self._priority(name))
        features = extract_features(name)
        trace: list[ResolverState] = [ResolverState(ResolverPhase.IDLE)]
        tried: list[str] = []
        errors: list[Exception] = []
        found_any = False
        best: tuple[tuple[float, float, int, int], int, LanguageCandidate, MatchScore] | None = None
        best_rejected = 0.0

        for wave_start in range(0, len(order), self._fanout):
            wave = order[wave_start : wave_start + self._fanout]
            tasks: dict[asyncio.Task[LanguageCandidate | None], int] = {}
            for offset, language in enumerate(wave):
                index = wave_start + offset
                trace.append(ResolverState(ResolverPhase.SEARCHING, index))
                tried.append(language)
                task = asyncio.create_task(self._lookup(name, language), name=f"lookup-{language}")
                tasks[task] = index
            logger.debug(f"Resolving '{name}': wave {list(wave)}")

            pending: set[asyncio.Task[LanguageCandidate | None]] = set(tasks)
            try:
                while pending:
                    done, pending = await asyncio.wait(pending, return_when=asyncio.FIRST_COMPLETED)
                    for task in sorted(done, key=tasks.__getitem__):
                        index = tasks[task]
                        language = order[index]
                        if task.cancelled():
                            logger.debug(f"Lookup of '{name}' in '{language}' was cancelled")
                            continue
                        failure = task.exception()
                        if failure is not None:
                            logger.warning(f"Lookup of '{name}' in '{language}' failed: {failure}")
                            errors.append(failure)
                            continue

                        candidate = task.result()
                        if candidate is None:
                            logger.debug(f"No '{language}' article for '{name}'")
                            continue

                        found_any = True
                        score = self._scorer.score(features, candidate, hint)
                        if self._scorer.is_fast_path(score):
                            abandoned = await cancel_pending(pending)
                            trace.append(ResolverState(ResolverPhase.RESOLVED, index))
                            logger.info(
                                f"Resolved '{name}' -> '{candidate.title}' ({language}) "
                                f"on fast path, {score.breakdown}, cancelled {abandoned} lookups"
                            )
                            return Resolved.from_candidate(candidate, score, tuple(trace))

                        if score.accepted:
                            key = ResolutionScorer.rank_key(score, index)
                            if best is None or key < best[0]:
                                best = (key, index, candidate, score)
                        else:
                            best_rejected = max(best_rejected, score.combined)
            finally:
                await cancel_pending(tasks)

        if best is not None:
            _, index, candidate, score = best
            trace.append(ResolverState(ResolverPhase.RESOLVED, index))
            logger.info(
                f"Resolved '{name}' -> '{candidate.title}' ({candidate.language_code}), {score.breakdown}"
            )
            return Resolved.from_candidate(candidate, score, tuple(trace))

        trace.append(ResolverState(ResolverPhase.EXHAUSTED))
        error = self._exhausted_error(name, features, tried, errors, found_any, best_rejected)
        logger.info(f"Could not resolve '{name}' after trying {tried}")
        return Unresolved(
            tried_languages=tuple(tried),
            reason=UnresolvedReason.NO_MATCH,
            error=error,
            trace=tuple(trace),
        )

    async def _lookup(self, name: str, language: str) -> LanguageCandidate | None:
        return await run_with_timeout(
            self._knowledge_base.lookup(name, language),
            self._language_timeout,
            operation=f"lookup '{name}' in '{language}'",
            provider="knowledge_base",
        )

    def _exhausted_error(
        self,
        name: str,
        features: QueryFeatures,
        tried: list[str],
        errors: list[Exception],
        found_any: bool,
        best_rejected: float,
    ) -> AllLanguagesExhaustedError:
        cause: Exception
        if found_any:
            threshold = confidence_threshold(features, self._scorer.constants)
            cause = NoAcceptedMatchError(name, best_rejected, threshold)
        else:
            cause = NoCandidatesFoundError(name)
        return AllLanguagesExhaustedError(name, tried, related_errors=(cause, *errors))
