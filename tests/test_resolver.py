"""Tests for resolver.py - concurrent multi-language resolution."""

import asyncio
import dataclasses
import time

import pytest
from conftest import FakeKnowledgeBase, make_article

from poi_engine.application.resolution import DEFAULT_SCORING, MultiLanguageResolver, ResolutionScorer
from poi_engine.domain.entities import (
    Coordinate,
    Resolved,
    ResolverPhase,
    ResolverState,
    Unresolved,
    UnresolvedReason,
)
from poi_engine.shared.exceptions import (
    AllLanguagesExhaustedError,
    ConfigurationError,
    NoAcceptedMatchError,
    NoCandidatesFoundError,
    ProviderError,
    ProviderTimeoutError,
)

SHERITH = "Congregation Sherith Israel"


def no_fast_path() -> ResolutionScorer:
    return ResolutionScorer(dataclasses.replace(DEFAULT_SCORING, fast_path_threshold=1.01))


# ============================================================
# Fast path
# ============================================================


class TestFastPath:
    async def test_fast_path_cancels_pending_siblings(self, man_mo_article, hong_kong):
        kb = FakeKnowledgeBase(
            {
                "en": man_mo_article,
                "zh": make_article("文武廟", "zh"),
                "ja": make_article("文武廟", "ja"),
            },
            delays={"zh": 5.0, "ja": 5.0},
        )
        resolver = MultiLanguageResolver(kb, fanout=3)

        result = await asyncio.wait_for(
            resolver.resolve("Man Mo Temple", hong_kong, languages=["en", "zh", "ja"]),
            timeout=2.0,
        )

        assert isinstance(result, Resolved)
        assert result.title == "Man Mo Temple"
        assert result.language_code == "en"
        assert result.page_url == man_mo_article.page_url
        assert sorted(kb.cancelled) == ["ja", "zh"]
        assert kb.finished == ["en"]

    async def test_fast_path_does_not_wait_for_stubborn_sibling(self, man_mo_article, hong_kong):
        kb = FakeKnowledgeBase({"en": man_mo_article, "zh": None}, delays={"zh": 3.0}, stubborn={"zh"})
        resolver = MultiLanguageResolver(kb, fanout=2)

        started = time.monotonic()
        result = await resolver.resolve("Man Mo Temple", hong_kong, ["en", "zh"])

        assert time.monotonic() - started < 1.0
        assert result.language_code == "en"
        assert kb.cancelled == ["zh"]
        assert kb.finished == ["en"]

    async def test_fast_path_trace(self, man_mo_article, hong_kong):
        kb = FakeKnowledgeBase({"en": man_mo_article, "zh": None}, delays={"zh": 5.0})
        result = await MultiLanguageResolver(kb).resolve("Man Mo Temple", hong_kong, ["en", "zh"])

        assert [str(state) for state in result.trace] == ["IDLE", "SEARCHING(0)", "SEARCHING(1)", "RESOLVED(0)"]

    async def test_fast_path_in_later_language(self, hong_kong):
        kb = FakeKnowledgeBase(
            {
                "en": None,
                "zh": make_article("文武廟", "zh", description="香港上環的廟宇", coordinate=hong_kong),
            }
        )
        result = await MultiLanguageResolver(kb).resolve("文武廟", hong_kong, ["en", "zh"])
        assert result.is_resolved
        assert result.language_code == "zh"


# ============================================================
# Exhaustion
# ============================================================


class TestExhaustion:
    async def test_all_not_found_tries_full_priority_list(self):
        kb = FakeKnowledgeBase({})
        result = await MultiLanguageResolver(kb, fanout=2).resolve("Lan Kwai Fong")

        assert isinstance(result, Unresolved)
        assert result.reason == UnresolvedReason.NO_MATCH
        assert result.tried_languages == ("en", "zh", "fr")
        assert sorted(kb.started) == ["en", "fr", "zh"]
        assert isinstance(result.error, AllLanguagesExhaustedError)
        assert isinstance(result.error.context.related_errors[0], NoCandidatesFoundError)
        assert result.trace[-1] == ResolverState(ResolverPhase.EXHAUSTED)

    async def test_rejected_candidates_report_best_score(self):
        temple = make_article("Banque", description="Buddhist temple")
        kb = FakeKnowledgeBase({"en": temple, "zh": temple, "fr": temple})
        result = await MultiLanguageResolver(kb).resolve("banque", languages=["en", "zh", "fr"])

        assert isinstance(result, Unresolved)
        cause = result.error.context.related_errors[0]
        assert isinstance(cause, NoAcceptedMatchError)
        assert cause.best_score > cause.threshold

    async def test_empty_language_list(self):
        result = await MultiLanguageResolver(FakeKnowledgeBase({})).resolve("Man Mo Temple", languages=[])
        assert isinstance(result, Unresolved)
        assert result.tried_languages == ()


# ============================================================
# Failure isolation
# ============================================================


class TestFailureIsolation:
    async def test_provider_error_is_no_result_for_that_language(self, man_mo_article, hong_kong):
        zh_article = dataclasses.replace(man_mo_article, language_code="zh")
        kb = FakeKnowledgeBase({"en": ProviderError("HTTP 500", provider="Wikipedia"), "zh": zh_article})
        result = await MultiLanguageResolver(kb).resolve("Man Mo Temple", hong_kong, ["en", "zh"])

        assert result.is_resolved
        assert result.language_code == "zh"

    async def test_timeout_is_no_result_for_that_language(self, man_mo_article, hong_kong):
        zh_article = dataclasses.replace(man_mo_article, language_code="zh")
        kb = FakeKnowledgeBase({"en": man_mo_article, "zh": zh_article}, delays={"en": 5.0})
        resolver = MultiLanguageResolver(kb, fanout=1, language_timeout=0.05)

        result = await asyncio.wait_for(resolver.resolve("Man Mo Temple", hong_kong, ["en", "zh"]), timeout=2.0)
        assert result.language_code == "zh"

    async def test_timeout_does_not_wait_for_stubborn_language(self, man_mo_article, hong_kong):
        zh_article = dataclasses.replace(man_mo_article, language_code="zh")
        kb = FakeKnowledgeBase({"en": man_mo_article, "zh": zh_article}, delays={"en": 3.0}, stubborn={"en"})
        resolver = MultiLanguageResolver(kb, fanout=1, language_timeout=0.1)

        started = time.monotonic()
        result = await resolver.resolve("Man Mo Temple", hong_kong, ["en", "zh"])

        assert time.monotonic() - started < 1.0
        assert result.language_code == "zh"
        assert kb.cancelled == ["en"]

    async def test_errors_attached_when_exhausted(self):
        kb = FakeKnowledgeBase({"en": ProviderError("down")}, delays={"zh": 5.0})
        resolver = MultiLanguageResolver(kb, language_timeout=0.05)
        result = await resolver.resolve("Man Mo Temple", languages=["en", "zh"])

        related = result.error.context.related_errors
        assert isinstance(related[0], NoCandidatesFoundError)
        assert {type(e) for e in related[1:]} == {ProviderError, ProviderTimeoutError}

    async def test_caller_cancellation_propagates(self):
        kb = FakeKnowledgeBase({}, delays={"en": 5.0, "zh": 5.0})
        task = asyncio.create_task(MultiLanguageResolver(kb).resolve("Man Mo Temple", languages=["en", "zh"]))
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert sorted(kb.cancelled) == ["en", "zh"]


# ============================================================
# Waves and ranking
# ============================================================


class TestWaves:
    async def test_waves_run_in_priority_order(self):
        kb = FakeKnowledgeBase({})
        await MultiLanguageResolver(kb, fanout=1).resolve("x", languages=["en", "zh", "fr"])
        assert kb.started == ["en", "zh", "fr"]

    async def test_accepted_candidate_does_not_stop_later_waves(self):
        kb = FakeKnowledgeBase(
            {
                "en": make_article("Shearith Israel", "en"),
                "fr": make_article(SHERITH, "fr"),
            }
        )
        result = await MultiLanguageResolver(kb, fanout=1).resolve(SHERITH, languages=["en", "zh", "fr"])

        assert kb.started == ["en", "zh", "fr"]
        assert result.language_code == "fr"
        assert result.score.combined > 0.8

    async def test_best_accepted_wins_across_waves(self):
        kb = FakeKnowledgeBase(
            {
                "en": make_article("Shearith Israel", "en"),
                "zh": make_article(SHERITH, "zh"),
            }
        )
        resolver = MultiLanguageResolver(kb, no_fast_path(), fanout=1)
        result = await resolver.resolve(SHERITH, languages=["en", "zh"])

        assert result.language_code == "zh"
        assert [str(s) for s in result.trace] == ["IDLE", "SEARCHING(0)", "SEARCHING(1)", "RESOLVED(1)"]

    async def test_tie_broken_by_language_priority_not_completion(self):
        kb = FakeKnowledgeBase(
            {"en": make_article(SHERITH, "en"), "zh": make_article(SHERITH, "zh")},
            delays={"en": 0.02},
        )
        result = await MultiLanguageResolver(kb, no_fast_path(), fanout=2).resolve(SHERITH, languages=["en", "zh"])
        assert result.language_code == "en"

    async def test_sherith_resolves_without_coordinates(self):
        kb = FakeKnowledgeBase({"en": make_article("Shearith Israel", "en")})
        result = await MultiLanguageResolver(kb).resolve(SHERITH, Coordinate(37.79, -122.43), ["en"])

        assert result.is_resolved
        assert result.score.weights[1] == 0.0
        assert result.score.semantic >= 0.87


class TestConfiguration:
    def test_invalid_fanout(self):
        with pytest.raises(ConfigurationError):
            MultiLanguageResolver(FakeKnowledgeBase({}), fanout=0)

    def test_invalid_timeout(self):
        with pytest.raises(ConfigurationError):
            MultiLanguageResolver(FakeKnowledgeBase({}), language_timeout=0)

    def test_custom_priority(self):
        resolver = MultiLanguageResolver(FakeKnowledgeBase({}), priority=lambda name: ("de",))
        result = asyncio.run(resolver.resolve("Brandenburger Tor"))
        assert result.tried_languages == ("de",)
