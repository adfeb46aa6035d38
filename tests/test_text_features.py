"""Tests for text_features.py - normalization, type detection, query features."""

import pytest

from poi_engine.application.resolution.text_features import (
    UNCONFIGURED_TYPE_GROUP,
    canonical_cjk,
    char_ngrams,
    cjk_content,
    content_words,
    contains_cjk,
    detect_type_groups,
    expand_with_synonyms,
    extract_features,
    normalize,
    types_related,
)

# ============================================================
# Normalization
# ============================================================


class TestNormalize:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Musée du Louvre", "musee du louvre"),
            ("  Man   Mo\tTemple ", "man mo temple"),
            ("St. Paul's Cathedral", "st pauls cathedral"),
            ("Sagrada Família!", "sagrada familia"),
            ("文武廟", "文武廟"),
            ("", ""),
        ],
    )
    def test_normalize(self, raw, expected):
        assert normalize(raw) == expected

    def test_idempotent(self):
        once = normalize("Château de Versailles (Paris)")
        assert normalize(once) == once


class TestCjkHelpers:
    def test_contains_cjk(self):
        assert contains_cjk("文武廟")
        assert contains_cjk("清水寺 Kiyomizu")
        assert not contains_cjk("Man Mo Temple")

    def test_canonical_cjk_rewrites_synonyms(self):
        assert canonical_cjk("文武庙") == canonical_cjk("文武廟")
        assert canonical_cjk("香港 的 公园") == "香港公園"

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("上海博物館", "上海"),
            ("上海自然博物馆", "上海自然"),
            ("香港動植物公園", "香港動植物"),
            ("香港動物園", "香港"),
            ("上環文武庙", "上環文武"),
            ("博物館", ""),
        ],
    )
    def test_cjk_content_drops_type_terms(self, raw, expected):
        assert cjk_content(canonical_cjk(raw)) == expected

    def test_char_ngrams(self):
        assert char_ngrams("abcd", 2) == {"ab", "bc", "cd"}
        assert char_ngrams("a", 2) == {"a"}
        assert char_ngrams("", 2) == set()


# ============================================================
# Word analysis
# ============================================================


class TestWordAnalysis:
    def test_content_words_drop_stop_and_type_terms(self):
        assert content_words("congregation sherith israel") == ["sherith", "israel"]
        assert content_words("the museum of modern art") == []

    def test_synonym_expansion(self):
        expanded = expand_with_synonyms(["temple"])
        assert {"temple", "shrine", "pagoda"} <= expanded

    def test_detect_configured_groups(self):
        assert detect_type_groups("Man Mo Temple") == frozenset({"religious"})
        assert "cultural" in detect_type_groups("Hong Kong Museum of Art")
        assert "religious" in detect_type_groups("文武廟")

    def test_detect_multi_word_term(self):
        assert "government" in detect_type_groups("Old City Hall")

    def test_detect_unconfigured_type(self):
        assert detect_type_groups("banque") == frozenset({UNCONFIGURED_TYPE_GROUP})

    def test_no_type(self):
        assert detect_type_groups("Sherith Israel") == frozenset()

    def test_types_related_is_symmetric(self):
        assert types_related("religious", "historical")
        assert types_related("historical", "religious")
        assert not types_related("religious", "commercial")


# ============================================================
# Query features
# ============================================================


class TestExtractFeatures:
    def test_plain_query(self):
        features = extract_features("Congregation Sherith Israel")
        assert features.normalized == "congregation sherith israel"
        assert features.content_words == ("sherith", "israel")
        assert features.type_groups == frozenset({"religious"})
        assert not features.is_cjk
        assert not features.has_proximity

    def test_proximity_and_exact_words(self):
        assert extract_features("temple near harbour").has_proximity
        assert extract_features("exact Man Mo Temple").wants_exact
        assert extract_features("what kind of museum").has_type_words

    def test_cjk_proximity(self):
        features = extract_features("附近的寺廟")
        assert features.is_cjk
        assert features.has_proximity

    def test_length_uses_normalized_text(self):
        assert extract_features("  Zoo  ").length == 3
        assert extract_features("Zoo").has_explicit_type
