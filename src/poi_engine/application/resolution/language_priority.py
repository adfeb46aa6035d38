"""
Language priority for knowledge-base lookups.

The order is a pure function of the POI name: its script first, then
language-specific landmark words, then a broad-coverage default.
"""

from __future__ import annotations

import re

from .text_features import normalize

_KANA_RE = re.compile(r"[\u3040-\u30ff\u31f0-\u31ff]")
_HAN_RE = re.compile(r"[\u3400-\u4dbf\u4e00-\u9fff\uf900-\ufaff]")
_HANGUL_RE = re.compile(r"[\u1100-\u11ff\u3130-\u318f\uac00-\ud7af]")
_ARABIC_RE = re.compile(r"[\u0600-\u06ff\u0750-\u077f]")
_CYRILLIC_RE = re.compile(r"[\u0400-\u04ff]")

# Landmark words (accent-free) that identify a Latin-script language
LANDMARK_MARKERS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("fr", "en"), ("chateau", "musee", "cathedrale", "eglise", "basilique")),
    (("es", "en"), ("museo", "catedral", "plaza", "iglesia")),
    (("it", "en"), ("cattedrale", "piazza", "chiesa", "duomo")),
    (("pt", "en"), ("museu", "praca", "igreja", "mosteiro")),
)

ENGLISH_LANDMARK_WORDS: tuple[str, ...] = (
    "museum", "cathedral", "church", "palace", "castle", "tower", "bridge", "square",
    "gallery", "center", "centre", "park", "garden", "beach", "temple", "shrine",
)

CJK_ORDER: tuple[str, ...] = ("zh", "en", "ja")
JAPANESE_ORDER: tuple[str, ...] = ("ja", "en", "zh")
KOREAN_ORDER: tuple[str, ...] = ("ko", "en", "zh")
ARABIC_ORDER: tuple[str, ...] = ("ar", "en")
RUSSIAN_ORDER: tuple[str, ...] = ("ru", "en")
ENGLISH_LANDMARK_ORDER: tuple[str, ...] = ("en", "zh", "fr", "de")
DEFAULT_ORDER: tuple[str, ...] = ("en", "zh", "fr")


def language_priority(name: str) -> tuple[str, ...]:
    """
    Ordered language codes to try for ``name``.

    Example:
        >>> language_priority("文武廟")
        ('zh', 'en', 'ja')
        >>> language_priority("Musée du Louvre")
        ('fr', 'en')
    """
    # Kana before Han: Japanese names usually mix both
    if _KANA_RE.search(name):
        return JAPANESE_ORDER
    if _HAN_RE.search(name):
        return CJK_ORDER
    if _HANGUL_RE.search(name):
        return KOREAN_ORDER
    if _ARABIC_RE.search(name):
        return ARABIC_ORDER
    if _CYRILLIC_RE.search(name):
        return RUSSIAN_ORDER

    tokens = set(normalize(name).split())
    for order, markers in LANDMARK_MARKERS:
        if tokens.intersection(markers):
            return order
    if tokens.intersection(ENGLISH_LANDMARK_WORDS):
        return ENGLISH_LANDMARK_ORDER
    return DEFAULT_ORDER
