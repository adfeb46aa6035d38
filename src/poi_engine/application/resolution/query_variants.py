"""Alternative spellings of a POI name for knowledge-base search fallback."""

from __future__ import annotations

import re

PLACE_SUFFIXES: tuple[str, ...] = (
    "gallery", "museum", "theatre", "theater", "center", "centre",
    "building", "tower", "square", "park", "garden", "beach", "bay",
    "church", "cathedral", "temple", "mosque", "synagogue",
    "hotel", "restaurant", "cafe", "bar", "club", "market",
    "station", "airport", "bridge", "street", "road", "avenue",
)

ABBREVIATIONS: dict[str, str] = {
    "st": "saint",
    "mt": "mount",
    "dr": "doctor",
    "ave": "avenue",
    "rd": "road",
    "sq": "square",
}

_ABBREVIATION_RE = re.compile(
    r"\b(" + "|".join(ABBREVIATIONS) + r")\b\.?",
    re.IGNORECASE,
)


def generate_query_variants(name: str) -> list[str]:
    """
    Search variants of ``name``, original first, without duplicates.

    Example:
        >>> generate_query_variants("St Paul Museum")
        ['St Paul Museum', 'St Paul', 'saint Paul Museum', 'the St Paul Museum']
    """
    query = " ".join(name.split())
    if not query:
        return []
    variants = [query]
    lowered = query.lower()

    for suffix in PLACE_SUFFIXES:
        if lowered.endswith(f" {suffix}"):
            stripped = query[: -(len(suffix) + 1)].rstrip()
            if stripped:
                variants.append(stripped)

    expanded = _ABBREVIATION_RE.sub(lambda m: ABBREVIATIONS[m.group(1).lower()], query)
    if expanded != query:
        variants.append(expanded)

    if not lowered.startswith("the "):
        variants.append(f"the {query}")

    seen: set[str] = set()
    unique: list[str] = []
    for variant in variants:
        key = variant.lower()
        if key not in seen:
            seen.add(key)
            unique.append(variant)
    return unique
