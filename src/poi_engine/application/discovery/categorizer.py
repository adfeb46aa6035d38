"""
Place categorization for discovery results.

Three layers, first hit wins:
1. the provider's own type tag (OSM ``class=type`` or a bare type)
2. name heuristics (multilingual, including CJK terms)
3. the discovery keyword that produced the place
"""

from __future__ import annotations

import re

from poi_engine.domain.entities import POICategory

# The tourism-oriented keywords used when a caller does not supply any.
DEFAULT_DISCOVERY_KEYWORDS: tuple[str, ...] = (
    "tourist attraction",
    "famous restaurant",
    "shopping mall",
    "museum",
    "landmark",
    "national park",
    "historic site",
    "cultural center",
    "palace",
    "temple",
    "amusement park",
    "zoo",
    "botanical garden",
    "scenic spot",
    "heritage site",
)

# Layer 1: provider type tags
PROVIDER_TYPE_MAP: dict[str, POICategory] = {
    "museum": POICategory.MUSEUM,
    "gallery": POICategory.MUSEUM,
    "arts_centre": POICategory.CULTURAL_CENTER,
    "library": POICategory.MUSEUM,
    "park": POICategory.PARK,
    "garden": POICategory.PARK,
    "nature_reserve": POICategory.PARK,
    "national_park": POICategory.NATIONAL_PARK,
    "protected_area": POICategory.NATIONAL_PARK,
    "beach": POICategory.BEACH,
    "peak": POICategory.MOUNTAIN,
    "volcano": POICategory.MOUNTAIN,
    "mountain_range": POICategory.MOUNTAIN,
    "castle": POICategory.HISTORICAL_SITE,
    "monument": POICategory.HISTORICAL_SITE,
    "memorial": POICategory.HISTORICAL_SITE,
    "ruins": POICategory.HISTORICAL_SITE,
    "archaeological_site": POICategory.HISTORICAL_SITE,
    "landmark": POICategory.HISTORICAL_SITE,
    "place_of_worship": POICategory.TEMPLE,
    "viewpoint": POICategory.VIEWPOINT,
    "theme_park": POICategory.AMUSEMENT_PARK,
    "amusement_park": POICategory.AMUSEMENT_PARK,
    "zoo": POICategory.AMUSEMENT_PARK,
    "aquarium": POICategory.AMUSEMENT_PARK,
    "stadium": POICategory.AMUSEMENT_PARK,
    "theatre": POICategory.AMUSEMENT_PARK,
    "cinema": POICategory.AMUSEMENT_PARK,
    "mall": POICategory.SHOPPING_CENTER,
    "department_store": POICategory.SHOPPING_CENTER,
    "restaurant": POICategory.RESTAURANT,
}

# Layer 2: name heuristics, in priority order
NAME_RULES: tuple[tuple[POICategory, tuple[str, ...]], ...] = (
    (POICategory.RESTAURANT, (
        "famous", "michelin", "fine dining", "specialty", "restaurant", "rooftop",
        "mcdonalds", "kfc", "starbucks", "hard rock",
        "出名", "知名", "特色", "老字號", "餐廳", "餐厅", "麥當勞", "肯德基", "星巴克", "茶樓", "酒樓",
    )),
    (POICategory.SHOPPING_CENTER, (
        "shopping mall", "shopping center", "shopping centre", "department", "outlet", " mall",
        "souvenir", "購物中心", "购物中心", "商場", "商场", "百貨", "百货",
    )),
    (POICategory.NATIONAL_PARK, ("national park", "國家公園", "国家公园", "parque nacional", "parc national")),
    (POICategory.AMUSEMENT_PARK, (
        "amusement", "theme park", "disneyland", "zoo", "aquarium", "cinema", "theater", "theatre",
        "arcade", "遊樂園", "游乐园", "主題公園", "主题公园", "動物園", "动物园", "電影院", "劇院", "娛樂",
    )),
    (POICategory.BEACH, ("beach", "playa", "plage", "海灘", "海滩", "沙灘", "沙滩")),
    (POICategory.PARK, (
        "park", "garden", "forest", "nature", "parque", "parc", "jardin",
        "公園", "公园", "花園", "花园", "森林", "自然",
    )),
    (POICategory.MUSEUM, (
        "museum", "gallery", "library", "exhibition", "archive", "museo", "musee",
        "博物館", "博物馆", "美術館", "美术馆", "圖書館", "图书馆", "展覽", "展览",
    )),
    (POICategory.CULTURAL_CENTER, ("cultural center", "cultural centre", "arts centre", "文化中心")),
    (POICategory.TEMPLE, (
        "temple", "church", "mosque", "synagogue", "cathedral", "chapel", "monastery", "abbey",
        "shrine", "pagoda", "congregation",
        "廟", "庙", "寺", "教堂", "清真寺", "神社",
    )),
    (POICategory.VIEWPOINT, (
        "viewpoint", "observation", "observatory", "lookout", "scenic", "vista",
        "觀景台", "观景台", "風景", "风景",
    )),
    (POICategory.MOUNTAIN, ("mountain", "mount ", "peak", "summit", "volcano", "山峰")),
    (POICategory.HISTORICAL_SITE, (
        "palace", "castle", "monument", "memorial", "heritage", "historic", "fort ", "ruins",
        "宮殿", "宫殿", "城堡", "紀念", "纪念", "遺產", "遗产", "古",
    )),
)

# Layer 3: discovery keyword fallback
KEYWORD_RULES: tuple[tuple[POICategory, tuple[str, ...]], ...] = (
    (POICategory.RESTAURANT, ("famous restaurant", "fine dining", "出名餐廳")),
    (POICategory.SHOPPING_CENTER, ("shopping mall", "shopping center", "購物中心")),
    (POICategory.NATIONAL_PARK, ("national park", "國家公園")),
    (POICategory.PARK, ("botanical garden",)),
    (POICategory.MUSEUM, ("museum", "博物館")),
    (POICategory.CULTURAL_CENTER, ("cultural center",)),
    (POICategory.TEMPLE, ("temple", "church", "寺廟")),
    (POICategory.AMUSEMENT_PARK, ("amusement park", "theme park", "zoo", "遊樂園")),
    (POICategory.VIEWPOINT, ("viewpoint", "scenic spot", "觀景台")),
    (POICategory.HISTORICAL_SITE, ("palace", "castle", "heritage site", "historic site", "landmark")),
)

_TYPE_SPLIT = re.compile(r"[=:/]")


def _match_rules(text: str, rules: tuple[tuple[POICategory, tuple[str, ...]], ...]) -> POICategory | None:
    padded = f" {text} "
    for category, needles in rules:
        if any(needle in padded for needle in needles):
            return category
    return None


def categorize_place(
    name: str,
    keyword: str | None = None,
    provider_type: str | None = None,
) -> POICategory:
    """
    Classify a place into a ``POICategory``.

    Example:
        >>> categorize_place("Man Mo Temple")
        <POICategory.TEMPLE: 'temple'>
        >>> categorize_place("Unnamed", provider_type="tourism=museum")
        <POICategory.MUSEUM: 'museum'>
    """
    if provider_type:
        tag = _TYPE_SPLIT.split(provider_type.strip().lower())[-1]
        if tag in PROVIDER_TYPE_MAP:
            return PROVIDER_TYPE_MAP[tag]

    by_name = _match_rules(name.lower(), NAME_RULES)
    if by_name is not None:
        return by_name

    if keyword:
        by_keyword = _match_rules(keyword.lower(), KEYWORD_RULES)
        if by_keyword is not None:
            return by_keyword

    return POICategory.OTHER
