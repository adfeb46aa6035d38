"""
Text Features - normalization and heuristic analysis of POI names.

Everything here is pure, local processing: no I/O, no shared state.
The scorer and the weighting functions only ever see the structured
``QueryFeatures`` produced by ``extract_features``, never raw free text.

Example:
    >>> features = extract_features("Congregation Sherith Israel")
    >>> features.content_words
    ('sherith', 'israel')
    >>> sorted(features.type_groups)
    ['religious']
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass

# =============================================================================
# Vocabulary
# =============================================================================

# Place-type groups. A name mentioning one of these terms is typed by it.
TYPE_GROUPS: dict[str, frozenset[str]] = {
    "religious": frozenset({
        "temple", "church", "mosque", "synagogue", "cathedral", "shrine", "monastery",
        "abbey", "basilica", "chapel", "pagoda", "congregation", "shul", "buddhist",
        "taoist", "masjid", "iglesia", "eglise", "templo", "tempel", "kirche", "chiesa",
        "duomo", "mezquita", "mosquee",
        "寺", "廟", "庙", "教堂", "神社", "清真寺", "道觀", "道观", "禪院", "禅院",
    }),
    "cultural": frozenset({
        "museum", "gallery", "theater", "theatre", "opera", "concert", "cultural",
        "art", "arts", "exhibition", "museo", "musee", "galerie", "teatro",
        "博物館", "博物馆", "美術館", "美术馆", "展覽館", "展览馆", "文化中心", "劇院", "剧院",
    }),
    "recreational": frozenset({
        "park", "garden", "gardens", "zoo", "aquarium", "amusement", "playground",
        "recreation", "parque", "parc", "jardin", "jardim",
        "公園", "公园", "花園", "花园", "動物園", "动物园", "遊樂園", "游乐园", "水族館", "水族馆",
    }),
    "natural": frozenset({
        "beach", "lake", "mountain", "forest", "river", "waterfall", "cave", "island",
        "bay", "peak", "volcano", "canyon", "playa", "plage", "montagne", "lago",
        "海灘", "海滩", "沙灘", "沙滩", "瀑布", "山峰", "湖泊", "島", "岛",
    }),
    "transportation": frozenset({
        "station", "airport", "port", "terminal", "depot", "hub", "gare", "estacion",
        "車站", "车站", "機場", "机场", "駅", "碼頭", "码头",
    }),
    "commercial": frozenset({
        "market", "mall", "shopping", "store", "restaurant", "hotel", "cafe", "bazaar",
        "mercado", "marche",
        "市場", "市场", "商場", "商场", "餐廳", "餐厅", "酒店", "飯店", "饭店",
    }),
    "historical": frozenset({
        "castle", "palace", "fort", "fortress", "monument", "memorial", "historic",
        "ancient", "heritage", "ruins", "citadel", "chateau", "castillo", "palacio",
        "城堡", "宮", "宫", "故居", "遺址", "遗址", "古蹟", "古迹", "紀念館", "纪念馆",
    }),
    "educational": frozenset({
        "university", "college", "school", "library", "institute", "academy",
        "universidad", "universite", "biblioteca", "bibliotheque",
        "大學", "大学", "圖書館", "图书馆", "學院", "学院",
    }),
    "medical": frozenset({
        "hospital", "clinic", "medical", "health", "pharmacy", "hopital",
        "醫院", "医院", "診所", "诊所",
    }),
    "government": frozenset({
        "city hall", "courthouse", "embassy", "consulate", "government", "municipal",
        "parliament", "市政府", "政府", "大使館", "大使馆",
    }),
    "sports": frozenset({
        "stadium", "arena", "gym", "sports", "field", "court", "track", "estadio",
        "體育館", "体育馆", "體育場", "体育场",
    }),
    "entertainment": frozenset({
        "cinema", "theater", "theatre", "club", "bar", "entertainment", "nightlife", "casino",
        "電影院", "电影院",
    }),
}

# Place types that are recognizable but belong to no configured group.
UNCONFIGURED_TYPE_GROUP = "unconfigured"
UNCONFIGURED_TYPE_TERMS: frozenset[str] = frozenset({
    "bank", "banque", "banco", "banca", "atm", "parking", "laundromat", "laundry",
    "supermarket", "supermarche", "supermercado",
    "銀行", "银行", "停車場", "停车场",
})

# Symmetric "related group" pairs; exact matches are scored separately.
RELATED_TYPE_GROUPS: frozenset[frozenset[str]] = frozenset({
    frozenset({"religious", "historical"}),
    frozenset({"religious", "cultural"}),
    frozenset({"cultural", "historical"}),
    frozenset({"cultural", "educational"}),
    frozenset({"recreational", "natural"}),
    frozenset({"recreational", "entertainment"}),
})

SYNONYMS: dict[str, tuple[str, ...]] = {
    "temple": ("shrine", "monastery", "pagoda", "sanctuary", "cathedral", "church", "buddhist", "taoist"),
    "museum": ("gallery", "exhibition", "collection", "center", "centre"),
    "beach": ("shore", "coast", "bay", "waterfront", "seaside"),
    "square": ("plaza", "piazza", "place", "courtyard", "park"),
    "station": ("terminal", "depot", "stop", "hub"),
    "market": ("bazaar", "marketplace", "mart", "fair"),
    "tower": ("spire", "minaret", "campanile", "steeple"),
    "bridge": ("span", "crossing", "viaduct", "overpass"),
    "garden": ("park", "botanical", "arboretum", "conservatory"),
    "palace": ("castle", "mansion", "residence", "manor"),
    "library": ("archive", "repository", "collection", "center"),
    "hospital": ("clinic", "medical", "health", "care"),
    "university": ("college", "school", "academy", "institute"),
    "restaurant": ("cafe", "bistro", "eatery", "dining", "kitchen"),
    "hotel": ("inn", "lodge", "resort", "accommodation", "guest"),
    "synagogue": ("temple", "shul", "congregation", "beth"),
    "mosque": ("masjid", "islamic", "muslim", "prayer"),
    "church": ("cathedral", "chapel", "basilica", "abbey"),
    "island": ("isle", "archipelago", "atoll", "key"),
    "mountain": ("peak", "summit", "hill", "mount", "ridge"),
    "lake": ("pond", "reservoir", "lagoon", "loch"),
    "river": ("stream", "creek", "waterway", "channel"),
    "forest": ("woods", "woodland", "jungle", "grove"),
    "desert": ("dunes", "sahara", "wilderness", "badlands"),
}

# CJK synonym families; members are rewritten to the family key before n-gramming.
CJK_SYNONYMS: dict[str, tuple[str, ...]] = {
    "寺": ("寺廟", "寺庙", "廟", "庙", "庵"),
    "博物館": ("博物馆", "展覽館", "展览馆", "文物館", "文物馆"),
    "美術館": ("美术馆",),
    "公園": ("公园", "園林", "园林", "綠地", "绿地"),
    "海灘": ("海滩", "沙灘", "沙滩", "海邊", "海边"),
    "車站": ("车站", "火車站", "火车站"),
    "圖書館": ("图书馆", "書館", "书馆"),
    "酒店": ("飯店", "饭店", "旅館", "旅馆", "賓館", "宾馆"),
    "餐廳": ("餐厅", "食堂", "茶樓", "茶楼", "酒樓", "酒楼"),
}

STOP_WORDS: frozenset[str] = frozenset({
    # English
    "of", "the", "at", "in", "on", "and", "a", "an", "to", "for",
    "saint", "st", "new", "old", "big", "small", "great", "grand",
    "north", "south", "east", "west", "upper", "lower", "first", "second", "third",
    "national", "international", "public", "private", "main", "central",
    "historical", "modern", "royal", "imperial",
    "center", "centre", "hall", "pier", "square", "plaza", "tower", "bridge",
    "avenue", "road", "street",
    # Romance / Germanic articles and connectors
    "de", "la", "le", "les", "el", "los", "las", "du", "des", "del", "di", "da",
    "der", "die", "das", "von", "san", "santa", "casa", "centro", "maison", "place",
    # Query feature words
    "near", "nearby", "around", "close", "closest", "nearest", "exact", "exactly",
    "specific", "specifically", "precise", "official", "type", "kind", "cerca", "pres", "proche",
})

CJK_STOP_CHARS: frozenset[str] = frozenset("的了在是和與与及")

PROXIMITY_WORDS: frozenset[str] = frozenset({
    "near", "nearby", "around", "close", "closest", "nearest", "cerca", "pres", "proche", "附近",
})
TYPE_QUERY_WORDS: frozenset[str] = frozenset({"type", "kind", "category", "類型", "类型"})
EXACT_WORDS: frozenset[str] = frozenset({
    "exact", "exactly", "specific", "specifically", "precise", "official",
})

_CJK_RE = re.compile(r"[\u3040-\u30ff\u3400-\u4dbf\u4e00-\u9fff\uac00-\ud7af\uf900-\ufaff]")
_APOSTROPHES = frozenset("'\u2019`\u00b4\u02bc")

# Term -> groups, built once
_TERM_INDEX: dict[str, frozenset[str]] = {}
for _group, _terms in TYPE_GROUPS.items():
    for _term in _terms:
        _TERM_INDEX[_term] = _TERM_INDEX.get(_term, frozenset()) | {_group}
for _term in UNCONFIGURED_TYPE_TERMS:
    _TERM_INDEX[_term] = frozenset({UNCONFIGURED_TYPE_GROUP})

_SYNONYM_INDEX: dict[str, frozenset[str]] = {}
for _key, _members in SYNONYMS.items():
    _family = frozenset((_key, *_members))
    for _word in _family:
        _SYNONYM_INDEX[_word] = _SYNONYM_INDEX.get(_word, frozenset()) | _family

_CJK_CANONICAL: list[tuple[str, str]] = sorted(
    ((member, key) for key, members in CJK_SYNONYMS.items() for member in members),
    key=lambda pair: len(pair[0]),
    reverse=True,
)


# =============================================================================
# Normalization
# =============================================================================


def normalize(text: str) -> str:
    """
    Case-fold, strip accents and punctuation, collapse whitespace.

    Latin diacritics are removed ("Musée" -> "musee"); CJK, kana and Hangul
    pass through unchanged.
    """
    decomposed = unicodedata.normalize("NFKD", text)
    chars: list[str] = []
    for ch in decomposed:
        if "\u0300" <= ch <= "\u036f" or ch in _APOSTROPHES:
            continue
        if unicodedata.category(ch)[0] in "PSZC":
            chars.append(" ")
        else:
            chars.append(ch)
    recomposed = unicodedata.normalize("NFC", "".join(chars))
    return " ".join(recomposed.casefold().split())


def contains_cjk(text: str) -> bool:
    return _CJK_RE.search(text) is not None


def tokenize(normalized: str) -> list[str]:
    return normalized.split()


def canonical_cjk(normalized: str) -> str:
    """Rewrite CJK synonyms to their family key and drop spaces and particles."""
    text = normalized
    for member, key in _CJK_CANONICAL:
        text = text.replace(member, key)
    return "".join(ch for ch in text if not ch.isspace() and ch not in CJK_STOP_CHARS)


def char_ngrams(text: str, n: int) -> set[str]:
    """Character n-grams; strings shorter than ``n`` yield themselves."""
    if not text:
        return set()
    if len(text) < n:
        return {text}
    return {text[i : i + n] for i in range(len(text) - n + 1)}


# CJK type terms in canonical form, longest first
_CJK_TYPE_TERMS: tuple[str, ...] = tuple(
    sorted(
        {canonical_cjk(term) for term in _TERM_INDEX if contains_cjk(term)} - {""},
        key=len,
        reverse=True,
    )
)


# =============================================================================
# Word analysis
# =============================================================================


def is_type_term(token: str) -> bool:
    return token in _TERM_INDEX


def content_words(normalized: str) -> list[str]:
    """Meaningful name tokens: no stop words, no place-type terms."""
    return [
        token
        for token in tokenize(normalized)
        if len(token) >= 2 and token not in STOP_WORDS and token not in _TERM_INDEX
    ]


def cjk_content(canonical: str) -> str:
    """Canonical CJK text with place-type terms removed ("上海博物館" -> "上海")."""
    for term in _CJK_TYPE_TERMS:
        canonical = canonical.replace(term, "")
    return canonical


def expand_with_synonyms(tokens: list[str] | tuple[str, ...]) -> set[str]:
    expanded = set(tokens)
    for token in tokens:
        expanded |= _SYNONYM_INDEX.get(token, frozenset())
    return expanded


def detect_type_groups(text: str) -> frozenset[str]:
    """
    Place-type groups mentioned in ``text``.

    Latin terms match whole tokens (or token runs for multi-word terms);
    CJK terms match as substrings.
    """
    normalized = normalize(text)
    if not normalized:
        return frozenset()

    groups: set[str] = set()
    tokens = set(tokenize(normalized))
    padded = f" {normalized} "
    has_cjk = contains_cjk(normalized)

    for term, term_groups in _TERM_INDEX.items():
        if contains_cjk(term):
            if has_cjk and term in normalized:
                groups |= term_groups
        elif " " in term:
            if f" {term} " in padded:
                groups |= term_groups
        elif term in tokens:
            groups |= term_groups
    return frozenset(groups)


def types_related(left: str, right: str) -> bool:
    return frozenset({left, right}) in RELATED_TYPE_GROUPS


# =============================================================================
# Query features
# =============================================================================


@dataclass(frozen=True)
class QueryFeatures:
    """
    Structured view of a POI query, consumed by weighting and scoring.

    ``type_groups`` lists the place-type groups the query names explicitly.
    ``UNCONFIGURED_TYPE_GROUP`` appears there when the query names a type
    outside every configured group (for instance a bank).
    """

    text: str
    normalized: str
    tokens: tuple[str, ...]
    content_words: tuple[str, ...]
    is_cjk: bool
    has_proximity: bool
    has_type_words: bool
    wants_exact: bool
    type_groups: frozenset[str]

    @property
    def length(self) -> int:
        return len(self.normalized)

    @property
    def has_explicit_type(self) -> bool:
        return bool(self.type_groups)


def extract_features(text: str) -> QueryFeatures:
    normalized = normalize(text)
    tokens = tuple(tokenize(normalized))
    token_set = set(tokens)
    is_cjk = contains_cjk(normalized)

    def mentions(words: frozenset[str]) -> bool:
        if token_set & words:
            return True
        return is_cjk and any(contains_cjk(w) and w in normalized for w in words)

    return QueryFeatures(
        text=text,
        normalized=normalized,
        tokens=tokens,
        content_words=tuple(content_words(normalized)),
        is_cjk=is_cjk,
        has_proximity=mentions(PROXIMITY_WORDS),
        has_type_words=mentions(TYPE_QUERY_WORDS),
        wants_exact=mentions(EXACT_WORDS),
        type_groups=detect_type_groups(text),
    )
