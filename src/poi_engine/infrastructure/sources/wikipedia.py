"""
Wikipedia Integration

Per-language article lookup for POI resolution.

API Documentation:
- REST summary: https://{lang}.wikipedia.org/api/rest_v1/#/Page%20content
- Search: https://www.mediawiki.org/wiki/API:Search

Lookup strategy:
1. REST page summary for the exact title
2. On 404 or a disambiguation page, full-text search over query variants
   (srlimit 5), then the summary of the hit most similar to the title

Payloads are decoded once here into ``LanguageCandidate``; nothing untyped
leaves this module.
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import TYPE_CHECKING, Any

from rapidfuzz import fuzz, process

from poi_engine.application.resolution.query_variants import generate_query_variants
from poi_engine.application.resolution.text_features import normalize
from poi_engine.domain.entities import Coordinate, LanguageCandidate
from poi_engine.infrastructure.sources.base_client import _CONTINUE, BaseAPIClient
from poi_engine.shared.async_utils import RateLimiter
from poi_engine.shared.exceptions import ProviderError

if TYPE_CHECKING:
    import httpx

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = "poi-discovery-engine/0.1"

# Polite request rate across all editions, requests per second
DEFAULT_RATE = 10.0

# Regional variants served by a shared edition
LANGUAGE_EDITIONS: dict[str, str] = {
    "zh-hk": "zh",
    "zh-tw": "zh",
    "zh-cn": "zh",
    "pt-br": "pt",
}

SEARCH_LIMIT = 5
# Minimum title similarity (0-100) for a search hit to be considered
MIN_TITLE_SIMILARITY = 30.0


def edition_for(language_code: str) -> str:
    """Map a language code to the Wikipedia edition that serves it."""
    code = language_code.strip().lower()
    return LANGUAGE_EDITIONS.get(code, code)


def parse_summary(data: dict[str, Any], language_code: str) -> LanguageCandidate | None:
    """
    Decode a REST summary payload.

    Returns None when the payload has no title or no extract.
    """
    title = data.get("title")
    extract = data.get("extract")
    if not title or extract is None:
        return None

    coordinate = None
    coords = data.get("coordinates")
    if isinstance(coords, dict):
        try:
            coordinate = Coordinate(float(coords["lat"]), float(coords["lon"]))
        except (KeyError, TypeError, ValueError):
            coordinate = None

    thumbnail = data.get("thumbnail") or {}
    page_url = ((data.get("content_urls") or {}).get("desktop") or {}).get("page")

    return LanguageCandidate(
        language_code=language_code,
        title=title,
        summary=extract,
        thumbnail_url=thumbnail.get("source"),
        description=data.get("description"),
        coordinate=coordinate,
        page_url=page_url,
    )


def is_disambiguation(data: dict[str, Any]) -> bool:
    return data.get("type") == "disambiguation"


class WikipediaClient(BaseAPIClient):
    """
    Wikipedia knowledge-base client.

    Usage:
        async with WikipediaClient(user_agent="my-app/1.0 (ops@example.com)") as client:
            candidate = await client.lookup("Man Mo Temple", "en")
            if candidate:
                print(candidate.title, candidate.page_url)
    """

    _service_name = "Wikipedia"

    def __init__(
        self,
        user_agent: str = DEFAULT_USER_AGENT,
        timeout: float = 8.0,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Initialize Wikipedia client.

        Args:
            user_agent: Identifying User-Agent (Wikimedia policy)
            timeout: Request timeout in seconds
            rate_limiter: Limiter shared across editions
                          (a private one at ``DEFAULT_RATE`` if None)
            transport: Optional httpx transport
        """
        super().__init__(
            timeout=timeout,
            headers={"User-Agent": user_agent, "Accept": "application/json"},
            rate_limiter=rate_limiter or RateLimiter(rate=DEFAULT_RATE),
            transport=transport,
        )

    def _handle_expected_status(self, response: httpx.Response, url: str) -> Any:
        """Handle 404 (no such article)."""
        if response.status_code == 404:
            logger.debug(f"Wikipedia: not found - {url}")
            return None
        return _CONTINUE

    async def lookup(self, title: str, language_code: str) -> LanguageCandidate | None:
        """
        Find the article for ``title`` in one language edition.

        Returns:
            Decoded candidate, or None when the edition has nothing suitable

        Raises:
            ProviderError: on HTTP, network or payload failure
        """
        data = await self._fetch_summary(title, language_code)
        if data is not None and not is_disambiguation(data):
            candidate = parse_summary(data, language_code)
            if candidate is not None:
                return candidate

        reason = "disambiguation page" if data is not None else "no exact article"
        logger.debug(f"Wikipedia[{language_code}]: {reason} for '{title}', searching")
        return await self._search_best(title, language_code)

    async def _fetch_summary(self, title: str, language_code: str) -> dict[str, Any] | None:
        edition = edition_for(language_code)
        path = urllib.parse.quote(title.replace(" ", "_"), safe="")
        url = f"https://{edition}.wikipedia.org/api/rest_v1/page/summary/{path}"
        data = await self._make_request(url)
        if data is not None and not isinstance(data, dict):
            raise ProviderError(f"unexpected summary payload for '{title}'", provider=self._service_name)
        return data

    async def search_titles(self, query: str, language_code: str) -> list[str]:
        """Full-text search; returns up to ``SEARCH_LIMIT`` page titles."""
        edition = edition_for(language_code)
        params = {
            "action": "query",
            "format": "json",
            "list": "search",
            "srsearch": query,
            "srlimit": SEARCH_LIMIT,
        }
        data = await self._make_request(f"https://{edition}.wikipedia.org/w/api.php", params=params)
        if not data:
            return []
        hits = (data.get("query") or {}).get("search") or []
        return [hit["title"] for hit in hits if hit.get("title")]

    async def _search_best(self, title: str, language_code: str) -> LanguageCandidate | None:
        titles: list[str] = []
        for variant in generate_query_variants(title):
            for hit in await self.search_titles(variant, language_code):
                if hit not in titles:
                    titles.append(hit)
            if titles:
                break
        if not titles:
            return None

        ranked = process.extract(
            title,
            titles,
            scorer=fuzz.WRatio,
            processor=normalize,
            limit=SEARCH_LIMIT,
            score_cutoff=MIN_TITLE_SIMILARITY,
        )
        for best_title, similarity, _ in ranked:
            data = await self._fetch_summary(best_title, language_code)
            if data is None or is_disambiguation(data):
                continue
            candidate = parse_summary(data, language_code)
            if candidate is not None:
                logger.debug(
                    f"Wikipedia[{language_code}]: '{title}' -> '{candidate.title}' (similarity {similarity:.0f})"
                )
                return candidate
        return None
