"""
External Sources

- base_client: shared httpx client with retry, rate limiting and circuit breaker
- nominatim: OpenStreetMap geo search
- wikipedia: per-language knowledge-base lookup
"""

from .base_client import BaseAPIClient
from .nominatim import NominatimClient, format_address
from .wikipedia import WikipediaClient, edition_for, parse_summary

__all__ = [
    "BaseAPIClient",
    "NominatimClient",
    "WikipediaClient",
    "format_address",
    "edition_for",
    "parse_summary",
]
