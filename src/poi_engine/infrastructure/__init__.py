"""
Infrastructure Layer - External Systems Integration

Contains:
- sources: Nominatim geo search and Wikipedia knowledge-base clients
- cache: resolution cache and refresh cooldown policies
"""

from .cache import AllowAllCooldownPolicy, NullResolutionCache, SessionCooldownPolicy, TTLResolutionCache
from .sources import NominatimClient, WikipediaClient

__all__ = [
    "NominatimClient",
    "WikipediaClient",
    "TTLResolutionCache",
    "NullResolutionCache",
    "SessionCooldownPolicy",
    "AllowAllCooldownPolicy",
]
