"""
Cache Infrastructure

Resolution result caches and refresh cooldown policies.
"""

from __future__ import annotations

from poi_engine.infrastructure.cache.cooldown import AllowAllCooldownPolicy, SessionCooldownPolicy
from poi_engine.infrastructure.cache.resolution_cache import (
    CacheStats,
    NullResolutionCache,
    TTLResolutionCache,
)

__all__ = [
    "TTLResolutionCache",
    "NullResolutionCache",
    "CacheStats",
    "SessionCooldownPolicy",
    "AllowAllCooldownPolicy",
]
