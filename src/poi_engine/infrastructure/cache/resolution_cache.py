"""
Resolution Cache

In-memory cache with TTL for POI resolution results.
Uses cachetools.TTLCache for LRU eviction and TTL expiration.

Features:
- Time-based expiration (TTL) via cachetools
- LRU eviction when max size reached
- Thread-safe reads and writes
- Hit/miss statistics

Instances are injected into the engine; there is no module-level cache.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from cachetools import TTLCache

from poi_engine.domain.entities import ResolutionResult

logger = logging.getLogger(__name__)


@dataclass
class CacheStats:
    """Cache statistics."""

    hits: int = 0
    misses: int = 0
    writes: int = 0
    expirations: int = 0

    @property
    def total_requests(self) -> int:
        """Total cache requests."""
        return self.hits + self.misses

    @property
    def hit_rate(self) -> float:
        """Cache hit rate (0-1)."""
        total = self.total_requests
        return self.hits / total if total > 0 else 0.0

    def reset(self) -> None:
        """Reset statistics."""
        self.hits = 0
        self.misses = 0
        self.writes = 0
        self.expirations = 0


class TTLResolutionCache:
    """
    In-memory resolution cache.

    Example:
        cache = TTLResolutionCache(max_size=50, ttl=7 * 24 * 3600)
        cache.put("man mo temple|22.284,114.15", resolved)
        cached = cache.get("man mo temple|22.284,114.15")
    """

    def __init__(
        self,
        max_size: int = 50,
        ttl: float = 7 * 24 * 3600.0,  # 7 days
    ):
        """
        Initialize cache.

        Args:
            max_size: Maximum number of entries
            ttl: Time-to-live in seconds
        """
        self._cache: TTLCache[str, ResolutionResult] = TTLCache(maxsize=max_size, ttl=ttl)
        self._lock = threading.Lock()
        self._stats = CacheStats()

    @property
    def stats(self) -> CacheStats:
        """Get cache statistics."""
        return self._stats

    def get(self, key: str) -> ResolutionResult | None:
        """
        Get value from cache.

        Returns:
            Cached value or None if not found/expired
        """
        with self._lock:
            value = self._cache.get(key)
            if value is None:
                self._stats.misses += 1
            else:
                self._stats.hits += 1
        logger.debug(f"Resolution cache {'hit' if value is not None else 'miss'}: {key}")
        return value

    def put(self, key: str, value: ResolutionResult) -> None:
        """Store (or overwrite) a value."""
        with self._lock:
            self._cache[key] = value
            self._stats.writes += 1

    def invalidate(self, key: str) -> bool:
        """
        Invalidate cache entry.

        Returns:
            True if entry was removed
        """
        with self._lock:
            return self._cache.pop(key, None) is not None

    def clear(self) -> int:
        """
        Clear all cache entries.

        Returns:
            Number of entries cleared
        """
        with self._lock:
            count = len(self._cache)
            self._cache.clear()
            return count

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries.

        cachetools.TTLCache handles expiration lazily on access.
        This method triggers an explicit cleanup via expire().

        Returns:
            Number of entries removed
        """
        with self._lock:
            removed = len(self._cache.expire())
            self._stats.expirations += removed
        return removed

    def __len__(self) -> int:
        """Get number of cached entries."""
        with self._lock:
            return len(self._cache)

    def __contains__(self, key: str) -> bool:
        """Check if key is in cache."""
        with self._lock:
            return key in self._cache


class NullResolutionCache:
    """Cache that stores nothing."""

    def get(self, key: str) -> ResolutionResult | None:
        return None

    def put(self, key: str, value: ResolutionResult) -> None:
        return None
