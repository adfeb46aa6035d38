"""
Engine configuration.

Settings are read from ``POI_ENGINE_*`` environment variables, with
defaults matching the interactive travel-map use case (20 km radius,
50 results, 10 s manual refresh cooldown).
"""

from __future__ import annotations

import logging
import os
from dataclasses import asdict, dataclass
from typing import Any

from poi_engine.shared.exceptions import ConfigurationError, ErrorContext

logger = logging.getLogger(__name__)

ENV_PREFIX = "POI_ENGINE_"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env(name: str, default: str) -> str:
    return os.environ.get(f"{ENV_PREFIX}{name}", default)


def _env_number(name: str, default: float, cast: type = float) -> Any:
    raw = _env(name, str(default))
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"{ENV_PREFIX}{name} must be a number, got {raw!r}",
            context=ErrorContext(operation="load_settings", input_value=raw),
        ) from e


@dataclass(frozen=True)
class EngineSettings:
    """
    Tunables of the discovery and resolution engine.

    Attributes:
        search_radius_meters: Default discovery radius
        max_results: Default cap on discovered POIs
        per_keyword_limit: Raw results requested per keyword search
        keyword_timeout: Hard timeout of one keyword search (seconds)
        language_timeout: Hard timeout of one language lookup (seconds)
        language_fanout: Languages looked up concurrently per wave
        geo_rate: Geo-search requests per second (Nominatim policy: 1)
        knowledge_base_rate: Knowledge-base requests per second
        fast_path_threshold: Combined score that ends a resolution early
        refresh_cooldown: Minimum seconds between resolutions of one session
        cache_max_size: Resolution cache capacity
        cache_ttl: Resolution cache entry lifetime (seconds)
        user_agent: User-Agent sent to public APIs
        log_level: Level applied by ``configure_logging``
    """

    search_radius_meters: float = 20000.0
    max_results: int = 50
    per_keyword_limit: int = 25
    keyword_timeout: float = 15.0
    language_timeout: float = 8.0
    language_fanout: int = 4
    geo_rate: float = 1.0
    knowledge_base_rate: float = 10.0
    fast_path_threshold: float = 0.8
    refresh_cooldown: float = 10.0
    cache_max_size: int = 50
    cache_ttl: float = 7 * 24 * 3600.0
    user_agent: str = "poi-discovery-engine/0.1"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> EngineSettings:
        """Load settings from environment variables and validate them."""
        defaults = cls()
        settings = cls(
            search_radius_meters=_env_number("SEARCH_RADIUS", defaults.search_radius_meters),
            max_results=_env_number("MAX_RESULTS", defaults.max_results, int),
            per_keyword_limit=_env_number("PER_KEYWORD_LIMIT", defaults.per_keyword_limit, int),
            keyword_timeout=_env_number("KEYWORD_TIMEOUT", defaults.keyword_timeout),
            language_timeout=_env_number("LANGUAGE_TIMEOUT", defaults.language_timeout),
            language_fanout=_env_number("LANGUAGE_FANOUT", defaults.language_fanout, int),
            geo_rate=_env_number("GEO_RATE", defaults.geo_rate),
            knowledge_base_rate=_env_number("KB_RATE", defaults.knowledge_base_rate),
            fast_path_threshold=_env_number("FAST_PATH_THRESHOLD", defaults.fast_path_threshold),
            refresh_cooldown=_env_number("REFRESH_COOLDOWN", defaults.refresh_cooldown),
            cache_max_size=_env_number("CACHE_SIZE", defaults.cache_max_size, int),
            cache_ttl=_env_number("CACHE_TTL", defaults.cache_ttl),
            user_agent=_env("USER_AGENT", defaults.user_agent),
            log_level=_env("LOG_LEVEL", defaults.log_level).upper(),
        )
        settings.validate()
        return settings

    def validate(self) -> None:
        """
        Raises:
            ConfigurationError: for non-positive limits or timeouts, or a
                threshold outside [0, 1]
        """
        positive = {
            "search_radius_meters": self.search_radius_meters,
            "max_results": self.max_results,
            "per_keyword_limit": self.per_keyword_limit,
            "keyword_timeout": self.keyword_timeout,
            "language_timeout": self.language_timeout,
            "language_fanout": self.language_fanout,
            "geo_rate": self.geo_rate,
            "knowledge_base_rate": self.knowledge_base_rate,
            "cache_max_size": self.cache_max_size,
            "cache_ttl": self.cache_ttl,
        }
        for field_name, value in positive.items():
            if value <= 0:
                raise ConfigurationError(
                    f"{field_name} must be positive, got {value}",
                    context=ErrorContext(operation="validate_settings", input_value=value),
                )
        if self.refresh_cooldown < 0:
            raise ConfigurationError(f"refresh_cooldown must not be negative, got {self.refresh_cooldown}")
        if not 0.0 <= self.fast_path_threshold <= 1.0:
            raise ConfigurationError(f"fast_path_threshold must be in [0, 1], got {self.fast_path_threshold}")
        if logging.getLevelName(self.log_level) == f"Level {self.log_level}":
            raise ConfigurationError(f"Unknown log level {self.log_level!r}")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def configure_logging(level: str | int | None = None) -> None:
    """
    Configure root logging for a host application.

    The library itself never calls this at import time.
    """
    if level is None:
        level = _env("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)
