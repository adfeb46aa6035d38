"""
Engine DI Container (dependency-injector).

Centralizes service creation and lifecycle management.

Usage::

    from poi_engine.config import EngineSettings
    from poi_engine.container import EngineContainer

    container = EngineContainer()
    container.config.from_dict(EngineSettings.from_env().to_dict())

    engine = container.engine()

    # In tests - override any provider:
    container.geo_provider.override(providers.Object(fake_provider))
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any

from dependency_injector import containers, providers

from poi_engine.config import EngineSettings

logger = logging.getLogger(__name__)


def _create_settings(values: dict[str, Any] | None) -> EngineSettings:
    """Build validated settings from the container configuration."""
    known = {f.name for f in dataclasses.fields(EngineSettings)}
    settings = EngineSettings(**{k: v for k, v in (values or {}).items() if k in known and v is not None})
    settings.validate()
    return settings


def _create_rate_limiter(rate: float) -> object:
    """Lazy factory for one host's RateLimiter."""
    from poi_engine.shared.async_utils import RateLimiter

    return RateLimiter(rate=rate)


def _create_geo_provider(settings: EngineSettings, rate_limiter: Any) -> object:
    """Lazy factory for NominatimClient (avoids top-level httpx import)."""
    from poi_engine.infrastructure.sources.nominatim import NominatimClient

    return NominatimClient(
        user_agent=settings.user_agent,
        timeout=settings.keyword_timeout,
        rate_limiter=rate_limiter,
    )


def _create_knowledge_base(settings: EngineSettings, rate_limiter: Any) -> object:
    """Lazy factory for WikipediaClient."""
    from poi_engine.infrastructure.sources.wikipedia import WikipediaClient

    return WikipediaClient(
        user_agent=settings.user_agent,
        timeout=settings.language_timeout,
        rate_limiter=rate_limiter,
    )


def _create_resolution_cache(settings: EngineSettings) -> object:
    """Lazy factory for TTLResolutionCache."""
    from poi_engine.infrastructure.cache import TTLResolutionCache

    return TTLResolutionCache(max_size=settings.cache_max_size, ttl=settings.cache_ttl)


def _create_cooldown(settings: EngineSettings) -> object:
    """Lazy factory for SessionCooldownPolicy."""
    from poi_engine.infrastructure.cache import SessionCooldownPolicy

    return SessionCooldownPolicy(cooldown_seconds=settings.refresh_cooldown)


def _create_scorer(settings: EngineSettings) -> object:
    """Lazy factory for ResolutionScorer."""
    from poi_engine.application.resolution import DEFAULT_SCORING, ResolutionScorer

    constants = dataclasses.replace(DEFAULT_SCORING, fast_path_threshold=settings.fast_path_threshold)
    return ResolutionScorer(constants)


def _create_aggregator(provider: Any, rate_limiter: Any, settings: EngineSettings) -> object:
    """Lazy factory for DeduplicatingAggregator."""
    from poi_engine.application.discovery import DeduplicatingAggregator

    return DeduplicatingAggregator(
        provider,
        keyword_timeout=settings.keyword_timeout,
        rate_limiter=rate_limiter,
    )


def _create_resolver(knowledge_base: Any, scorer: Any, settings: EngineSettings) -> object:
    """Lazy factory for MultiLanguageResolver."""
    from poi_engine.application.resolution import MultiLanguageResolver

    return MultiLanguageResolver(
        knowledge_base,
        scorer,
        fanout=settings.language_fanout,
        language_timeout=settings.language_timeout,
    )


def _create_engine(
    aggregator: Any,
    resolver: Any,
    cache: Any,
    cooldown: Any,
    settings: EngineSettings,
) -> object:
    """Lazy factory for POIEngine."""
    from poi_engine.application.engine import POIEngine

    return POIEngine(aggregator, resolver, cache=cache, cooldown=cooldown, settings=settings)


class EngineContainer(containers.DeclarativeContainer):
    """Central DI container for the POI engine.

    Manages creation and lifecycle of all core services:
    - ``geo_rate_limiter`` / ``knowledge_base_rate_limiter``: one token bucket
      per upstream host, owned by this container
    - ``geo_provider``: Nominatim keyword search
    - ``knowledge_base``: Wikipedia per-language lookup
    - ``resolution_cache`` / ``cooldown``: cross-call collaborators
    - ``aggregator`` / ``resolver``: discovery and resolution use cases
    - ``engine``: the POIEngine facade
    """

    config = providers.Configuration()

    settings = providers.Singleton(_create_settings, values=config)

    geo_rate_limiter = providers.Singleton(_create_rate_limiter, rate=settings.provided.geo_rate)

    knowledge_base_rate_limiter = providers.Singleton(
        _create_rate_limiter,
        rate=settings.provided.knowledge_base_rate,
    )

    geo_provider = providers.Singleton(
        _create_geo_provider,
        settings=settings,
        rate_limiter=geo_rate_limiter,
    )

    knowledge_base = providers.Singleton(
        _create_knowledge_base,
        settings=settings,
        rate_limiter=knowledge_base_rate_limiter,
    )

    resolution_cache = providers.Singleton(_create_resolution_cache, settings=settings)

    cooldown = providers.Singleton(_create_cooldown, settings=settings)

    scorer = providers.Singleton(_create_scorer, settings=settings)

    aggregator = providers.Singleton(
        _create_aggregator,
        provider=geo_provider,
        rate_limiter=geo_rate_limiter,
        settings=settings,
    )

    resolver = providers.Singleton(
        _create_resolver,
        knowledge_base=knowledge_base,
        scorer=scorer,
        settings=settings,
    )

    engine = providers.Singleton(
        _create_engine,
        aggregator=aggregator,
        resolver=resolver,
        cache=resolution_cache,
        cooldown=cooldown,
        settings=settings,
    )


def create_container(settings: EngineSettings | None = None) -> EngineContainer:
    """Container configured from ``settings`` (or the environment)."""
    settings = settings or EngineSettings.from_env()
    container = EngineContainer()
    container.config.from_dict(settings.to_dict())
    logger.debug(f"Engine container configured: {settings}")
    return container


__all__ = ["EngineContainer", "create_container"]
