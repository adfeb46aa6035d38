"""
Shared building blocks for the POI engine.

Provides:
- Unified exception hierarchy
- Async utilities for provider calls
- Geodesic helpers
"""

from .async_utils import (
    # Fault tolerance
    CircuitBreaker,
    # Rate limiting
    RateLimiter,
    # Cancellation
    cancel_pending,
    # Timeouts
    run_with_timeout,
)
from .exceptions import (
    AllLanguagesExhaustedError,
    ConfigurationError,
    ErrorCategory,
    ErrorContext,
    ErrorSeverity,
    InvalidParameterError,
    NoAcceptedMatchError,
    NoCandidatesFoundError,
    # Base
    POIEngineError,
    # Provider errors
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
    # Resolution outcomes
    ResolutionError,
    # Validation errors
    ValidationError,
    # Utilities
    create_error_group,
)
from .geo import bounding_box, haversine_meters

__all__ = [
    # Exceptions
    "POIEngineError",
    "ErrorContext",
    "ErrorSeverity",
    "ErrorCategory",
    "ProviderError",
    "ProviderTimeoutError",
    "RateLimitError",
    "ValidationError",
    "InvalidParameterError",
    "ResolutionError",
    "NoCandidatesFoundError",
    "NoAcceptedMatchError",
    "AllLanguagesExhaustedError",
    "ConfigurationError",
    "create_error_group",
    # Async utilities
    "RateLimiter",
    "CircuitBreaker",
    "run_with_timeout",
    "cancel_pending",
    # Geo
    "haversine_meters",
    "bounding_box",
]
