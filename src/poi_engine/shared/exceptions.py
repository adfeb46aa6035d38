"""
Unified Exception Hierarchy for the POI Discovery & Resolution Engine.

Exception Hierarchy:
    POIEngineError (base)
    ├── ProviderError
    │   ├── ProviderTimeoutError
    │   └── RateLimitError
    ├── ValidationError
    │   └── InvalidParameterError
    ├── ResolutionError
    │   ├── NoCandidatesFoundError
    │   ├── NoAcceptedMatchError
    │   └── AllLanguagesExhaustedError
    └── ConfigurationError

Provider errors are recovered inside the engine and downgraded to "no result
for this task". Resolution errors are never raised: they are attached to
``RankedPOISet.error`` / ``Unresolved.error`` so callers can inspect why a
call came back empty. Only validation errors reach the caller as exceptions.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    WARNING = auto()  # Recoverable, can continue
    ERROR = auto()  # Failed but can retry
    CRITICAL = auto()  # Cannot continue
    TRANSIENT = auto()  # Temporary, should retry automatically


class ErrorCategory(Enum):
    """Categories for error classification."""

    PROVIDER = "provider"
    VALIDATION = "validation"
    RESOLUTION = "resolution"
    CONFIGURATION = "config"


@dataclass(frozen=True, slots=True)
class ErrorContext:
    """Rich context for error messages."""

    operation: str | None = None
    input_value: Any = None
    suggestion: str | None = None
    retry_after: float | None = None
    related_errors: tuple[Exception, ...] = field(default_factory=tuple)
    metadata: dict[str, Any] = field(default_factory=dict)

    def with_updates(self, **changes: Any) -> ErrorContext:
        """Return a copy with the given fields replaced."""
        values = {
            "operation": self.operation,
            "input_value": self.input_value,
            "suggestion": self.suggestion,
            "retry_after": self.retry_after,
            "related_errors": self.related_errors,
            "metadata": self.metadata,
        }
        values.update(changes)
        return ErrorContext(**values)


class POIEngineError(Exception):
    """
    Base exception for all engine errors.

    Provides:
    - Structured error context
    - Severity classification
    - Retry guidance
    """

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
        severity: ErrorSeverity = ErrorSeverity.ERROR,
        category: ErrorCategory = ErrorCategory.PROVIDER,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.context = context or ErrorContext()
        self.severity = severity
        self.category = category
        self.retryable = retryable

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "error": str(self),
            "type": type(self).__name__,
            "category": self.category.value,
            "severity": self.severity.name.lower(),
            "retryable": self.retryable,
        }
        if self.context.operation:
            result["operation"] = self.context.operation
        if self.context.suggestion:
            result["suggestion"] = self.context.suggestion
        if self.context.retry_after:
            result["retry_after_seconds"] = self.context.retry_after
        if self.context.related_errors:
            result["related_errors"] = [str(e) for e in self.context.related_errors]
        return result


# =============================================================================
# Provider Errors
# =============================================================================


class ProviderError(POIEngineError):
    """Raised by a provider for network, HTTP or parse failures."""

    def __init__(
        self,
        message: str,
        *,
        provider: str = "provider",
        context: ErrorContext | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            f"{provider}: {message}",
            context=context,
            severity=ErrorSeverity.ERROR,
            category=ErrorCategory.PROVIDER,
            retryable=retryable,
        )
        self.provider = provider


class ProviderTimeoutError(ProviderError):
    """Raised when a provider call exceeds its hard per-call timeout."""

    def __init__(
        self,
        operation: str,
        timeout: float,
        *,
        provider: str = "provider",
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_updates(operation=operation, metadata={"timeout": timeout})
        super().__init__(f"{operation} timed out after {timeout:.1f}s", provider=provider, context=ctx)
        self.severity = ErrorSeverity.TRANSIENT
        self.timeout = timeout


class RateLimitError(ProviderError):
    """Raised when a provider rate limit is exceeded or its circuit is open."""

    def __init__(
        self,
        message: str = "rate limit exceeded",
        *,
        provider: str = "provider",
        retry_after: float = 1.0,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_updates(
            retry_after=retry_after,
            suggestion="Wait and retry the request",
        )
        super().__init__(message, provider=provider, context=ctx)
        self.severity = ErrorSeverity.TRANSIENT


# =============================================================================
# Validation Errors
# =============================================================================


class ValidationError(POIEngineError):
    """Base class for caller precondition failures."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.VALIDATION,
            retryable=False,
        )


class InvalidParameterError(ValidationError):
    """Raised when a parameter value is invalid."""

    def __init__(
        self,
        param_name: str,
        value: Any,
        expected: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_updates(
            input_value=value,
            suggestion=f"Expected {expected}",
        )
        super().__init__(
            f"Invalid parameter '{param_name}': {value!r} (expected {expected})",
            context=ctx,
        )
        self.param_name = param_name


# =============================================================================
# Resolution Errors (attached to results, not raised)
# =============================================================================


class ResolutionError(POIEngineError):
    """Base class for terminal "nothing usable" outcomes."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.WARNING,
            category=ErrorCategory.RESOLUTION,
            retryable=False,
        )


class NoCandidatesFoundError(ResolutionError):
    """No provider returned any candidate for the query."""

    def __init__(self, query: str, *, context: ErrorContext | None = None) -> None:
        ctx = (context or ErrorContext()).with_updates(input_value=query)
        super().__init__(f"No candidates found for {query!r}", context=ctx)


class NoAcceptedMatchError(ResolutionError):
    """Candidates were found but none passed the confidence threshold."""

    def __init__(
        self,
        query: str,
        best_score: float,
        threshold: float,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        ctx = (context or ErrorContext()).with_updates(
            input_value=query,
            metadata={"best_score": best_score, "threshold": threshold},
        )
        super().__init__(
            f"No candidate for {query!r} reached {threshold:.2f} (best {best_score:.2f})",
            context=ctx,
        )
        self.best_score = best_score
        self.threshold = threshold


class AllLanguagesExhaustedError(ResolutionError):
    """Every language in the priority list was tried without an accepted match."""

    def __init__(
        self,
        query: str,
        tried_languages: list[str] | tuple[str, ...],
        *,
        related_errors: tuple[Exception, ...] = (),
    ) -> None:
        ctx = ErrorContext(
            operation="resolve_poi",
            input_value=query,
            related_errors=tuple(related_errors),
            metadata={"tried_languages": list(tried_languages)},
        )
        super().__init__(
            f"All languages exhausted for {query!r}: {', '.join(tried_languages)}",
            context=ctx,
        )


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(POIEngineError):
    """Raised for invalid engine settings."""

    def __init__(
        self,
        message: str,
        *,
        context: ErrorContext | None = None,
    ) -> None:
        super().__init__(
            message,
            context=context,
            severity=ErrorSeverity.CRITICAL,
            category=ErrorCategory.CONFIGURATION,
            retryable=False,
        )


# =============================================================================
# Multi-Error Handling
# =============================================================================


def create_error_group(
    message: str,
    errors: list[Exception],
) -> ExceptionGroup[Exception]:
    """
    Create an ExceptionGroup from multiple concurrent errors.

    Used as the aggregate error signal when every keyword search of a
    discovery call failed.
    """
    return ExceptionGroup(message, errors)
