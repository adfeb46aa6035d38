"""
Base API Client - Common HTTP request pattern with retry, rate limiting, and circuit breaker.

Shared by the geo-search and knowledge-base clients:
- Automatic retry on 429 (rate limit) with Retry-After support
- Rate limiting through an injected token bucket
- Circuit breaker for fault tolerance
- Failures raised as ProviderError so callers can isolate them per task
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import httpx
from typing_extensions import Self

from poi_engine.shared.async_utils import CircuitBreaker, RateLimiter
from poi_engine.shared.exceptions import ErrorContext, ProviderError, ProviderTimeoutError, RateLimitError

logger = logging.getLogger(__name__)


class BaseAPIClient:
    """
    Base class for external API clients.

    Provides common infrastructure:
    - httpx.AsyncClient management
    - Rate limiting with an injected RateLimiter
    - Retry on 429 and transport errors with exponential backoff
    - Circuit breaker for fault tolerance

    Subclasses should set `_service_name` and can override:
    - `_handle_expected_status()`: Handle service-specific status codes (e.g., 404)
    - `_parse_response()`: Custom response processing

    Example:
        class MyClient(BaseAPIClient):
            _service_name = "MyAPI"

            def __init__(self):
                super().__init__(base_url="https://api.example.com", rate_limiter=RateLimiter(rate=10))

            async def get_item(self, item_id: str) -> dict | None:
                return await self._make_request(f"/items/{item_id}")
    """

    _service_name: str = "API"
    _MAX_RETRIES: int = 2

    def __init__(
        self,
        base_url: str = "",
        timeout: float = 10.0,
        headers: dict[str, str] | None = None,
        circuit_breaker: CircuitBreaker | None = None,
        rate_limiter: RateLimiter | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize base client.

        Args:
            base_url: Base URL for the API (optional, can pass full URLs)
            timeout: Request timeout in seconds
            headers: Default headers for all requests
            circuit_breaker: Optional circuit breaker for fault tolerance.
                             If None, a default one is created (threshold=10, recovery=60s).
            rate_limiter: Limiter for this client, usually shared through the
                          container with other clients of the same host.
                          If None, requests are not throttled.
            transport: Optional httpx transport (e.g. httpx.MockTransport in tests)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = httpx.AsyncClient(
            timeout=self._timeout,
            headers=headers or {},
            follow_redirects=True,
            transport=transport,
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=10,
                keepalive_expiry=30.0,
            ),
        )
        self._circuit_breaker = circuit_breaker or CircuitBreaker(
            failure_threshold=10, recovery_timeout=60.0, name=self._service_name
        )
        self._rate_limiter = rate_limiter

    @property
    def rate_limiter(self) -> RateLimiter | None:
        return self._rate_limiter

    @property
    def request_interval(self) -> float:
        """Seconds between queued requests of this client (0 when unthrottled)."""
        return self._rate_limiter.interval if self._rate_limiter is not None else 0.0

    async def _rate_limit(self) -> None:
        if self._rate_limiter is not None:
            await self._rate_limiter.acquire()

    def _build_url(self, url: str) -> str:
        """Build full URL from path or full URL."""
        if url.startswith(("http://", "https://")):
            return url
        return f"{self._base_url}{url}"

    async def _make_request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """
        Make a GET request with retry on 429 and circuit breaker protection.

        Args:
            url: Full URL or path (appended to base_url)
            params: Query string parameters
            headers: Additional headers for this request

        Returns:
            Parsed JSON, or whatever ``_handle_expected_status``
            short-circuits with (None for "not found")

        Raises:
            ProviderTimeoutError: the request timed out on every attempt
            RateLimitError: still rate limited after retries, or circuit open
            ProviderError: HTTP error status, transport failure or bad body
        """
        full_url = self._build_url(url)
        context = ErrorContext(operation="GET", input_value=full_url)

        for attempt in range(self._MAX_RETRIES + 1):
            await self._rate_limit()
            try:
                async with self._circuit_breaker:
                    response = await self._execute_request(full_url, params=params, headers=headers)

                    # Handle expected error codes (e.g., 404 = not found)
                    expected = self._handle_expected_status(response, full_url)
                    if expected is not _CONTINUE:
                        return expected

                    # Handle 429 rate limiting
                    if response.status_code == 429:
                        retry_after = self._get_retry_after(response, attempt)
                        if attempt < self._MAX_RETRIES:
                            logger.warning(
                                f"{self._service_name}: Rate limited (429), "
                                f"retry {attempt + 1}/{self._MAX_RETRIES} in {retry_after:.1f}s"
                            )
                            await asyncio.sleep(retry_after)
                            continue
                        raise RateLimitError(
                            "rate limit exceeded after retries",
                            provider=self._service_name,
                            retry_after=retry_after,
                            context=context,
                        )

                    response.raise_for_status()
                    return self._parse_response(response)

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logger.warning(f"{self._service_name} HTTP error {status}: {e.response.reason_phrase}")
                raise ProviderError(
                    f"HTTP {status} from {full_url}",
                    provider=self._service_name,
                    context=context,
                    retryable=status >= 500,
                ) from e
            except httpx.TimeoutException as e:
                if attempt < self._MAX_RETRIES:
                    logger.warning(f"{self._service_name} timeout (attempt {attempt + 1}): {e}")
                    continue
                raise ProviderTimeoutError(
                    f"GET {full_url}", self._timeout, provider=self._service_name, context=context
                ) from e
            except httpx.RequestError as e:
                if attempt < self._MAX_RETRIES:
                    logger.warning(f"{self._service_name} request error (attempt {attempt + 1}): {e}")
                    await asyncio.sleep(2 ** (attempt + 1))
                    continue
                raise ProviderError(
                    f"request failed: {e}", provider=self._service_name, context=context
                ) from e
            except ValueError as e:
                raise ProviderError(
                    f"invalid response body: {e}",
                    provider=self._service_name,
                    context=context,
                    retryable=False,
                ) from e

        raise ProviderError("retries exhausted", provider=self._service_name, context=context)

    async def _execute_request(
        self,
        url: str,
        *,
        params: dict[str, Any] | None = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        """Execute the actual HTTP request. Override for custom behavior."""
        return await self._client.get(url, params=params, headers=headers or {})

    def _handle_expected_status(self, response: httpx.Response, url: str) -> Any:
        """
        Handle expected non-200 status codes that shouldn't trigger retry.

        Override in subclasses for service-specific behavior.
        Return a value to short-circuit (e.g., None for 404).
        Return the sentinel _CONTINUE to continue normal processing.

        Default: no special handling.
        """
        return _CONTINUE

    def _parse_response(self, response: httpx.Response) -> Any:
        """Parse response body. Override for custom extraction logic."""
        return response.json()

    @staticmethod
    def _get_retry_after(response: httpx.Response, attempt: int) -> float:
        """Extract Retry-After from response headers, with exponential backoff fallback."""
        try:
            return float(response.headers.get("Retry-After", 2 ** (attempt + 1)))
        except (ValueError, TypeError):
            return float(2 ** (attempt + 1))

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.close()


# Sentinel object to indicate "continue normal processing" from _handle_expected_status
_CONTINUE = object()
