"""
Async Utilities for Provider Calls.

Provides:
- Rate limiting with token bucket
- Circuit breaker for failing upstreams
- Hard per-call timeouts and cancellation of sibling tasks
"""

from __future__ import annotations

import asyncio
import logging
import threading
import time
from collections.abc import Awaitable, Iterable
from dataclasses import dataclass, field
from typing import Any, TypeVar

from .exceptions import ProviderTimeoutError, RateLimitError

logger = logging.getLogger(__name__)

R = TypeVar("R")


# =============================================================================
# Rate Limiter (Token Bucket Algorithm)
# =============================================================================


@dataclass
class RateLimiter:
    """
    Token bucket rate limiter for API calls.

    Nominatim's usage policy allows 1 request/second; Wikipedia tolerates
    much more but still asks clients to be polite.

    A token is reserved synchronously and the caller then sleeps until its
    slot, so waiting callers queue in arrival order. No asyncio primitive is
    held, which lets one limiter serve several event loops (for example a
    host that calls ``asyncio.run`` once per request).

    Example:
        limiter = RateLimiter(rate=1, per=1.0)
        async with limiter:
            await make_api_call()
    """

    rate: float = 1.0  # requests per period
    per: float = 1.0  # period in seconds
    _tokens: float = field(init=False, repr=False, compare=False)
    _last_update: float = field(init=False, repr=False, compare=False)
    _lock: threading.Lock = field(init=False, repr=False, compare=False, default_factory=threading.Lock)

    def __post_init__(self) -> None:
        self._tokens = self.rate
        self._last_update = time.monotonic()

    @property
    def interval(self) -> float:
        """Seconds between requests once the bucket is drained."""
        return self.per / self.rate

    def _reserve(self) -> float:
        """Take a token and return how long to wait before using it."""
        with self._lock:
            now = time.monotonic()
            elapsed = now - self._last_update
            self._tokens = min(self.rate, self._tokens + elapsed / self.interval)
            self._last_update = now
            # Negative balance is the queue of callers already waiting
            self._tokens -= 1
            if self._tokens >= 0:
                return 0.0
            return -self._tokens * self.interval

    def backlog(self) -> float:
        """Seconds a caller arriving now would wait for its token."""
        with self._lock:
            elapsed = time.monotonic() - self._last_update
            tokens = min(self.rate, self._tokens + elapsed / self.interval)
        return max(0.0, 1 - tokens) * self.interval

    async def acquire(self) -> None:
        """Acquire a token, waiting if necessary."""
        wait_time = self._reserve()
        if wait_time > 0:
            logger.debug(f"Rate limit: waiting {wait_time:.2f}s")
            await asyncio.sleep(wait_time)

    async def __aenter__(self) -> RateLimiter:
        await self.acquire()
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass


# =============================================================================
# Circuit Breaker Pattern
# =============================================================================


@dataclass
class CircuitBreaker:
    """
    Circuit breaker for fault tolerance.

    States:
    - CLOSED: Normal operation
    - OPEN: Failing, reject requests immediately
    - HALF_OPEN: Testing if service recovered

    Example:
        breaker = CircuitBreaker(failure_threshold=5)

        async with breaker:
            result = await risky_api_call()
    """

    failure_threshold: int = 5
    recovery_timeout: float = 30.0
    half_open_max_calls: int = 3
    name: str = "provider"

    _failure_count: int = field(init=False, default=0)
    _last_failure_time: float | None = field(init=False, default=None)
    _state: str = field(init=False, default="closed")
    _half_open_calls: int = field(init=False, default=0)
    _lock: asyncio.Lock = field(init=False, default_factory=asyncio.Lock)

    @property
    def state(self) -> str:
        return self._state

    @property
    def is_open(self) -> bool:
        """Check if circuit is open (rejecting requests)."""
        if self._state == "open":
            if self._last_failure_time is not None:
                if time.monotonic() - self._last_failure_time > self.recovery_timeout:
                    return False  # Move to half-open
            return True
        return False

    async def __aenter__(self) -> CircuitBreaker:
        async with self._lock:
            if self.is_open:
                raise RateLimitError(
                    "circuit breaker is open",
                    provider=self.name,
                    retry_after=self.recovery_timeout,
                )

            if self._state == "open":
                self._state = "half_open"
                self._half_open_calls = 0

            if self._state == "half_open":
                if self._half_open_calls >= self.half_open_max_calls:
                    raise RateLimitError(
                        "circuit breaker is half-open (max calls reached)",
                        provider=self.name,
                        retry_after=self.recovery_timeout / 2,
                    )
                self._half_open_calls += 1

        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        async with self._lock:
            # Cancellation says nothing about upstream health
            if isinstance(exc_val, asyncio.CancelledError):
                return
            if exc_val is not None:
                self._failure_count += 1
                self._last_failure_time = time.monotonic()

                if self._failure_count >= self.failure_threshold:
                    self._state = "open"
                    logger.warning(f"Circuit breaker for {self.name} opened after {self._failure_count} failures")
            else:
                if self._state == "half_open":
                    self._state = "closed"
                    self._failure_count = 0
                    logger.info(f"Circuit breaker for {self.name} closed (recovered)")
                elif self._state == "closed":
                    self._failure_count = max(0, self._failure_count - 1)


# =============================================================================
# Timeouts and Cancellation
# =============================================================================

# Seconds a cancelled task gets to unwind before it is abandoned
CANCEL_GRACE = 0.05


def _discard_result(task: asyncio.Future[Any]) -> None:
    if not task.cancelled():
        task.exception()


async def cancel_pending(tasks: Iterable[asyncio.Future[Any]], grace: float = CANCEL_GRACE) -> int:
    """
    Cancel every unfinished task without blocking on it.

    Cancelled tasks get ``grace`` seconds to unwind. A task that ignores
    cancellation is abandoned after that: it keeps running in the
    background and its result or error is discarded when it ends.

    Returns the number of tasks that were cancelled.
    """
    pending = [task for task in tasks if not task.done()]
    for task in pending:
        task.cancel()
        task.add_done_callback(_discard_result)
    if pending and grace > 0:
        await asyncio.wait(pending, timeout=grace)
    return len(pending)


async def run_with_timeout(
    coro: Awaitable[R],
    timeout: float,
    *,
    operation: str,
    provider: str = "provider",
) -> R:
    """
    Await ``coro`` with a hard timeout.

    The work runs in its own task. On expiry, or when the caller is
    cancelled, that task is cancelled and abandoned after ``CANCEL_GRACE``,
    so a provider that swallows cancellation cannot stretch the deadline.

    A timeout is reported as ``ProviderTimeoutError`` so callers can treat it
    like any other provider failure.
    """
    task = asyncio.ensure_future(coro)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        await cancel_pending([task])
        raise
    if not done:
        await cancel_pending([task])
        logger.debug(f"{operation} timed out after {timeout:.1f}s")
        raise ProviderTimeoutError(operation, timeout, provider=provider)
    return task.result()
