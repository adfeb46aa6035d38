"""Tests for BaseAPIClient - status handling, retries and error mapping."""

from typing import Any
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from poi_engine.infrastructure.sources.base_client import _CONTINUE, BaseAPIClient
from poi_engine.shared.async_utils import CircuitBreaker, RateLimiter
from poi_engine.shared.exceptions import ProviderError, ProviderTimeoutError, RateLimitError

URL = "https://api.example.org/items"


def response(status: int, json: Any = None, headers: dict[str, str] | None = None) -> httpx.Response:
    return httpx.Response(status, json=json, headers=headers, request=httpx.Request("GET", URL))


class NotFoundAwareClient(BaseAPIClient):
    _service_name = "Example"

    def _handle_expected_status(self, response: httpx.Response, url: str) -> Any:
        if response.status_code == 404:
            return None
        return _CONTINUE


@pytest.fixture
def client():
    c = NotFoundAwareClient(base_url="https://api.example.org")
    c._client = AsyncMock()
    return c


@pytest.fixture
def no_sleep():
    with patch("poi_engine.infrastructure.sources.base_client.asyncio.sleep", new=AsyncMock()) as sleep:
        yield sleep


# ============================================================
# Success paths
# ============================================================


class TestMakeRequest:
    async def test_json(self, client):
        client._client.get = AsyncMock(return_value=response(200, {"ok": True}))
        assert await client._make_request("/items", params={"q": "x"}) == {"ok": True}
        client._client.get.assert_awaited_once_with(URL, params={"q": "x"}, headers={})

    async def test_mock_transport(self):
        transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"path": request.url.path}))
        async with NotFoundAwareClient(base_url="https://api.example.org", transport=transport) as c:
            assert await c._make_request("/items") == {"path": "/items"}

    async def test_full_url_passthrough(self, client):
        assert client._build_url("https://other.example.org/x") == "https://other.example.org/x"
        assert client._build_url("/items") == URL

    async def test_expected_status_short_circuits(self, client):
        client._client.get = AsyncMock(return_value=response(404))
        assert await client._make_request("/items") is None

    async def test_context_manager(self):
        async with BaseAPIClient() as c:
            c._client = AsyncMock()
        c._client.aclose.assert_awaited_once()


# ============================================================
# Errors
# ============================================================


class TestErrors:
    async def test_server_error_is_retryable(self, client):
        client._client.get = AsyncMock(return_value=response(503))
        with pytest.raises(ProviderError) as exc_info:
            await client._make_request("/items")
        assert exc_info.value.retryable
        assert "HTTP 503" in str(exc_info.value)

    async def test_client_error_not_retryable(self, client):
        client._client.get = AsyncMock(return_value=response(400))
        with pytest.raises(ProviderError) as exc_info:
            await client._make_request("/items")
        assert not exc_info.value.retryable

    async def test_rate_limit_retried(self, client, no_sleep):
        client._client.get = AsyncMock(
            side_effect=[response(429, headers={"Retry-After": "3"}), response(200, {"ok": True})]
        )
        assert await client._make_request("/items") == {"ok": True}
        no_sleep.assert_awaited_once_with(3.0)

    async def test_rate_limit_exhausted(self, client, no_sleep):
        client._client.get = AsyncMock(return_value=response(429))
        with pytest.raises(RateLimitError):
            await client._make_request("/items")
        assert client._client.get.await_count == BaseAPIClient._MAX_RETRIES + 1

    async def test_timeout(self, client):
        client._client.get = AsyncMock(side_effect=httpx.ReadTimeout("slow"))
        with pytest.raises(ProviderTimeoutError):
            await client._make_request("/items")
        assert client._client.get.await_count == BaseAPIClient._MAX_RETRIES + 1

    async def test_transport_error_retried(self, client, no_sleep):
        client._client.get = AsyncMock(side_effect=[httpx.ConnectError("refused"), response(200, [])])
        assert await client._make_request("/items") == []
        no_sleep.assert_awaited_once_with(2)

    async def test_transport_error_exhausted(self, client, no_sleep):
        client._client.get = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(ProviderError, match="request failed"):
            await client._make_request("/items")

    async def test_invalid_json(self, client):
        client._client.get = AsyncMock(
            return_value=httpx.Response(200, text="<html>", request=httpx.Request("GET", URL))
        )
        with pytest.raises(ProviderError) as exc_info:
            await client._make_request("/items")
        assert not exc_info.value.retryable

    async def test_circuit_opens(self):
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=60.0, name="Example")
        c = NotFoundAwareClient(base_url="https://api.example.org", circuit_breaker=breaker)
        c._client = AsyncMock()
        c._client.get = AsyncMock(return_value=response(500))
        for _ in range(2):
            with pytest.raises(ProviderError):
                await c._make_request("/items")
        assert breaker.state == "open"


class TestRetryAfter:
    def test_header(self):
        assert BaseAPIClient._get_retry_after(response(429, headers={"Retry-After": "7"}), 0) == 7.0

    def test_backoff_fallback(self):
        assert BaseAPIClient._get_retry_after(response(429), 1) == 4.0

    def test_unparseable_header(self):
        assert BaseAPIClient._get_retry_after(response(429, headers={"Retry-After": "soon"}), 0) == 2.0


# ============================================================
# Rate limiting
# ============================================================


class TestRateLimiting:
    async def test_limiter_acquired_per_request(self):
        limiter = RateLimiter(rate=10.0)
        limiter.acquire = AsyncMock()
        c = NotFoundAwareClient(base_url="https://api.example.org", rate_limiter=limiter)
        c._client = AsyncMock()
        c._client.get = AsyncMock(return_value=response(200, {}))

        await c._make_request("/items")
        await c._make_request("/items")

        assert limiter.acquire.await_count == 2
        assert c.rate_limiter is limiter
        assert c.request_interval == pytest.approx(0.1)

    def test_unthrottled_without_limiter(self, client):
        assert client.rate_limiter is None
        assert client.request_interval == 0.0
