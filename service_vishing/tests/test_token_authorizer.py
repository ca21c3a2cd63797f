"""
Unit tests for TokenAuthorizer.
"""

import asyncio
from unittest.mock import AsyncMock, patch

import httpx
import pytest

from service_vishing.app.auth.token_authorizer import TokenAuthorizer, ValidationOutcome
from service_vishing.app.auth.token_cache import TokenCache
from shared.metrics import MetricsCollector
from shared.retry import RetryConfig


TOKEN = "a" * 40


def _response(status_code: int, url: str = "http://auth.local/auth/validate") -> httpx.Response:
    return httpx.Response(status_code=status_code, request=httpx.Request("GET", url))


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class TestTokenAuthorizer:
    """Test cases for TokenAuthorizer."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @pytest.fixture
    def cache(self, clock):
        return TokenCache(valid_ttl_seconds=900, invalid_ttl_seconds=30, clock=clock)

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("vishing")

    @pytest.fixture
    def authorizer(self, cache, metrics):
        return TokenAuthorizer(
            "http://auth.local/",
            cache,
            RetryConfig(max_attempts=2, base_delay=0.0, backoff_strategy="fixed", attempt_timeout=1.0),
            timeout=1.0,
            metrics=metrics,
        )

    def test_resolve_base_url(self, authorizer):
        assert authorizer.resolve_base_url() == "http://auth.local"
        assert authorizer.resolve_base_url("  ") == "http://auth.local"
        assert authorizer.resolve_base_url("https://tenant.example/") == "https://tenant.example"

    @pytest.mark.asyncio
    async def test_cached_valid_short_circuits(self, authorizer, cache):
        cache.set(TOKEN, True)

        with patch('httpx.AsyncClient') as mock_client:
            first = await authorizer.check(TOKEN)
            second = await authorizer.check(TOKEN)

        assert first is ValidationOutcome.VALID
        assert second is ValidationOutcome.VALID
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_cached_invalid_short_circuits(self, authorizer, cache):
        cache.set(TOKEN, False)

        with patch('httpx.AsyncClient') as mock_client:
            outcome = await authorizer.check(TOKEN)

        assert outcome is ValidationOutcome.INVALID
        assert not outcome.authorized
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_upstream_success_caches_valid(self, authorizer, cache, metrics):
        with patch('httpx.AsyncClient') as mock_client:
            get = AsyncMock(return_value=_response(200))
            mock_client.return_value.__aenter__.return_value.get = get

            outcome = await authorizer.check(TOKEN)
            again = await authorizer.check(TOKEN)

        assert outcome is ValidationOutcome.VALID
        assert again is ValidationOutcome.VALID
        assert get.await_count == 1
        assert cache.get(TOKEN) is True

        url = get.call_args.args[0]
        assert url == "http://auth.local/auth/validate"
        assert get.call_args.kwargs["headers"] == {"Authorization": f"Bearer {TOKEN}"}
        assert metrics.sample("token_cache_lookups", result="miss") == 1
        assert metrics.sample("token_cache_lookups", result="hit_valid") == 1
        assert metrics.sample("token_validations", outcome="valid") == 1

    @pytest.mark.asyncio
    async def test_upstream_rejection_caches_invalid_with_short_ttl(self, authorizer, cache, clock):
        with patch('httpx.AsyncClient') as mock_client:
            get = AsyncMock(return_value=_response(401))
            mock_client.return_value.__aenter__.return_value.get = get

            outcome = await authorizer.check(TOKEN)

        assert outcome is ValidationOutcome.INVALID
        assert get.await_count == 1  # a status code is an answer, never retried
        assert cache.get(TOKEN) is False

        clock.now += cache.invalid_ttl_seconds
        assert cache.get(TOKEN) is None

    @pytest.mark.asyncio
    async def test_negative_ttl_shorter_than_positive_ttl(self, authorizer, cache, clock):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                side_effect=[_response(500), _response(204)]
            )
            await authorizer.check("rejected-token-" + "x" * 20)
            await authorizer.check("accepted-token-" + "x" * 20)

        clock.now += cache.invalid_ttl_seconds
        assert cache.get("rejected-token-" + "x" * 20) is None
        assert cache.get("accepted-token-" + "x" * 20) is True

    @pytest.mark.asyncio
    async def test_network_error_fails_closed_without_caching(self, authorizer, cache, metrics):
        with patch('httpx.AsyncClient') as mock_client:
            get = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))
            mock_client.return_value.__aenter__.return_value.get = get

            outcome = await authorizer.check(TOKEN)

            assert outcome is ValidationOutcome.INDETERMINATE
            assert not outcome.authorized
            assert get.await_count == 2
            assert cache.get(TOKEN) is None
            assert len(cache) == 0

            # No poisoning: the next call goes upstream again.
            await authorizer.check(TOKEN)
            assert get.await_count == 4

        assert metrics.sample("token_validations", outcome="indeterminate") == 2

    @pytest.mark.asyncio
    async def test_timeout_counts_as_failed_attempt(self, authorizer, cache):
        async def _hang(*args, **kwargs):
            await asyncio.sleep(10)

        authorizer.retry_config.attempt_timeout = 0.01

        with patch('httpx.AsyncClient') as mock_client:
            get = AsyncMock(side_effect=_hang)
            mock_client.return_value.__aenter__.return_value.get = get

            outcome = await authorizer.check(TOKEN)

        assert outcome is ValidationOutcome.INDETERMINATE
        assert get.await_count == 2
        assert cache.get(TOKEN) is None

    @pytest.mark.asyncio
    async def test_retry_recovers_from_transient_error(self, authorizer, cache):
        with patch('httpx.AsyncClient') as mock_client:
            get = AsyncMock(side_effect=[httpx.ReadTimeout("slow"), _response(200)])
            mock_client.return_value.__aenter__.return_value.get = get

            outcome = await authorizer.check(TOKEN)

        assert outcome is ValidationOutcome.VALID
        assert cache.get(TOKEN) is True

    @pytest.mark.asyncio
    async def test_unexpected_exception_fails_closed(self, authorizer, cache):
        with patch('httpx.AsyncClient') as mock_client:
            get = AsyncMock(side_effect=RuntimeError("boom"))
            mock_client.return_value.__aenter__.return_value.get = get

            outcome = await authorizer.check(TOKEN)

        assert outcome is ValidationOutcome.INDETERMINATE
        assert get.await_count == 1
        assert cache.get(TOKEN) is None

    @pytest.mark.asyncio
    async def test_client_closed_on_every_path(self, authorizer):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                side_effect=httpx.ConnectError("down")
            )
            await authorizer.check(TOKEN)

        assert mock_client.return_value.__aexit__.await_count == 2

    @pytest.mark.asyncio
    async def test_base_url_override(self, authorizer):
        with patch('httpx.AsyncClient') as mock_client:
            get = AsyncMock(return_value=_response(200))
            mock_client.return_value.__aenter__.return_value.get = get

            await authorizer.check(TOKEN, "https://tenant.example")

        assert get.call_args.args[0] == "https://tenant.example/auth/validate"

    def test_allowed_base_urls_restrict_override(self, cache):
        authorizer = TokenAuthorizer(
            "http://auth.local",
            cache,
            allowed_base_urls=["https://tenant.example/", " "],
        )

        assert authorizer.resolve_base_url("https://tenant.example") == "https://tenant.example"
        assert authorizer.resolve_base_url("https://attacker.example") == "http://auth.local"

    @pytest.mark.asyncio
    async def test_disallowed_override_validates_against_default(self, cache):
        authorizer = TokenAuthorizer(
            "http://auth.local",
            cache,
            RetryConfig(max_attempts=1),
            allowed_base_urls=["https://tenant.example"],
        )

        with patch('httpx.AsyncClient') as mock_client:
            get = AsyncMock(return_value=_response(200))
            mock_client.return_value.__aenter__.return_value.get = get

            await authorizer.check(TOKEN, "https://attacker.example")

        assert get.call_args.args[0] == "http://auth.local/auth/validate"

    @pytest.mark.asyncio
    async def test_repeated_checks_are_idempotent_until_expiry(self, authorizer, cache, clock):
        cache.set(TOKEN, False)

        outcomes = {await authorizer.check(TOKEN) for _ in range(5)}
        assert outcomes == {ValidationOutcome.INVALID}

        clock.now += cache.invalid_ttl_seconds
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(return_value=_response(200))
            assert await authorizer.check(TOKEN) is ValidationOutcome.VALID
