"""
Bearer token authorization backed by the upstream auth service.
"""

import asyncio
from enum import Enum
from typing import Optional, Sequence, TYPE_CHECKING

import httpx

from shared.logging import get_logger, token_fingerprint
from shared.retry import RetryConfig, with_retry
from .token_cache import TokenCache

if TYPE_CHECKING:
    from shared.metrics import MetricsCollector


BASE_URL_HEADER = "X-BASE-API-URL"
VALIDATE_PATH = "/auth/validate"

# Transport failures and timeouts are worth another attempt; an HTTP status is an answer.
RETRYABLE_EXCEPTIONS = (httpx.TransportError, asyncio.TimeoutError)


class ValidationOutcome(str, Enum):
    """Result of one authorization check."""
    VALID = "valid"
    INVALID = "invalid"
    INDETERMINATE = "indeterminate"

    @property
    def authorized(self) -> bool:
        return self is ValidationOutcome.VALID


class TokenAuthorizer:
    """Decides whether a bearer token is authorized.

    The cache is consulted first. On a miss the upstream ``/auth/validate``
    endpoint is called through the retry helper: a 2xx caches the token as
    valid, any other status caches it as invalid with the short TTL. When the
    upstream cannot be reached the outcome is INDETERMINATE, nothing is
    cached, and callers must treat it as unauthorized.
    """

    def __init__(self,
                 default_base_url: str,
                 token_cache: TokenCache,
                 retry_config: Optional[RetryConfig] = None,
                 *,
                 timeout: float = 5.0,
                 metrics: Optional["MetricsCollector"] = None,
                 allowed_base_urls: Optional[Sequence[str]] = None):
        self.default_base_url = default_base_url.rstrip("/")
        self.allowed_base_urls = {url.strip().rstrip("/") for url in (allowed_base_urls or ()) if url.strip()}
        self.token_cache = token_cache
        self.retry_config = retry_config or RetryConfig(
            max_attempts=2,
            base_delay=0.2,
            max_delay=2.0,
            backoff_strategy="fixed",
            attempt_timeout=timeout,
        )
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger("vishing.token_authorizer")

    def resolve_base_url(self, override: Optional[str] = None) -> str:
        """Base URL from the request header override, else the configured default."""
        if not override or not override.strip():
            return self.default_base_url

        base_url = override.strip().rstrip("/")
        if self.allowed_base_urls and base_url not in self.allowed_base_urls:
            self.logger.warning("Base URL override not allowed", base_url=base_url)
            return self.default_base_url
        return base_url

    async def check(self, token: str, base_url: Optional[str] = None) -> ValidationOutcome:
        """Run the cache lookup and, on a miss, the upstream check."""
        fingerprint = token_fingerprint(token)
        cached = self.token_cache.get(token)

        if cached is True:
            self._record_lookup("hit_valid")
            self.logger.info("Token validated via cache", token=fingerprint)
            return ValidationOutcome.VALID
        if cached is False:
            self._record_lookup("hit_invalid")
            self.logger.warning("Token rejected via cache", token=fingerprint)
            return ValidationOutcome.INVALID

        self._record_lookup("miss")
        outcome = await self._check_upstream(token, self.resolve_base_url(base_url), fingerprint)
        if self.metrics:
            self.metrics.record_token_validation(outcome.value)
        return outcome

    async def is_authorized(self, token: str, base_url: Optional[str] = None) -> bool:
        return (await self.check(token, base_url)).authorized

    async def _check_upstream(self, token: str, base_url: str, fingerprint: str) -> ValidationOutcome:
        url = f"{base_url}{VALIDATE_PATH}"

        async def _validate() -> httpx.Response:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.get(url, headers={"Authorization": f"Bearer {token}"})

        try:
            response = await with_retry(
                _validate,
                self.retry_config,
                exceptions=RETRYABLE_EXCEPTIONS,
                name="auth_validate",
            )
        except Exception as e:
            # Indeterminate: fail closed and leave the cache untouched.
            self.logger.error(
                "Auth validation service unavailable",
                url=url,
                token=fingerprint,
                error=str(e) or type(e).__name__
            )
            return ValidationOutcome.INDETERMINATE

        if response.is_success:
            self.token_cache.set(token, True)
            self.logger.info("Token validated upstream", token=fingerprint, status_code=response.status_code)
            return ValidationOutcome.VALID

        self.token_cache.set(token, False, self.token_cache.invalid_ttl_seconds)
        self.logger.warning(
            "Token rejected upstream",
            token=fingerprint,
            status_code=response.status_code
        )
        return ValidationOutcome.INVALID

    def _record_lookup(self, result: str) -> None:
        if self.metrics:
            self.metrics.record_token_cache_lookup(result)
