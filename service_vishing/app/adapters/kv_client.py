"""
Cloudflare KV client for microlearning content.
"""

import json
from typing import Any, Dict, Optional

import httpx

from shared.errors import ExternalServiceError
from shared.logging import get_logger
from shared.retry import RetryConfig, with_retry


class KVClient:
    """Read-only client for the microlearning KV namespace."""

    def __init__(self,
                 api_url: str,
                 account_id: str,
                 namespace_id: str,
                 api_token: str,
                 *,
                 timeout: float = 10.0,
                 retry_config: Optional[RetryConfig] = None):
        self.api_url = api_url.rstrip("/")
        self.account_id = account_id
        self.namespace_id = namespace_id
        self.api_token = api_token
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig(
            max_attempts=3,
            base_delay=0.5,
            max_delay=4.0,
        )
        self.logger = get_logger("vishing.kv_client")

        if not self.account_id:
            self.logger.warning("CLOUDFLARE_ACCOUNT_ID not configured")
        if not self.api_token:
            self.logger.warning("CLOUDFLARE_KV_TOKEN not configured")

    @staticmethod
    def base_key(microlearning_id: str) -> str:
        return f"ml:{microlearning_id}:base"

    @staticmethod
    def language_key(microlearning_id: str, language: str) -> str:
        return f"ml:{microlearning_id}:lang:{language}"

    def _value_url(self, key: str) -> str:
        return (
            f"{self.api_url}/accounts/{self.account_id}"
            f"/storage/kv/namespaces/{self.namespace_id}/values/{key}"
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_token:
            headers["Authorization"] = f"Bearer {self.api_token}"
        return headers

    async def get(self, key: str) -> Optional[Any]:
        """Fetch a value; None when the key does not exist."""

        async def _get() -> httpx.Response:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                return await client.get(self._value_url(key), headers=self._headers())

        response = await with_retry(
            _get,
            self.retry_config,
            exceptions=(httpx.TransportError,),
            name="kv_get",
        )

        if response.status_code == 404:
            return None
        if not response.is_success:
            self.logger.error("KV GET failed", key=key, status_code=response.status_code)
            raise ExternalServiceError(
                "kv",
                f"GET failed with status {response.status_code}",
                details={"key": key, "status_code": response.status_code}
            )

        try:
            return response.json()
        except json.JSONDecodeError:
            return response.text

    async def get_microlearning(self, microlearning_id: str, language: Optional[str] = None) -> Optional[Dict[str, Any]]:
        """Base record plus, when ``language`` is given, its language record."""
        base = await self.get(self.base_key(microlearning_id))
        if not base:
            return None

        result: Dict[str, Any] = {"base": base}
        if language:
            result["language"] = await self.get(self.language_key(microlearning_id, language))
        return result
