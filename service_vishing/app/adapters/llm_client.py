"""
Chat completion client for the summary model.
"""

import asyncio
from typing import Optional

import httpx

from shared.errors import ConfigurationError, ExternalServiceError
from shared.logging import get_logger
from shared.retry import RetryConfig, with_retry


class ChatCompletionClient:
    """Minimal client for an OpenAI-compatible ``/chat/completions`` endpoint."""

    def __init__(self,
                 base_url: str,
                 api_key: Optional[str],
                 model: str,
                 *,
                 timeout: float = 60.0,
                 temperature: float = 0.2,
                 retry_config: Optional[RetryConfig] = None):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.retry_config = retry_config or RetryConfig(
            max_attempts=3,
            base_delay=1.0,
            max_delay=10.0,
            attempt_timeout=timeout,
        )
        self.logger = get_logger("vishing.llm_client")

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        """Return the text of the first choice."""
        if not self.api_key:
            raise ConfigurationError("OPENAI_API_KEY is not configured")

        payload = {
            "model": self.model,
            "temperature": self.temperature,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }

        async def _complete() -> httpx.Response:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/chat/completions",
                    json=payload,
                    headers={"Authorization": f"Bearer {self.api_key}"},
                )
                if response.status_code == 429 or response.status_code >= 500:
                    response.raise_for_status()
                return response

        try:
            response = await with_retry(
                _complete,
                self.retry_config,
                exceptions=(httpx.TransportError, httpx.HTTPStatusError, asyncio.TimeoutError),
                name="chat_completion",
            )
        except httpx.HTTPStatusError as e:
            raise ExternalServiceError(
                "llm",
                f"completion failed with status {e.response.status_code}",
                details={"status_code": e.response.status_code}
            ) from e

        if not response.is_success:
            raise ExternalServiceError(
                "llm",
                f"completion failed with status {response.status_code}",
                details={"status_code": response.status_code}
            )

        data = response.json()
        try:
            content = data["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as e:
            raise ExternalServiceError("llm", "malformed completion payload") from e

        if not isinstance(content, str) or not content.strip():
            raise ExternalServiceError("llm", "empty completion")
        return content
