"""
ElevenLabs conversational AI client for Vishing service.
"""

from typing import Any, Optional, TYPE_CHECKING
from urllib.parse import quote

import httpx

from shared.logging import get_logger

if TYPE_CHECKING:
    from shared.metrics import MetricsCollector


SIGNED_URL_PATH = "/v1/convai/conversation/get-signed-url"
CONVERSATION_WS_PATH = "/v1/convai/conversation"
SIGNED_URL_FIELDS = ("signedUrl", "signed_url")


def extract_signed_url(payload: Any) -> Optional[str]:
    """First non-empty signed URL field of a provider payload, else None."""
    if not isinstance(payload, dict):
        return None
    for field in SIGNED_URL_FIELDS:
        value = payload.get(field)
        if isinstance(value, str) and value.strip():
            return value
    return None


class VoiceSessionClient:
    """Mints voice session URLs for the conversational agent."""

    def __init__(self,
                 api_url: str,
                 ws_url: str,
                 agent_id: str,
                 api_key: Optional[str] = None,
                 *,
                 timeout: float = 5.0,
                 metrics: Optional["MetricsCollector"] = None):
        self.api_url = api_url.rstrip("/")
        self.ws_url = ws_url.rstrip("/")
        self.agent_id = agent_id
        self.api_key = api_key
        self.timeout = timeout
        self.metrics = metrics
        self.logger = get_logger("vishing.voice_client")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def websocket_url(self) -> str:
        return f"{self.ws_url}{CONVERSATION_WS_PATH}?agent_id={quote(self.agent_id, safe='')}"

    async def get_signed_url(self) -> Optional[str]:
        """Request an ephemeral signed session URL.

        Best effort: returns None when no API key is configured or the
        provider call fails in any way.
        """
        if not self.enabled:
            return None

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.api_url}{SIGNED_URL_PATH}",
                    params={"agent_id": self.agent_id},
                    headers={
                        "Content-Type": "application/json",
                        "xi-api-key": self.api_key,
                    },
                )

                if not response.is_success:
                    self.logger.warning(
                        "vishing_prompt_signed_url_failed",
                        status_code=response.status_code,
                        error=response.text[:200]
                    )
                    self._record("http_error")
                    return None

                signed_url = extract_signed_url(response.json())
                self._record("ok" if signed_url else "empty")
                return signed_url

        except Exception as e:
            self.logger.warning("vishing_prompt_signed_url_error", error=str(e) or type(e).__name__)
            self._record("error")
            return None

    def _record(self, result: str) -> None:
        if self.metrics:
            self.metrics.record_enrichment_call("elevenlabs", result)
