"""
Unit tests for the voice session client.
"""

from unittest.mock import AsyncMock, patch

import httpx
import pytest

from service_vishing.app.adapters.voice_client import (
    SIGNED_URL_PATH,
    VoiceSessionClient,
    extract_signed_url,
)
from shared.metrics import MetricsCollector


def _response(status_code: int, **kwargs) -> httpx.Response:
    request = httpx.Request("GET", f"https://voice.local{SIGNED_URL_PATH}")
    return httpx.Response(status_code=status_code, request=request, **kwargs)


class TestExtractSignedUrl:

    def test_camel_case_field(self):
        assert extract_signed_url({"signedUrl": "wss://a"}) == "wss://a"

    def test_snake_case_field(self):
        assert extract_signed_url({"signed_url": "wss://b"}) == "wss://b"

    def test_first_non_empty_wins(self):
        assert extract_signed_url({"signedUrl": "", "signed_url": "wss://b"}) == "wss://b"
        assert extract_signed_url({"signedUrl": "wss://a", "signed_url": "wss://b"}) == "wss://a"

    @pytest.mark.parametrize("payload", [None, [], "wss://a", {}, {"signedUrl": "   "}, {"signedUrl": 42}])
    def test_missing_or_unusable(self, payload):
        assert extract_signed_url(payload) is None


class TestVoiceSessionClient:
    """Test cases for VoiceSessionClient."""

    @pytest.fixture
    def metrics(self):
        return MetricsCollector("vishing")

    @pytest.fixture
    def client(self, metrics):
        return VoiceSessionClient(
            "https://voice.local/",
            "wss://voice.local/",
            "agent_123",
            "secret-key",
            timeout=1.0,
            metrics=metrics,
        )

    def test_websocket_url(self, client):
        assert client.websocket_url() == "wss://voice.local/v1/convai/conversation?agent_id=agent_123"

    @pytest.mark.asyncio
    async def test_disabled_without_api_key(self, metrics):
        client = VoiceSessionClient("https://voice.local", "wss://voice.local", "agent_123", None, metrics=metrics)

        with patch('httpx.AsyncClient') as mock_client:
            assert await client.get_signed_url() is None

        assert not client.enabled
        mock_client.assert_not_called()

    @pytest.mark.asyncio
    async def test_signed_url_success(self, client, metrics):
        with patch('httpx.AsyncClient') as mock_client:
            get = AsyncMock(return_value=_response(200, json={"signed_url": "wss://signed"}))
            mock_client.return_value.__aenter__.return_value.get = get

            signed_url = await client.get_signed_url()

        assert signed_url == "wss://signed"
        assert get.call_args.args[0] == f"https://voice.local{SIGNED_URL_PATH}"
        assert get.call_args.kwargs["params"] == {"agent_id": "agent_123"}
        assert get.call_args.kwargs["headers"]["xi-api-key"] == "secret-key"
        assert metrics.sample("enrichment_calls", provider="elevenlabs", result="ok") == 1

    @pytest.mark.asyncio
    async def test_non_success_status_is_swallowed(self, client, metrics):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                return_value=_response(503, text="unavailable")
            )

            assert await client.get_signed_url() is None

        assert metrics.sample("enrichment_calls", provider="elevenlabs", result="http_error") == 1

    @pytest.mark.asyncio
    async def test_network_error_is_swallowed(self, client, metrics):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                side_effect=httpx.ConnectTimeout("timed out")
            )

            assert await client.get_signed_url() is None

        assert metrics.sample("enrichment_calls", provider="elevenlabs", result="error") == 1

    @pytest.mark.asyncio
    async def test_non_json_body_is_swallowed(self, client):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                return_value=_response(200, text="not json")
            )

            assert await client.get_signed_url() is None

    @pytest.mark.asyncio
    async def test_payload_without_url(self, client, metrics):
        with patch('httpx.AsyncClient') as mock_client:
            mock_client.return_value.__aenter__.return_value.get = AsyncMock(
                return_value=_response(200, json={"conversation_id": "abc"})
            )

            assert await client.get_signed_url() is None

        assert metrics.sample("enrichment_calls", provider="elevenlabs", result="empty") == 1
