"""
Adapters package for the Vishing Service.

Contains HTTP client wrappers for external dependencies (Cloudflare KV,
ElevenLabs, the summary model). These adapters encapsulate:

- Base URLs and request shapes
- Retry policies and timeouts
- Error handling that maps to shared errors

Keep adapters thin and side-effect free outside of explicit calls.
"""

from .kv_client import KVClient
from .voice_client import VoiceSessionClient, extract_signed_url
from .llm_client import ChatCompletionClient

__all__ = [
    "KVClient",
    "VoiceSessionClient",
    "extract_signed_url",
    "ChatCompletionClient",
]
