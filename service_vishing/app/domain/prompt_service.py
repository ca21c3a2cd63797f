"""
Voice prompt lookup for microlearning content.
"""

from typing import Any, NamedTuple, Optional

from shared.logging import get_logger
from ..adapters.kv_client import KVClient
from .language import normalize_language_code


VISHING_SCENE_ID = "4"


class SceneLookup(NamedTuple):
    has_language_content: bool
    normalized_language: str
    prompt: Optional[str]
    first_message: Optional[str]


def _non_empty_string(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value
    return None


class PromptService:
    """Reads the vishing scene of a microlearning in one language."""

    def __init__(self, kv_client: KVClient, scene_id: str = VISHING_SCENE_ID):
        self.kv_client = kv_client
        self.scene_id = scene_id
        self.logger = get_logger("vishing.prompt_service")

    async def load_scene(self, microlearning_id: str, language: str) -> SceneLookup:
        normalized_language = normalize_language_code(language)
        record = await self.kv_client.get_microlearning(microlearning_id, normalized_language)

        language_content = record.get("language") if isinstance(record, dict) else None
        if not isinstance(language_content, dict):
            self.logger.info(
                "Language content not found",
                microlearning_id=microlearning_id,
                language=normalized_language
            )
            return SceneLookup(False, normalized_language, None, None)

        scene = language_content.get(self.scene_id)
        if not isinstance(scene, dict):
            scene = {}

        return SceneLookup(
            True,
            normalized_language,
            _non_empty_string(scene.get("prompt")),
            _non_empty_string(scene.get("firstMessage")),
        )
