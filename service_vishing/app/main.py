"""
Vishing service for the security awareness training platform.
"""

import time
from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from shared.base_service import BaseService
from shared.config import ServiceConfig
from shared.errors import normalize_error
from shared.logging import set_route
from shared.retry import RetryConfig

from .adapters.kv_client import KVClient
from .adapters.llm_client import ChatCompletionClient
from .adapters.voice_client import VoiceSessionClient
from .auth.token_authorizer import BASE_URL_HEADER, TokenAuthorizer
from .auth.token_cache import TokenCache
from .domain.prompt_service import PromptService
from .domain.schemas import (
    ConversationSummaryRequest,
    ConversationSummaryResponse,
    VishingPromptRequest,
    VishingPromptResponse,
)
from .domain.summary_service import SummaryService


PROMPT_ROUTE = "/vishing/prompt"
SUMMARY_ROUTE = "/vishing/conversations/summary"

UNAUTHORIZED_MESSAGE = "Unauthorized"
INVALID_REQUEST_MESSAGE = "Invalid request format"
LANGUAGE_NOT_FOUND_MESSAGE = "Language content not found"
PROMPT_NOT_AVAILABLE_MESSAGE = "Vishing prompt not available"


def _failure(status_code: int, error: str, **extra: Any) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error, **extra})


def _validation_details(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {"loc": [str(part) for part in err["loc"]], "msg": err["msg"], "type": err["type"]}
        for err in exc.errors()
    ]


async def _read_json_object(request: Request) -> Optional[Dict[str, Any]]:
    """Parsed body; anything but a JSON object reads as empty, unparsable as None."""
    try:
        body = await request.json()
    except ValueError:
        return None
    return body if isinstance(body, dict) else {}


class VishingService(BaseService):
    """Vishing service implementation."""

    def __init__(self,
                 config: Optional[ServiceConfig] = None,
                 *,
                 token_cache: Optional[TokenCache] = None,
                 kv_client: Optional[KVClient] = None,
                 voice_client: Optional[VoiceSessionClient] = None,
                 llm_client: Optional[ChatCompletionClient] = None):
        super().__init__("vishing", 8020, config)

        self.token_cache = token_cache if token_cache is not None else TokenCache(
            valid_ttl_seconds=self.config.token_cache_valid_ttl_seconds,
            invalid_ttl_seconds=self.config.token_cache_invalid_ttl_seconds,
        )
        self.token_authorizer = TokenAuthorizer(
            self.config.auth_base_url,
            self.token_cache,
            RetryConfig(
                max_attempts=self.config.auth_retry_attempts,
                base_delay=self.config.auth_retry_base_delay,
                max_delay=2.0,
                backoff_strategy="fixed",
                attempt_timeout=self.config.auth_timeout_seconds,
            ),
            timeout=self.config.auth_timeout_seconds,
            metrics=self.metrics,
            allowed_base_urls=self.config.auth_allowed_base_urls,
        )
        self.kv_client = kv_client if kv_client is not None else KVClient(
            self.config.kv_api_url,
            self.config.cloudflare_account_id,
            self.config.kv_namespace_id,
            self.config.cloudflare_kv_token,
            timeout=self.config.kv_timeout_seconds,
        )
        self.voice_client = voice_client if voice_client is not None else VoiceSessionClient(
            self.config.elevenlabs_api_url,
            self.config.elevenlabs_ws_url,
            self.config.elevenlabs_agent_id,
            self.config.elevenlabs_api_key,
            timeout=self.config.voice_timeout_seconds,
            metrics=self.metrics,
        )
        self.llm_client = llm_client if llm_client is not None else ChatCompletionClient(
            self.config.openai_base_url,
            self.config.openai_api_key,
            self.config.summary_model,
            timeout=self.config.summary_timeout_seconds,
        )
        self.prompt_service = PromptService(self.kv_client)
        self.summary_service = SummaryService(self.llm_client)

        self._setup_vishing_routes()

        # Expose service instance via app state for introspection/testing
        self.app.state.vishing_service = self

    def _setup_vishing_routes(self):
        """Set up vishing-specific routes."""

        @self.app.get("/")
        async def root():
            """Root endpoint."""
            return {
                "service": "vishing",
                "message": "Security Awareness Training - Vishing Service",
                "version": "1.0.0"
            }

        @self.app.post(PROMPT_ROUTE)
        async def vishing_prompt(request: Request):
            """Voice prompt and session details for a microlearning's vishing scene."""
            set_route(PROMPT_ROUTE)
            try:
                body = await _read_json_object(request)
                if body is None:
                    return _failure(400, INVALID_REQUEST_MESSAGE)
                microlearning_id = body.get("microlearningId")
                language = body.get("language")

                if not microlearning_id or not isinstance(microlearning_id, str):
                    return _failure(400, "Missing microlearningId")
                if not language or not isinstance(language, str):
                    return _failure(400, "Missing language")

                try:
                    parsed = VishingPromptRequest.model_validate(body)
                except PydanticValidationError as e:
                    self.logger.warning("vishing_prompt_invalid_input", details=_validation_details(e))
                    return _failure(400, INVALID_REQUEST_MESSAGE)

                scene = await self.prompt_service.load_scene(parsed.microlearning_id, parsed.language)
                if not scene.has_language_content:
                    return _failure(404, LANGUAGE_NOT_FOUND_MESSAGE)
                if not scene.prompt or not scene.first_message:
                    return _failure(404, PROMPT_NOT_AVAILABLE_MESSAGE)

                signed_url = await self.voice_client.get_signed_url()

                response = VishingPromptResponse(
                    microlearning_id=parsed.microlearning_id,
                    language=scene.normalized_language,
                    prompt=scene.prompt,
                    first_message=scene.first_message,
                    agent_id=self.voice_client.agent_id,
                    ws_url=self.voice_client.websocket_url(),
                    signed_url=signed_url,
                )
                return JSONResponse(
                    status_code=200,
                    content=response.model_dump(mode="json", by_alias=True, exclude_none=True)
                )

            except Exception as e:
                err = normalize_error(e)
                self.logger.error("vishing_prompt_error", error=err.message, code=err.code)
                self.metrics.record_error(err.code)
                return _failure(500, err.message)

        @self.app.post(SUMMARY_ROUTE)
        async def vishing_conversations_summary(request: Request):
            """Debrief of a completed vishing call for an authorized caller."""
            set_route(SUMMARY_ROUTE)
            request_start = time.time()
            try:
                body = await _read_json_object(request)
                if body is None:
                    return _failure(400, INVALID_REQUEST_MESSAGE)

                try:
                    parsed = ConversationSummaryRequest.model_validate(body)
                except PydanticValidationError as e:
                    details = _validation_details(e)
                    self.logger.warning("vishing_conversations_summary_invalid_input", details=details)
                    return _failure(400, INVALID_REQUEST_MESSAGE, details=details)

                outcome = await self.token_authorizer.check(
                    parsed.access_token,
                    request.headers.get(BASE_URL_HEADER),
                )
                if not outcome.authorized:
                    return _failure(401, UNAUTHORIZED_MESSAGE)

                self.logger.info("vishing_conversations_summary_request", message_count=len(parsed.messages))

                result = await self.summary_service.summarize(parsed.messages)

                self.logger.info(
                    "vishing_conversations_summary_success",
                    duration_ms=round((time.time() - request_start) * 1000, 2),
                    outcome=result.summary.outcome,
                    next_steps_count=len(result.next_steps)
                )

                response = ConversationSummaryResponse(
                    summary=result.summary,
                    disclosed_information=result.summary.disclosed_info,
                    next_steps=result.next_steps,
                    status_card=result.status_card,
                )
                return JSONResponse(
                    status_code=200,
                    content=response.model_dump(mode="json", by_alias=True, exclude_none=True)
                )

            except Exception as e:
                err = normalize_error(e)
                self.logger.error(
                    "vishing_conversations_summary_error",
                    error=err.message,
                    code=err.code,
                    duration_ms=round((time.time() - request_start) * 1000, 2)
                )
                self.metrics.record_error(err.code)
                return _failure(500, err.message)

    async def _check_dependencies(self) -> Dict[str, str]:
        """Report which optional integrations are configured."""
        return {
            "kv": "configured" if self.config.cloudflare_account_id and self.config.cloudflare_kv_token else "unconfigured",
            "elevenlabs": "configured" if self.voice_client.enabled else "disabled",
            "summary_model": "configured" if self.config.openai_api_key else "unconfigured",
        }


def create_app(config: Optional[ServiceConfig] = None):
    """Create FastAPI application."""
    service = VishingService(config)
    return service.app


if __name__ == "__main__":
    service = VishingService()
    service.run()
