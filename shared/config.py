"""
Shared configuration management for the vishing simulation access layer.
"""

from typing import List, Optional

from pydantic import AliasChoices, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_AGENT_ID = "agent_0901kfr9djtqfg988bypdyah40mm"
DEFAULT_KV_NAMESPACE_ID = "c96ef0b5a2424edca1426f6e7a85b9dc"


def _env(*names: str) -> AliasChoices:
    """Accept both the environment variable name and the field name."""
    return AliasChoices(*names)


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
    )

    # Environment
    env: str = Field(default="local", validation_alias=_env("VISHING_ENV", "env"))
    log_level: str = Field(default="info", validation_alias=_env("VISHING_LOG_LEVEL", "log_level"))

    # Upstream authorization service
    auth_base_url: str = Field(
        default="http://localhost:8010",
        validation_alias=_env("VISHING_AUTH_BASE_URL", "auth_base_url"),
    )
    auth_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        validation_alias=_env("VISHING_AUTH_TIMEOUT_SECONDS", "auth_timeout_seconds"),
    )
    auth_retry_attempts: int = Field(
        default=2,
        ge=1,
        validation_alias=_env("VISHING_AUTH_RETRY_ATTEMPTS", "auth_retry_attempts"),
    )
    auth_retry_base_delay: float = Field(
        default=0.2,
        ge=0,
        validation_alias=_env("VISHING_AUTH_RETRY_BASE_DELAY", "auth_retry_base_delay"),
    )
    # Empty accepts any X-BASE-API-URL override.
    auth_allowed_base_urls: List[str] = Field(
        default_factory=list,
        validation_alias=_env("VISHING_AUTH_ALLOWED_BASE_URLS", "auth_allowed_base_urls"),
    )

    # Token cache
    token_cache_valid_ttl_seconds: float = Field(
        default=900.0,
        gt=0,
        validation_alias=_env("VISHING_TOKEN_CACHE_VALID_TTL_SECONDS", "token_cache_valid_ttl_seconds"),
    )
    token_cache_invalid_ttl_seconds: float = Field(
        default=30.0,
        gt=0,
        validation_alias=_env("VISHING_TOKEN_CACHE_INVALID_TTL_SECONDS", "token_cache_invalid_ttl_seconds"),
    )

    # Voice provider (ElevenLabs)
    elevenlabs_api_key: Optional[str] = Field(
        default=None,
        validation_alias=_env("ELEVENLABS_API_KEY", "elevenlabs_api_key"),
    )
    elevenlabs_agent_id: str = Field(
        default=DEFAULT_AGENT_ID,
        validation_alias=_env("ELEVENLABS_AGENT_ID", "elevenlabs_agent_id"),
    )
    elevenlabs_api_url: str = Field(
        default="https://api.elevenlabs.io",
        validation_alias=_env("ELEVENLABS_API_URL", "elevenlabs_api_url"),
    )
    elevenlabs_ws_url: str = Field(
        default="wss://api.elevenlabs.io",
        validation_alias=_env("ELEVENLABS_WS_URL", "elevenlabs_ws_url"),
    )
    voice_timeout_seconds: float = Field(
        default=5.0,
        gt=0,
        validation_alias=_env("VISHING_VOICE_TIMEOUT_SECONDS", "voice_timeout_seconds"),
    )

    # Content store (Cloudflare KV)
    cloudflare_account_id: str = Field(
        default="",
        validation_alias=_env("CLOUDFLARE_ACCOUNT_ID", "cloudflare_account_id"),
    )
    cloudflare_kv_token: str = Field(
        default="",
        validation_alias=_env("CLOUDFLARE_KV_TOKEN", "cloudflare_kv_token"),
    )
    kv_namespace_id: str = Field(
        default=DEFAULT_KV_NAMESPACE_ID,
        validation_alias=_env("VISHING_KV_NAMESPACE_ID", "kv_namespace_id"),
    )
    kv_api_url: str = Field(
        default="https://api.cloudflare.com/client/v4",
        validation_alias=_env("VISHING_KV_API_URL", "kv_api_url"),
    )
    kv_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        validation_alias=_env("VISHING_KV_TIMEOUT_SECONDS", "kv_timeout_seconds"),
    )

    # Summary model (OpenAI-compatible chat completions)
    openai_api_key: Optional[str] = Field(
        default=None,
        validation_alias=_env("OPENAI_API_KEY", "openai_api_key"),
    )
    openai_base_url: str = Field(
        default="https://api.openai.com/v1",
        validation_alias=_env("OPENAI_BASE_URL", "openai_base_url"),
    )
    summary_model: str = Field(
        default="gpt-5.1",
        validation_alias=_env("VISHING_SUMMARY_MODEL", "summary_model"),
    )
    summary_timeout_seconds: float = Field(
        default=60.0,
        gt=0,
        validation_alias=_env("VISHING_SUMMARY_TIMEOUT_SECONDS", "summary_timeout_seconds"),
    )

    @model_validator(mode="after")
    def _check_token_cache_ttls(self) -> "BaseConfig":
        if self.token_cache_invalid_ttl_seconds >= self.token_cache_valid_ttl_seconds:
            raise ValueError(
                "token_cache_invalid_ttl_seconds must be shorter than token_cache_valid_ttl_seconds"
            )
        return self


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
