"""Configuration management for gamerelay."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_OPENROUTER_KEY_URL = "https://openrouter.ai/api/v1/key"
DEFAULT_OLLAMA_API_URL = "http://localhost:11434/v1/chat/completions"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="GAMERELAY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Simulation peer
    host: str = Field(default="localhost", description="Simulation peer host")
    port: int = Field(default=8080, description="Simulation peer port")

    # Decision backend
    model: str = Field(default="gemma3:1b", description="Model id; 'org/model' routes to the cloud provider")
    api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GAMERELAY_API_KEY", "OPENROUTER_API_KEY"),
        description="Bearer token for cloud providers",
    )
    openrouter_api_url: str = Field(default=DEFAULT_OPENROUTER_API_URL)
    openrouter_key_url: str = Field(default=DEFAULT_OPENROUTER_KEY_URL)
    ollama_api_url: str = Field(default=DEFAULT_OLLAMA_API_URL)
    decision_timeout_seconds: float = Field(default=30.0, gt=0, description="Timeout for one decision call")

    # Admission control
    min_invocation_interval_seconds: float = Field(default=0.4, ge=0, description="Minimum spacing of decision calls")

    # Prompt configuration
    prompts_dir: Path | None = Field(default=None, description="Directory holding templates/ and games/")
    prompt_cache_ttl_seconds: float = Field(default=30.0, ge=0)

    # Logging
    log_level: str = Field(default="INFO", description="Log level")


def load_settings(**overrides: Any) -> Settings:
    """Load settings from the environment, then apply explicit non-empty overrides."""

    settings = Settings()
    updates = {key: value for key, value in overrides.items() if value is not None}
    if updates:
        settings = settings.model_copy(update=updates)
    return settings
