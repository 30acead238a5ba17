"""Configuration loading and validation for chatsum."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from chatsum.llm.credentials import parse_credentials

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_MODELS = [
    "gemini-2.0-flash-001",
    "gemini-2.5-flash",
    "gemini-2.0-flash-lite-001",
    "gemini-flash-latest",
    "gemini-2.5-pro",
]


class GatewayConfig(BaseModel):
    """Credentials, model chain and retry policy for the completion gateway."""

    provider: str = "gemini"  # "gemini", "openai", "anthropic"
    api_keys: list[str] = Field(default_factory=list)
    api_keys_env: Optional[str] = "GEMINI_API_KEY"
    models: list[str] = Field(default_factory=lambda: list(DEFAULT_GEMINI_MODELS))
    max_global_retries: int = 3
    cooldown_seconds: float = 60.0
    backoff_base_seconds: float = 1.0
    backoff_jitter_seconds: float = 1.0
    base_url: Optional[str] = None
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    timeout_seconds: Optional[float] = None

    @field_validator("models")
    @classmethod
    def models_not_empty(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("models must list at least one model")
        return value

    @field_validator("max_global_retries")
    @classmethod
    def retries_positive(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_global_retries must be at least 1")
        return value

    @model_validator(mode="after")
    def resolve_api_keys(self) -> "GatewayConfig":
        self.api_keys = parse_credentials(self.api_keys)
        if not self.api_keys and self.api_keys_env:
            raw = os.environ.get(self.api_keys_env)
            if raw is None:
                logger.warning(
                    "Environment variable %s is not set for provider %s",
                    self.api_keys_env, self.provider,
                )
            else:
                self.api_keys = parse_credentials(raw)
        return self


class SummarizerConfig(BaseModel):
    """Chunking thresholds and default formatting options."""

    chunk_size: int = 900
    chunk_threshold: int = 1000
    default_style: str = "default"
    custom_prompt: Optional[str] = None

    @model_validator(mode="after")
    def check_chunking(self) -> "SummarizerConfig":
        if self.chunk_size < 1:
            raise ValueError("chunk_size must be positive")
        if self.chunk_threshold < self.chunk_size:
            raise ValueError("chunk_threshold must not be below chunk_size")
        return self


class FilterConfig(BaseModel):
    """Which messages are dropped before summarizing."""

    exclude_bot_messages: bool = False
    exclude_commands: bool = False
    excluded_user_ids: list[int] = Field(default_factory=list)


class AppConfig(BaseModel):
    """Root configuration model."""

    gateway: GatewayConfig = Field(default_factory=GatewayConfig)
    summarizer: SummarizerConfig = Field(default_factory=SummarizerConfig)
    filters: FilterConfig = Field(default_factory=FilterConfig)


def load_config(config_path: Path) -> AppConfig:
    """Load and validate a configuration file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config not found: {config_path}")

    with open(config_path) as f:
        raw = yaml.safe_load(f) or {}

    return AppConfig(**raw)


def load_yaml_file(path: Path) -> Any:
    """Load a YAML (or JSON) file; an empty file yields ``{}``."""
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f)
    return {} if data is None else data
