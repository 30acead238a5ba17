"""Anthropic Claude backend."""

from __future__ import annotations

import logging

import anthropic
from anthropic import AsyncAnthropic

from chatsum.errors import FailureKind
from chatsum.llm.base import BackendConfig, CompletionBackend, LLMResponse
from chatsum.llm.classify import classify_failure

logger = logging.getLogger(__name__)

DEFAULT_MAX_TOKENS = 4096


class AnthropicBackend(CompletionBackend):
    """Backend for Anthropic Claude models."""

    def __init__(self, config: BackendConfig) -> None:
        super().__init__(config)
        kwargs: dict = {"api_key": config.api_key}
        if config.base_url:
            kwargs["base_url"] = config.base_url
        if config.timeout_seconds:
            kwargs["timeout"] = config.timeout_seconds
        self._client = AsyncAnthropic(**kwargs)

    async def complete(self, prompt: str, model: str) -> LLMResponse:
        kwargs: dict = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.config.max_tokens or DEFAULT_MAX_TOKENS,
        }
        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature

        try:
            response = await self._client.messages.create(**kwargs)
        except Exception as exc:
            raise self._failure(exc, model) from exc

        text = "".join(
            block.text for block in response.content if block.type == "text"
        )
        return LLMResponse(
            content=text,
            model=response.model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            finish_reason=response.stop_reason or "end_turn",
            raw_response=response,
        )

    async def list_models(self) -> list[str]:
        try:
            return [model.id async for model in self._client.models.list()]
        except Exception as exc:
            raise self._failure(exc, "models.list") from exc

    def classify(self, exc: BaseException) -> FailureKind:
        if isinstance(exc, anthropic.APITimeoutError):
            return FailureKind.TIMEOUT
        if isinstance(exc, anthropic.APIConnectionError):
            return FailureKind.NETWORK
        return classify_failure(exc)
