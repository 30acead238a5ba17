"""OpenAI backend (also serves OpenAI-compatible endpoints via base_url)."""

from __future__ import annotations

import logging

import openai
from openai import AsyncOpenAI

from chatsum.errors import FailureKind
from chatsum.llm.base import BackendConfig, CompletionBackend, LLMResponse
from chatsum.llm.classify import classify_failure

logger = logging.getLogger(__name__)


class OpenAIBackend(CompletionBackend):
    """Backend for OpenAI chat models."""

    def __init__(self, config: BackendConfig) -> None:
        super().__init__(config)
        kwargs: dict = {"api_key": config.api_key}
        if config.base_url:
            kwargs["base_url"] = config.base_url
        if config.timeout_seconds:
            kwargs["timeout"] = config.timeout_seconds
        self._client = AsyncOpenAI(**kwargs)

    async def complete(self, prompt: str, model: str) -> LLMResponse:
        kwargs: dict = {
            "model": model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self.config.temperature is not None:
            kwargs["temperature"] = self.config.temperature
        if self.config.max_tokens:
            kwargs["max_tokens"] = self.config.max_tokens

        try:
            response = await self._client.chat.completions.create(**kwargs)
        except Exception as exc:
            raise self._failure(exc, model) from exc

        choice = response.choices[0]
        return LLMResponse(
            content=choice.message.content or "",
            model=response.model,
            input_tokens=response.usage.prompt_tokens if response.usage else 0,
            output_tokens=(
                response.usage.completion_tokens if response.usage else 0
            ),
            finish_reason=choice.finish_reason or "stop",
            raw_response=response,
        )

    async def list_models(self) -> list[str]:
        try:
            return [model.id async for model in self._client.models.list()]
        except Exception as exc:
            raise self._failure(exc, "models.list") from exc

    def classify(self, exc: BaseException) -> FailureKind:
        # APITimeoutError subclasses APIConnectionError, so check it first.
        if isinstance(exc, openai.APITimeoutError):
            return FailureKind.TIMEOUT
        if isinstance(exc, openai.APIConnectionError):
            return FailureKind.NETWORK
        return classify_failure(exc)
