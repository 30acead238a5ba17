"""Google Gemini backend using the google-genai SDK."""

from __future__ import annotations

import logging
from typing import Any

from google import genai
from google.genai import errors, types

from chatsum.errors import FailureKind
from chatsum.llm.base import BackendConfig, CompletionBackend, LLMResponse
from chatsum.llm.classify import classify_failure, classify_status

logger = logging.getLogger(__name__)

_STATUS_NAMES = {
    "RESOURCE_EXHAUSTED": FailureKind.QUOTA,
    "NOT_FOUND": FailureKind.NOT_FOUND,
    "UNAVAILABLE": FailureKind.SERVER,
    "INTERNAL": FailureKind.SERVER,
    "UNAUTHENTICATED": FailureKind.AUTH,
    "PERMISSION_DENIED": FailureKind.PERMISSION,
    "DEADLINE_EXCEEDED": FailureKind.TIMEOUT,
}


class GeminiBackend(CompletionBackend):
    """Backend for Gemini models, one ``genai.Client`` per API key."""

    def __init__(self, config: BackendConfig) -> None:
        super().__init__(config)
        http_kwargs: dict[str, Any] = {}
        if config.base_url:
            http_kwargs["base_url"] = config.base_url
        if config.timeout_seconds:
            # google-genai expects milliseconds
            http_kwargs["timeout"] = int(config.timeout_seconds * 1000)
        kwargs: dict[str, Any] = {"api_key": config.api_key}
        if http_kwargs:
            kwargs["http_options"] = types.HttpOptions(**http_kwargs)
        self._client = genai.Client(**kwargs)

    def _generation_config(self) -> types.GenerateContentConfig | None:
        options: dict[str, Any] = {}
        if self.config.temperature is not None:
            options["temperature"] = self.config.temperature
        if self.config.max_tokens:
            options["max_output_tokens"] = self.config.max_tokens
        return types.GenerateContentConfig(**options) if options else None

    async def complete(self, prompt: str, model: str) -> LLMResponse:
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=prompt,
                config=self._generation_config(),
            )
        except Exception as exc:
            raise self._failure(exc, model) from exc

        usage = response.usage_metadata
        finish_reason = "stop"
        if response.candidates and response.candidates[0].finish_reason:
            finish_reason = str(response.candidates[0].finish_reason)
        return LLMResponse(
            content=response.text or "",
            model=model,
            input_tokens=(usage.prompt_token_count or 0) if usage else 0,
            output_tokens=(usage.candidates_token_count or 0) if usage else 0,
            finish_reason=finish_reason,
            raw_response=response,
        )

    async def list_models(self) -> list[str]:
        try:
            pager = await self._client.aio.models.list()
            return [model.name async for model in pager if model.name]
        except Exception as exc:
            raise self._failure(exc, "models.list") from exc

    def classify(self, exc: BaseException) -> FailureKind:
        if isinstance(exc, errors.APIError):
            kind = classify_status(exc.code) if exc.code else None
            if kind is not None:
                return kind
            if exc.status in _STATUS_NAMES:
                return _STATUS_NAMES[exc.status]
        return classify_failure(exc)
