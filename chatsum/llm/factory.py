"""Backend factory: builds one completion backend per credential."""

from __future__ import annotations

from typing import Optional, Sequence, Type

from chatsum.llm.base import BackendConfig, CompletionBackend


class LLMFactory:
    """Creates completion backend instances from configuration."""

    _providers: dict[str, Type[CompletionBackend]] = {}

    @classmethod
    def _ensure_defaults(cls) -> None:
        if cls._providers:
            return
        from chatsum.llm.anthropic import AnthropicBackend
        from chatsum.llm.gemini import GeminiBackend
        from chatsum.llm.openai import OpenAIBackend

        cls._providers = {
            "gemini": GeminiBackend,
            "openai": OpenAIBackend,
            "anthropic": AnthropicBackend,
        }

    @classmethod
    def register_provider(
        cls, name: str, backend_class: Type[CompletionBackend]
    ) -> None:
        """Register a custom completion provider."""
        cls._ensure_defaults()
        cls._providers[name] = backend_class

    @classmethod
    def providers(cls) -> list[str]:
        cls._ensure_defaults()
        return list(cls._providers)

    @classmethod
    def create(cls, config: BackendConfig) -> CompletionBackend:
        """Instantiate the appropriate backend from config."""
        cls._ensure_defaults()
        provider_cls = cls._providers.get(config.provider)
        if provider_cls is None:
            raise ValueError(
                f"Unknown LLM provider: {config.provider}. "
                f"Available: {list(cls._providers.keys())}"
            )
        return provider_cls(config)

    @classmethod
    def create_for_credentials(
        cls,
        provider: str,
        api_keys: Sequence[str],
        base_url: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
        timeout_seconds: Optional[float] = None,
    ) -> list[CompletionBackend]:
        """Create one backend per key, preserving key order."""
        if not api_keys:
            raise ValueError(f"No API keys configured for provider {provider}")
        return [
            cls.create(
                BackendConfig(
                    provider=provider,
                    api_key=key,
                    base_url=base_url,
                    max_tokens=max_tokens,
                    temperature=temperature,
                    timeout_seconds=timeout_seconds,
                )
            )
            for key in api_keys
        ]
