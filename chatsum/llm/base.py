"""Abstract completion backend interface and shared types."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from chatsum.errors import FailureKind, ProviderFailure
from chatsum.llm.classify import classify_failure, extract_status_code

logger = logging.getLogger(__name__)


@dataclass
class LLMResponse:
    """Standardized response from any completion backend."""

    content: str
    model: str
    input_tokens: int = 0
    output_tokens: int = 0
    finish_reason: str = "stop"
    raw_response: Optional[Any] = None


@dataclass
class BackendConfig:
    """Configuration for one backend instance, bound to a single credential."""

    provider: str
    api_key: str
    base_url: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    timeout_seconds: Optional[float] = None


class CompletionBackend(ABC):
    """Abstract interface for all completion providers.

    Implementations raise :class:`ProviderFailure` from ``complete``; the
    original SDK error is kept as ``__cause__``.
    """

    def __init__(self, config: BackendConfig) -> None:
        self.config = config

    @abstractmethod
    async def complete(self, prompt: str, model: str) -> LLMResponse:
        """Generate one completion for ``prompt`` using ``model``."""
        ...

    @abstractmethod
    async def list_models(self) -> list[str]:
        """Return the identifiers of the models visible to this credential."""
        ...

    async def health_check(self, model: str) -> bool:
        """Verify the credential works against ``model``."""
        try:
            await self.complete("ping", model)
            return True
        except ProviderFailure as exc:
            # A throttled key is still a valid key.
            if exc.kind == FailureKind.QUOTA:
                return True
            logger.warning(
                "%s health check failed for %s: %s",
                self.config.provider, model, exc,
            )
            return False

    def classify(self, exc: BaseException) -> FailureKind:
        return classify_failure(exc)

    def _failure(self, exc: BaseException, model: str) -> ProviderFailure:
        """Wrap an SDK exception into a typed failure."""
        return ProviderFailure(
            self.classify(exc),
            str(exc) or type(exc).__name__,
            model=model,
            status_code=extract_status_code(exc),
        )
