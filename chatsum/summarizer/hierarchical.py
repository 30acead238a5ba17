"""Hierarchical summarization of arbitrarily long chat transcripts."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional, Protocol, Sequence

from chatsum.errors import (
    FailureKind,
    InvalidCredentialError,
    NetworkError,
    PermissionDeniedError,
    ProviderError,
    ProviderFailure,
    QuotaExceededError,
    RequestTimeoutError,
    SummarizationError,
)
from chatsum.summarizer.prompts import PromptBuilder
from chatsum.summarizer.types import ChatMessage, SummaryOptions

if TYPE_CHECKING:
    from chatsum.config import SummarizerConfig

logger = logging.getLogger(__name__)

CHUNK_SIZE = 900
CHUNK_THRESHOLD = 1000
CHUNK_SEPARATOR = "\n\n---\n\n"
NO_MESSAGES_TEXT = "No messages found in the specified time range."

_USER_FACING: dict[FailureKind, type[SummarizationError]] = {
    FailureKind.AUTH: InvalidCredentialError,
    FailureKind.PERMISSION: PermissionDeniedError,
    FailureKind.QUOTA: QuotaExceededError,
    FailureKind.TIMEOUT: RequestTimeoutError,
    FailureKind.NETWORK: NetworkError,
}


class Completer(Protocol):
    async def complete(self, prompt: str) -> str: ...


def chunk_messages(
    messages: Sequence[ChatMessage], chunk_size: int = CHUNK_SIZE
) -> list[list[ChatMessage]]:
    """Split into ordered, contiguous chunks of at most ``chunk_size``."""
    if chunk_size < 1:
        raise ValueError("chunk_size must be positive")
    return [
        list(messages[i:i + chunk_size])
        for i in range(0, len(messages), chunk_size)
    ]


def to_user_facing(exc: BaseException) -> Optional[SummarizationError]:
    """Translate a provider failure into the user-facing taxonomy.

    Returns None for failures outside the taxonomy.
    """
    if isinstance(exc, (ProviderError, ProviderFailure)):
        error_cls = _USER_FACING.get(exc.kind)
        if error_cls is not None:
            return error_cls()
    return None


class HierarchicalSummarizer:
    """Turns a message list of any length into a single summary.

    Lists up to ``chunk_threshold`` messages are summarized in one call.
    Longer lists are split into ``chunk_size`` chunks that are summarized
    one after another and then merged by a final call.
    """

    def __init__(
        self,
        gateway: Completer,
        chunk_size: int = CHUNK_SIZE,
        chunk_threshold: int = CHUNK_THRESHOLD,
        prompts: Optional[PromptBuilder] = None,
    ) -> None:
        self._gateway = gateway
        self._chunk_size = chunk_size
        self._chunk_threshold = chunk_threshold
        self._prompts = prompts or PromptBuilder()

    @classmethod
    def from_config(
        cls, gateway: Completer, config: SummarizerConfig
    ) -> HierarchicalSummarizer:
        return cls(
            gateway,
            chunk_size=config.chunk_size,
            chunk_threshold=config.chunk_threshold,
        )

    async def summarize(
        self,
        messages: Sequence[ChatMessage],
        options: Optional[SummaryOptions] = None,
    ) -> str:
        """Summarize ``messages``.

        Raises a :class:`SummarizationError` subclass for credential, quota,
        timeout and network failures on the single-call path. Other errors
        propagate unchanged.
        """
        if not messages:
            return NO_MESSAGES_TEXT

        options = options or SummaryOptions()
        if len(messages) > self._chunk_threshold:
            return await self._summarize_large(messages, options)

        try:
            return await self._summarize_chunk(messages, options)
        except (ProviderError, ProviderFailure) as exc:
            error = to_user_facing(exc)
            if error is None:
                raise
            raise error from exc

    async def _summarize_chunk(
        self, messages: Sequence[ChatMessage], options: SummaryOptions
    ) -> str:
        prompt = self._prompts.summary_prompt(messages, options)
        return await self._gateway.complete(prompt)

    async def _summarize_large(
        self, messages: Sequence[ChatMessage], options: SummaryOptions
    ) -> str:
        total = len(messages)
        chunks = chunk_messages(messages, self._chunk_size)
        logger.info(
            "Summarizing %d messages in %d chunks...", total, len(chunks)
        )

        summaries: list[str] = []
        labelled: list[str] = []
        for i, chunk in enumerate(chunks, start=1):
            summary = await self._summarize_chunk(chunk, options)
            logger.info("Chunk %d/%d summarized", i, len(chunks))
            summaries.append(summary)
            labelled.append(
                f"[Chunk {i}/{len(chunks)} - {len(chunk)} messages]:\n{summary}"
            )

        if len(summaries) == 1:
            return summaries[0]

        merged = CHUNK_SEPARATOR.join(labelled)
        prompt = self._prompts.merge_prompt(
            merged, len(chunks), total, options
        )
        try:
            return await self._gateway.complete(prompt)
        except Exception:
            logger.warning(
                "Merging %d chunk summaries failed; returning them unmerged",
                len(chunks),
                exc_info=True,
            )
            return (
                f"Summary of {total} messages "
                f"(processed in {len(chunks)} chunks):\n\n{merged}"
            )
