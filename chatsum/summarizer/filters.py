"""Pre-summary message filtering driven by per-group settings."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from chatsum.config import FilterConfig
from chatsum.summarizer.types import ChatMessage


@dataclass
class MessageFilter:
    exclude_bot_messages: bool = False
    exclude_commands: bool = False
    excluded_user_ids: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def from_config(cls, config: FilterConfig) -> MessageFilter:
        return cls(
            exclude_bot_messages=config.exclude_bot_messages,
            exclude_commands=config.exclude_commands,
            excluded_user_ids=frozenset(config.excluded_user_ids),
        )

    def accepts(self, message: ChatMessage) -> bool:
        if self.exclude_bot_messages and message.is_bot:
            return False
        if self.exclude_commands and message.content.startswith("/"):
            return False
        if (
            message.user_id is not None
            and message.user_id in self.excluded_user_ids
        ):
            return False
        return True

    def apply(self, messages: Iterable[ChatMessage]) -> list[ChatMessage]:
        """Return the accepted messages in their original order."""
        return [msg for msg in messages if self.accepts(msg)]
