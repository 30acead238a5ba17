"""Input types for the summarizer: chat messages and summary options."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from chatsum.config import load_yaml_file


class SummaryStyle(str, Enum):
    """Supported summary styles."""

    DEFAULT = "default"
    DETAILED = "detailed"
    BRIEF = "brief"
    BULLET = "bullet"
    TIMELINE = "timeline"

    @classmethod
    def parse(cls, value: Optional[str]) -> SummaryStyle:
        """Map a stored style name to a style; unknown names become DEFAULT."""
        try:
            return cls(value) if value else cls.DEFAULT
        except ValueError:
            return cls.DEFAULT


@dataclass(frozen=True)
class ChatMessage:
    """A single cached chat message."""

    content: str
    timestamp: str = ""
    username: Optional[str] = None
    first_name: Optional[str] = None
    user_id: Optional[int] = None
    is_bot: bool = False

    @property
    def author(self) -> str:
        """``@username`` when known, else the first name, else ``Unknown``."""
        if self.username:
            return f"@{self.username}"
        return self.first_name or "Unknown"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ChatMessage:
        """Build from a message record; accepts snake_case or camelCase keys."""
        timestamp = data.get("timestamp", "")
        return cls(
            content=str(data.get("content") or ""),
            timestamp=str(timestamp) if timestamp is not None else "",
            username=data.get("username"),
            first_name=data.get("first_name", data.get("firstName")),
            user_id=data.get("user_id", data.get("userId")),
            is_bot=bool(data.get("is_bot", data.get("isBot", False))),
        )


@dataclass(frozen=True)
class SummaryOptions:
    """Per-request formatting options."""

    custom_prompt: Optional[str] = None
    summary_style: str = SummaryStyle.DEFAULT.value

    @property
    def style(self) -> SummaryStyle:
        return SummaryStyle.parse(self.summary_style)


def load_messages(path: Path) -> list[ChatMessage]:
    """Load a transcript file: a JSON/YAML list, or a mapping with ``messages``."""
    data = load_yaml_file(path)
    if isinstance(data, dict):
        data = data.get("messages", [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of messages in {path}")
    return [ChatMessage.from_dict(item) for item in data]
