"""Exception hierarchy for chatsum."""

from __future__ import annotations

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """Classified reason a provider call failed."""

    QUOTA = "quota"
    NOT_FOUND = "not_found"
    SERVER = "server"
    AUTH = "auth"
    PERMISSION = "permission"
    TIMEOUT = "timeout"
    NETWORK = "network"
    UNKNOWN = "unknown"


class ChatSumError(Exception):
    """Base class for all chatsum errors."""


class ProviderFailure(ChatSumError):
    """A single failed call at the provider boundary.

    The originating SDK exception is chained through ``__cause__``.
    """

    def __init__(
        self,
        kind: FailureKind,
        message: str,
        model: Optional[str] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.model = model
        self.status_code = status_code

    def __str__(self) -> str:
        prefix = f"[{self.kind.value}]"
        if self.model:
            prefix += f" {self.model}"
        return f"{prefix}: {self.args[0]}"


class ProviderError(ChatSumError):
    """Raised by the gateway once no credential/model pair can succeed."""

    def __init__(self, message: str, last_failure: ProviderFailure) -> None:
        super().__init__(message)
        self.last_failure = last_failure

    @property
    def kind(self) -> FailureKind:
        return self.last_failure.kind


class SummarizationError(ChatSumError):
    """A provider failure translated into a message fit for end users."""

    user_message = "Failed to generate summary."

    def __init__(self, message: Optional[str] = None) -> None:
        super().__init__(message or self.user_message)


class InvalidCredentialError(SummarizationError):
    user_message = (
        "Invalid API key. Please check your API key and ensure it's correct."
    )


class PermissionDeniedError(SummarizationError):
    user_message = (
        "Permission denied. Your API key may not have access to the "
        "completion API. Please check your API key permissions."
    )


class QuotaExceededError(SummarizationError):
    user_message = (
        "API quota exceeded. All provided API keys have reached their rate "
        "limit. Please try again later or add more keys."
    )


class RequestTimeoutError(SummarizationError):
    user_message = (
        "Request timeout. The API request took too long. Please try again."
    )


class NetworkError(SummarizationError):
    user_message = (
        "Network error. Could not connect to the completion API. Please "
        "check your internet connection and try again."
    )
