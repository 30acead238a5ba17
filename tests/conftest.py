"""Shared fixtures: scripted backends, a manual clock and a recording sleep."""

from typing import Optional, Union

import pytest

from chatsum.errors import FailureKind, ProviderFailure
from chatsum.llm.base import BackendConfig, CompletionBackend, LLMResponse
from chatsum.summarizer.types import ChatMessage

Outcome = Union[str, BaseException]


class ScriptedBackend(CompletionBackend):
    """Replays scripted outcomes per model and logs every call."""

    def __init__(
        self,
        name: str,
        call_log: list,
        outcomes: Optional[dict[str, list[Outcome]]] = None,
        default: Outcome = "summary",
    ) -> None:
        super().__init__(BackendConfig(provider="scripted", api_key=name))
        self.name = name
        self._log = call_log
        self._outcomes = {m: list(v) for m, v in (outcomes or {}).items()}
        self._default = default

    async def complete(self, prompt: str, model: str) -> LLMResponse:
        self._log.append((self.name, model))
        queue = self._outcomes.get(model)
        outcome = queue.pop(0) if queue else self._default
        if isinstance(outcome, BaseException):
            raise outcome
        return LLMResponse(content=outcome, model=model)

    async def list_models(self) -> list[str]:
        return ["models/m1", "models/m2"]


class ManualClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSleep:
    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


class RecordingCompleter:
    """Stands in for the gateway in summarizer tests."""

    def __init__(self, responses=None, fail_on: Optional[dict[int, BaseException]] = None):
        self.prompts: list[str] = []
        self._responses = responses
        self._fail_on = fail_on or {}

    async def complete(self, prompt: str) -> str:
        call_number = len(self.prompts)
        self.prompts.append(prompt)
        if call_number in self._fail_on:
            raise self._fail_on[call_number]
        if callable(self._responses):
            return self._responses(call_number, prompt)
        return f"summary {call_number + 1}"


def failure(kind: FailureKind, message: str = "boom") -> ProviderFailure:
    return ProviderFailure(kind, message)


@pytest.fixture
def call_log():
    return []


@pytest.fixture
def clock():
    return ManualClock()


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def make_backend(call_log):
    def _make(name, outcomes=None, default="summary"):
        return ScriptedBackend(name, call_log, outcomes=outcomes, default=default)

    return _make


@pytest.fixture
def make_failure():
    return failure


@pytest.fixture
def completer_factory():
    return RecordingCompleter


@pytest.fixture
def make_messages():
    def _make(count: int) -> list[ChatMessage]:
        return [
            ChatMessage(
                content=f"message {i}",
                timestamp=f"2024-01-01T00:{i % 60:02d}:00Z",
                username=f"user_{i % 5}" if i % 2 == 0 else None,
                first_name=f"Name{i % 3}",
            )
            for i in range(1, count + 1)
        ]

    return _make
