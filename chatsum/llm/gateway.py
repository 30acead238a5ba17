"""Completion gateway: credential rotation, model fallback and global retries.

One call to :meth:`CompletionGateway.complete` runs up to
``max_global_retries`` outer attempts. Each attempt picks a credential, walks
the model chain against it and ends in one of three states: a completion
was returned, the attempt is spent and the next one may start after a
backoff, or the call is aborted. The transitions are listed in
``TRANSITIONS``; ``decide`` maps a classified failure to the next event.
"""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable, NoReturn, Sequence

from chatsum.errors import FailureKind, ProviderError, ProviderFailure
from chatsum.llm.base import CompletionBackend
from chatsum.llm.classify import classify_failure, extract_status_code
from chatsum.llm.credentials import DEFAULT_COOLDOWN_SECONDS, CredentialPool
from chatsum.utils.retry import AttemptExhausted, Sleep, outer_attempts

if TYPE_CHECKING:
    from chatsum.config import GatewayConfig

logger = logging.getLogger(__name__)

MAX_GLOBAL_RETRIES = 3
EMPTY_RESPONSE_TEXT = "Generated summary (no text returned)"


class AttemptState(str, Enum):
    SELECTING_CREDENTIAL = "selecting_credential"
    TRYING_MODEL = "trying_model"
    SUCCEEDED = "succeeded"
    EXHAUSTED_RETRY = "exhausted_retry"
    ABORTED = "aborted"


class AttemptEvent(str, Enum):
    CREDENTIAL_SELECTED = "credential_selected"
    SUCCESS = "success"
    NEXT_MODEL = "next_model"
    ROTATE = "rotate"
    CHAIN_EXHAUSTED = "chain_exhausted"
    ABORT = "abort"
    RETRY = "retry"
    BUDGET_SPENT = "budget_spent"


TRANSITIONS: dict[tuple[AttemptState, AttemptEvent], AttemptState] = {
    (AttemptState.SELECTING_CREDENTIAL, AttemptEvent.CREDENTIAL_SELECTED):
        AttemptState.TRYING_MODEL,
    (AttemptState.TRYING_MODEL, AttemptEvent.SUCCESS): AttemptState.SUCCEEDED,
    (AttemptState.TRYING_MODEL, AttemptEvent.NEXT_MODEL):
        AttemptState.TRYING_MODEL,
    (AttemptState.TRYING_MODEL, AttemptEvent.ROTATE):
        AttemptState.EXHAUSTED_RETRY,
    (AttemptState.TRYING_MODEL, AttemptEvent.CHAIN_EXHAUSTED):
        AttemptState.EXHAUSTED_RETRY,
    (AttemptState.TRYING_MODEL, AttemptEvent.ABORT): AttemptState.ABORTED,
    (AttemptState.EXHAUSTED_RETRY, AttemptEvent.RETRY):
        AttemptState.SELECTING_CREDENTIAL,
    (AttemptState.EXHAUSTED_RETRY, AttemptEvent.BUDGET_SPENT):
        AttemptState.ABORTED,
}


def transition(state: AttemptState, event: AttemptEvent) -> AttemptState:
    """Apply ``event`` to ``state``; undefined pairs raise ValueError."""
    try:
        return TRANSITIONS[(state, event)]
    except KeyError:
        raise ValueError(
            f"No transition from {state.value} on {event.value}"
        ) from None


def decide(kind: FailureKind, alternatives_available: bool) -> AttemptEvent:
    """Failure policy for one (credential, model) call.

    ``alternatives_available`` means another credential could serve the
    request: available (not cooling down) for quota failures, not rejected
    for authentication and permission failures.
    """
    if kind is FailureKind.QUOTA:
        return (
            AttemptEvent.ROTATE
            if alternatives_available
            else AttemptEvent.NEXT_MODEL
        )
    if kind in (FailureKind.NOT_FOUND, FailureKind.SERVER):
        return AttemptEvent.NEXT_MODEL
    if kind in (FailureKind.AUTH, FailureKind.PERMISSION):
        return (
            AttemptEvent.ROTATE if alternatives_available else AttemptEvent.ABORT
        )
    return AttemptEvent.ABORT


def _as_failure(exc: Exception, model: str) -> ProviderFailure:
    if isinstance(exc, ProviderFailure):
        return exc
    failure = ProviderFailure(
        classify_failure(exc),
        str(exc) or type(exc).__name__,
        model=model,
        status_code=extract_status_code(exc),
    )
    failure.__cause__ = exc
    return failure


class CompletionGateway:
    """Obtains one completion per prompt across N credentials and M models.

    ``backends`` holds one backend per credential, in credential order. The
    rotation state is shared by every caller of this instance.
    """

    def __init__(
        self,
        backends: Sequence[CompletionBackend],
        models: Sequence[str],
        max_global_retries: int = MAX_GLOBAL_RETRIES,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        backoff_base_seconds: float = 1.0,
        backoff_jitter_seconds: float = 1.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        if not backends:
            raise ValueError("CompletionGateway needs at least one credential")
        if not models:
            raise ValueError("CompletionGateway needs at least one model")
        if max_global_retries < 1:
            raise ValueError("max_global_retries must be at least 1")
        self._backends = tuple(backends)
        self._models = tuple(models)
        self._max_global_retries = max_global_retries
        self._backoff_base = backoff_base_seconds
        self._backoff_jitter = backoff_jitter_seconds
        self._sleep = sleep
        self._pool = CredentialPool(
            len(self._backends), cooldown_seconds=cooldown_seconds, clock=clock
        )

    @classmethod
    def from_config(
        cls,
        config: GatewayConfig,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> CompletionGateway:
        from chatsum.llm.factory import LLMFactory

        backends = LLMFactory.create_for_credentials(
            config.provider,
            config.api_keys,
            base_url=config.base_url,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
            timeout_seconds=config.timeout_seconds,
        )
        return cls(
            backends,
            config.models,
            max_global_retries=config.max_global_retries,
            cooldown_seconds=config.cooldown_seconds,
            backoff_base_seconds=config.backoff_base_seconds,
            backoff_jitter_seconds=config.backoff_jitter_seconds,
            clock=clock,
            sleep=sleep,
        )

    @property
    def pool(self) -> CredentialPool:
        return self._pool

    @property
    def models(self) -> tuple[str, ...]:
        return self._models

    @property
    def backends(self) -> tuple[CompletionBackend, ...]:
        return self._backends

    async def complete(self, prompt: str) -> str:
        """Return a completion for ``prompt``.

        Raises :class:`ProviderError` when the retry budget is spent or every
        credential has been rejected. Timeouts and network errors raise a
        classified :class:`ProviderFailure`; unclassified errors are re-raised
        as they are. Neither is retried.
        """
        if not prompt:
            raise ValueError("prompt must not be empty")

        retrying = outer_attempts(
            self._max_global_retries,
            base_seconds=self._backoff_base,
            jitter_seconds=self._backoff_jitter,
            sleep=self._sleep,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    return await self._run_attempt(
                        prompt, attempt.retry_state.attempt_number
                    )
        except AttemptExhausted as exc:
            raise ProviderError(
                f"All {self._max_global_retries} attempts failed; "
                f"last error: {exc.failure}",
                exc.failure,
            ) from exc.failure

    async def _run_attempt(self, prompt: str, attempt_number: int) -> str:
        state = AttemptState.SELECTING_CREDENTIAL
        index = self._pool.select()
        backend = self._backends[index]
        state = transition(state, AttemptEvent.CREDENTIAL_SELECTED)

        # The model chain is never empty, so a failed walk always leaves
        # ``failure`` bound.
        for model in self._models:
            logger.debug(
                "Attempt %d: credential %d, model %s",
                attempt_number, index, model,
            )
            try:
                response = await backend.complete(prompt, model)
            except Exception as exc:
                failure = _as_failure(exc, model)
                event = self._on_failure(failure, index, model)
                state = transition(state, event)
                if state is AttemptState.ABORTED:
                    self._abort(failure, index, exc)
                if event is AttemptEvent.ROTATE:
                    break
                continue

            state = transition(state, AttemptEvent.SUCCESS)
            return response.content or EMPTY_RESPONSE_TEXT
        else:
            state = transition(state, AttemptEvent.CHAIN_EXHAUSTED)

        if attempt_number < self._max_global_retries:
            state = transition(state, AttemptEvent.RETRY)
            logger.warning(
                "Attempt %d/%d failed (%s); retrying after backoff",
                attempt_number, self._max_global_retries, failure,
            )
        else:
            state = transition(state, AttemptEvent.BUDGET_SPENT)
            logger.error(
                "Attempt %d/%d failed (%s); retry budget spent",
                attempt_number, self._max_global_retries, failure,
            )
        raise AttemptExhausted(failure)

    def _abort(
        self, failure: ProviderFailure, index: int, exc: Exception
    ) -> NoReturn:
        """Raise the error that ends the request without further retries."""
        if failure.kind in (FailureKind.AUTH, FailureKind.PERMISSION):
            raise ProviderError(
                f"Credential {index} was rejected and no alternative "
                f"credentials remain: {failure}",
                failure,
            ) from exc
        if (
            failure.kind in (FailureKind.TIMEOUT, FailureKind.NETWORK)
            and failure is not exc
        ):
            raise failure from exc
        raise exc

    def _on_failure(
        self, failure: ProviderFailure, index: int, model: str
    ) -> AttemptEvent:
        kind = failure.kind
        if kind is FailureKind.QUOTA:
            self._pool.mark_exhausted(index)
            event = decide(kind, self._pool.has_available_besides(index))
            if event is AttemptEvent.ROTATE:
                logger.warning(
                    "Model %s failed with credential %d: quota exceeded. "
                    "Rotating to next available credential",
                    model, index,
                )
            else:
                logger.warning(
                    "Model %s failed with credential %d: quota exceeded. "
                    "No other credentials available, falling back to next "
                    "model",
                    model, index,
                )
            return event

        if kind in (FailureKind.AUTH, FailureKind.PERMISSION):
            self._pool.mark_rejected(index)
            return decide(kind, self._pool.has_usable_besides(index))

        event = decide(kind, False)
        if event is AttemptEvent.NEXT_MODEL:
            logger.warning(
                "Model %s failed: %s. Falling back to next model", model, failure
            )
        return event
