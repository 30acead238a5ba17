"""Retry utilities for provider calls."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable

from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_fixed,
    wait_random,
)

Sleep = Callable[[float], Awaitable[None]]


class AttemptExhausted(Exception):
    """Signals that one outer attempt ended without a completion."""

    def __init__(self, failure: BaseException) -> None:
        super().__init__(str(failure))
        self.failure = failure


def outer_attempts(
    max_attempts: int = 3,
    base_seconds: float = 1.0,
    jitter_seconds: float = 1.0,
    sleep: Sleep = asyncio.sleep,
) -> AsyncRetrying:
    """Build the global retry loop: ``base + uniform(0, jitter)`` between tries.

    Only :class:`AttemptExhausted` is retried. After the last attempt it is
    re-raised so the caller can unwrap the underlying failure.
    """
    return AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_fixed(base_seconds) + wait_random(0, jitter_seconds),
        retry=retry_if_exception_type(AttemptExhausted),
        sleep=sleep,
        reraise=True,
    )
