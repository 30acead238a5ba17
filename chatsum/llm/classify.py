"""Failure classification for opaque provider errors.

Backends translate SDK exceptions into a :class:`FailureKind` so the gateway
never inspects free text. The lookup order is HTTP status, exception type,
then the substring table, which stays the compatibility contract for
providers that only report errors as text.
"""

from __future__ import annotations

from typing import Optional

import httpx

from chatsum.errors import FailureKind, ProviderFailure

MESSAGE_PATTERNS: list[tuple[FailureKind, tuple[str, ...]]] = [
    (FailureKind.QUOTA, ("QUOTA_EXCEEDED", "429", "RESOURCE_EXHAUSTED")),
    (FailureKind.NOT_FOUND, ("NOT_FOUND",)),
    (FailureKind.SERVER, ("503", "500")),
    (FailureKind.AUTH, ("API_KEY_INVALID", "401", "Unauthorized")),
    (FailureKind.PERMISSION, ("PERMISSION_DENIED", "403")),
    (FailureKind.TIMEOUT, ("timeout", "TIMEOUT")),
    (FailureKind.NETWORK, ("network", "ECONNREFUSED", "ENOTFOUND")),
]

_STATUS_KINDS = {
    401: FailureKind.AUTH,
    403: FailureKind.PERMISSION,
    404: FailureKind.NOT_FOUND,
    408: FailureKind.TIMEOUT,
    429: FailureKind.QUOTA,
}


def extract_status_code(exc: BaseException) -> Optional[int]:
    """Return the HTTP status carried by an SDK exception, if any."""
    for attr in ("status_code", "code"):
        value = getattr(exc, attr, None)
        if isinstance(value, int) and 100 <= value < 600:
            return value
    return None


def classify_status(status: int) -> Optional[FailureKind]:
    if status in _STATUS_KINDS:
        return _STATUS_KINDS[status]
    if 500 <= status < 600:
        return FailureKind.SERVER
    return None


def classify_message(message: str) -> FailureKind:
    """Match an error message against the substring table."""
    for kind, needles in MESSAGE_PATTERNS:
        if any(needle in message for needle in needles):
            return kind
    return FailureKind.UNKNOWN


def classify_failure(exc: BaseException) -> FailureKind:
    """Classify any exception raised while calling a provider."""
    if isinstance(exc, ProviderFailure):
        return exc.kind

    status = extract_status_code(exc)
    if status is not None:
        kind = classify_status(status)
        if kind is not None:
            return kind

    if isinstance(exc, (TimeoutError, httpx.TimeoutException)):
        return FailureKind.TIMEOUT
    if isinstance(exc, (ConnectionError, httpx.NetworkError)):
        return FailureKind.NETWORK

    return classify_message(str(exc))
