"""Credential rotation state: exhaustion cooldowns and the rotation cursor."""

from __future__ import annotations

import json
import logging
import re
import threading
import time
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_COOLDOWN_SECONDS = 60.0

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+$")


def parse_credentials(raw: Union[str, list[str], None]) -> list[str]:
    """Normalize a key setting into an ordered list of keys.

    Accepts a list, a JSON array encoded as a string, or a single key.
    """
    if raw is None:
        return []
    if isinstance(raw, str):
        text = raw.strip()
        if text.startswith("["):
            try:
                parsed = json.loads(text)
            except json.JSONDecodeError:
                parsed = None
            if isinstance(parsed, list):
                raw = [str(item) for item in parsed]
            else:
                raw = [text]
        else:
            raw = [text]
    return [key.strip() for key in raw if key and key.strip()]


def looks_like_api_key(key: str) -> bool:
    """Cheap format check before spending a request on a key."""
    return len(key) > 20 and bool(_KEY_PATTERN.match(key))


def mask_credential(key: str) -> str:
    return f"{key[:8]}..."


class CredentialPool:
    """Tracks which credentials may be used and where the next search starts.

    Exhaustion is time-based: an exhausted credential records the moment it
    becomes usable again and is treated as available once ``clock()`` passes
    that point. No timers run in the background. Rejected credentials
    (authentication or permission failures) stay unusable for the pool's
    lifetime.
    """

    def __init__(
        self,
        size: int,
        cooldown_seconds: float = DEFAULT_COOLDOWN_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if size < 1:
            raise ValueError("CredentialPool needs at least one credential")
        self._size = size
        self._cooldown = cooldown_seconds
        self._clock = clock
        self._cursor = 0
        self._exhausted_until: dict[int, float] = {}
        self._rejected: set[int] = set()
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return self._size

    @property
    def cursor(self) -> int:
        return self._cursor

    def _expire(self, now: float) -> None:
        for index, until in list(self._exhausted_until.items()):
            if now >= until:
                del self._exhausted_until[index]
                logger.info(
                    "Credential %d recovered from exhaustion state", index
                )

    def _is_available(self, index: int) -> bool:
        return (
            index not in self._exhausted_until
            and index not in self._rejected
        )

    def is_available(self, index: int) -> bool:
        with self._lock:
            self._expire(self._clock())
            return self._is_available(index)

    def is_exhausted(self, index: int) -> bool:
        with self._lock:
            self._expire(self._clock())
            return index in self._exhausted_until

    def is_rejected(self, index: int) -> bool:
        with self._lock:
            return index in self._rejected

    def select(self) -> int:
        """Pick the credential for the next attempt and move the cursor to it.

        Scans forward from the cursor for an available credential. When none
        is available the cursor position is used anyway (skipping rejected
        credentials where possible), so a call never stalls waiting for a
        cooldown to end.
        """
        with self._lock:
            self._expire(self._clock())
            for offset in range(self._size):
                index = (self._cursor + offset) % self._size
                if self._is_available(index):
                    self._cursor = index
                    return index

            for offset in range(self._size):
                index = (self._cursor + offset) % self._size
                if index not in self._rejected:
                    self._cursor = index
                    logger.warning(
                        "All credentials exhausted; retrying credential %d "
                        "anyway",
                        index,
                    )
                    return index
            return self._cursor

    def mark_exhausted(self, index: int) -> bool:
        """Start the cooldown for ``index``.

        Returns False when the credential was already cooling down; the
        existing expiry is kept.
        """
        with self._lock:
            now = self._clock()
            self._expire(now)
            if index in self._exhausted_until:
                return False
            self._exhausted_until[index] = now + self._cooldown
            logger.warning(
                "Credential %d marked as exhausted (quota exceeded) for %.0fs",
                index, self._cooldown,
            )
            return True

    def mark_rejected(self, index: int) -> None:
        with self._lock:
            if index not in self._rejected:
                self._rejected.add(index)
                logger.error("Credential %d rejected by provider", index)

    def has_available_besides(self, index: int) -> bool:
        """True if some credential other than ``index`` is available now."""
        with self._lock:
            self._expire(self._clock())
            return any(
                self._is_available(i) for i in range(self._size) if i != index
            )

    def has_usable_besides(self, index: int) -> bool:
        """True if some credential other than ``index`` is not rejected."""
        with self._lock:
            return any(
                i not in self._rejected
                for i in range(self._size)
                if i != index
            )

    def recovers_at(self, index: int) -> Optional[float]:
        with self._lock:
            self._expire(self._clock())
            return self._exhausted_until.get(index)
