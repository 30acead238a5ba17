"""Logging configuration for chatsum."""

from __future__ import annotations

import logging
import sys


def setup_logging(verbose: bool = False) -> None:
    """Configure console logging for the package."""
    level = logging.DEBUG if verbose else logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)

    formatter = logging.Formatter(
        "[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )
    handler.setFormatter(formatter)

    root_logger = logging.getLogger("chatsum")
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    # Quiet noisy libraries
    for name in ("httpx", "httpcore", "google_genai", "openai", "anthropic"):
        logging.getLogger(name).setLevel(logging.WARNING)
