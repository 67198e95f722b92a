"""Timing helper for the slow, network-bound interview steps."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Iterator

from .logger import log_event


@contextmanager
def span(name: str, session_id: str) -> Iterator[None]:
    start = time.monotonic()
    try:
        yield
    finally:
        elapsed_ms = int((time.monotonic() - start) * 1000)
        log_event("span", session_id, outcome=name, ms=elapsed_ms)


__all__ = ["span"]
