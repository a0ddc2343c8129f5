"""Span helper for timing generator and record-store calls."""
from __future__ import annotations

import time
from contextlib import contextmanager
from typing import Any, Dict, Iterator

from .logger import log_event


@contextmanager
def span(session_id: str, name: str) -> Iterator[Dict[str, Any]]:
    """Time the enclosed block and emit a ``span`` event when it exits.

    The yielded dict may be filled with extra fields (e.g. ``outcome``).
    """
    fields: Dict[str, Any] = {}
    start = time.time()
    try:
        yield fields
    finally:
        elapsed_ms = int((time.time() - start) * 1000)
        log_event("span", session_id, name=name, ms=elapsed_ms, **fields)


__all__ = ["span"]
