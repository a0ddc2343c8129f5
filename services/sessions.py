"""Process-wide holder for the active interview session."""
from __future__ import annotations

import threading
from typing import Optional

from config.registry import GENERATOR_KEY, STORE_KEY, get_model
from interview_session.machine import InterviewSession

_CURRENT: Optional[InterviewSession] = None
_GUARD = threading.Lock()


def new_session() -> InterviewSession:
    """Build a session wired to the registered generator and record store."""

    generator = get_model(GENERATOR_KEY)()
    store = get_model(STORE_KEY)()
    return InterviewSession(generator, store)


def current_session() -> InterviewSession:
    """Return the active session, creating it on first use."""

    global _CURRENT
    with _GUARD:
        if _CURRENT is None:
            _CURRENT = new_session()
        return _CURRENT


def discard_session() -> None:
    """Forget the active session so the next request rebuilds it from the registry."""

    global _CURRENT
    with _GUARD:
        _CURRENT = None
