"""Interview session models and error taxonomy.

The state machine itself lives in :mod:`interview_session.machine`.
"""
from .errors import (
    ExtractionError,
    GenerationError,
    GenerationErrorKind,
    InputValidationError,
    InterviewError,
    PersistenceError,
)
from .models import FieldErrors, Role, Session, SessionEvent, Status, Turn

__all__ = [
    "ExtractionError",
    "GenerationError",
    "GenerationErrorKind",
    "InputValidationError",
    "InterviewError",
    "PersistenceError",
    "FieldErrors",
    "Role",
    "Session",
    "SessionEvent",
    "Status",
    "Turn",
]
