"""Error taxonomy for the interview orchestration core."""
from __future__ import annotations

from enum import Enum
from typing import Optional


class InterviewError(Exception):  # Base error carrying a user-facing message
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InputValidationError(InterviewError):  # Missing or empty inputs, scoped to one field
    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class ExtractionError(InterviewError):  # Uploaded file could not be read as text
    def __init__(self, message: str = "Could not read file contents. Please try a different file.") -> None:
        super().__init__(message)


class PersistenceError(InterviewError):  # Record store write failed
    pass


class GenerationErrorKind(str, Enum):
    CREDENTIALS = "credentials"
    RATE_LIMIT = "rate_limit"
    SERVER = "server"
    INPUT_TOO_LARGE = "input_too_large"
    TRANSPORT = "transport"


_KIND_MESSAGES = {
    GenerationErrorKind.CREDENTIALS: "Invalid API credentials",
    GenerationErrorKind.RATE_LIMIT: "API rate limit exceeded. Please wait before retrying.",
    GenerationErrorKind.SERVER: "Service temporarily unavailable",
    GenerationErrorKind.INPUT_TOO_LARGE: "Input exceeds token limit. Please shorten the resume or job description.",
    GenerationErrorKind.TRANSPORT: "Could not reach the interview service",
}


class GenerationError(InterviewError):  # Generator backend failure
    def __init__(self, kind: GenerationErrorKind, message: Optional[str] = None) -> None:
        super().__init__(message or _KIND_MESSAGES[kind])
        self.kind = kind

    @classmethod
    def from_status(cls, status_code: int) -> "GenerationError":
        """Classify an HTTP status returned by the generator backend."""

        if status_code in (401, 403):
            return cls(GenerationErrorKind.CREDENTIALS)
        if status_code == 429:
            return cls(GenerationErrorKind.RATE_LIMIT)
        if status_code == 413:
            return cls(GenerationErrorKind.INPUT_TOO_LARGE)
        if status_code >= 500:
            return cls(GenerationErrorKind.SERVER)
        return cls(GenerationErrorKind.TRANSPORT, f"Generator returned status {status_code}")


__all__ = [
    "InterviewError",
    "InputValidationError",
    "ExtractionError",
    "PersistenceError",
    "GenerationErrorKind",
    "GenerationError",
]
