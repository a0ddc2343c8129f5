"""Question and feedback generation behind a typed result."""
from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol, Sequence, Union

from config import LlmRoute
from interview_session.errors import GenerationError, GenerationErrorKind
from interview_session.models import Turn
from llm_gateway import HttpClient, complete

from . import prompts
from .sanitize import (
    FEEDBACK_ERROR_FALLBACK,
    FOLLOW_UP_ERROR_FALLBACK,
    OPENING_FALLBACK,
    clean_feedback,
    clean_initial_question,
    extract_follow_up_question,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Ok:
    text: str


@dataclass(frozen=True)
class Err:
    kind: GenerationErrorKind
    message: str
    fallback: str


GenerationResult = Union[Ok, Err]


def with_fallback(fallback: str) -> Callable[[Callable[..., str]], Callable[..., GenerationResult]]:
    """Wrap a text-producing call so failures become ``Err`` carrying ``fallback``.

    Calls that already return ``Ok``/``Err`` pass through unchanged, so the
    decorator can be applied again at the call site.
    """

    def decorator(fn: Callable[..., str]) -> Callable[..., GenerationResult]:
        name = getattr(fn, "__name__", "generator")

        @functools.wraps(fn)
        def wrapper(*args, **kwargs) -> GenerationResult:
            try:
                value = fn(*args, **kwargs)
                if isinstance(value, (Ok, Err)):
                    return value
                return Ok(value)
            except GenerationError as exc:
                logger.warning("%s failed kind=%s: %s", name, exc.kind.value, exc.message)
                return Err(exc.kind, exc.message, fallback)
            except Exception as exc:  # noqa: BLE001
                logger.exception("%s failed unexpectedly", name)
                return Err(GenerationErrorKind.SERVER, str(exc) or "Generation failed", fallback)

        return wrapper

    return decorator


class QuestionGenerator(Protocol):  # Capability consumed by the interview state machine
    def generate_initial_question(self, resume_text: str, job_description_text: str) -> GenerationResult: ...

    def generate_follow_up_question(
        self, resume_text: str, job_description_text: str, history: Sequence[Turn]
    ) -> GenerationResult: ...

    def generate_interview_feedback(self, history: Sequence[Turn]) -> GenerationResult: ...


class LlmQuestionGenerator:
    """Generator backed by an OpenAI-compatible completion route."""

    def __init__(self, route: LlmRoute, *, client: Optional[HttpClient] = None) -> None:
        self.route = route
        self.client = client

    def _complete(self, prompt: str, **options) -> str:
        return complete(prompt, cfg=self.route, client=self.client, options=options or None)

    @with_fallback(OPENING_FALLBACK)
    def generate_initial_question(self, resume_text: str, job_description_text: str) -> str:
        prompt = prompts.build_initial_prompt(resume_text, job_description_text)
        return clean_initial_question(self._complete(prompt))

    @with_fallback(FOLLOW_UP_ERROR_FALLBACK)
    def generate_follow_up_question(self, resume_text: str, job_description_text: str, history: Sequence[Turn]) -> str:
        prompt = prompts.build_follow_up_prompt(resume_text, job_description_text, history)
        return extract_follow_up_question(self._complete(prompt))

    @with_fallback(FEEDBACK_ERROR_FALLBACK)
    def generate_interview_feedback(self, history: Sequence[Turn]) -> str:
        prompt = prompts.build_feedback_prompt(history)
        if prompt is None:
            return prompts.NOT_ENOUGH_INFORMATION
        return clean_feedback(self._complete(prompt, temperature=0.3, max_tokens=1200))


__all__ = [
    "Err",
    "GenerationResult",
    "LlmQuestionGenerator",
    "Ok",
    "QuestionGenerator",
    "with_fallback",
]
