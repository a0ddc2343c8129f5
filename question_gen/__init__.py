"""Prompt construction, generation and response cleanup for interview turns."""
from .generator import Err, GenerationResult, LlmQuestionGenerator, Ok, QuestionGenerator, with_fallback
from .prompts import (
    NOT_ENOUGH_INFORMATION,
    build_feedback_prompt,
    build_follow_up_prompt,
    build_initial_prompt,
    estimate_tokens,
)
from .sanitize import clean_feedback, clean_initial_question, extract_follow_up_question

__all__ = [
    "Err",
    "GenerationResult",
    "LlmQuestionGenerator",
    "Ok",
    "QuestionGenerator",
    "with_fallback",
    "NOT_ENOUGH_INFORMATION",
    "build_feedback_prompt",
    "build_follow_up_prompt",
    "build_initial_prompt",
    "estimate_tokens",
    "clean_feedback",
    "clean_initial_question",
    "extract_follow_up_question",
]
