"""Cleanup of raw generated text into a single usable question or report."""
from __future__ import annotations

import re
from typing import List, Optional

OPENING_FALLBACK = "Let's begin. Tell me about yourself."
FOLLOW_UP_FALLBACK = "Could you elaborate on that experience?"
FOLLOW_UP_ERROR_FALLBACK = "Could you tell me more about your experience?"
FEEDBACK_FALLBACK = "Thank you for your time. We'll provide feedback shortly."
FEEDBACK_ERROR_FALLBACK = "Thank you for completing the interview. Feedback generation failed."

_CODE_FENCE_RE = re.compile(r"```[\s\S]*?```")
_BULLET_RE = re.compile(r"^[ \t]*[-*•]+[ \t]*", re.MULTILINE)
_CONTROL_TOKEN_RE = re.compile(r"<\|.*?\|>")
_NOTE_RE = re.compile(r"Note:.*$", re.IGNORECASE | re.DOTALL)


def _strip_common(text: str) -> str:
    text = _CODE_FENCE_RE.sub("", text)
    return _CONTROL_TOKEN_RE.sub("", text)


def clean_initial_question(raw: Optional[str]) -> str:
    text = _strip_common((raw or "").strip())
    text = _BULLET_RE.sub("", text)
    return text.strip() or OPENING_FALLBACK


def _lines(text: str) -> List[str]:
    return [line.strip() for line in text.split("\n") if line.strip()]


def extract_follow_up_question(raw: Optional[str]) -> str:
    """Pick the first real question out of a follow-up completion."""

    text = _strip_common((raw or "").strip())
    text = _NOTE_RE.sub("", text)
    text = _BULLET_RE.sub("", text)
    lines = _lines(text)
    for line in lines:
        if len(line) > 10 and line.endswith("?"):
            return line
    if lines:
        return lines[0]
    return FOLLOW_UP_FALLBACK


def clean_feedback(raw: Optional[str]) -> str:
    text = _strip_common((raw or "").strip()).strip()
    return text or FEEDBACK_FALLBACK


__all__ = [
    "FEEDBACK_ERROR_FALLBACK",
    "FEEDBACK_FALLBACK",
    "FOLLOW_UP_ERROR_FALLBACK",
    "FOLLOW_UP_FALLBACK",
    "OPENING_FALLBACK",
    "clean_feedback",
    "clean_initial_question",
    "extract_follow_up_question",
]
