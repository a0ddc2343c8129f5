from __future__ import annotations  # Split generated feedback into titled sections

import re
from typing import List

from .models import FeedbackSection

DEFAULT_TITLE = "Overall Feedback"

_NUMBERED_RE = re.compile(r"^\d+\.\s+[A-Z]")
_LABEL_RE = re.compile(r"^[A-Za-z\s]+:$")


def _heading(line: str) -> str | None:  # Heading text when ``line`` starts a section
    stripped = line.strip().replace("**", "")
    if _NUMBERED_RE.match(stripped) or _LABEL_RE.match(stripped):
        return re.sub(r"^\d+\.\s+", "", stripped).rstrip(":").strip()
    return None


def parse_feedback_sections(feedback: str) -> List[FeedbackSection]:
    """Group feedback lines under numbered (``1. Title``) or ``Title:`` headings.

    Headings with no content are dropped. Text without any heading becomes a
    single "Overall Feedback" section.
    """
    sections: List[FeedbackSection] = []
    title = ""
    content: List[str] = []

    def flush() -> None:
        if title and content:
            sections.append(FeedbackSection(title=title, content="\n".join(content)))

    for line in (feedback or "").split("\n"):
        heading = _heading(line)
        if heading is not None:
            flush()
            title, content = heading, []
        elif line.strip() and title:
            content.append(line)
    flush()

    if not sections and (feedback or "").strip():
        sections.append(FeedbackSection(title=DEFAULT_TITLE, content=feedback.strip()))
    return sections


__all__ = ["DEFAULT_TITLE", "parse_feedback_sections"]
