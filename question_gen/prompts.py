"""Prompt construction for interview questions and feedback.

Every prompt is bounded: résumé and job description are truncated per request
type, history is trimmed to the most recent turns, and the final text is
checked against a rough token estimate before it is dispatched.
"""
from __future__ import annotations

import math
import re
from textwrap import dedent
from typing import List, Optional, Sequence

from config.settings import settings
from interview_session.errors import GenerationError, GenerationErrorKind
from interview_session.models import Turn

ELLIPSIS = "..."

NOT_ENOUGH_INFORMATION = (
    "Not enough information was provided to generate feedback. "
    "Please answer the questions in detail."
)

FEEDBACK_SECTIONS = (
    "Overall Assessment",
    "Strengths",
    "Areas for Improvement",
    "Communication Skills",
    "Next Steps",
)

_TAG_RE = re.compile(r"<[^>]*>?")


def sanitize_input(text: str) -> str:
    """Remove HTML-like tags from user supplied text."""

    return _TAG_RE.sub("", text or "")


def truncate(text: str, limit: int) -> str:
    if len(text) > limit:
        return text[:limit] + ELLIPSIS
    return text


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / 4)


def ensure_within_budget(prompt: str, max_tokens: Optional[int] = None) -> str:
    """Raise an input-size error when ``prompt`` is over the token budget."""

    budget = settings.MAX_PROMPT_TOKENS if max_tokens is None else max_tokens
    if estimate_tokens(prompt) > budget:
        raise GenerationError(GenerationErrorKind.INPUT_TOO_LARGE)
    return prompt


def format_history(turns: Sequence[Turn]) -> str:
    lines = []
    for turn in turns:
        speaker = "Interviewer" if turn.role == "interviewer" else "Candidate"
        lines.append(f"{speaker}: {turn.content}")
    return "\n".join(lines)


def build_initial_prompt(resume_text: str, job_description_text: str) -> str:
    limit = settings.INITIAL_CONTEXT_CHARS
    resume = truncate(sanitize_input(resume_text), limit)
    job = truncate(sanitize_input(job_description_text), limit)
    prompt = dedent(
        """
        You are an AI interviewer. Based on the candidate's resume and job description, generate ONE concise, professional interview question.
        Output ONLY the question, and nothing else. Do NOT include any notes, explanations, or formatting.

        Resume:
        {resume}

        Job Description:
        {job}

        Output only the question.
        """
    ).strip().format(resume=resume, job=job)
    return ensure_within_budget(prompt)


def build_follow_up_prompt(resume_text: str, job_description_text: str, history: Sequence[Turn]) -> str:
    limit = settings.FOLLOW_UP_CONTEXT_CHARS
    resume = truncate(sanitize_input(resume_text), limit)
    job = truncate(sanitize_input(job_description_text), limit)
    recent = list(history)[-settings.HISTORY_TURNS:]
    prompt = dedent(
        """
        You are an AI interviewer conducting a job interview. Ask relevant follow-up questions based on:
        - Candidate's resume
        - Job description
        - Previous responses
        Ask one question at a time.
        ONLY output the next question, and nothing else.

        Resume: {resume}
        Job Description: {job}
        Conversation History:
        {history}

        Generate your next question:
        """
    ).strip().format(resume=resume, job=job, history=format_history(recent))
    return ensure_within_budget(prompt)


def qualifying_answers(history: Sequence[Turn]) -> List[Turn]:
    """Candidate turns substantial enough to assess, most recent last."""

    answers = [
        turn
        for turn in history
        if turn.role == "candidate" and len(turn.content.strip()) > settings.MIN_ANSWER_CHARS
    ]
    return answers[-settings.FEEDBACK_TURNS:]


def build_feedback_prompt(history: Sequence[Turn]) -> Optional[str]:
    """Build the feedback prompt, or ``None`` when no answer qualifies.

    The oldest answers are dropped until the prompt fits the token budget; a
    single answer that still does not fit raises an input-size error.
    """

    answers = qualifying_answers(history)
    if not answers:
        return None
    sections = "\n".join(f"{idx}. {title}" for idx, title in enumerate(FEEDBACK_SECTIONS, start=1))
    template = dedent(
        """
        You are an AI interviewer providing structured feedback based ONLY on the candidate's answers during the interview.
        Do NOT use or reference the resume or job description.
        Format as:
        {sections}

        Candidate's Answers:
        {answers}

        Provide comprehensive feedback based only on the candidate's answers above.
        """
    ).strip()
    while True:
        prompt = template.format(sections=sections, answers=format_history(answers))
        if len(answers) == 1 or estimate_tokens(prompt) <= settings.MAX_PROMPT_TOKENS:
            return ensure_within_budget(prompt)
        answers = answers[1:]


__all__ = [
    "ELLIPSIS",
    "FEEDBACK_SECTIONS",
    "NOT_ENOUGH_INFORMATION",
    "build_feedback_prompt",
    "build_follow_up_prompt",
    "build_initial_prompt",
    "ensure_within_budget",
    "estimate_tokens",
    "format_history",
    "qualifying_answers",
    "sanitize_input",
    "truncate",
]
