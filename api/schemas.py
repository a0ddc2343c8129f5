"""Pydantic schemas for the interview HTTP API."""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from interview_session.models import FieldErrors, Session, Status, Turn
from session_reports import FeedbackSection


class TextReq(BaseModel):
    text: str


class AnswerReq(BaseModel):
    text: str = Field(min_length=1)


class SessionResp(BaseModel):
    id: Optional[str] = None
    status: Status
    resume_text: str
    job_description_text: str
    transcript: List[Turn] = Field(default_factory=list)
    feedback: Optional[str] = None
    errors: FieldErrors = Field(default_factory=FieldErrors)
    interviewer_turns: int = 0
    turn_limit: int

    @classmethod
    def from_session(cls, session: Session, turn_limit: int) -> "SessionResp":
        return cls(
            id=session.id,
            status=session.status,
            resume_text=session.resume_text,
            job_description_text=session.job_description_text,
            transcript=session.transcript,
            feedback=session.feedback,
            errors=session.errors,
            interviewer_turns=session.interviewer_turns(),
            turn_limit=turn_limit,
        )


class FeedbackResp(BaseModel):
    interview_id: str
    feedback: str
    sections: List[FeedbackSection]


class DurationResp(BaseModel):
    elapsed_seconds: int
    display: str
