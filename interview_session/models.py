"""Session and transcript models."""
from __future__ import annotations

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

Role = Literal["interviewer", "candidate"]
Status = Literal["idle", "starting", "in_progress", "ending", "completed"]
EventKind = Literal["status", "turn", "errors", "feedback", "inputs", "reset"]


class Turn(BaseModel):
    """One utterance in the transcript."""

    role: Role
    content: str

    model_config = ConfigDict(frozen=True)


class FieldErrors(BaseModel):
    """Errors surfaced to the caller instead of being raised."""

    resume: Optional[str] = None
    job_description: Optional[str] = None
    general: Optional[str] = None

    def any(self) -> bool:
        return bool(self.resume or self.job_description or self.general)


class Session(BaseModel):
    """Serializable state of one interview instance."""

    id: Optional[str] = None
    resume_text: str = ""
    job_description_text: str = ""
    transcript: List[Turn] = Field(default_factory=list)
    status: Status = "idle"
    feedback: Optional[str] = None
    errors: FieldErrors = Field(default_factory=FieldErrors)
    started_at: Optional[datetime] = None

    def interviewer_turns(self) -> int:
        return sum(1 for turn in self.transcript if turn.role == "interviewer")

    def candidate_turns(self) -> List[Turn]:
        return [turn for turn in self.transcript if turn.role == "candidate"]


class SessionEvent(BaseModel):
    """Notification delivered to session subscribers."""

    kind: EventKind
    snapshot: Session


__all__ = ["Role", "Status", "EventKind", "Turn", "FieldErrors", "Session", "SessionEvent"]
