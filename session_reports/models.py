from __future__ import annotations  # Feedback report domain models

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from interview_session.models import Turn


class FeedbackSection(BaseModel):  # One titled block of the feedback report
    title: str
    content: str


class FeedbackReport(BaseModel):  # Completed interview rendered for export
    interview_id: str
    sections: List[FeedbackSection] = Field(default_factory=list)
    transcript: List[Turn] = Field(default_factory=list)
    started_at: Optional[datetime] = None
    duration: str = "0:00"


__all__ = ["FeedbackReport", "FeedbackSection"]
