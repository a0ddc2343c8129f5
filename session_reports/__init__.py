from __future__ import annotations  # Session report package exports

from .models import FeedbackReport, FeedbackSection
from .pdf import generate_feedback_pdf
from .sections import parse_feedback_sections

__all__ = ["FeedbackReport", "FeedbackSection", "generate_feedback_pdf", "parse_feedback_sections"]
