from __future__ import annotations  # Styled PDF rendering for interview feedback

from datetime import datetime
from typing import Any, List, Sequence, Tuple

from fpdf import FPDF
from fpdf.enums import XPos, YPos

from interview_session.models import Turn

from .models import FeedbackReport, FeedbackSection

DEJAVU_SANS = "/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf"  # System font
DEJAVU_SANS_BOLD = "/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf"  # System font

ACCENT = (45, 115, 245)  # Palette accent
TEXT = (34, 34, 34)  # Primary text color
MUTED = (100, 100, 100)  # Secondary text color
RULE = (230, 230, 230)  # Divider color
CANDIDATE_BG = (248, 249, 255)  # Candidate bubble background


def _format_datetime(value: datetime | None) -> str:  # Format timestamp for display
    if not value:
        return "-"
    return value.strftime("%d %b %Y, %I:%M %p")


def _effective_width(pdf: FPDF) -> float:  # Compute effective page width
    return float(pdf.w) - float(pdf.l_margin) - float(pdf.r_margin)


class FeedbackPDF(FPDF):  # PDF with banner header and paginated footer
    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.header_title = "Interview Feedback"
        self.font_regular = "Helvetica"
        self.supports_unicode = False

    def use_unicode_font(self) -> None:  # Switch to DejaVu when installed
        try:
            self.add_font("DejaVu", "", DEJAVU_SANS)
            self.add_font("DejaVu", "B", DEJAVU_SANS_BOLD)
        except (OSError, RuntimeError):
            return
        self.font_regular = "DejaVu"
        self.supports_unicode = True

    def prepare(self, text: Any) -> str:  # Sanitize text for non-unicode fonts
        value = "" if text is None else str(text)
        if self.supports_unicode:
            return value
        value = value.replace("•", "-").replace("’", "'").replace("“", '"').replace("”", '"')
        return value.encode("latin-1", "ignore").decode("latin-1")

    def header(self) -> None:  # Render header banner on the first page, a rule afterwards
        if self.page_no() == 1:
            self.set_fill_color(*ACCENT)
            self.rect(0, 0, self.w, 22, style="F")
            self.set_text_color(255, 255, 255)
            self.set_xy(self.l_margin, 7)
            self.set_font(self.font_regular, "B", 16)
            self.cell(0, 8, self.prepare(self.header_title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
            self.set_text_color(*TEXT)
            self.ln(6)
            return
        self.set_text_color(80, 80, 80)
        self.set_xy(self.l_margin, 8)
        self.set_font(self.font_regular, "B", 11)
        self.cell(0, 6, self.prepare(self.header_title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        self.set_draw_color(*ACCENT)
        self.set_line_width(0.4)
        self.line(self.l_margin, self.get_y() + 1, self.w - self.r_margin, self.get_y() + 1)
        self.set_text_color(*TEXT)
        self.ln(4)

    def footer(self) -> None:  # Render footer with pagination
        self.set_y(-12)
        self.set_draw_color(*RULE)
        self.set_line_width(0.2)
        self.line(self.l_margin, self.get_y(), self.w - self.r_margin, self.get_y())
        self.set_text_color(120, 120, 120)
        self.set_font(self.font_regular, "", 9)
        self.cell(0, 10, f"Page {self.page_no()}/{{nb}}", align="R")


def _section_title(pdf: FeedbackPDF, title: str) -> None:  # Render styled section title
    pdf.set_text_color(*TEXT)
    pdf.set_x(pdf.l_margin)
    pdf.set_font(pdf.font_regular, "B", 13)
    pdf.cell(0, 9, pdf.prepare(title), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.set_draw_color(*RULE)
    pdf.set_line_width(0.2)
    y = pdf.get_y()
    pdf.line(pdf.l_margin, y, pdf.l_margin + _effective_width(pdf), y)
    pdf.ln(2)


def _meta_block(pdf: FeedbackPDF, rows: Sequence[Tuple[str, str]]) -> None:  # Draw label/value rows
    label_width = _effective_width(pdf) * 0.3
    for label, value in rows:
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.cell(label_width, 6, pdf.prepare(label), new_x=XPos.RIGHT, new_y=YPos.TOP)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf.font_regular, "B", 10)
        pdf.cell(0, 6, pdf.prepare(value), new_x=XPos.LMARGIN, new_y=YPos.NEXT)
    pdf.ln(3)


def _render_sections(pdf: FeedbackPDF, sections: Sequence[FeedbackSection]) -> None:  # Render feedback blocks
    if not sections:
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 11)
        pdf.multi_cell(_effective_width(pdf), 6, "No feedback was recorded for this interview.")
        pdf.ln(2)
        return
    for idx, section in enumerate(sections, start=1):
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*ACCENT)
        pdf.set_font(pdf.font_regular, "B", 11)
        pdf.multi_cell(_effective_width(pdf), 6, pdf.prepare(f"{idx}. {section.title}"))
        pdf.set_x(pdf.l_margin)
        pdf.set_text_color(*TEXT)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.multi_cell(_effective_width(pdf), 5.5, pdf.prepare(section.content))
        pdf.ln(3)


def _render_transcript(pdf: FeedbackPDF, transcript: Sequence[Turn]) -> None:  # Render transcript turns
    if not transcript:
        pdf.set_text_color(*MUTED)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.multi_cell(_effective_width(pdf), 6, "No transcript entries recorded for this interview.")
        return
    for turn in transcript:
        interviewer = turn.role == "interviewer"
        pdf.set_x(pdf.l_margin)
        pdf.set_font(pdf.font_regular, "B", 10)
        pdf.set_text_color(*(ACCENT if interviewer else MUTED))
        pdf.cell(0, 6, "Interviewer" if interviewer else "Candidate", new_x=XPos.LMARGIN, new_y=YPos.NEXT)
        pdf.set_font(pdf.font_regular, "", 10)
        pdf.set_text_color(*TEXT)
        if interviewer:
            pdf.multi_cell(_effective_width(pdf), 5.5, pdf.prepare(turn.content))
        else:
            pdf.set_fill_color(*CANDIDATE_BG)
            pdf.multi_cell(_effective_width(pdf), 5.5, pdf.prepare(turn.content), fill=True)
        pdf.ln(2)


def generate_feedback_pdf(report: FeedbackReport) -> bytes:  # Build PDF payload for a completed interview
    pdf = FeedbackPDF()
    pdf.use_unicode_font()
    pdf.alias_nb_pages()
    pdf.set_margins(15, 22, 15)
    pdf.set_auto_page_break(auto=True, margin=15)
    pdf.add_page()

    _section_title(pdf, "Session Overview")
    candidate_turns = sum(1 for turn in report.transcript if turn.role == "candidate")
    rows: List[Tuple[str, str]] = [
        ("Interview ID", report.interview_id),
        ("Started", _format_datetime(report.started_at)),
        ("Duration", report.duration),
        ("Answers given", str(candidate_turns)),
    ]
    _meta_block(pdf, rows)

    _section_title(pdf, "Feedback")
    _render_sections(pdf, report.sections)

    _section_title(pdf, "Transcript")
    _render_transcript(pdf, report.transcript)

    return bytes(pdf.output())


__all__ = ["generate_feedback_pdf"]
