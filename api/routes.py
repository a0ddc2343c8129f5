"""FastAPI routes for interview session control."""
from __future__ import annotations

from typing import Tuple

from fastapi import APIRouter, Depends, File, HTTPException, Response, UploadFile

from api.schemas import AnswerReq, DurationResp, FeedbackResp, SessionResp, TextReq
from interview_session.machine import InterviewSession
from interview_session.models import Session, Status
from services.clock import SessionClock
from services.sessions import current_session
from session_reports import FeedbackReport, generate_feedback_pdf, parse_feedback_sections


router = APIRouter(prefix="/api/interview")


def _resp(session: InterviewSession, snapshot: Session) -> SessionResp:
    return SessionResp.from_session(snapshot, session.turn_limit)


def _require(session: InterviewSession, *allowed: Status) -> None:
    if session.status not in allowed:
        raise HTTPException(
            status_code=409,
            detail=f"action not allowed while interview is {session.status}",
        )


def _completed(session: InterviewSession) -> Session:
    snapshot = session.snapshot()
    if snapshot.status != "completed" or snapshot.feedback is None or snapshot.id is None:
        raise HTTPException(status_code=404, detail="feedback not available")
    return snapshot


@router.get("", response_model=SessionResp)
def get_session(session: InterviewSession = Depends(current_session)) -> SessionResp:
    return _resp(session, session.snapshot())


@router.post("/resume", response_model=SessionResp)
async def upload_resume(
    file: UploadFile = File(...),
    session: InterviewSession = Depends(current_session),
) -> SessionResp:
    _require(session, "idle")
    data = await file.read()
    return _resp(session, session.set_resume_file(data, file.filename or ""))


@router.put("/resume-text", response_model=SessionResp)
def put_resume_text(req: TextReq, session: InterviewSession = Depends(current_session)) -> SessionResp:
    _require(session, "idle")
    return _resp(session, session.set_resume_text(req.text))


@router.put("/job-description", response_model=SessionResp)
def put_job_description(req: TextReq, session: InterviewSession = Depends(current_session)) -> SessionResp:
    _require(session, "idle")
    return _resp(session, session.set_job_description_text(req.text))


@router.post("/start", response_model=SessionResp)
def start(session: InterviewSession = Depends(current_session)) -> SessionResp:
    _require(session, "idle")
    return _resp(session, session.submit_inputs())


@router.post("/answer", response_model=SessionResp)
def answer(req: AnswerReq, session: InterviewSession = Depends(current_session)) -> SessionResp:
    _require(session, "in_progress")
    return _resp(session, session.send_answer(req.text))


@router.post("/end", response_model=SessionResp)
def end(session: InterviewSession = Depends(current_session)) -> SessionResp:
    _require(session, "in_progress")
    return _resp(session, session.end_interview())


@router.post("/reset", response_model=SessionResp)
def reset(session: InterviewSession = Depends(current_session)) -> SessionResp:
    return _resp(session, session.reset())


@router.get("/duration", response_model=DurationResp)
def duration(session: InterviewSession = Depends(current_session)) -> DurationResp:
    clock = SessionClock(session.snapshot().started_at)
    return DurationResp(elapsed_seconds=clock.elapsed_seconds(), display=clock.display())


@router.get("/feedback", response_model=FeedbackResp)
def feedback(session: InterviewSession = Depends(current_session)) -> FeedbackResp:
    snapshot = _completed(session)
    return FeedbackResp(
        interview_id=snapshot.id,
        feedback=snapshot.feedback,
        sections=parse_feedback_sections(snapshot.feedback),
    )


def _report(snapshot: Session) -> Tuple[FeedbackReport, str]:
    clock = SessionClock(snapshot.started_at)
    report = FeedbackReport(
        interview_id=snapshot.id,
        sections=parse_feedback_sections(snapshot.feedback or ""),
        transcript=snapshot.transcript,
        started_at=snapshot.started_at,
        duration=clock.display(),
    )
    return report, f"interview-feedback-{snapshot.id}.pdf"


@router.get("/feedback.pdf")
def feedback_pdf(session: InterviewSession = Depends(current_session)) -> Response:
    report, filename = _report(_completed(session))
    return Response(
        content=generate_feedback_pdf(report),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
