"""Interview session state machine.

``InterviewSession`` owns one :class:`~interview_session.models.Session` and is
the only writer of its transcript. Each public operation runs one transition
(or a short chain of them), persists what became durable, notifies subscribers
and returns a snapshot. Nothing raises to the caller: failures are reported in
``snapshot.errors`` and the session is left in the last durable status.

Status flow::

    idle -> starting -> in_progress -> ending -> completed
            starting -> idle                (start failed)
                        ending -> in_progress  (feedback failed)
    any -> idle                              (reset)
"""
from __future__ import annotations

import functools
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from config.settings import settings
from documents import extract_text, sanitize_text
from observability import log_event, span
from question_gen.generator import Err, GenerationResult, QuestionGenerator, with_fallback
from question_gen.prompts import NOT_ENOUGH_INFORMATION, qualifying_answers
from question_gen.sanitize import FEEDBACK_ERROR_FALLBACK, FOLLOW_UP_ERROR_FALLBACK, OPENING_FALLBACK
from storage.records import RecordStore

from .errors import ExtractionError, GenerationErrorKind, InputValidationError, PersistenceError
from .models import EventKind, FieldErrors, Session, SessionEvent, Status, Turn

logger = logging.getLogger(__name__)

RESUME_REQUIRED = "Please upload your resume"
JOB_DESCRIPTION_REQUIRED = "Please enter the job description"

# Backend failures that abort a start or finish; any other failure proceeds with the fallback text.
MILESTONE_ROLLBACK_KINDS = frozenset(
    {
        GenerationErrorKind.CREDENTIALS,
        GenerationErrorKind.RATE_LIMIT,
        GenerationErrorKind.SERVER,
        GenerationErrorKind.TRANSPORT,
    }
)

Listener = Callable[[SessionEvent], None]


def _exclusive(method=None, *, rejected: Callable[["InterviewSession"], Any] = lambda session: session.snapshot()):
    """Reject the call when another operation on the session is still running.

    A reset requested while the operation runs is applied once it returns.
    """

    def decorate(method):
        @functools.wraps(method)
        def wrapper(self: "InterviewSession", *args, **kwargs):
            if not self._lock.acquire(blocking=False):
                logger.warning("Ignoring %s while another action is in flight", method.__name__)
                return rejected(self)
            try:
                if self._busy:
                    logger.warning("Ignoring re-entrant %s", method.__name__)
                    return rejected(self)
                self._busy = True
                try:
                    result = method(self, *args, **kwargs)
                finally:
                    self._busy = False
                    deferred_reset = self._reset_requested
                    if deferred_reset:
                        self._apply_reset()
                if deferred_reset and isinstance(result, Session):
                    return self.snapshot()
                return result
            finally:
                self._lock.release()

        return wrapper

    return decorate(method) if method is not None else decorate


class InterviewSession:
    """Turn-taking orchestrator between the candidate and the AI interviewer."""

    def __init__(
        self,
        generator: QuestionGenerator,
        store: RecordStore,
        *,
        turn_limit: Optional[int] = None,
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self.generator = generator
        self.store = store
        self.turn_limit = turn_limit or settings.TURN_LIMIT
        self._id_factory = id_factory
        self._now = now
        self._session = Session()
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()
        self._busy = False
        self._reset_requested = False

    # -- observable surface -------------------------------------------------

    @property
    def status(self) -> Status:
        return self._session.status

    def snapshot(self) -> Session:
        return self._session.model_copy(deep=True)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; the returned callable unsubscribes it."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _commit(self, kind: EventKind, **changes: Any) -> None:
        previous = self._session.status
        self._session = self._session.model_copy(update=changes)
        if "status" in changes and changes["status"] != previous:
            log_event("transition", self._session.id, status=changes["status"], previous=previous)
        self._notify(kind)

    def _restore(self, saved: Session, message: str) -> None:
        """Return to ``saved`` and surface ``message`` as a recoverable error."""

        self._session = saved.model_copy(update={"errors": FieldErrors(general=message)})
        log_event("rollback", saved.id, status=saved.status, error=message, level=logging.WARNING)
        self._notify("status")

    def _notify(self, kind: EventKind) -> None:
        event = SessionEvent(kind=kind, snapshot=self.snapshot())
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:  # noqa: BLE001
                logger.exception("Session listener failed on %s event", kind)

    # -- inputs --------------------------------------------------------------

    def _editable(self, action: str) -> bool:
        if self._session.status != "idle":
            logger.warning("Ignoring %s while status=%s", action, self._session.status)
            return False
        return True

    def _field_errors(self, **changes: Optional[str]) -> FieldErrors:
        return self._session.errors.model_copy(update=changes)

    @_exclusive
    def set_resume_file(self, data: bytes, filename: str = "", extractor: Callable[[bytes, str], str] = extract_text) -> Session:
        if not self._editable("set_resume_file"):
            return self.snapshot()
        try:
            text = extractor(data, filename)
        except ExtractionError as exc:
            logger.warning("Resume extraction failed for %s: %s", filename, exc.message)
            self._commit("errors", resume_text="", errors=self._field_errors(resume=exc.message))
            return self.snapshot()
        self._commit("inputs", resume_text=sanitize_text(text), errors=self._field_errors(resume=None))
        return self.snapshot()

    @_exclusive
    def set_resume_text(self, text: str) -> Session:
        if self._editable("set_resume_text"):
            self._commit("inputs", resume_text=sanitize_text(text), errors=self._field_errors(resume=None))
        return self.snapshot()

    @_exclusive
    def set_job_description_text(self, text: str) -> Session:
        if self._editable("set_job_description_text"):
            self._commit(
                "inputs",
                job_description_text=sanitize_text(text),
                errors=self._field_errors(job_description=None),
            )
        return self.snapshot()

    def _input_errors(self) -> List[InputValidationError]:
        problems = []
        if not self._session.resume_text.strip():
            problems.append(InputValidationError("resume", RESUME_REQUIRED))
        if not self._session.job_description_text.strip():
            problems.append(InputValidationError("job_description", JOB_DESCRIPTION_REQUIRED))
        return problems

    def _validate(self) -> bool:
        problems = self._input_errors()
        self._commit("errors", errors=FieldErrors(**{p.field: p.message for p in problems}))
        return not problems

    @_exclusive(rejected=lambda session: False)
    def validate(self) -> bool:
        if self._session.status != "idle":
            return False
        return self._validate()

    # -- collaborators -------------------------------------------------------

    def _generate(self, name: str, fallback: str, *args: Any) -> GenerationResult:
        call = with_fallback(fallback)(getattr(self.generator, name))
        with span(self._session.id, name) as fields:
            result = call(*args)
            fields["outcome"] = "error" if isinstance(result, Err) else "ok"
        return result

    def _milestone_text(self, result: GenerationResult) -> Optional[str]:
        """Text to record for a start or finish, or ``None`` when the step must roll back."""

        if not isinstance(result, Err):
            return result.text
        if result.kind in MILESTONE_ROLLBACK_KINDS:
            return None
        log_event("fallback", self._session.id, error=result.message, level=logging.WARNING)
        return result.fallback

    def _persist(self, op: str, **data: Any) -> None:
        try:
            getattr(self.store, op)(**data)
        except PersistenceError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("Record store %s failed: %s", op, exc)
            raise PersistenceError("Could not save interview progress. Please try again.") from exc

    # -- transitions ---------------------------------------------------------

    @_exclusive
    def submit_inputs(self) -> Session:
        """``idle -> starting -> in_progress``; falls back to ``idle`` on backend or storage failure."""

        if not self._editable("submit_inputs"):
            return self.snapshot()
        if not self._validate():
            return self.snapshot()
        saved = self._session
        self._commit("status", status="starting")

        result = self._generate(
            "generate_initial_question",
            OPENING_FALLBACK,
            saved.resume_text,
            saved.job_description_text,
        )
        opening = self._milestone_text(result)
        if opening is None:
            self._restore(saved, result.message)
            return self.snapshot()

        interview_id = self._id_factory()
        question = Turn(role="interviewer", content=sanitize_text(opening))
        try:
            self._persist(
                "insert_interview",
                id=interview_id,
                resume_text=saved.resume_text,
                job_description=saved.job_description_text,
                status="in_progress",
            )
            self._persist("insert_message", interview_id=interview_id, role=question.role, content=question.content)
        except PersistenceError as exc:
            self._restore(saved, exc.message)
            return self.snapshot()

        self._commit(
            "status",
            id=interview_id,
            transcript=[question],
            status="in_progress",
            started_at=self._now(),
            errors=FieldErrors(),
        )
        return self.snapshot()

    @_exclusive
    def send_answer(self, text: str) -> Session:
        """Record an answer, then ask a follow-up or finish when the limit is reached."""

        content = sanitize_text(text or "").strip()
        if not content:
            return self.snapshot()
        if self._session.status != "in_progress":
            logger.warning("Ignoring answer while status=%s", self._session.status)
            return self.snapshot()

        session_id = self._session.id
        answer = Turn(role="candidate", content=content)
        try:
            self._persist("insert_message", interview_id=session_id, role=answer.role, content=answer.content)
        except PersistenceError as exc:
            self._restore(self._session, exc.message)
            return self.snapshot()
        self._commit("turn", transcript=[*self._session.transcript, answer], errors=FieldErrors())
        log_event("turn", session_id, role=answer.role, turns=len(self._session.transcript))

        if self._session.interviewer_turns() >= self.turn_limit:
            return self._finish()

        saved = self._session
        result = self._generate(
            "generate_follow_up_question",
            FOLLOW_UP_ERROR_FALLBACK,
            saved.resume_text,
            saved.job_description_text,
            list(saved.transcript),
        )
        question_text = result.fallback if isinstance(result, Err) else result.text
        question = Turn(role="interviewer", content=sanitize_text(question_text))
        try:
            self._persist("insert_message", interview_id=session_id, role=question.role, content=question.content)
        except PersistenceError as exc:
            self._restore(saved, exc.message)
            return self.snapshot()
        self._commit("turn", transcript=[*saved.transcript, question])
        log_event("turn", session_id, role=question.role, turns=len(self._session.transcript))
        return self.snapshot()

    @_exclusive
    def end_interview(self) -> Session:
        if self._session.status != "in_progress":
            logger.warning("Ignoring end_interview while status=%s", self._session.status)
            return self.snapshot()
        return self._finish()

    def _finish(self) -> Session:
        """``in_progress -> ending -> completed``; falls back to ``in_progress`` on backend or storage failure."""

        saved = self._session
        self._commit("status", status="ending")

        if not qualifying_answers(saved.transcript):
            feedback = NOT_ENOUGH_INFORMATION
        else:
            result = self._generate("generate_interview_feedback", FEEDBACK_ERROR_FALLBACK, list(saved.transcript))
            text = self._milestone_text(result)
            if text is None:
                self._restore(saved, result.message)
                return self.snapshot()
            feedback = sanitize_text(text)

        try:
            self._persist("update_interview", interview_id=saved.id, status="completed", feedback=feedback)
        except PersistenceError as exc:
            self._restore(saved, exc.message)
            return self.snapshot()

        self._commit("feedback", feedback=feedback, status="completed", errors=FieldErrors())
        return self.snapshot()

    def reset(self) -> Session:
        """Clear every session field; waits for an in-flight action to finish.

        Called from a listener while an action runs, the reset is deferred until
        that action returns so its pending changes cannot land on the cleared state.
        """

        with self._lock:
            if self._busy:
                logger.info("Deferring reset until the running action finishes")
                self._reset_requested = True
                return self.snapshot()
            self._apply_reset()
        return self.snapshot()

    def _apply_reset(self) -> None:
        self._reset_requested = False
        previous_id = self._session.id
        self._session = Session()
        log_event("reset", previous_id)
        self._notify("reset")


__all__ = ["InterviewSession", "JOB_DESCRIPTION_REQUIRED", "RESUME_REQUIRED"]
