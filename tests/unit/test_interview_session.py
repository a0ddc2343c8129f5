from __future__ import annotations

import pytest

from config.llm import LlmRoute
from interview_session.errors import ExtractionError, GenerationError, GenerationErrorKind
from interview_session.machine import JOB_DESCRIPTION_REQUIRED, RESUME_REQUIRED, InterviewSession
from interview_session.models import FieldErrors, Session
from question_gen.generator import LlmQuestionGenerator
from question_gen.prompts import NOT_ENOUGH_INFORMATION
from question_gen.sanitize import FEEDBACK_ERROR_FALLBACK, FOLLOW_UP_ERROR_FALLBACK, OPENING_FALLBACK

LONG_ANSWER = "I designed the ingestion service and owned its on-call rotation."


def _session(generator, store, **kwargs) -> InterviewSession:
    return InterviewSession(generator, store, id_factory=lambda: "int-1", **kwargs)


def _started(generator, store, **kwargs) -> InterviewSession:
    session = _session(generator, store, **kwargs)
    session.set_resume_text("Senior engineer...")
    session.set_job_description_text("Backend role...")
    session.submit_inputs()
    return session


def _statuses(events):
    return [event.snapshot.status for event in events if event.kind == "status"]


def test_submit_inputs_starts_interview(generator, store):
    session = _session(generator, store)
    events = []
    session.subscribe(events.append)
    session.set_resume_text("Senior engineer...")
    session.set_job_description_text("Backend role...")

    snap = session.submit_inputs()

    assert _statuses(events) == ["starting", "in_progress"]
    assert snap.status == "in_progress"
    assert snap.id == "int-1"
    assert [turn.role for turn in snap.transcript] == ["interviewer"]
    assert snap.transcript[0].content == generator.initial
    assert snap.started_at is not None
    assert store.interviews == [
        {
            "id": "int-1",
            "resume_text": "Senior engineer...",
            "job_description": "Backend role...",
            "status": "in_progress",
        }
    ]
    assert store.messages == [{"interview_id": "int-1", "role": "interviewer", "content": generator.initial}]


def test_validation_reports_field_errors(generator, store):
    session = _session(generator, store)
    session.set_resume_text("   ")

    snap = session.submit_inputs()

    assert snap.status == "idle"
    assert snap.errors.resume == RESUME_REQUIRED
    assert snap.errors.job_description == JOB_DESCRIPTION_REQUIRED
    assert generator.calls == []
    assert store.interviews == []


def test_editing_a_field_clears_its_error(generator, store):
    session = _session(generator, store)
    session.submit_inputs()

    snap = session.set_job_description_text("Backend role...")

    assert snap.errors.job_description is None
    assert snap.errors.resume == RESUME_REQUIRED


def test_rate_limit_on_start_returns_to_idle(generator, store):
    generator.fail("generate_initial_question", GenerationError(GenerationErrorKind.RATE_LIMIT))
    session = _session(generator, store)
    events = []
    session.subscribe(events.append)
    session.set_resume_text("Senior engineer...")
    session.set_job_description_text("Backend role...")

    snap = session.submit_inputs()

    assert _statuses(events) == ["starting", "idle"]
    assert snap.status == "idle"
    assert snap.id is None
    assert snap.transcript == []
    assert snap.errors.general == "API rate limit exceeded. Please wait before retrying."
    assert snap.resume_text == "Senior engineer..."
    assert store.interviews == []
    assert store.messages == []


def test_start_can_be_retried_after_failure(generator, store):
    generator.fail("generate_initial_question", GenerationError(GenerationErrorKind.SERVER))
    session = _started(generator, store)
    assert session.status == "idle"

    generator.failures.clear()
    snap = session.submit_inputs()

    assert snap.status == "in_progress"
    assert snap.errors.general is None


def test_persistence_failure_on_start_rolls_back(generator, store):
    store.fail_on = "insert_message"

    snap = _started(generator, store).snapshot()

    assert snap.status == "idle"
    assert snap.id is None
    assert snap.transcript == []
    assert snap.errors.general == "insert_message failed"


def test_answer_gets_follow_up(generator, store):
    session = _started(generator, store)

    snap = session.send_answer(LONG_ANSWER)

    assert [turn.role for turn in snap.transcript] == ["interviewer", "candidate", "interviewer"]
    assert snap.transcript[-1].content == generator.follow_up
    assert [row["role"] for row in store.messages] == ["interviewer", "candidate", "interviewer"]
    history = generator.histories[-1]
    assert history[-1].role == "candidate"
    assert history[-1].content == LONG_ANSWER


def test_follow_up_failure_uses_fallback_question(generator, store):
    generator.fail("generate_follow_up_question", GenerationError(GenerationErrorKind.SERVER))
    session = _started(generator, store)

    snap = session.send_answer(LONG_ANSWER)

    assert snap.status == "in_progress"
    assert snap.transcript[-1].role == "interviewer"
    assert snap.transcript[-1].content == FOLLOW_UP_ERROR_FALLBACK
    assert snap.errors.general is None


def test_turn_limit_forces_feedback(generator, store):
    session = _started(generator, store)
    for idx in range(9):
        session.send_answer(f"{LONG_ANSWER} Round {idx}.")
    assert session.snapshot().interviewer_turns() == 10
    events = []
    session.subscribe(events.append)

    snap = session.send_answer("ok")

    assert _statuses(events) == ["ending"]
    assert events[-1].kind == "feedback"
    assert snap.status == "completed"
    assert snap.feedback == generator.feedback
    assert snap.interviewer_turns() == 10
    assert snap.transcript[-1].role == "candidate"
    assert snap.transcript[-1].content == "ok"
    assert generator.calls.count("generate_follow_up_question") == 9
    assert store.updates == [{"interview_id": "int-1", "status": "completed", "feedback": generator.feedback}]


def test_custom_turn_limit(generator, store):
    session = _started(generator, store, turn_limit=2)
    session.send_answer(LONG_ANSWER)

    snap = session.send_answer(LONG_ANSWER)

    assert snap.status == "completed"
    assert snap.interviewer_turns() == 2


def test_end_without_qualifying_answers_skips_generator(generator, store):
    session = _started(generator, store)
    session.send_answer("ok")
    session.send_answer("yes, sure")

    snap = session.end_interview()

    assert snap.status == "completed"
    assert snap.feedback == NOT_ENOUGH_INFORMATION
    assert "generate_interview_feedback" not in generator.calls
    assert store.updates[-1]["feedback"] == NOT_ENOUGH_INFORMATION


def test_feedback_excludes_short_answers(generator, store):
    session = _started(generator, store)
    session.send_answer("ok")
    session.send_answer(LONG_ANSWER)

    session.end_interview()

    history = generator.histories[-1]
    assert any(turn.content == LONG_ANSWER for turn in history)


def test_feedback_failure_returns_to_in_progress(generator, store):
    generator.fail("generate_interview_feedback", GenerationError(GenerationErrorKind.CREDENTIALS))
    session = _started(generator, store)
    session.send_answer(LONG_ANSWER)
    events = []
    session.subscribe(events.append)

    snap = session.end_interview()

    assert _statuses(events) == ["ending", "in_progress"]
    assert snap.status == "in_progress"
    assert snap.feedback is None
    assert snap.errors.general == "Invalid API credentials"
    assert store.updates == []

    generator.failures.clear()
    assert session.end_interview().status == "completed"


def test_update_failure_keeps_interview_open(generator, store):
    session = _started(generator, store)
    session.send_answer(LONG_ANSWER)
    store.fail_on = "update_interview"

    snap = session.end_interview()

    assert snap.status == "in_progress"
    assert snap.feedback is None
    assert snap.errors.general == "update_interview failed"


def test_candidate_message_failure_keeps_transcript(generator, store):
    session = _started(generator, store)
    store.fail_on = "insert_message"

    snap = session.send_answer(LONG_ANSWER)

    assert len(snap.transcript) == 1
    assert snap.errors.general == "insert_message failed"
    assert "generate_follow_up_question" not in generator.calls


def test_interviewer_message_failure_drops_follow_up(generator, store):
    session = _started(generator, store)
    store.fail_after_messages = 2

    snap = session.send_answer(LONG_ANSWER)

    assert [turn.role for turn in snap.transcript] == ["interviewer", "candidate"]
    assert snap.status == "in_progress"
    assert snap.errors.general == "insert_message failed"

    store.fail_after_messages = None
    snap = session.send_answer("Adding more detail about the rollout plan.")
    assert [turn.role for turn in snap.transcript] == ["interviewer", "candidate", "candidate", "interviewer"]


def test_actions_ignored_outside_their_status(generator, store):
    session = _session(generator, store)

    assert session.send_answer(LONG_ANSWER).transcript == []
    assert session.end_interview().status == "idle"
    assert store.messages == []

    session = _started(generator, store)
    session.send_answer(LONG_ANSWER)
    session.end_interview()
    completed = session.snapshot()

    assert session.send_answer(LONG_ANSWER) == completed
    assert session.set_resume_text("changed").resume_text == "Senior engineer..."
    assert session.submit_inputs() == completed


def test_blank_answer_is_ignored(generator, store):
    session = _started(generator, store)

    snap = session.send_answer("   ")

    assert len(snap.transcript) == 1
    assert generator.calls == ["generate_initial_question"]


def test_reentrant_answer_is_rejected(store):
    class NestingGenerator:
        session = None
        nested = None

        def generate_initial_question(self, resume_text, job_description_text):
            return "What drew you to backend work?"

        def generate_follow_up_question(self, resume_text, job_description_text, history):
            self.nested = self.session.send_answer("sent while waiting")
            return "What did you learn from it?"

        def generate_interview_feedback(self, history):
            return "Good."

    generator = NestingGenerator()
    session = _started(generator, store)
    generator.session = session

    snap = session.send_answer(LONG_ANSWER)

    assert len(generator.nested.transcript) == 2
    assert [turn.content for turn in snap.transcript][1:] == [LONG_ANSWER, "What did you learn from it?"]


def test_reset_is_idempotent(generator, store):
    session = _started(generator, store)
    session.send_answer(LONG_ANSWER)

    first = session.reset()
    second = session.reset()

    assert first == second == Session()
    assert session.status == "idle"


def test_resume_file_extraction(generator, store):
    session = _session(generator, store)

    snap = session.set_resume_file(b"Ten years of Python.\x00", "cv.txt")
    assert snap.resume_text == "Ten years of Python."
    assert snap.errors.resume is None

    def broken(data, filename):
        raise ExtractionError()

    snap = session.set_resume_file(b"%PDF", "cv.pdf", extractor=broken)
    assert snap.resume_text == ""
    assert snap.errors.resume == "Could not read file contents. Please try a different file."


def test_listener_failures_do_not_escape(generator, store):
    session = _session(generator, store)

    def explode(event):
        raise RuntimeError("listener bug")

    session.subscribe(explode)
    session.set_resume_text("Senior engineer...")
    session.set_job_description_text("Backend role...")

    assert session.submit_inputs().status == "in_progress"


def test_unsubscribe_stops_notifications(generator, store):
    session = _session(generator, store)
    events = []
    unsubscribe = session.subscribe(events.append)
    session.set_resume_text("a")
    unsubscribe()
    session.set_resume_text("b")

    assert len(events) == 1


def test_validate_reflects_inputs(generator, store):
    session = _session(generator, store)
    assert session.validate() is False

    session.set_resume_text("Senior engineer...")
    session.set_job_description_text("Backend role...")

    assert session.validate() is True
    assert session.snapshot().errors == FieldErrors()
    assert _started(generator, store).validate() is False


class _ChatResponse:
    status_code = 200
    text = ""

    def json(self):
        return {"choices": [{"message": {"content": "What did you build next?"}}]}


class _ChatClient:
    def __init__(self):
        self.requests = []

    def post(self, url, *, json, headers, timeout):
        self.requests.append(json)
        return _ChatResponse()


def test_oversized_answers_still_complete_with_fallback_feedback(store):
    client = _ChatClient()
    route = LlmRoute(name="test", base_url="http://llm", endpoint="/v1/chat", model="m")
    session = _started(LlmQuestionGenerator(route, client=client), store)

    snap = session.send_answer("x" * 34000)
    assert snap.transcript[-1].content == FOLLOW_UP_ERROR_FALLBACK

    snap = session.end_interview()

    assert snap.status == "completed"
    assert snap.feedback == FEEDBACK_ERROR_FALLBACK
    assert snap.errors.general is None
    assert store.updates[-1]["feedback"] == FEEDBACK_ERROR_FALLBACK
    assert len(client.requests) == 1


@pytest.mark.parametrize(
    "kind",
    [
        GenerationErrorKind.CREDENTIALS,
        GenerationErrorKind.RATE_LIMIT,
        GenerationErrorKind.SERVER,
        GenerationErrorKind.TRANSPORT,
    ],
)
def test_backend_outage_at_end_rolls_back(generator, store, kind):
    generator.fail("generate_interview_feedback", GenerationError(kind))
    session = _started(generator, store)
    session.send_answer(LONG_ANSWER)

    snap = session.end_interview()

    assert snap.status == "in_progress"
    assert snap.errors.general == GenerationError(kind).message


def test_input_too_large_at_end_completes_with_fallback(generator, store):
    generator.fail("generate_interview_feedback", GenerationError(GenerationErrorKind.INPUT_TOO_LARGE))
    session = _started(generator, store)
    session.send_answer(LONG_ANSWER)

    snap = session.end_interview()

    assert snap.status == "completed"
    assert snap.feedback == FEEDBACK_ERROR_FALLBACK


def test_input_too_large_at_start_uses_opening_fallback(generator, store):
    generator.fail("generate_initial_question", GenerationError(GenerationErrorKind.INPUT_TOO_LARGE))

    snap = _started(generator, store).snapshot()

    assert snap.status == "in_progress"
    assert [turn.content for turn in snap.transcript] == [OPENING_FALLBACK]
    assert store.messages[0]["content"] == OPENING_FALLBACK


def test_reset_from_listener_waits_for_running_action(generator, store):
    session = _session(generator, store)
    session.set_resume_text("Senior engineer...")
    session.set_job_description_text("Backend role...")
    events = []
    deferred = []

    def reset_on_start(event):
        events.append(event)
        if event.kind == "status" and event.snapshot.status == "starting":
            deferred.append(session.reset())

    session.subscribe(reset_on_start)

    snap = session.submit_inputs()

    assert [s.status for s in deferred] == ["starting"]
    assert snap == Session()
    assert session.snapshot() == Session()
    assert events[-1].kind == "reset"


def test_validate_rejected_while_action_runs(generator, store):
    session = _session(generator, store)
    session.set_resume_text("Senior engineer...")
    session.set_job_description_text("Backend role...")
    results = []

    def validate_on_start(event):
        if event.snapshot.status == "starting":
            results.append(session.validate())

    session.subscribe(validate_on_start)
    session.submit_inputs()

    assert results == [False]
