import os
import sys
import tempfile
from pathlib import Path
from typing import Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.registry import GENERATOR_KEY, STORE_KEY, bind_model
from config.settings import settings
from interview_session.errors import GenerationError, PersistenceError
from services.sessions import discard_session
from storage.migrate import migrate


@pytest.fixture(autouse=True)
def tmp_db(monkeypatch):
    td = tempfile.TemporaryDirectory()
    db_path = os.path.join(td.name, "test.db")
    monkeypatch.setattr(settings, "DB_PATH", db_path, raising=False)
    migrate(db_path)
    try:
        yield db_path
    finally:
        td.cleanup()


class FakeGenerator:
    """Scripted generator that records every call it receives."""

    def __init__(
        self,
        initial: str = "Tell me about a backend system you designed?",
        follow_up: str = "How did you handle failures in that system?",
        feedback: str = "1. Overall Assessment\nSolid answers.\n2. Strengths\nClear structure.",
    ) -> None:
        self.initial = initial
        self.follow_up = follow_up
        self.feedback = feedback
        self.failures: Dict[str, GenerationError] = {}
        self.calls: List[str] = []
        self.histories: List[list] = []

    def fail(self, name: str, error: GenerationError) -> None:
        self.failures[name] = error

    def _run(self, name: str, text: str) -> str:
        self.calls.append(name)
        if name in self.failures:
            raise self.failures[name]
        return text

    def generate_initial_question(self, resume_text, job_description_text):
        return self._run("generate_initial_question", self.initial)

    def generate_follow_up_question(self, resume_text, job_description_text, history):
        self.histories.append(list(history))
        return self._run("generate_follow_up_question", self.follow_up)

    def generate_interview_feedback(self, history):
        self.histories.append(list(history))
        return self._run("generate_interview_feedback", self.feedback)


class MemoryStore:
    """Record store keeping rows in lists; can be told to fail a given operation."""

    def __init__(self) -> None:
        self.interviews: List[dict] = []
        self.messages: List[dict] = []
        self.updates: List[dict] = []
        self.fail_on: Optional[str] = None
        self.fail_after_messages: Optional[int] = None

    def _check(self, op: str) -> None:
        if self.fail_on == op:
            raise PersistenceError(f"{op} failed")

    def insert_interview(self, **data) -> None:
        self._check("insert_interview")
        self.interviews.append(data)

    def insert_message(self, **data) -> int:
        self._check("insert_message")
        if self.fail_after_messages is not None and len(self.messages) >= self.fail_after_messages:
            raise PersistenceError("insert_message failed")
        self.messages.append(data)
        return len(self.messages)

    def update_interview(self, interview_id: str, **data) -> None:
        self._check("update_interview")
        self.updates.append({"interview_id": interview_id, **data})


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def fake_models(generator, store):
    bind_model(GENERATOR_KEY, lambda: generator)
    bind_model(STORE_KEY, lambda: store)
    discard_session()
    try:
        yield generator, store
    finally:
        discard_session()
