"""Persistence helpers for interview sessions and transcript messages."""
from __future__ import annotations

import datetime as dt
import logging
import sqlite3
from typing import Literal, Optional, Protocol

from pydantic import BaseModel, ValidationError

from interview_session.errors import PersistenceError

from .sqlite import get_conn

logger = logging.getLogger(__name__)

RecordStatus = Literal["in_progress", "completed"]


class InterviewPayload(BaseModel):
    id: str
    resume_text: str
    job_description: str
    status: RecordStatus = "in_progress"
    feedback: Optional[str] = None


class MessagePayload(BaseModel):
    interview_id: str
    role: Literal["interviewer", "candidate"]
    content: str


class InterviewUpdate(BaseModel):
    status: RecordStatus
    feedback: Optional[str] = None


class RecordStore(Protocol):  # Insert/update capability consumed by the session
    def insert_interview(self, **data) -> None: ...

    def insert_message(self, **data) -> int: ...

    def update_interview(self, interview_id: str, **data) -> None: ...


def _now() -> str:
    return dt.datetime.now(dt.timezone.utc).isoformat()


def insert_interview(db_path: Optional[str] = None, **data) -> None:
    """Insert an interview row; repeating the insert for the same id refreshes it."""

    payload = InterviewPayload(**data)
    timestamp = _now()
    with get_conn(db_path) as conn:
        conn.execute(
            """INSERT INTO interviews
               (id, created_at, updated_at, resume_text, job_description, status, feedback)
               VALUES (?, ?, ?, ?, ?, ?, ?)
               ON CONFLICT(id) DO UPDATE SET
                 updated_at = excluded.updated_at,
                 resume_text = excluded.resume_text,
                 job_description = excluded.job_description,
                 status = excluded.status,
                 feedback = excluded.feedback""",
            (
                payload.id,
                timestamp,
                timestamp,
                payload.resume_text,
                payload.job_description,
                payload.status,
                payload.feedback,
            ),
        )


def insert_message(db_path: Optional[str] = None, **data) -> int:
    """Insert a transcript message row and return its primary key."""

    payload = MessagePayload(**data)
    with get_conn(db_path) as conn:
        cur = conn.cursor()
        cur.execute(
            """INSERT INTO messages (created_at, interview_id, role, content)
               VALUES (?, ?, ?, ?)""",
            (_now(), payload.interview_id, payload.role, payload.content),
        )
        return int(cur.lastrowid)


def update_interview(interview_id: str, db_path: Optional[str] = None, **data) -> None:
    """Set status and feedback on an existing interview row."""

    payload = InterviewUpdate(**data)
    with get_conn(db_path) as conn:
        cur = conn.execute(
            "UPDATE interviews SET status = ?, feedback = ?, updated_at = ? WHERE id = ?",
            (payload.status, payload.feedback, _now(), interview_id),
        )
        if cur.rowcount == 0:
            raise PersistenceError(f"Interview {interview_id} not found")


class SqliteRecordStore:  # RecordStore over the local SQLite database
    def __init__(self, db_path: Optional[str] = None) -> None:
        self.db_path = db_path

    def insert_interview(self, **data) -> None:
        self._guard("insert_interview", insert_interview, db_path=self.db_path, **data)

    def insert_message(self, **data) -> int:
        return self._guard("insert_message", insert_message, db_path=self.db_path, **data)

    def update_interview(self, interview_id: str, **data) -> None:
        self._guard("update_interview", update_interview, interview_id, db_path=self.db_path, **data)

    @staticmethod
    def _guard(op: str, fn, *args, **kwargs):  # Normalize storage failures to PersistenceError
        try:
            return fn(*args, **kwargs)
        except PersistenceError:
            raise
        except (sqlite3.Error, ValidationError, OSError) as exc:
            logger.error("Record store %s failed: %s", op, exc)
            raise PersistenceError("Could not save interview progress. Please try again.") from exc


__all__ = [
    "InterviewPayload",
    "InterviewUpdate",
    "MessagePayload",
    "RecordStore",
    "SqliteRecordStore",
    "insert_interview",
    "insert_message",
    "update_interview",
]
