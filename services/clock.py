"""Elapsed-time display for an active interview."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def _as_utc(dt: datetime) -> datetime:
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_duration(seconds: int) -> str:
    """Render ``seconds`` as ``m:ss``."""

    seconds = max(0, int(seconds))
    mins, secs = divmod(seconds, 60)
    return f"{mins}:{secs:02d}"


class SessionClock:  # Read-only view over the session start time
    def __init__(self, started_at: Optional[datetime]) -> None:
        self.started_at = _as_utc(started_at) if started_at else None

    def elapsed_seconds(self, now: Optional[datetime] = None) -> int:
        if self.started_at is None:
            return 0
        current = _as_utc(now) if now else datetime.now(timezone.utc)
        return max(0, int((current - self.started_at).total_seconds()))

    def display(self, now: Optional[datetime] = None) -> str:
        return format_duration(self.elapsed_seconds(now))


__all__ = ["SessionClock", "format_duration"]
