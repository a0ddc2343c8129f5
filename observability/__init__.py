"""Structured session events and timing spans for the interview core."""
from .logger import log_event
from .tracing import span

__all__ = ["log_event", "span"]
