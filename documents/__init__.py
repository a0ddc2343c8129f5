"""Text extraction for uploaded interview documents."""
from .extract import extract_text, sanitize_text

__all__ = ["extract_text", "sanitize_text"]
