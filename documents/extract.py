"""Plain-text extraction for uploaded résumé files."""
from __future__ import annotations

import io
import logging
import re
import zipfile
from xml.etree import ElementTree

from PyPDF2 import PdfReader
from PyPDF2.errors import PdfReadError

from interview_session.errors import ExtractionError

logger = logging.getLogger(__name__)

_INVALID_CHARS_RE = re.compile("[\u0000\ufffd\ufffe\uffff]")


def sanitize_text(text: str) -> str:
    """Drop NUL and replacement characters left behind by lossy decoding."""

    return _INVALID_CHARS_RE.sub("", text or "")


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ExtractionError() from exc


def extract_docx_text(data: bytes) -> str:
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as archive:
            xml = archive.read("word/document.xml")
        root = ElementTree.fromstring(xml)
    except (zipfile.BadZipFile, KeyError, ElementTree.ParseError) as exc:
        raise ExtractionError() from exc
    out = []
    for element in root.iter():
        tag = element.tag.split("}")[-1]
        if tag == "t":
            out.append(element.text or "")
        elif tag in ("br", "p"):
            out.append("\n")
    text = "".join(out)
    return re.sub(r"\n{3,}", "\n\n", text)


def extract_pdf_text(data: bytes) -> str:
    try:
        reader = PdfReader(io.BytesIO(data))
        return "\n".join(page.extract_text() or "" for page in reader.pages)
    except (PdfReadError, KeyError, ValueError, OSError) as exc:
        raise ExtractionError() from exc


def extract_text(data: bytes, filename: str = "") -> str:
    """Return sanitized plain text for an uploaded file.

    Raises:
        ExtractionError: If the file cannot be read as text.
    """

    name = (filename or "").lower()
    if name.endswith(".docx"):
        text = extract_docx_text(data)
    elif name.endswith(".pdf"):
        text = extract_pdf_text(data)
    else:
        text = _decode(data)
    logger.info("Extracted %d chars from %s", len(text), filename or "<upload>")
    return sanitize_text(text).strip()


__all__ = ["extract_docx_text", "extract_pdf_text", "extract_text", "sanitize_text"]
