"""Raw upload parsing.

PDF text is extracted with PyMuPDF (fitz) first; when that fails or yields
nothing, pypdf is tried as a fallback. Text-like uploads are decoded as UTF-8.
Parsing never raises: failures are reported through ``parse_error``.
"""

from __future__ import annotations

import io
import logging
from typing import Callable, Sequence

import fitz  # PyMuPDF
from pypdf import PdfReader

from docanswer.models import DocumentKind, ParsedDocument

LOGGER = logging.getLogger(__name__)

TEXT_MIME_TYPES = frozenset(
    {
        "text/plain",
        "text/markdown",
        "text/md",
        "text/x-markdown",
        "text/html",
        "application/json",
    }
)

NO_PDF_TEXT = "No text extracted from PDF"

PdfStrategy = Callable[[bytes], str]


def extract_with_pymupdf(buffer: bytes) -> str:
    """Extract page text using PyMuPDF."""
    doc = fitz.open(stream=buffer, filetype="pdf")
    try:
        parts = []
        for index in range(len(doc)):
            text = doc[index].get_text() or ""
            if text.strip():
                parts.append(text)
        return "\n".join(parts).strip()
    finally:
        doc.close()


def extract_with_pypdf(buffer: bytes) -> str:
    """Extract page text using pypdf."""
    reader = PdfReader(io.BytesIO(buffer))
    parts = []
    for page in reader.pages:
        text = page.extract_text() or ""
        if text.strip():
            parts.append(text)
    return "\n".join(parts).strip()


PDF_STRATEGIES: tuple[PdfStrategy, ...] = (extract_with_pymupdf, extract_with_pypdf)


def extract_pdf_text(
    buffer: bytes, strategies: Sequence[PdfStrategy] = PDF_STRATEGIES
) -> tuple[str, str | None]:
    """Run extraction strategies in order until one yields text.

    Returns ``(text, error)``; ``error`` is set only when every strategy
    failed or came back empty.
    """
    first_error: str | None = None
    for strategy in strategies:
        try:
            text = strategy(buffer)
        except Exception as exc:
            LOGGER.warning("PDF extraction with %s failed: %s", strategy.__name__, exc)
            first_error = first_error or str(exc) or type(exc).__name__
            continue
        if text:
            return text, None
        LOGGER.debug("PDF extraction with %s returned no text", strategy.__name__)
    return "", first_error or NO_PDF_TEXT


def _base_mime_type(mime_type: str | None) -> str | None:
    if not mime_type:
        return None
    return mime_type.split(";", 1)[0].strip().lower() or None


def parse_document(buffer: bytes, mime_type: str | None = None) -> ParsedDocument:
    """Convert an upload into plain text according to its declared type."""
    base_type = _base_mime_type(mime_type)

    if base_type is not None and "pdf" in base_type:
        text, error = extract_pdf_text(buffer)
        if error:
            LOGGER.error("Unable to extract PDF text: %s", error)
        return ParsedDocument(
            text=text,
            mime_type=mime_type or "application/pdf",
            kind=DocumentKind.PDF,
            parse_error=error,
        )

    if base_type in TEXT_MIME_TYPES:
        kind = DocumentKind.MARKDOWN if "markdown" in base_type else DocumentKind.TEXT
        return ParsedDocument(
            text=buffer.decode("utf-8", errors="replace"),
            mime_type=mime_type,
            kind=kind,
        )

    text = buffer.decode("utf-8", errors="replace")
    return ParsedDocument(
        text=text,
        mime_type=mime_type or "text/plain",
        kind=DocumentKind.TEXT if text else DocumentKind.UNKNOWN,
    )
