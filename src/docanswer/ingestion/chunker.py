"""Overlapping fixed-size windows over normalized document text."""

from __future__ import annotations

from typing import List

from docanswer.models import ParsedDocument, TextChunk
from docanswer.utils.text import estimate_token_count, normalize_whitespace

MIN_CHUNK_CHARS = 50


def effective_window(chunk_size: int, overlap: int) -> tuple[int, int]:
    """Return the (chunk_size, overlap) actually applied by the chunker.

    The chunk size is floored at ``MIN_CHUNK_CHARS`` and the overlap is
    clamped to ``[0, chunk_size // 2]``.
    """
    size = max(MIN_CHUNK_CHARS, chunk_size)
    return size, min(size // 2, max(0, overlap))


def chunk_text(text: str, *, chunk_size: int = 500, overlap: int = 50) -> List[TextChunk]:
    """Split text into overlapping character windows with offsets.

    Offsets refer to the whitespace-normalized text, not the raw input.
    """
    content = normalize_whitespace(text)
    if not content:
        return []

    size, overlap = effective_window(chunk_size, overlap)
    chunks: List[TextChunk] = []
    index = 0
    while index < len(content):
        end = min(len(content), index + size)
        window = content[index:end]
        chunks.append(
            TextChunk(
                chunk_index=len(chunks),
                start_offset=index,
                end_offset=end,
                text=window,
                token_count=estimate_token_count(window),
            )
        )
        if end >= len(content):
            break
        index = max(0, end - overlap)
    return chunks


def chunk_document(doc: ParsedDocument, *, chunk_size: int = 500, overlap: int = 50) -> List[TextChunk]:
    return chunk_text(doc.text, chunk_size=chunk_size, overlap=overlap)
