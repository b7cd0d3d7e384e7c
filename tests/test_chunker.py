"""Tests for the text chunker."""

from __future__ import annotations

import pytest

from docanswer.ingestion.chunker import chunk_document, chunk_text, effective_window
from docanswer.models import DocumentKind, ParsedDocument
from docanswer.utils.text import normalize_whitespace


def _doc(text: str) -> ParsedDocument:
    return ParsedDocument(text=text, mime_type="text/markdown", kind=DocumentKind.MARKDOWN)


def _reassemble(chunks) -> str:
    text = chunks[0].text
    for previous, current in zip(chunks, chunks[1:]):
        text += current.text[previous.end_offset - current.start_offset :]
    return text


class TestEffectiveWindow:
    """Test chunk size floor and overlap clamping."""

    def test_floor_chunk_size(self) -> None:
        assert effective_window(10, 5) == (50, 5)

    def test_overlap_clamped_to_half(self) -> None:
        assert effective_window(50, 40) == (50, 25)
        assert effective_window(101, 100) == (101, 50)

    def test_negative_overlap_is_zero(self) -> None:
        assert effective_window(200, -10) == (200, 0)


class TestChunkText:
    """Test chunk_text windowing."""

    def test_empty_document(self) -> None:
        """Should return no chunks for empty text."""
        assert chunk_document(_doc(""), chunk_size=100, overlap=20) == []

    def test_whitespace_only_document(self) -> None:
        """Should return no chunks for whitespace-only text."""
        assert chunk_document(_doc("   \n\t\n   "), chunk_size=100, overlap=20) == []

    def test_single_chunk_for_short_text(self) -> None:
        chunks = chunk_document(_doc("Short text"), chunk_size=100, overlap=20)

        assert len(chunks) == 1
        assert chunks[0].text == "Short text"
        assert chunks[0].chunk_index == 0
        assert chunks[0].start_offset == 0
        assert chunks[0].end_offset == len("Short text")

    def test_normalizes_whitespace(self) -> None:
        chunks = chunk_text("word1   word2\n\nword3\t\tword4", chunk_size=100, overlap=20)

        assert chunks[0].text == "word1 word2 word3 word4"

    def test_respects_chunk_size(self) -> None:
        chunks = chunk_text("word " * 100, chunk_size=50, overlap=10)

        assert len(chunks) > 1
        for chunk in chunks:
            assert len(chunk.text) <= 50

    def test_sequential_indices(self) -> None:
        chunks = chunk_text("a " * 200, chunk_size=50, overlap=10)

        assert [chunk.chunk_index for chunk in chunks] == list(range(len(chunks)))

    def test_token_count(self) -> None:
        chunks = chunk_text("one two three four five", chunk_size=100, overlap=0)

        assert chunks[0].token_count == 5

    @pytest.mark.parametrize(
        ("chunk_size", "overlap", "expected_overlap"),
        [(50, 20, 20), (50, 40, 25), (50, -10, 0), (10, 5, 5), (80, 0, 0)],
    )
    def test_consecutive_overlap(self, chunk_size: int, overlap: int, expected_overlap: int) -> None:
        """Consecutive chunks should overlap by exactly the effective overlap."""
        chunks = chunk_text("abcdefghijklmnopqrstuvwxyz " * 20, chunk_size=chunk_size, overlap=overlap)

        assert len(chunks) > 2
        for previous, current in zip(chunks, chunks[1:]):
            assert previous.end_offset - current.start_offset == expected_overlap
            assert current.start_offset < current.end_offset

    def test_offsets_within_normalized_text(self) -> None:
        raw = "Lorem  ipsum\n dolor sit amet, consectetur adipiscing elit. " * 7
        normalized = normalize_whitespace(raw)
        chunks = chunk_text(raw, chunk_size=60, overlap=15)

        for chunk in chunks:
            assert 0 <= chunk.start_offset < chunk.end_offset <= len(normalized)
            assert normalized[chunk.start_offset : chunk.end_offset] == chunk.text
        assert chunks[-1].end_offset == len(normalized)

    def test_chunks_reassemble_normalized_text(self) -> None:
        """Dropping overlapped regions should rebuild the full normalized text."""
        raw = "The quick brown fox jumps over the lazy dog.\n" * 30
        chunks = chunk_text(raw, chunk_size=75, overlap=30)

        assert _reassemble(chunks) == normalize_whitespace(raw)

    def test_revenue_scenario(self) -> None:
        """Second chunk should start exactly overlap characters before the first ends."""
        sentence = "Revenue grew sharply in Q1. Costs remained flat."
        chunks = chunk_text(f"{sentence} {sentence}", chunk_size=20, overlap=5)

        assert len(chunks) >= 2
        assert chunks[1].start_offset == chunks[0].end_offset - 5
        assert chunks[0].end_offset == 50

    def test_short_revenue_text_fits_one_floored_chunk(self) -> None:
        """A 20-char request is floored to 50, which covers the single sentence."""
        chunks = chunk_text("Revenue grew sharply in Q1. Costs remained flat.", chunk_size=20, overlap=5)

        assert len(chunks) == 1
