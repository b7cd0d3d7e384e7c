"""Tests for hashing embeddings and cosine similarity."""

from __future__ import annotations

import numpy as np
import pytest

from docanswer.embedding.encoder import (
    DEFAULT_DIMENSION,
    EmbeddingConfig,
    HashingEmbedder,
    compute_text_embedding,
    cosine_similarity,
    hash_token,
)


class TestHashToken:
    """Test the 32-bit rolling token hash."""

    def test_single_character(self) -> None:
        assert hash_token("a") == 97

    def test_rolling(self) -> None:
        assert hash_token("ab") == 97 * 31 + 98
        assert hash_token("hello") == 99162322

    def test_wraparound_to_min_int(self) -> None:
        """A hash wrapping to -2**31 should come back as its absolute value."""
        assert hash_token("polygenelubricants") == 2**31

    def test_utf16_code_units(self) -> None:
        """Characters outside the BMP hash as their surrogate pair."""
        assert hash_token("\U0001F600") == 0xD83D * 31 + 0xDE00

    def test_empty_token(self) -> None:
        assert hash_token("") == 0


class TestComputeTextEmbedding:
    """Test compute_text_embedding."""

    def test_default_dimension(self) -> None:
        assert DEFAULT_DIMENSION == 64
        assert compute_text_embedding("hello world").shape == (64,)

    def test_custom_dimension(self) -> None:
        assert compute_text_embedding("hello world", 128).shape == (128,)

    @pytest.mark.parametrize("text", ["", "   ", "   \t\n  "])
    def test_zero_vector_for_blank_text(self, text: str) -> None:
        embedding = compute_text_embedding(text, 32)

        assert embedding.shape == (32,)
        assert not embedding.any()

    @pytest.mark.parametrize(
        "text",
        ["the quick brown fox", "hello! world? test@email.com", "bonjour monde", "a a a a"],
    )
    def test_unit_norm(self, text: str) -> None:
        embedding = compute_text_embedding(text)

        assert np.linalg.norm(embedding) == pytest.approx(1.0, abs=1e-5)

    def test_deterministic(self) -> None:
        first = compute_text_embedding("consistent embedding test")
        second = compute_text_embedding("consistent embedding test")

        assert first.tobytes() == second.tobytes()

    def test_case_insensitive(self) -> None:
        assert np.array_equal(
            compute_text_embedding("Hello World"), compute_text_embedding("hello world")
        )

    def test_different_texts_differ(self) -> None:
        assert not np.array_equal(
            compute_text_embedding("apple banana cherry"),
            compute_text_embedding("dog cat elephant"),
        )

    def test_bucket_counts(self) -> None:
        """Repeated tokens accumulate in one bucket before normalization."""
        embedding = compute_text_embedding("a a b", 1000)

        assert embedding[97] == pytest.approx(round(2 / np.sqrt(5), 6))
        assert embedding[98] == pytest.approx(round(1 / np.sqrt(5), 6))

    def test_rounded_to_six_decimals(self) -> None:
        embedding = compute_text_embedding("rounding precision check for vectors")

        assert np.array_equal(embedding, np.round(embedding, 6))

    def test_values_in_unit_range(self) -> None:
        embedding = compute_text_embedding("test embedding values")

        assert (embedding >= 0).all()
        assert (embedding <= 1).all()

    def test_zero_dimension(self) -> None:
        assert compute_text_embedding("anything", 0).shape == (0,)


class TestCosineSimilarity:
    """Test cosine_similarity."""

    def test_identical(self) -> None:
        assert cosine_similarity([0.5, 0.5, 0.5, 0.5], [0.5, 0.5, 0.5, 0.5]) == pytest.approx(1.0)

    def test_orthogonal(self) -> None:
        assert cosine_similarity([1, 0, 0, 0], [0, 1, 0, 0]) == pytest.approx(0.0)

    def test_opposite(self) -> None:
        assert cosine_similarity([1, 0], [-1, 0]) == pytest.approx(-1.0)

    def test_length_mismatch(self) -> None:
        assert cosine_similarity([1, 2, 3], [1, 2]) == 0

    def test_zero_vectors(self) -> None:
        assert cosine_similarity([0, 0, 0], [0, 0, 0]) == 0
        assert cosine_similarity([1, 2, 3], [0, 0, 0]) == 0

    def test_empty(self) -> None:
        assert cosine_similarity([], []) == 0

    def test_commutative(self) -> None:
        a = [0.1, 0.5, 0.3, 0.8]
        b = [0.4, 0.2, 0.6, 0.1]

        assert cosine_similarity(a, b) == cosine_similarity(b, a)

    def test_similar_texts(self) -> None:
        score = cosine_similarity(
            compute_text_embedding("machine learning algorithms"),
            compute_text_embedding("machine learning models"),
        )
        assert score > 0.5

    def test_unrelated_texts(self) -> None:
        score = cosine_similarity(
            compute_text_embedding("machine learning"),
            compute_text_embedding("cooking recipes"),
        )
        assert score < 0.5

    def test_same_text(self) -> None:
        vector = compute_text_embedding("similar text here")

        assert cosine_similarity(vector, vector) == pytest.approx(1.0, abs=1e-5)


class TestHashingEmbedder:
    """Test the HashingEmbedder wrapper."""

    def test_embed_batch(self) -> None:
        embedder = HashingEmbedder(EmbeddingConfig(dimension=16))
        matrix = embedder.embed(["first text", "second text"])

        assert matrix.shape == (2, 16)
        assert np.array_equal(matrix[0], compute_text_embedding("first text", 16))

    def test_embed_empty_batch(self) -> None:
        embedder = HashingEmbedder()

        assert embedder.embed([]).shape == (0, 64)

    def test_embed_query(self) -> None:
        embedder = HashingEmbedder()

        assert np.array_equal(embedder.embed_query("query"), compute_text_embedding("query"))

    def test_rejects_non_positive_dimension(self) -> None:
        with pytest.raises(ValueError):
            HashingEmbedder(EmbeddingConfig(dimension=0))
