"""Hashing-based text embeddings and cosine similarity."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

import numpy as np

from docanswer.utils.text import tokenize

DEFAULT_DIMENSION = 64
PRECISION = 6

logger = logging.getLogger(__name__)


def hash_token(token: str) -> int:
    """Signed 32-bit rolling hash (``h = h * 31 + c``) over UTF-16 code units.

    Returns the absolute value of the wrapped result.
    """
    encoded = token.encode("utf-16-le")
    value = 0
    for offset in range(0, len(encoded), 2):
        code_unit = encoded[offset] | (encoded[offset + 1] << 8)
        value = (value * 31 + code_unit) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return abs(value)


def compute_text_embedding(text: str, dimension: int = DEFAULT_DIMENSION) -> np.ndarray:
    """Map text to a fixed-length bag-of-hashed-tokens unit vector.

    Empty or whitespace-only text maps to the all-zero vector. Components
    are rounded to ``PRECISION`` decimals so stored and recomputed vectors
    compare equal.
    """
    if dimension <= 0:
        return np.zeros(0, dtype="float64")

    vector = np.zeros(dimension, dtype="float64")
    tokens = tokenize(text)
    if not tokens:
        return vector

    for token in tokens:
        vector[hash_token(token) % dimension] += 1.0

    norm = float(np.sqrt(np.dot(vector, vector)))
    if norm > 0:
        vector = vector / norm
    return np.round(vector, PRECISION)


def cosine_similarity(a: Sequence[float] | np.ndarray, b: Sequence[float] | np.ndarray) -> float:
    """Cosine of the angle between two vectors.

    Returns 0.0 for vectors of different length, empty input, or when either
    vector is all-zero.
    """
    left = np.asarray(a, dtype="float64")
    right = np.asarray(b, dtype="float64")
    if left.shape != right.shape or left.size == 0:
        return 0.0
    denom = float(np.sqrt(np.dot(left, left)) * np.sqrt(np.dot(right, right)))
    if denom == 0.0:
        return 0.0
    score = float(np.dot(left, right)) / denom
    return max(-1.0, min(1.0, score))


@dataclass(slots=True)
class EmbeddingConfig:
    dimension: int = DEFAULT_DIMENSION


class HashingEmbedder:
    """Query and document embeddings backed by :func:`compute_text_embedding`.

    Stateless apart from its configured dimension, so one instance can be
    shared across threads.
    """

    def __init__(self, config: EmbeddingConfig | None = None) -> None:
        self.config = config or EmbeddingConfig()
        if self.config.dimension <= 0:
            raise ValueError("Embedding dimension must be positive")
        self.dimension = self.config.dimension
        logger.debug("Hashing embedder ready | dimension=%s", self.dimension)

    def embed(self, texts: Sequence[str] | Iterable[str]) -> np.ndarray:
        """Return a ``(len(texts), dimension)`` float64 matrix."""
        rows = [compute_text_embedding(text, self.dimension) for text in texts]
        if not rows:
            return np.zeros((0, self.dimension), dtype="float64")
        return np.vstack(rows)

    def embed_query(self, text: str) -> np.ndarray:
        """Convenience wrapper for single-query embedding."""
        return compute_text_embedding(text, self.dimension)
