"""Similarity search over stored chunks."""

from __future__ import annotations

import logging
from typing import List

from docanswer.embedding.encoder import HashingEmbedder, cosine_similarity
from docanswer.index.storage import ChunkStore
from docanswer.models import SearchResult
from docanswer.utils.text import build_snippet, tokenize

LOGGER = logging.getLogger(__name__)

MAX_RESULTS = 20
DEFAULT_CANDIDATE_LIMIT = 1000


def keyword_score(text: str, query_tokens: set[str]) -> float:
    """Fraction of the chunk's tokens that also occur in the query."""
    tokens = tokenize(text)
    if not tokens or not query_tokens:
        return 0.0
    hits = sum(1 for token in tokens if token in query_tokens)
    return hits / len(tokens)


class Searcher:
    """Rank stored chunks against a query.

    The score blends cosine similarity of hashed embeddings with a lexical
    overlap ratio: ``cosine_weight * cosine + keyword_weight * keyword``,
    rounded to four decimals. Candidates scoring zero or less are dropped.
    """

    def __init__(
        self,
        embedder: HashingEmbedder,
        store: ChunkStore,
        *,
        cosine_weight: float = 0.8,
        keyword_weight: float = 0.2,
        candidate_limit: int | None = DEFAULT_CANDIDATE_LIMIT,
    ) -> None:
        if embedder.dimension != store.dimension:
            LOGGER.warning(
                "Embedder dimension %s differs from store dimension %s; "
                "mismatched vectors will score zero",
                embedder.dimension,
                store.dimension,
            )
        self.embedder = embedder
        self.store = store
        self.cosine_weight = cosine_weight
        self.keyword_weight = keyword_weight
        self.candidate_limit = candidate_limit

    def search(
        self, query: str, *, project_id: str | None = None, limit: int = 5
    ) -> List[SearchResult]:
        if not query.strip():
            raise ValueError("Empty query")
        project_id = project_id or None
        limit = max(1, min(limit, MAX_RESULTS))

        candidates = self.store.list_chunks(project_id, limit=self.candidate_limit)
        if not candidates:
            return []

        query_embedding = self.embedder.embed_query(query)
        query_tokens = set(tokenize(query))

        scored: List[SearchResult] = []
        for record in candidates:
            cosine = cosine_similarity(query_embedding, record.embedding)
            lexical = keyword_score(record.text, query_tokens)
            score = round(cosine * self.cosine_weight + lexical * self.keyword_weight, 4)
            if score <= 0:
                continue
            scored.append(
                SearchResult(
                    chunk_id=record.chunk_id,
                    document_id=record.document_id,
                    filename=record.filename,
                    snippet=build_snippet(record.text),
                    span=record.span,
                    score=score,
                )
            )

        # sorted() is stable: equal scores keep insertion order
        scored = sorted(scored, key=lambda result: -result.score)
        LOGGER.debug(
            "Search scored %s of %s candidates (project=%s)",
            len(scored),
            len(candidates),
            project_id or "global",
        )
        return scored[:limit]
