"""Answer composition from retrieved snippets, fronted by the answer cache."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import List, Sequence

from docanswer.answer.cache import DEFAULT_TOP_K, AnswerCache, build_cache_key
from docanswer.index.search import Searcher
from docanswer.models import AnswerMeta, AnswerResponse, Citation, SearchResult

LOGGER = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "No supporting documents found."
CONTEXT_SUFFIX = "(based on retrieved context)"
MAX_SNIPPETS = 3
MIN_TOP_K = 1
MAX_TOP_K = 10


def compose_answer(question: str, results: Sequence[SearchResult]) -> str:
    """Join the top snippets and mark the text as retrieved context."""
    snippets = [result.snippet.strip() for result in results]
    snippets = [snippet for snippet in snippets if snippet]
    base = " ".join(snippets[:MAX_SNIPPETS])
    if not base:
        return f'Unable to find supporting evidence for "{question}".'
    return f"{base} {CONTEXT_SUFFIX}"


def build_citations(results: Sequence[SearchResult]) -> List[Citation]:
    return [
        Citation(
            chunk_id=result.chunk_id,
            document_id=result.document_id,
            filename=result.filename,
            span=result.span,
        )
        for result in results
    ]


def _elapsed_ms(started: float) -> int:
    return int(round((time.perf_counter() - started) * 1000))


def _iso_timestamp(epoch_seconds: float) -> str:
    return datetime.fromtimestamp(epoch_seconds, tz=timezone.utc).isoformat()


class AnswerService:
    """Answer questions from stored chunks, reusing recent answers."""

    def __init__(self, searcher: Searcher, cache: AnswerCache) -> None:
        self.searcher = searcher
        self.cache = cache

    def answer(
        self,
        question: str,
        *,
        project_id: str | None = None,
        top_k: int | None = None,
    ) -> AnswerResponse:
        if not question.strip():
            raise ValueError("Question must not be empty")
        project_id = project_id or None

        started = time.perf_counter()
        key = build_cache_key(project_id, question, top_k)
        entry = self.cache.get(key)
        if entry is not None:
            LOGGER.debug("Answer cache hit: %s", key)
            return entry.response.with_meta(
                cached=True,
                latency_ms=_elapsed_ms(started),
                cache_timestamp=_iso_timestamp(entry.created_at),
            )

        limit = max(MIN_TOP_K, min(MAX_TOP_K, top_k if top_k is not None else DEFAULT_TOP_K))
        results = self.searcher.search(question, project_id=project_id, limit=limit)

        if not results:
            LOGGER.info("No supporting chunks for question (project=%s)", project_id or "global")
            return AnswerResponse(
                status="not_found",
                answer=NOT_FOUND_MESSAGE,
                citations=[],
                meta=AnswerMeta(cached=False, latency_ms=_elapsed_ms(started), chunks_considered=0),
            )

        response = AnswerResponse(
            status="ok",
            answer=compose_answer(question, results),
            citations=build_citations(results),
            meta=AnswerMeta(
                cached=False,
                latency_ms=_elapsed_ms(started),
                chunks_considered=len(results),
            ),
        )
        self.cache.set(key, response)
        # the cached citations list is never handed out
        return response.with_meta()
