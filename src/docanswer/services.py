"""Wiring of the retrieval components for one process."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from docanswer.answer.cache import AnswerCache
from docanswer.answer.composer import AnswerService
from docanswer.config import AppConfig
from docanswer.embedding.encoder import EmbeddingConfig, HashingEmbedder
from docanswer.index.indexer import DocumentIngestor
from docanswer.index.search import Searcher
from docanswer.index.storage import SQLiteVectorStore


@dataclass(slots=True)
class Services:
    config: AppConfig
    embedder: HashingEmbedder
    store: SQLiteVectorStore
    cache: AnswerCache
    searcher: Searcher
    ingestor: DocumentIngestor
    answers: AnswerService

    def close(self) -> None:
        self.store.close()


def build_services(config: AppConfig, *, base_dir: Path | None = None) -> Services:
    """Construct store, embedder, cache and the services on top of them."""
    db_path = config.resolve_db_path(base_dir)
    db_path.parent.mkdir(parents=True, exist_ok=True)

    embedder = HashingEmbedder(EmbeddingConfig(dimension=config.embedding_dimension))
    store = SQLiteVectorStore(db_path, dimension=embedder.dimension)
    cache = AnswerCache(
        config.answer_cache_ttl_ms,
        max_entries=config.answer_cache_max_entries or None,
    )
    searcher = Searcher(embedder, store)
    ingestor = DocumentIngestor(
        embedder,
        store,
        chunk_chars=config.chunk_chars,
        overlap=config.overlap,
        cache=cache,
        storage_dir=config.document_storage_dir,
    )
    return Services(
        config=config,
        embedder=embedder,
        store=store,
        cache=cache,
        searcher=searcher,
        ingestor=ingestor,
        answers=AnswerService(searcher, cache),
    )
