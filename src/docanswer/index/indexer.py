"""Document ingestion pipeline: parse, chunk, embed, persist."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from docanswer.answer.cache import AnswerCache
from docanswer.embedding.encoder import HashingEmbedder
from docanswer.index.storage import SQLiteVectorStore
from docanswer.ingestion.chunker import chunk_document
from docanswer.ingestion.parser import parse_document
from docanswer.models import IngestResult
from docanswer.utils.files import guess_mime_type, iter_document_paths, persist_upload

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class IngestStats:
    ingested: int = 0
    failed: int = 0
    warnings: int = 0
    chunks: int = 0
    results: List[IngestResult] = field(default_factory=list)
    processed_files: List[Path] = field(default_factory=list)

    def record(self, result: IngestResult, path: Path) -> None:
        self.ingested += 1
        self.chunks += result.chunk_count
        if result.parse_warning:
            self.warnings += 1
        self.results.append(result)
        self.processed_files.append(path)

    def record_failure(self, path: Path) -> None:
        self.failed += 1
        self.processed_files.append(path)


class DocumentIngestor:
    """Coordinates parsing, chunking, embedding and persistence of uploads."""

    def __init__(
        self,
        embedder: HashingEmbedder,
        store: SQLiteVectorStore,
        *,
        chunk_chars: int = 500,
        overlap: int = 50,
        cache: AnswerCache | None = None,
        storage_dir: Path | None = None,
    ) -> None:
        self.embedder = embedder
        self.store = store
        self.chunk_chars = chunk_chars
        self.overlap = overlap
        self.cache = cache
        self.storage_dir = storage_dir

    def ingest(
        self,
        buffer: bytes,
        mime_type: str | None,
        filename: str,
        *,
        project_id: str | None = None,
    ) -> IngestResult:
        """Ingest one upload. Parse failures become a warning, not an error."""
        project_id = project_id or None
        parsed = parse_document(buffer, mime_type)
        if parsed.parse_error:
            LOGGER.warning("Parse warning for %s: %s", filename, parsed.parse_error)

        chunks = chunk_document(parsed, chunk_size=self.chunk_chars, overlap=self.overlap)
        embeddings = self.embedder.embed([chunk.text for chunk in chunks])

        document_id = str(uuid.uuid4())
        storage_path = None
        if self.storage_dir is not None:
            storage_path = persist_upload(self.storage_dir, document_id, filename, buffer)

        resolved_mime = mime_type or parsed.mime_type
        with self.store.transaction():
            self.store.insert_document(
                document_id,
                filename=filename,
                mime_type=resolved_mime,
                byte_size=len(buffer),
                parsed=parsed,
                project_id=project_id,
                storage_path=storage_path,
            )
            self.store.insert_chunks(
                document_id,
                chunks,
                embeddings,
                project_id=project_id,
                chunk_ids=[str(uuid.uuid4()) for _ in chunks],
            )

        if self.cache is not None:
            dropped = self.cache.invalidate(project_id)
            if dropped:
                LOGGER.debug("Invalidated %s cached answers", dropped)

        LOGGER.info(
            "Ingested %s as %s (%s chunks, kind=%s)",
            filename,
            document_id,
            len(chunks),
            parsed.kind.value,
        )
        return IngestResult(
            document_id=document_id,
            project_id=project_id,
            filename=filename,
            mime_type=resolved_mime,
            chunk_count=len(chunks),
            embedding_dimension=self.embedder.dimension,
            parse_warning=parsed.parse_error,
        )

    def ingest_paths(self, paths: Sequence[Path], *, project_id: str | None = None) -> IngestStats:
        """Ingest every supported file found under the given paths."""
        files = list(iter_document_paths(paths))
        stats = IngestStats()
        if not files:
            LOGGER.warning("No ingestible files found")
            return stats

        for path in files:
            try:
                LOGGER.info("Processing: %s", path)
                result = self.ingest(
                    path.read_bytes(),
                    guess_mime_type(path),
                    path.name,
                    project_id=project_id,
                )
            except Exception as exc:
                LOGGER.error("Failed to process %s: %s", path, exc)
                stats.record_failure(path)
                continue
            stats.record(result, path)
        return stats
