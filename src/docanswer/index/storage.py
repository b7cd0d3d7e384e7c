"""SQLite-backed store for documents and chunk embeddings."""

from __future__ import annotations

import json
import sqlite3
import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List, Protocol, Sequence

import numpy as np

from docanswer.models import ChunkRecord, DocumentInfo, ParsedDocument, Span, TextChunk


class ChunkStore(Protocol):
    """What the search and ingestion layers need from persistence."""

    dimension: int

    def list_chunks(
        self, project_id: str | None = None, *, limit: int | None = None
    ) -> List[ChunkRecord]:
        ...

    def insert_chunks(
        self,
        document_id: str,
        chunks: Sequence[TextChunk],
        embeddings: np.ndarray,
        *,
        project_id: str | None = None,
        chunk_ids: Sequence[str] | None = None,
    ) -> List[str]:
        ...


class SQLiteVectorStore:
    """Persistence layer for documents, chunks and their embeddings.

    A single connection is shared between threads and guarded by a lock.
    Chunks are deleted together with their document.
    """

    def __init__(self, db_path: Path | str, *, dimension: int) -> None:
        self.db_path = Path(db_path)
        self.dimension = dimension
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys=ON;")
        if str(db_path) != ":memory:":
            self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._ensure_schema()

    @property
    def connection(self) -> sqlite3.Connection:
        return self._conn

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        with self._lock:
            try:
                yield self._conn
                self._conn.commit()
            except Exception:
                self._conn.rollback()
                raise

    def _ensure_schema(self) -> None:
        with self.transaction() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS documents (
                    document_id TEXT PRIMARY KEY,
                    project_id TEXT,
                    filename TEXT NOT NULL,
                    mime_type TEXT NOT NULL,
                    byte_size INTEGER NOT NULL,
                    metadata TEXT,
                    storage_path TEXT,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS chunks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    chunk_id TEXT NOT NULL UNIQUE,
                    document_id TEXT NOT NULL,
                    project_id TEXT,
                    chunk_index INTEGER NOT NULL,
                    token_count INTEGER NOT NULL,
                    span_start INTEGER NOT NULL,
                    span_end INTEGER NOT NULL,
                    text TEXT NOT NULL,
                    embedding BLOB NOT NULL,
                    dimension INTEGER NOT NULL,
                    created_at TEXT DEFAULT CURRENT_TIMESTAMP,
                    FOREIGN KEY(document_id) REFERENCES documents(document_id) ON DELETE CASCADE
                )
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_chunks_document_id
                    ON chunks(document_id)
                """
            )
            conn.execute(
                """CREATE INDEX IF NOT EXISTS idx_chunks_project_id
                    ON chunks(project_id)
                """
            )

    def insert_document(
        self,
        document_id: str,
        *,
        filename: str,
        mime_type: str,
        byte_size: int,
        parsed: ParsedDocument,
        project_id: str | None = None,
        storage_path: Path | None = None,
    ) -> None:
        """Insert a document row. Call within a transaction."""
        metadata = {
            "type": parsed.kind.value,
            "parseError": parsed.parse_error,
            "textLength": len(parsed.text),
        }
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO documents(
                    document_id, project_id, filename, mime_type, byte_size, metadata, storage_path
                )
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    document_id,
                    project_id,
                    filename,
                    mime_type,
                    byte_size,
                    json.dumps(metadata, ensure_ascii=True),
                    str(storage_path) if storage_path is not None else None,
                ),
            )

    def insert_chunks(
        self,
        document_id: str,
        chunks: Sequence[TextChunk],
        embeddings: np.ndarray,
        *,
        project_id: str | None = None,
        chunk_ids: Sequence[str] | None = None,
    ) -> List[str]:
        """Insert a batch of chunks for a document. Call within a transaction."""
        if embeddings.shape[0] != len(chunks):
            raise ValueError("Embeddings and chunks length mismatch")
        if len(chunks) and embeddings.shape[1] != self.dimension:
            raise ValueError(
                f"Embedding dimension {embeddings.shape[1]} does not match store dimension {self.dimension}"
            )
        if chunk_ids is None:
            chunk_ids = [f"{document_id}:{chunk.chunk_index}" for chunk in chunks]
        if len(chunk_ids) != len(chunks):
            raise ValueError("Chunk ids and chunks length mismatch")

        with self._lock:
            for chunk_id, chunk, vector in zip(chunk_ids, chunks, embeddings):
                self._conn.execute(
                    """
                    INSERT INTO chunks(
                        chunk_id, document_id, project_id, chunk_index, token_count,
                        span_start, span_end, text, embedding, dimension
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        chunk_id,
                        document_id,
                        project_id,
                        chunk.chunk_index,
                        chunk.token_count,
                        chunk.start_offset,
                        chunk.end_offset,
                        chunk.text,
                        sqlite3.Binary(np.asarray(vector, dtype="float64").tobytes()),
                        int(vector.shape[0]),
                    ),
                )
        return list(chunk_ids)

    def list_chunks(
        self, project_id: str | None = None, *, limit: int | None = None
    ) -> List[ChunkRecord]:
        """Return chunk records in insertion order.

        When ``limit`` is given only the most recently inserted chunks are
        returned, still ordered oldest first.
        """
        sql = """
            SELECT
                c.id AS id,
                c.chunk_id AS chunk_id,
                c.document_id AS document_id,
                c.project_id AS project_id,
                c.chunk_index AS chunk_index,
                c.token_count AS token_count,
                c.span_start AS span_start,
                c.span_end AS span_end,
                c.text AS text,
                c.embedding AS embedding,
                d.filename AS filename
            FROM chunks c
            JOIN documents d ON d.document_id = c.document_id
        """
        params: list[Any] = []
        if project_id is not None:
            sql += " WHERE c.project_id = ?"
            params.append(project_id)
        sql += " ORDER BY c.id DESC"
        if limit is not None:
            sql += " LIMIT ?"
            params.append(limit)

        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()

        return [
            ChunkRecord(
                chunk_id=row["chunk_id"],
                document_id=row["document_id"],
                project_id=row["project_id"],
                chunk_index=row["chunk_index"],
                text=row["text"],
                embedding=np.frombuffer(row["embedding"], dtype="float64"),
                span=Span(row["span_start"], row["span_end"]),
                filename=row["filename"],
                token_count=row["token_count"],
            )
            for row in reversed(rows)
        ]

    def list_documents(self, project_id: str | None = None) -> List[DocumentInfo]:
        sql = """
            SELECT
                d.document_id AS document_id,
                d.project_id AS project_id,
                d.filename AS filename,
                d.mime_type AS mime_type,
                d.byte_size AS byte_size,
                d.metadata AS metadata,
                d.created_at AS created_at,
                COUNT(c.id) AS chunk_count
            FROM documents d
            LEFT JOIN chunks c ON c.document_id = d.document_id
        """
        params: list[Any] = []
        if project_id is not None:
            sql += " WHERE d.project_id = ?"
            params.append(project_id)
        sql += " GROUP BY d.document_id ORDER BY d.created_at, d.rowid"

        with self._lock:
            rows = self._conn.execute(sql, params).fetchall()

        documents: List[DocumentInfo] = []
        for row in rows:
            metadata = json.loads(row["metadata"]) if row["metadata"] else {}
            documents.append(
                DocumentInfo(
                    document_id=row["document_id"],
                    project_id=row["project_id"],
                    filename=row["filename"],
                    mime_type=row["mime_type"],
                    byte_size=row["byte_size"],
                    kind=metadata.get("type", "unknown"),
                    text_length=metadata.get("textLength", 0),
                    parse_error=metadata.get("parseError"),
                    chunk_count=row["chunk_count"],
                    created_at=row["created_at"],
                )
            )
        return documents

    def get_stats(self) -> Dict[str, int]:
        with self._lock:
            row = self._conn.execute(
                """
                SELECT
                    (SELECT COUNT(*) FROM documents) AS document_count,
                    (SELECT COUNT(*) FROM chunks) AS chunk_count,
                    (SELECT COALESCE(SUM(byte_size), 0) FROM documents) AS total_size_bytes
                """
            ).fetchone()
        return {
            "document_count": row["document_count"],
            "chunk_count": row["chunk_count"],
            "total_size_bytes": row["total_size_bytes"],
        }

    def get_document_project(self, document_id: str) -> tuple[bool, str | None]:
        """Return ``(exists, project_id)`` for a document."""
        with self._lock:
            row = self._conn.execute(
                "SELECT project_id FROM documents WHERE document_id = ?", (document_id,)
            ).fetchone()
        if row is None:
            return False, None
        return True, row["project_id"]

    def delete_document(self, document_id: str) -> bool:
        """Delete a document and its chunks. Returns False if it did not exist."""
        with self.transaction() as conn:
            cursor = conn.execute("DELETE FROM documents WHERE document_id = ?", (document_id,))
        return cursor.rowcount > 0
