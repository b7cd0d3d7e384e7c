"""Core docanswer data models."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Literal

import numpy as np


class DocumentKind(str, Enum):
    PDF = "pdf"
    MARKDOWN = "markdown"
    TEXT = "text"
    UNKNOWN = "unknown"


@dataclass(slots=True, frozen=True)
class ParsedDocument:
    """Plain text extracted from an upload."""

    text: str
    mime_type: str
    kind: DocumentKind
    parse_error: str | None = None


@dataclass(slots=True, frozen=True)
class TextChunk:
    """Window of normalized document text."""

    chunk_index: int
    start_offset: int
    end_offset: int
    text: str
    token_count: int


@dataclass(slots=True, frozen=True)
class Span:
    start: int
    end: int

    def to_dict(self) -> Dict[str, int]:
        return {"start": self.start, "end": self.end}


@dataclass(slots=True)
class ChunkRecord:
    """Persisted chunk paired with its embedding."""

    chunk_id: str
    document_id: str
    project_id: str | None
    chunk_index: int
    text: str
    embedding: np.ndarray
    span: Span
    filename: str = ""
    token_count: int = 0


@dataclass(slots=True)
class SearchResult:
    chunk_id: str
    document_id: str
    filename: str
    snippet: str
    span: Span
    score: float

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunkId": self.chunk_id,
            "documentId": self.document_id,
            "filename": self.filename,
            "snippet": self.snippet,
            "span": self.span.to_dict(),
            "score": self.score,
        }


@dataclass(slots=True, frozen=True)
class Citation:
    chunk_id: str
    document_id: str
    filename: str
    span: Span

    def to_dict(self) -> Dict[str, Any]:
        return {
            "chunkId": self.chunk_id,
            "documentId": self.document_id,
            "filename": self.filename,
            "span": self.span.to_dict(),
        }


@dataclass(slots=True, frozen=True)
class AnswerMeta:
    cached: bool
    latency_ms: int
    chunks_considered: int
    cache_timestamp: str | None = None


@dataclass(slots=True, frozen=True)
class AnswerResponse:
    """Composed answer with citations back to the retrieved chunks."""

    status: Literal["ok", "not_found"]
    answer: str
    citations: List[Citation] = field(default_factory=list)
    meta: AnswerMeta = field(default_factory=lambda: AnswerMeta(False, 0, 0))

    def with_meta(self, **changes: Any) -> "AnswerResponse":
        return replace(self, citations=list(self.citations), meta=replace(self.meta, **changes))

    def to_dict(self) -> Dict[str, Any]:
        meta: Dict[str, Any] = {
            "cached": self.meta.cached,
            "latencyMs": self.meta.latency_ms,
            "chunksConsidered": self.meta.chunks_considered,
        }
        if self.meta.cache_timestamp is not None:
            meta["cacheTimestamp"] = self.meta.cache_timestamp
        return {
            "status": self.status,
            "answer": self.answer,
            "citations": [citation.to_dict() for citation in self.citations],
            "meta": meta,
        }


@dataclass(slots=True)
class AnswerCacheEntry:
    key: str
    expires_at: float
    created_at: float
    response: AnswerResponse


@dataclass(slots=True)
class IngestResult:
    """Outcome reported back to the ingestion caller."""

    document_id: str
    project_id: str | None
    filename: str
    mime_type: str
    chunk_count: int
    embedding_dimension: int
    parse_warning: str | None = None

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "documentId": self.document_id,
            "projectId": self.project_id,
            "filename": self.filename,
            "mimeType": self.mime_type,
            "chunkCount": self.chunk_count,
            "embeddingDimension": self.embedding_dimension,
        }
        if self.parse_warning:
            payload["parseWarning"] = self.parse_warning
        return payload


@dataclass(slots=True)
class DocumentInfo:
    """Stored document as listed by the vector store."""

    document_id: str
    project_id: str | None
    filename: str
    mime_type: str
    byte_size: int
    kind: str
    text_length: int
    parse_error: str | None
    chunk_count: int
    created_at: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "documentId": self.document_id,
            "projectId": self.project_id,
            "filename": self.filename,
            "mimeType": self.mime_type,
            "byteSize": self.byte_size,
            "kind": self.kind,
            "textLength": self.text_length,
            "parseError": self.parse_error,
            "chunkCount": self.chunk_count,
            "createdAt": self.created_at,
        }
