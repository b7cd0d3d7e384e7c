"""Utility helpers for working with files."""

from __future__ import annotations

import mimetypes
from pathlib import Path
from typing import Iterable, Iterator

SUPPORTED_SUFFIXES = frozenset({".pdf", ".txt", ".md", ".markdown", ".html", ".htm", ".json"})

_SUFFIX_MIME_TYPES = {
    ".md": "text/markdown",
    ".markdown": "text/markdown",
}


def iter_document_paths(inputs: Iterable[Path]) -> Iterator[Path]:
    """Yield ingestible file paths from input paths, descending into directories."""
    for item in inputs:
        if item.is_dir():
            yield from iter_document_paths(
                sorted(child for child in item.rglob("*") if child.is_file())
            )
        elif item.is_file() and item.suffix.lower() in SUPPORTED_SUFFIXES:
            yield item


def guess_mime_type(path: Path) -> str | None:
    suffix = path.suffix.lower()
    if suffix in _SUFFIX_MIME_TYPES:
        return _SUFFIX_MIME_TYPES[suffix]
    mime_type, _ = mimetypes.guess_type(path.name)
    return mime_type


def persist_upload(base_dir: Path, document_id: str, filename: str, buffer: bytes) -> Path:
    """Write the raw upload to ``base_dir/<document_id>/<filename>``."""
    target_dir = base_dir / document_id
    target_dir.mkdir(parents=True, exist_ok=True)
    # Only the final path component of client-supplied names is kept
    target = target_dir / (Path(filename).name or "upload.bin")
    target.write_bytes(buffer)
    return target
