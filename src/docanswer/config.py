"""Application configuration defaults."""

from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping

from docanswer.embedding.encoder import DEFAULT_DIMENSION

LOGGER = logging.getLogger(__name__)


def _get_default_db_path() -> Path:
    """Location of the chunk store when neither --db nor DOCANSWER_DB_PATH is given.

    A checkout that already holds data/docanswer.db keeps using it; packaged
    builds and fresh installs store under ~/Documents/DocAnswer.
    """
    checkout_db = Path("data") / "docanswer.db"
    if not getattr(sys, "frozen", False) and checkout_db.exists():
        return checkout_db
    return Path.home() / "Documents" / "DocAnswer" / "docanswer.db"


def _env_int(env: Mapping[str, str], name: str, default: int) -> int:
    value = env.get(name)
    if not value:
        return default
    try:
        return int(value)
    except ValueError:
        LOGGER.warning("Ignoring non-integer %s=%r, using %s", name, value, default)
        return default


@dataclass(slots=True)
class AppConfig:
    db_path: Path | None = None
    chunk_chars: int = 500
    overlap: int = 50
    embedding_dimension: int = DEFAULT_DIMENSION
    answer_cache_ttl_ms: int = 120_000
    answer_cache_max_entries: int = 512
    document_storage_dir: Path | None = None

    def __post_init__(self) -> None:
        if self.db_path is None:
            self.db_path = _get_default_db_path()

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "AppConfig":
        """Build a config from environment variables, falling back to defaults."""
        env = os.environ if env is None else env
        defaults = cls()
        db_path = env.get("DOCANSWER_DB_PATH")
        storage_dir = env.get("DOCUMENT_STORAGE_DIR")
        return cls(
            db_path=Path(db_path) if db_path else defaults.db_path,
            chunk_chars=_env_int(env, "DOC_CHUNK_SIZE", defaults.chunk_chars),
            overlap=_env_int(env, "DOC_CHUNK_OVERLAP", defaults.overlap),
            embedding_dimension=_env_int(env, "EMBEDDING_DIMENSION", defaults.embedding_dimension),
            answer_cache_ttl_ms=_env_int(env, "ANSWER_CACHE_TTL_MS", defaults.answer_cache_ttl_ms),
            answer_cache_max_entries=_env_int(
                env, "ANSWER_CACHE_MAX_ENTRIES", defaults.answer_cache_max_entries
            ),
            document_storage_dir=Path(storage_dir) if storage_dir else None,
        )

    def resolve_db_path(self, base_dir: Path | None = None) -> Path:
        """Store path, anchored at ``base_dir`` when configured as relative."""
        store_path = Path(self.db_path or _get_default_db_path())
        if base_dir is not None and not store_path.is_absolute():
            return base_dir / store_path
        return store_path
