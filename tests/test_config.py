"""Tests for application configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

from docanswer.config import AppConfig, _get_default_db_path


class TestAppConfig:
    """Test AppConfig dataclass."""

    def test_default_config(self) -> None:
        """Should create config with default values."""
        config = AppConfig()

        assert config.db_path == _get_default_db_path()
        assert config.chunk_chars == 500
        assert config.overlap == 50
        assert config.embedding_dimension == 64
        assert config.answer_cache_ttl_ms == 120_000
        assert config.answer_cache_max_entries == 512
        assert config.document_storage_dir is None

    def test_custom_config(self) -> None:
        config = AppConfig(db_path=Path("/custom/path.db"), chunk_chars=800, overlap=100)

        assert config.db_path == Path("/custom/path.db")
        assert config.chunk_chars == 800
        assert config.overlap == 100

    def test_resolve_db_path_absolute(self) -> None:
        """Should return absolute path as-is."""
        config = AppConfig(db_path=Path("/absolute/path/db.db"))

        assert config.resolve_db_path(base_dir=Path("/ignored")) == Path("/absolute/path/db.db")

    def test_resolve_db_path_relative_no_base(self) -> None:
        config = AppConfig(db_path=Path("relative/db.db"))

        assert config.resolve_db_path(base_dir=None) == Path("relative/db.db")

    def test_resolve_db_path_relative_with_base(self) -> None:
        """Should resolve relative path against base_dir."""
        config = AppConfig(db_path=Path("relative/db.db"))

        resolved = config.resolve_db_path(base_dir=Path("/base/directory"))

        assert resolved == Path("/base/directory/relative/db.db")


class TestDefaultDbPath:
    """Test default database location selection."""

    def test_frozen_uses_user_documents(self) -> None:
        with patch("docanswer.config.sys") as mock_sys:
            mock_sys.frozen = True
            path = _get_default_db_path()

        assert path == Path.home() / "Documents" / "DocAnswer" / "docanswer.db"

    def test_prefers_local_data_dir(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)
        (tmp_path / "data").mkdir()
        (tmp_path / "data" / "docanswer.db").touch()

        assert _get_default_db_path() == Path("data/docanswer.db")

    def test_falls_back_to_user_documents(self, tmp_path, monkeypatch) -> None:
        monkeypatch.chdir(tmp_path)

        assert _get_default_db_path() == Path.home() / "Documents" / "DocAnswer" / "docanswer.db"


class TestFromEnv:
    """Test environment overrides."""

    def test_empty_env_gives_defaults(self) -> None:
        config = AppConfig.from_env({})

        assert config.chunk_chars == 500
        assert config.overlap == 50
        assert config.embedding_dimension == 64

    def test_overrides(self, tmp_path) -> None:
        env = {
            "DOCANSWER_DB_PATH": str(tmp_path / "env.db"),
            "DOC_CHUNK_SIZE": "300",
            "DOC_CHUNK_OVERLAP": "20",
            "EMBEDDING_DIMENSION": "128",
            "ANSWER_CACHE_TTL_MS": "5000",
            "ANSWER_CACHE_MAX_ENTRIES": "10",
            "DOCUMENT_STORAGE_DIR": str(tmp_path / "uploads"),
        }

        config = AppConfig.from_env(env)

        assert config.db_path == tmp_path / "env.db"
        assert config.chunk_chars == 300
        assert config.overlap == 20
        assert config.embedding_dimension == 128
        assert config.answer_cache_ttl_ms == 5000
        assert config.answer_cache_max_entries == 10
        assert config.document_storage_dir == tmp_path / "uploads"

    def test_bad_integer_falls_back(self, caplog) -> None:
        with caplog.at_level(logging.WARNING, logger="docanswer.config"):
            config = AppConfig.from_env({"DOC_CHUNK_SIZE": "large"})

        assert config.chunk_chars == 500
        assert "DOC_CHUNK_SIZE" in caplog.text
