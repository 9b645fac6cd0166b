"""Unit tests for the operator CLI (saraswathi.cli.manage)."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import pytest

from saraswathi.cli.manage import _build_parser, _handle_purge, main
from saraswathi.config.settings import Settings
from saraswathi.providers.catalog.sqlite_catalog_provider import SQLiteCatalogProvider


def _settings(db_path: Path) -> Settings:
    return Settings(catalog_db_path=str(db_path))


class TestParser:
    def test_purge_command(self) -> None:
        args = _build_parser().parse_args(["purge-manuscripts"])
        assert args.command == "purge-manuscripts"

    def test_serve_options(self) -> None:
        args = _build_parser().parse_args(["serve", "--host", "127.0.0.1", "--port", "8000", "--reload"])
        assert args.host == "127.0.0.1"
        assert args.port == 8000
        assert args.reload is True

    def test_serve_defaults(self) -> None:
        args = _build_parser().parse_args(["serve"])
        assert args.host is None
        assert args.port is None
        assert args.reload is False


class TestPurge:
    async def test_refuses_without_confirmation(
        self, monkeypatch: pytest.MonkeyPatch, catalog, sample_manuscript, db_path, capsys
    ) -> None:
        monkeypatch.delenv("FORCE_DELETE_MANUSCRIPTS", raising=False)
        await catalog.create_manuscript(sample_manuscript)

        assert await _handle_purge(_settings(db_path)) == 1
        assert "FORCE_DELETE_MANUSCRIPTS=true" in capsys.readouterr().err
        assert await catalog.get_manuscript(sample_manuscript.id) is not None

    @pytest.mark.parametrize("value", ["TRUE", "1", "yes"])
    async def test_only_exact_true_confirms(
        self, monkeypatch: pytest.MonkeyPatch, db_path, value: str
    ) -> None:
        monkeypatch.setenv("FORCE_DELETE_MANUSCRIPTS", value)
        assert await _handle_purge(_settings(db_path)) == 1

    async def test_deletes_everything(
        self, monkeypatch: pytest.MonkeyPatch, catalog, manuscript_factory, db_path, capsys
    ) -> None:
        monkeypatch.setenv("FORCE_DELETE_MANUSCRIPTS", "true")
        for title in ("One", "Two", "Three"):
            await catalog.create_manuscript(manuscript_factory(title=title))

        assert await _handle_purge(_settings(db_path)) == 0
        assert "Deleted 3 manuscript(s)." in capsys.readouterr().out
        _, total = await catalog.list_manuscripts(status=None)
        assert total == 0

    async def test_empty_database(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys) -> None:
        monkeypatch.setenv("FORCE_DELETE_MANUSCRIPTS", "true")
        assert await _handle_purge(_settings(tmp_path / "fresh" / "catalog.db")) == 0
        assert "Deleted 0 manuscript(s)." in capsys.readouterr().out

    async def test_failure_exit_code(self, monkeypatch: pytest.MonkeyPatch, db_path, capsys) -> None:
        monkeypatch.setenv("FORCE_DELETE_MANUSCRIPTS", "true")
        with patch.object(
            SQLiteCatalogProvider, "purge_manuscripts", side_effect=OSError("disk I/O error")
        ):
            assert await _handle_purge(_settings(db_path)) == 2
        assert "Failed to delete manuscripts: disk I/O error" in capsys.readouterr().err

    async def test_unreadable_database_exit_code(
        self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path, capsys
    ) -> None:
        monkeypatch.setenv("FORCE_DELETE_MANUSCRIPTS", "true")
        path = tmp_path / "catalog.db"
        path.write_bytes(b"not a database" * 100)

        assert await _handle_purge(_settings(path)) == 2
        assert "Failed to delete manuscripts" in capsys.readouterr().err


class TestMain:
    def test_no_command_exits_1(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main([])
        assert exc_info.value.code == 1

    def test_purge_refused_exit_code(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.delenv("FORCE_DELETE_MANUSCRIPTS", raising=False)
        monkeypatch.setenv("CATALOG_DB_PATH", str(tmp_path / "catalog.db"))
        with pytest.raises(SystemExit) as exc_info:
            main(["purge-manuscripts"])
        assert exc_info.value.code == 1

    def test_serve_runs_uvicorn(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APP_PORT", "4000")
        with patch("uvicorn.run") as mock_run, pytest.raises(SystemExit) as exc_info:
            main(["serve", "--host", "127.0.0.1"])
        assert exc_info.value.code == 0
        mock_run.assert_called_once_with(
            "saraswathi.main:app", host="127.0.0.1", port=4000, reload=False
        )
