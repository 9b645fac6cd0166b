"""SQLite-backed manuscript catalogue.

Persists manuscripts, uploads and annotations to a local SQLite database
(``data/catalog.db`` by default) using ``aiosqlite`` for async I/O.

List-valued and nested fields (tags, keywords, sentiment, entities, ...) are
stored as JSON text.  Free-text search uses an FTS5 virtual table over
title, author, description, OCR text and tags; the index is rewritten
whenever one of those fields changes.  Its tokenizer keeps combining marks
inside words so Devanagari and other Indic scripts search by whole word.
"""

from __future__ import annotations

import json
import unicodedata
from datetime import datetime, timezone
from enum import Enum
from itertools import groupby
from pathlib import Path
from typing import Any

import aiosqlite
from pydantic import BaseModel

from saraswathi.interfaces.catalog_provider import ICatalogProvider
from saraswathi.models.annotation import Annotation
from saraswathi.models.manuscript import Manuscript, ManuscriptStatus
from saraswathi.models.upload import Upload
from saraswathi.utils.logging import get_logger

logger = get_logger(__name__)

_DEFAULT_DB_PATH = Path("data/catalog.db")

_CREATE_TABLES_SQL = [
    """\
CREATE TABLE IF NOT EXISTS manuscripts (
    id                 TEXT    PRIMARY KEY,
    user_id            TEXT    NOT NULL,
    title              TEXT    NOT NULL,
    author             TEXT    NOT NULL,
    description        TEXT    NOT NULL,
    category           TEXT    NOT NULL DEFAULT 'General',
    origin             TEXT    NOT NULL,
    language           TEXT    NOT NULL,
    location           TEXT    NOT NULL DEFAULT '',
    script_type        TEXT    NOT NULL DEFAULT '',
    date_written       TEXT    NOT NULL DEFAULT '',
    period             TEXT    NOT NULL DEFAULT '',
    significance       TEXT    NOT NULL DEFAULT '',
    estimated_century  TEXT    NOT NULL DEFAULT '',
    material_type      TEXT    NOT NULL DEFAULT '',
    ocr_text           TEXT    NOT NULL DEFAULT '',
    cleaned_ocr_text   TEXT    NOT NULL DEFAULT '',
    detected_language  TEXT    NOT NULL DEFAULT '',
    image_url          TEXT    NOT NULL,
    thumbnail_url      TEXT    NOT NULL DEFAULT '',
    optimized_url      TEXT    NOT NULL DEFAULT '',
    file_url           TEXT    NOT NULL DEFAULT '',
    image_hint         TEXT    NOT NULL DEFAULT '',
    summary            TEXT    NOT NULL DEFAULT '',
    short_summary      TEXT    NOT NULL DEFAULT '',
    detailed_summary   TEXT    NOT NULL DEFAULT '[]',
    keywords           TEXT    NOT NULL DEFAULT '[]',
    topics             TEXT    NOT NULL DEFAULT '[]',
    sentiment          TEXT,
    entities           TEXT    NOT NULL DEFAULT '{}',
    outline            TEXT    NOT NULL DEFAULT '[]',
    highlights         TEXT    NOT NULL DEFAULT '[]',
    confidence_scores  TEXT,
    status             TEXT    NOT NULL DEFAULT 'published',
    views              INTEGER NOT NULL DEFAULT 0,
    tags               TEXT    NOT NULL DEFAULT '[]',
    created_at         TEXT    NOT NULL,
    updated_at         TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS uploads (
    id             TEXT    PRIMARY KEY,
    file_name      TEXT    NOT NULL,
    original_name  TEXT    NOT NULL,
    mime_type      TEXT    NOT NULL,
    size           INTEGER NOT NULL,
    uploaded_by    TEXT    NOT NULL,
    image_url      TEXT    NOT NULL,
    file_url       TEXT    NOT NULL DEFAULT '',
    thumbnail_url  TEXT    NOT NULL DEFAULT '',
    optimized_url  TEXT    NOT NULL DEFAULT '',
    manuscript_id  TEXT    NOT NULL DEFAULT '',
    status         TEXT    NOT NULL DEFAULT 'processing',
    created_at     TEXT    NOT NULL,
    updated_at     TEXT    NOT NULL
);
""",
    """\
CREATE TABLE IF NOT EXISTS annotations (
    id             TEXT    PRIMARY KEY,
    manuscript_id  TEXT    NOT NULL,
    user_id        TEXT    NOT NULL,
    content        TEXT    NOT NULL,
    tags           TEXT    NOT NULL DEFAULT '[]',
    upvotes        INTEGER NOT NULL DEFAULT 0,
    created_at     TEXT    NOT NULL,
    updated_at     TEXT    NOT NULL
);
""",
    """\
CREATE VIRTUAL TABLE IF NOT EXISTS manuscripts_fts USING fts5(
    manuscript_id UNINDEXED,
    title,
    author,
    description,
    ocr_text,
    tags,
    tokenize = "unicode61 categories 'L* N* Co M*'"
);
""",
]

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_manuscripts_status_created ON manuscripts(status, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_manuscripts_user ON manuscripts(user_id);",
    "CREATE INDEX IF NOT EXISTS idx_manuscripts_category ON manuscripts(category);",
    "CREATE INDEX IF NOT EXISTS idx_manuscripts_language ON manuscripts(language);",
    "CREATE INDEX IF NOT EXISTS idx_uploads_uploaded_by ON uploads(uploaded_by, created_at);",
    "CREATE INDEX IF NOT EXISTS idx_annotations_manuscript ON annotations(manuscript_id, created_at);",
]

_FTS_DELETE_SQL = "DELETE FROM manuscripts_fts WHERE manuscript_id = ?;"
_FTS_INSERT_SQL = """\
INSERT INTO manuscripts_fts (manuscript_id, title, author, description, ocr_text, tags)
VALUES (?, ?, ?, ?, ?, ?);
"""

_MANUSCRIPT_JSON_COLUMNS = frozenset({
    "detailed_summary", "keywords", "topics", "sentiment", "entities",
    "outline", "highlights", "confidence_scores", "tags",
})
_ANNOTATION_JSON_COLUMNS = frozenset({"tags"})
_SEARCHABLE_COLUMNS = frozenset({"title", "author", "description", "ocr_text", "tags"})
_IMMUTABLE_COLUMNS = frozenset({"id", "created_at", "updated_at"})

# Letters, digits, private-use and combining marks form words. Indic vowel
# signs and the virama are marks, so they must not split a word.
_TOKEN_CATEGORIES = ("L", "N", "M")


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


def _to_column(value: Any) -> Any:
    """Convert a model attribute into something sqlite3 can bind."""
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, BaseModel):
        return json.dumps(value.model_dump())
    if isinstance(value, (list, dict)):
        return json.dumps(value)
    return value


def _to_row(model: BaseModel, columns: list[str] | None = None) -> dict[str, Any]:
    names = columns if columns is not None else list(type(model).model_fields)
    return {name: _to_column(getattr(model, name)) for name in names}


def _from_row(row: aiosqlite.Row, json_columns: frozenset[str]) -> dict[str, Any]:
    data = dict(row)
    for name in json_columns:
        if data.get(name) is not None:
            data[name] = json.loads(data[name])
    return data


def _is_token_char(char: str) -> bool:
    category = unicodedata.category(char)
    return category[0] in _TOKEN_CATEGORIES or category == "Co"


def _fts_query(search: str) -> str | None:
    """Turn free text into an FTS5 query that matches any of its words.

    Words are split the same way the index tokenizer splits them.  Each word
    is quoted so FTS5 operators typed by users (``AND``, ``-``,
    ``*``) are treated as plain text.
    """
    tokens = ["".join(chars) for is_word, chars in groupby(search, key=_is_token_char) if is_word]
    if not tokens:
        return None
    return " OR ".join(f'"{token}"' for token in tokens)


class SQLiteCatalogProvider(ICatalogProvider):
    """SQLite-backed catalogue persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create tables, indices and the FTS5 index if they don't exist.

        An FTS5 table created with the default tokenizer splits Indic words
        at their vowel signs; it is dropped and rebuilt from the manuscripts
        table.
        """
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = 'manuscripts_fts'"
            )
            existing = await cursor.fetchone()
            rebuild = existing is not None and "categories" not in existing["sql"]
            if rebuild:
                await db.execute("DROP TABLE manuscripts_fts;")
            for table_sql in _CREATE_TABLES_SQL:
                await db.execute(table_sql)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            if rebuild:
                cursor = await db.execute("SELECT * FROM manuscripts")
                rows = await cursor.fetchall()
                for row in rows:
                    await self._reindex(
                        db, Manuscript.model_validate(_from_row(row, _MANUSCRIPT_JSON_COLUMNS))
                    )
                logger.info("catalog_fts_rebuilt", manuscripts=len(rows))
            await db.commit()
        logger.info("catalog_db_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Manuscripts
    # ------------------------------------------------------------------

    async def create_manuscript(self, manuscript: Manuscript) -> Manuscript:
        row = _to_row(manuscript)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await self._insert(db, "manuscripts", row)
            await self._reindex(db, manuscript)
            await db.commit()
        logger.info("manuscript_created", manuscript_id=manuscript.id, user_id=manuscript.user_id)
        return manuscript

    async def get_manuscript(self, manuscript_id: str) -> Manuscript | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            return await self._fetch_manuscript(db, manuscript_id)

    async def increment_views(self, manuscript_id: str) -> Manuscript | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "UPDATE manuscripts SET views = views + 1 WHERE id = ?",
                (manuscript_id,),
            )
            await db.commit()
            if cursor.rowcount == 0:
                return None
            return await self._fetch_manuscript(db, manuscript_id)

    async def update_manuscript(
        self, manuscript_id: str, fields: dict[str, Any]
    ) -> Manuscript | None:
        changes = {
            key: value
            for key, value in fields.items()
            if key in Manuscript.model_fields and key not in _IMMUTABLE_COLUMNS
        }
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            existing = await self._fetch_manuscript(db, manuscript_id)
            if existing is None:
                return None

            # Validate the merged record so bad values never reach the table.
            updated = Manuscript.model_validate(
                {**existing.model_dump(), **changes, "updated_at": _utcnow()}
            )
            row = _to_row(updated, [*changes, "updated_at"])
            assignments = ", ".join(f"{name} = ?" for name in row)
            await db.execute(
                f"UPDATE manuscripts SET {assignments} WHERE id = ?",  # noqa: S608
                (*row.values(), manuscript_id),
            )
            if _SEARCHABLE_COLUMNS.intersection(changes):
                await self._reindex(db, updated)
            await db.commit()
            result = await self._fetch_manuscript(db, manuscript_id)

        logger.debug("manuscript_updated", manuscript_id=manuscript_id, fields=sorted(changes))
        return result

    async def delete_manuscript(self, manuscript_id: str) -> bool:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("DELETE FROM manuscripts WHERE id = ?", (manuscript_id,))
            await db.execute(_FTS_DELETE_SQL, (manuscript_id,))
            await db.execute("DELETE FROM annotations WHERE manuscript_id = ?", (manuscript_id,))
            await db.commit()
            deleted = cursor.rowcount > 0
        if deleted:
            logger.info("manuscript_deleted", manuscript_id=manuscript_id)
        return deleted

    async def list_manuscripts(
        self,
        *,
        status: ManuscriptStatus | None = ManuscriptStatus.PUBLISHED,
        user_id: str | None = None,
        category: str | None = None,
        language: str | None = None,
        search: str | None = None,
        page: int = 1,
        limit: int = 12,
    ) -> tuple[list[Manuscript], int]:
        clauses: list[str] = []
        params: list[Any] = []
        if status is not None:
            clauses.append("m.status = ?")
            params.append(status.value)
        if user_id:
            clauses.append("m.user_id = ?")
            params.append(user_id)
        if category:
            clauses.append("m.category = ?")
            params.append(category)
        if language:
            clauses.append("m.language = ?")
            params.append(language)

        source = "manuscripts m"
        order = "m.created_at DESC"
        match = _fts_query(search) if search else None
        if match:
            source += " JOIN manuscripts_fts ON manuscripts_fts.manuscript_id = m.id"
            clauses.append("manuscripts_fts MATCH ?")
            params.append(match)
            order = "manuscripts_fts.rank, m.created_at DESC"

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        page = max(page, 1)
        limit = max(limit, 1)
        offset = (page - 1) * limit

        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT COUNT(*) FROM {source} {where}",  # noqa: S608
                params,
            )
            (total,) = await cursor.fetchone()
            cursor = await db.execute(
                f"SELECT m.* FROM {source} {where} ORDER BY {order} LIMIT ? OFFSET ?",  # noqa: S608
                (*params, limit, offset),
            )
            rows = await cursor.fetchall()

        items = [Manuscript.model_validate(_from_row(r, _MANUSCRIPT_JSON_COLUMNS)) for r in rows]
        return items, total

    async def list_categories(self) -> list[str]:
        return await self._distinct_published("category")

    async def list_languages(self) -> list[str]:
        return await self._distinct_published("language")

    async def purge_manuscripts(self) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute("DELETE FROM manuscripts")
            await db.execute("DELETE FROM manuscripts_fts")
            await db.execute("DELETE FROM annotations")
            await db.commit()
            deleted = cursor.rowcount
        logger.warning("manuscripts_purged", deleted=deleted)
        return deleted

    # ------------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------------

    async def create_upload(self, upload: Upload) -> Upload:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await self._insert(db, "uploads", _to_row(upload))
            await db.commit()
        logger.info("upload_created", upload_id=upload.id, uploaded_by=upload.uploaded_by)
        return upload

    async def get_upload(self, upload_id: str) -> Upload | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            return await self._fetch_upload(db, upload_id)

    async def update_upload(self, upload_id: str, fields: dict[str, Any]) -> Upload | None:
        changes = {
            key: value
            for key, value in fields.items()
            if key in Upload.model_fields and key not in _IMMUTABLE_COLUMNS
        }
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            existing = await self._fetch_upload(db, upload_id)
            if existing is None:
                return None
            updated = Upload.model_validate(
                {**existing.model_dump(), **changes, "updated_at": _utcnow()}
            )
            row = _to_row(updated, [*changes, "updated_at"])
            assignments = ", ".join(f"{name} = ?" for name in row)
            await db.execute(
                f"UPDATE uploads SET {assignments} WHERE id = ?",  # noqa: S608
                (*row.values(), upload_id),
            )
            await db.commit()
        return updated

    async def list_uploads_by_uploader(self, identifiers: list[str]) -> list[Upload]:
        wanted = [i for i in dict.fromkeys(identifiers) if i]
        if not wanted:
            return []
        placeholders = ", ".join("?" for _ in wanted)
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT * FROM uploads WHERE uploaded_by IN ({placeholders}) "  # noqa: S608
                "ORDER BY created_at DESC",
                wanted,
            )
            rows = await cursor.fetchall()
        return [Upload.model_validate(dict(r)) for r in rows]

    # ------------------------------------------------------------------
    # Annotations
    # ------------------------------------------------------------------

    async def create_annotation(self, annotation: Annotation) -> Annotation:
        async with aiosqlite.connect(str(self._db_path)) as db:
            await self._insert(db, "annotations", _to_row(annotation))
            await db.commit()
        logger.info(
            "annotation_created",
            annotation_id=annotation.id,
            manuscript_id=annotation.manuscript_id,
        )
        return annotation

    async def list_annotations(self, manuscript_id: str) -> list[Annotation]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT * FROM annotations WHERE manuscript_id = ? ORDER BY created_at DESC",
                (manuscript_id,),
            )
            rows = await cursor.fetchall()
        return [Annotation.model_validate(_from_row(r, _ANNOTATION_JSON_COLUMNS)) for r in rows]

    def get_provider_name(self) -> str:
        return "sqlite_catalog"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    async def _insert(db: aiosqlite.Connection, table: str, row: dict[str, Any]) -> None:
        columns = ", ".join(row)
        placeholders = ", ".join("?" for _ in row)
        await db.execute(
            f"INSERT INTO {table} ({columns}) VALUES ({placeholders})",  # noqa: S608
            tuple(row.values()),
        )

    @staticmethod
    async def _reindex(db: aiosqlite.Connection, manuscript: Manuscript) -> None:
        await db.execute(_FTS_DELETE_SQL, (manuscript.id,))
        await db.execute(
            _FTS_INSERT_SQL,
            (
                manuscript.id,
                manuscript.title,
                manuscript.author,
                manuscript.description,
                manuscript.ocr_text,
                " ".join(manuscript.tags),
            ),
        )

    @staticmethod
    async def _fetch_manuscript(db: aiosqlite.Connection, manuscript_id: str) -> Manuscript | None:
        cursor = await db.execute("SELECT * FROM manuscripts WHERE id = ?", (manuscript_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return Manuscript.model_validate(_from_row(row, _MANUSCRIPT_JSON_COLUMNS))

    @staticmethod
    async def _fetch_upload(db: aiosqlite.Connection, upload_id: str) -> Upload | None:
        cursor = await db.execute("SELECT * FROM uploads WHERE id = ?", (upload_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return Upload.model_validate(dict(row))

    async def _distinct_published(self, column: str) -> list[str]:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                f"SELECT DISTINCT {column} FROM manuscripts "  # noqa: S608
                f"WHERE status = ? AND {column} != '' ORDER BY {column}",
                (ManuscriptStatus.PUBLISHED.value,),
            )
            rows = await cursor.fetchall()
        return [row[0] for row in rows]
