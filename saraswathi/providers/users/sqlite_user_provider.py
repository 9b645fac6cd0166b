"""SQLite-backed user accounts.

Stored in the same database file as the catalogue by default.  Emails are
normalised to lower case by the ``User`` model and enforced unique here.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import aiosqlite

from saraswathi.interfaces.user_provider import IUserProvider
from saraswathi.models.user import User
from saraswathi.utils.errors import AccountExistsError
from saraswathi.utils.logging import get_logger

logger = get_logger(__name__)

_DEFAULT_DB_PATH = Path("data/catalog.db")

_CREATE_TABLE_SQL = """\
CREATE TABLE IF NOT EXISTS users (
    id             TEXT PRIMARY KEY,
    email          TEXT NOT NULL UNIQUE,
    password_hash  TEXT NOT NULL,
    name           TEXT NOT NULL,
    role           TEXT NOT NULL DEFAULT 'user',
    bio            TEXT NOT NULL DEFAULT '',
    avatar         TEXT,
    created_at     TEXT NOT NULL,
    updated_at     TEXT NOT NULL
);
"""

_INSERT_SQL = """\
INSERT INTO users (id, email, password_hash, name, role, bio, avatar, created_at, updated_at)
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
"""

_PROFILE_FIELDS = ("name", "bio", "avatar")


class SQLiteUserProvider(IUserProvider):
    """SQLite-backed user persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the users table if it doesn't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_TABLE_SQL)
            await db.commit()
        logger.info("user_db_initialized", path=str(self._db_path))

    async def create_user(self, user: User) -> User:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    _INSERT_SQL,
                    (
                        user.id,
                        user.email,
                        user.password_hash,
                        user.name,
                        user.role.value,
                        user.bio,
                        user.avatar,
                        user.created_at.isoformat(),
                        user.updated_at.isoformat(),
                    ),
                )
                await db.commit()
        except sqlite3.IntegrityError as exc:
            raise AccountExistsError(
                f"Email already registered: {user.email}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("user_created", user_id=user.id, role=user.role.value)
        return user

    async def get_user_by_email(self, email: str) -> User | None:
        return await self._fetch_one("email", email.strip().lower())

    async def get_user_by_id(self, user_id: str) -> User | None:
        return await self._fetch_one("id", user_id)

    async def update_profile(self, user_id: str, fields: dict[str, Any]) -> User | None:
        changes = {k: fields[k] for k in _PROFILE_FIELDS if k in fields and fields[k] is not None}
        if not changes:
            return await self.get_user_by_id(user_id)

        changes["updated_at"] = datetime.now(tz=timezone.utc).isoformat()  # noqa: UP017
        assignments = ", ".join(f"{name} = ?" for name in changes)
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                f"UPDATE users SET {assignments} WHERE id = ?",  # noqa: S608
                (*changes.values(), user_id),
            )
            await db.commit()
            if cursor.rowcount == 0:
                return None
        return await self.get_user_by_id(user_id)

    def get_provider_name(self) -> str:
        return "sqlite_users"

    async def _fetch_one(self, column: str, value: str) -> User | None:
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                f"SELECT * FROM users WHERE {column} = ?",  # noqa: S608
                (value,),
            )
            row = await cursor.fetchone()
        return User.model_validate(dict(row)) if row else None
