"""User account and the resolved request identity."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class UserRole(str, Enum):  # noqa: UP042
    USER = "user"
    ADMIN = "admin"
    CONTRIBUTOR = "contributor"


class User(BaseModel):
    """A registered account.  ``password_hash`` never leaves the API layer."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    email: str
    password_hash: str
    name: str
    role: UserRole = UserRole.USER
    bio: str = ""
    avatar: str | None = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017
    updated_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017

    @field_validator("email")
    @classmethod
    def _lowercase_email(cls, value: str) -> str:
        return value.strip().lower()


class AuthContext(BaseModel):
    """Identity attached to each request by the auth middleware.

    ``user_id`` is only set for a verified JWT; the legacy ``X-User-Email``
    header fallback sets ``email`` and ``role`` alone.
    """

    model_config = ConfigDict(frozen=True)

    user_id: str | None = None
    email: str | None = None
    role: str = UserRole.USER.value
    token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id or self.email)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN.value

    @property
    def owner_id(self) -> str:
        """Identifier written to ``Manuscript.user_id``: user id, else email."""
        return self.user_id or self.email or ""

    @property
    def uploader_id(self) -> str:
        """Identifier written to ``Upload.uploaded_by``: email, else user id."""
        return self.email or self.user_id or ""
