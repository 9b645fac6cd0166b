"""Scholarly annotation attached to a manuscript."""

from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

from pydantic import BaseModel, Field


class Annotation(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    manuscript_id: str
    user_id: str
    content: str
    tags: list[str] = Field(default_factory=list)
    upvotes: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017
    updated_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))  # noqa: UP017
