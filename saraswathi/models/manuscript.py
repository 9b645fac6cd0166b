"""Manuscript catalogue record and its AI-derived sub-structures.

A ``Manuscript`` starts life as a placeholder carrying only the uploader's
metadata (title, author, description, origin, language).  The enrichment
pipeline (saraswathi/pipeline/orchestrator.py) later fills in the OCR text,
summaries, keywords, entities and confidence scores, and may replace the
user-supplied descriptive fields when the AI analysis is trustworthy.

Nested structures (sentiment, entities, confidence scores) are stored as JSON
columns by the SQLite catalogue provider.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)  # noqa: UP017


class ManuscriptStatus(str, Enum):  # noqa: UP042
    """Lifecycle states of a catalogue record.

    ``processing`` is transient while the pipeline runs; ``published`` and
    ``draft`` are the two terminal states the pipeline can leave behind.
    """

    DRAFT = "draft"
    PROCESSING = "processing"
    PUBLISHED = "published"
    ARCHIVED = "archived"


class Sentiment(BaseModel):
    tone: str = "neutral"
    score: float = 0.5
    description: str = ""


class NamedEntities(BaseModel):
    people: list[str] = Field(default_factory=list)
    places: list[str] = Field(default_factory=list)
    dates: list[str] = Field(default_factory=list)
    organizations: list[str] = Field(default_factory=list)

    def total(self) -> int:
        return len(self.people) + len(self.places) + len(self.dates) + len(self.organizations)


class ConfidenceScores(BaseModel):
    """Model self-reported confidence (0.0-1.0) for each attribution."""

    script: float = 0.0
    language: float = 0.0
    century: float = 0.0
    region: float = 0.0


class Manuscript(BaseModel):
    """A catalogued manuscript."""

    id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: str

    # User-supplied descriptive metadata
    title: str
    author: str
    description: str
    category: str = "General"
    origin: str
    language: str
    location: str = ""

    # Scholarly attribution (user or AI)
    script_type: str = ""
    date_written: str = ""
    period: str = ""
    significance: str = ""
    estimated_century: str = ""
    material_type: str = ""

    # OCR output
    ocr_text: str = ""
    cleaned_ocr_text: str = ""
    detected_language: str = ""

    # Images
    image_url: str
    thumbnail_url: str = ""
    optimized_url: str = ""
    file_url: str = ""
    image_hint: str = ""

    # AI analysis
    summary: str = ""
    short_summary: str = ""
    detailed_summary: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    sentiment: Sentiment | None = None
    entities: NamedEntities = Field(default_factory=NamedEntities)
    outline: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    confidence_scores: ConfidenceScores | None = None

    status: ManuscriptStatus = ManuscriptStatus.PUBLISHED
    views: int = 0
    tags: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    def is_owned_by(self, user_id: str | None) -> bool:
        return bool(user_id) and self.user_id == user_id
