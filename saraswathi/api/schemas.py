"""Pydantic request/response schemas for the Saraswathi API.

Defines the public contract for the REST endpoints: auth, manuscript
browsing and editing, uploads, annotations and health.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# Request schemas end with "Request", response schemas with "Response".
# Catalogue records (Manuscript, Upload, Annotation) are returned as the
# domain models themselves; only ``User`` gets a dedicated response shape
# so the password hash never leaves the server.
#
# Auth request fields default to "" rather than being required: the
# routes answer a missing field with 400 and a readable message instead
# of FastAPI's generic 422 validation body.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from saraswathi.models.manuscript import Manuscript, ManuscriptStatus
from saraswathi.models.user import User


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    email: str = ""
    password: str = ""
    name: str = ""


class LoginRequest(BaseModel):
    email: str = ""
    password: str = ""


class ProfileUpdateRequest(BaseModel):
    """Fields a user may change on their own profile; omitted ones are kept."""

    name: str | None = None
    bio: str | None = None
    avatar: str | None = None


class UserResponse(BaseModel):
    """Public view of an account (no password hash)."""

    id: str
    email: str
    name: str
    role: str
    bio: str = ""
    avatar: str | None = None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_user(cls, user: User) -> UserResponse:
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role.value,
            bio=user.bio,
            avatar=user.avatar,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(BaseModel):
    message: str
    token: str
    user: UserResponse


class ProfileUpdateResponse(BaseModel):
    message: str
    user: UserResponse


# ---------------------------------------------------------------------------
# Manuscripts
# ---------------------------------------------------------------------------


class ManuscriptCreateRequest(BaseModel):
    """Direct catalogue entry for an image that is already hosted elsewhere."""

    title: str = Field(min_length=1)
    author: str = Field(min_length=1)
    description: str = Field(min_length=1)
    category: str = "General"
    origin: str = Field(min_length=1)
    language: str = Field(min_length=1)
    image_url: str = Field(min_length=1)
    location: str = ""
    summary: str = ""
    tags: list[str] = Field(default_factory=list)


class ManuscriptUpdateRequest(BaseModel):
    """Partial update; only non-null fields present in the request body are applied."""

    title: str | None = None
    author: str | None = None
    description: str | None = None
    category: str | None = None
    origin: str | None = None
    language: str | None = None
    location: str | None = None
    script_type: str | None = None
    date_written: str | None = None
    period: str | None = None
    significance: str | None = None
    estimated_century: str | None = None
    material_type: str | None = None
    summary: str | None = None
    short_summary: str | None = None
    image_hint: str | None = None
    tags: list[str] | None = None
    status: ManuscriptStatus | None = None


class Pagination(BaseModel):
    total: int
    page: int
    limit: int
    pages: int


class ManuscriptListResponse(BaseModel):
    data: list[Manuscript]
    pagination: Pagination


class CategoriesResponse(BaseModel):
    categories: list[str]


class LanguagesResponse(BaseModel):
    languages: list[str]


class OCRRerunResponse(BaseModel):
    message: str
    ocr_text: str
    detected_language: str = ""
    provider_used: str = ""


class ReprocessResponse(BaseModel):
    message: str
    manuscript_id: str


class TranslateRequest(BaseModel):
    """Translate *text*, or the manuscript's OCR text when omitted."""

    text: str | None = None
    target_language: str = "English"


class TranslateResponse(BaseModel):
    translated_text: str
    target_language: str


class AnnotationCreateRequest(BaseModel):
    content: str = Field(min_length=1)
    tags: list[str] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


class UploadResponse(BaseModel):
    """Returned as soon as the upload is stored; enrichment continues in the background."""

    upload_id: str
    manuscript_id: str
    message: str
    image_url: str
    optimized_url: str
    thumbnail_url: str


# ---------------------------------------------------------------------------
# Misc
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    message: str


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    timestamp: datetime
    providers: dict[str, Any]


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None
