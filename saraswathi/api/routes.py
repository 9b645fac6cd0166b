"""FastAPI routes for the manuscript catalogue.

Service dependencies are resolved from ``app.state`` through the
``Annotated`` aliases in api/dependencies.py.

# ─── API ROUTE MAP ────────────────────────────────────────────────────
#
# Endpoint                                  Method  Auth     Description
# ─────────────────────────────────────────────────────────────────────
# /health                                   GET     -        Liveness + providers
# /api/manuscripts                          GET     -        Browse/search (paged)
# /api/manuscripts/categories               GET     -        Distinct categories
# /api/manuscripts/languages                GET     -        Distinct languages
# /api/manuscripts/{id}                     GET     -        One record (+1 view)
# /api/manuscripts                          POST    JWT      Direct catalogue entry
# /api/manuscripts/{id}                     PUT     owner    Partial update
# /api/manuscripts/{id}                     DELETE  owner    Remove record
# /api/manuscripts/{id}/ocr                 POST    owner    Re-run OCR
# /api/manuscripts/{id}/reprocess           POST    admin    Re-run full pipeline
# /api/manuscripts/{id}/translate           POST    any      Translate OCR text
# /api/manuscripts/{id}/annotations         GET     -        Notes, newest first
# /api/manuscripts/{id}/annotations         POST    JWT      Add a note
# /api/uploads                              POST    any      Upload → background enrichment
# /api/uploads/status/{upload_id}           GET     any      Poll one upload
# /api/uploads/user/uploads                 GET     any      Caller's uploads
#
# "owner" means the manuscript's owner or an admin.  "any" accepts the
# legacy X-User-Email header as well as a JWT.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Annotated

import structlog
from fastapi import APIRouter, File, Form, HTTPException, Query, UploadFile

from saraswathi.api.dependencies import (
    AdminDep,
    AnalyzerDep,
    AuthDep,
    CatalogDep,
    OCRServiceDep,
    PipelineDep,
    ProviderStatusDep,
    UploadConfigDep,
    require_user_id,
)
from saraswathi.api.schemas import (
    AnnotationCreateRequest,
    CategoriesResponse,
    ErrorResponse,
    HealthResponse,
    LanguagesResponse,
    ManuscriptCreateRequest,
    ManuscriptListResponse,
    ManuscriptUpdateRequest,
    MessageResponse,
    OCRRerunResponse,
    Pagination,
    ReprocessResponse,
    TranslateRequest,
    TranslateResponse,
    UploadResponse,
)
from saraswathi.interfaces.catalog_provider import ICatalogProvider
from saraswathi.models.annotation import Annotation
from saraswathi.models.manuscript import Manuscript, ManuscriptStatus
from saraswathi.models.upload import Upload
from saraswathi.models.user import AuthContext
from saraswathi.utils.errors import PipelineError, StorageError
from saraswathi.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter()

# Read uploads in 64 KB chunks so oversized files are rejected before
# the whole payload is buffered.
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _load_manuscript(catalog: ICatalogProvider, manuscript_id: str) -> Manuscript:
    manuscript = await catalog.get_manuscript(manuscript_id)
    if manuscript is None:
        raise HTTPException(status_code=404, detail="Manuscript not found")
    return manuscript


def _ensure_can_modify(manuscript: Manuscript, auth: AuthContext, action: str) -> None:
    """Owner (by user id, or email for header-created records) or admin."""
    if manuscript.is_owned_by(auth.owner_id) or auth.is_admin:
        return
    if auth.user_id and auth.email and manuscript.is_owned_by(auth.email):
        return
    raise HTTPException(status_code=403, detail=f"Not authorized to {action} this manuscript")


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(providers: ProviderStatusDep) -> HealthResponse:
    return HealthResponse(
        status="ok",
        timestamp=datetime.now(tz=timezone.utc),  # noqa: UP017
        providers=providers,
    )


# ---------------------------------------------------------------------------
# Manuscripts: browsing
# ---------------------------------------------------------------------------


@router.get("/api/manuscripts", response_model=ManuscriptListResponse)
async def list_manuscripts(
    catalog: CatalogDep,
    category: str | None = None,
    language: str | None = None,
    search: str | None = None,
    user_id: str | None = None,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 12,
) -> ManuscriptListResponse:
    """Published manuscripts, newest first; relevance-ranked when searching."""
    items, total = await catalog.list_manuscripts(
        status=ManuscriptStatus.PUBLISHED,
        user_id=user_id or None,
        category=category or None,
        language=language or None,
        search=(search or "").strip() or None,
        page=page,
        limit=limit,
    )
    return ManuscriptListResponse(
        data=items,
        pagination=Pagination(
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
        ),
    )


@router.get("/api/manuscripts/categories", response_model=CategoriesResponse)
async def list_categories(catalog: CatalogDep) -> CategoriesResponse:
    return CategoriesResponse(categories=await catalog.list_categories())


@router.get("/api/manuscripts/languages", response_model=LanguagesResponse)
async def list_languages(catalog: CatalogDep) -> LanguagesResponse:
    return LanguagesResponse(languages=await catalog.list_languages())


@router.get(
    "/api/manuscripts/{manuscript_id}",
    response_model=Manuscript,
    responses={404: {"model": ErrorResponse}},
)
async def get_manuscript(manuscript_id: str, catalog: CatalogDep) -> Manuscript:
    manuscript = await catalog.increment_views(manuscript_id)
    if manuscript is None:
        raise HTTPException(status_code=404, detail="Manuscript not found")
    return manuscript


# ---------------------------------------------------------------------------
# Manuscripts: editing
# ---------------------------------------------------------------------------


@router.post(
    "/api/manuscripts",
    response_model=Manuscript,
    status_code=201,
    responses={401: {"model": ErrorResponse}},
)
async def create_manuscript(
    body: ManuscriptCreateRequest,
    auth: AuthDep,
    catalog: CatalogDep,
) -> Manuscript:
    user_id = require_user_id(auth)
    manuscript = await catalog.create_manuscript(
        Manuscript(
            user_id=user_id,
            title=body.title,
            author=body.author,
            description=body.description,
            category=body.category or "General",
            origin=body.origin,
            language=body.language,
            location=body.location,
            image_url=body.image_url,
            summary=body.summary,
            tags=body.tags,
            status=ManuscriptStatus.PUBLISHED,
        )
    )
    _logger.info("manuscript_created", manuscript_id=manuscript.id, user_id=user_id)
    return manuscript


@router.put(
    "/api/manuscripts/{manuscript_id}",
    response_model=Manuscript,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_manuscript(
    manuscript_id: str,
    body: ManuscriptUpdateRequest,
    auth: AuthDep,
    catalog: CatalogDep,
) -> Manuscript:
    manuscript = await _load_manuscript(catalog, manuscript_id)
    _ensure_can_modify(manuscript, auth, "update")

    # Every catalogue field is required, so an explicit null leaves it unchanged.
    fields = body.model_dump(exclude_unset=True, exclude_none=True)
    if not fields:
        return manuscript

    updated = await catalog.update_manuscript(manuscript_id, fields)
    if updated is None:
        raise HTTPException(status_code=404, detail="Manuscript not found")
    _logger.info("manuscript_updated", manuscript_id=manuscript_id, fields=sorted(fields))
    return updated


@router.delete(
    "/api/manuscripts/{manuscript_id}",
    response_model=MessageResponse,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def delete_manuscript(
    manuscript_id: str,
    auth: AuthDep,
    catalog: CatalogDep,
) -> MessageResponse:
    manuscript = await _load_manuscript(catalog, manuscript_id)
    _ensure_can_modify(manuscript, auth, "delete")

    await catalog.delete_manuscript(manuscript_id)
    _logger.info("manuscript_deleted", manuscript_id=manuscript_id)
    return MessageResponse(message="Manuscript deleted successfully")


# ---------------------------------------------------------------------------
# Manuscripts: OCR, reprocessing, translation
# ---------------------------------------------------------------------------


@router.post(
    "/api/manuscripts/{manuscript_id}/ocr",
    response_model=OCRRerunResponse,
    responses={
        400: {"model": ErrorResponse},
        403: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def rerun_ocr(
    manuscript_id: str,
    auth: AuthDep,
    catalog: CatalogDep,
    ocr_service: OCRServiceDep,
    pipeline: PipelineDep,
) -> OCRRerunResponse:
    manuscript = await _load_manuscript(catalog, manuscript_id)
    _ensure_can_modify(manuscript, auth, "run OCR on")

    if not ocr_service.is_configured():
        raise HTTPException(status_code=400, detail="No OCR provider configured on server")
    if not manuscript.image_url:
        raise HTTPException(status_code=400, detail="No image URL available for this manuscript")

    try:
        _, result = await pipeline.rerun_ocr(manuscript)
    except StorageError as exc:
        raise HTTPException(
            status_code=502, detail="Failed to fetch manuscript image for OCR"
        ) from exc

    return OCRRerunResponse(
        message="OCR completed",
        ocr_text=result.text,
        detected_language=result.detected_language,
        provider_used=result.provider_used,
    )


@router.post(
    "/api/manuscripts/{manuscript_id}/reprocess",
    response_model=ReprocessResponse,
    status_code=202,
    responses={403: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def reprocess_manuscript(
    manuscript_id: str,
    auth: AdminDep,
    catalog: CatalogDep,
    pipeline: PipelineDep,
) -> ReprocessResponse:
    """Run OCR and AI analysis again from the stored image."""
    manuscript = await _load_manuscript(catalog, manuscript_id)
    pipeline.schedule(manuscript.id, upload_id=None)
    _logger.info("manuscript_reprocess_requested", manuscript_id=manuscript_id, admin=auth.owner_id)
    return ReprocessResponse(message="Manuscript queued for processing", manuscript_id=manuscript.id)


@router.post(
    "/api/manuscripts/{manuscript_id}/translate",
    response_model=TranslateResponse,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def translate_manuscript(
    manuscript_id: str,
    body: TranslateRequest,
    auth: AuthDep,
    catalog: CatalogDep,
    analyzer: AnalyzerDep,
) -> TranslateResponse:
    manuscript = await _load_manuscript(catalog, manuscript_id)
    text = (body.text or "").strip() or manuscript.cleaned_ocr_text or manuscript.ocr_text
    if not text:
        raise HTTPException(status_code=400, detail="No text available to translate")

    translated = await analyzer.translate(text, body.target_language)
    return TranslateResponse(translated_text=translated, target_language=body.target_language)


# ---------------------------------------------------------------------------
# Annotations
# ---------------------------------------------------------------------------


@router.get("/api/manuscripts/{manuscript_id}/annotations", response_model=list[Annotation])
async def list_annotations(manuscript_id: str, catalog: CatalogDep) -> list[Annotation]:
    return await catalog.list_annotations(manuscript_id)


@router.post(
    "/api/manuscripts/{manuscript_id}/annotations",
    response_model=Annotation,
    status_code=201,
    responses={401: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_annotation(
    manuscript_id: str,
    body: AnnotationCreateRequest,
    auth: AuthDep,
    catalog: CatalogDep,
) -> Annotation:
    user_id = require_user_id(auth)
    await _load_manuscript(catalog, manuscript_id)
    return await catalog.create_annotation(
        Annotation(manuscript_id=manuscript_id, user_id=user_id, content=body.content, tags=body.tags)
    )


# ---------------------------------------------------------------------------
# Uploads
# ---------------------------------------------------------------------------


@router.post(
    "/api/uploads",
    response_model=UploadResponse,
    status_code=201,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        415: {"model": ErrorResponse},
    },
    summary="Upload a manuscript image for cataloguing",
)
async def upload_manuscript(
    auth: AuthDep,
    pipeline: PipelineDep,
    upload_config: UploadConfigDep,
    file: Annotated[UploadFile | None, File()] = None,
    title: Annotated[str, Form()] = "",
    author: Annotated[str, Form()] = "",
    description: Annotated[str, Form()] = "",
    category: Annotated[str, Form()] = "",
    origin: Annotated[str, Form()] = "",
    language: Annotated[str, Form()] = "",
    location: Annotated[str, Form()] = "",
) -> UploadResponse:
    """Store the file and a placeholder record, then enrich in the background."""
    if file is None:
        raise HTTPException(status_code=400, detail="No file provided")

    allowed = frozenset(upload_config["allowed_content_types"])
    content_type = file.content_type or ""
    if content_type not in allowed:
        raise HTTPException(
            status_code=415,
            detail=f"Unsupported file type: {content_type}. Allowed: {', '.join(sorted(allowed))}",
        )

    max_size = int(upload_config["max_file_size_mb"]) * 1024 * 1024
    chunks: list[bytes] = []
    total_size = 0
    while True:
        chunk = await file.read(_UPLOAD_CHUNK_SIZE)
        if not chunk:
            break
        total_size += len(chunk)
        if total_size > max_size:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum: {upload_config['max_file_size_mb']} MB.",
            )
        chunks.append(chunk)
    data = b"".join(chunks)
    del chunks

    metadata = {
        "title": title,
        "author": author,
        "description": description,
        "category": category,
        "origin": origin,
        "language": language,
        "location": location,
    }
    try:
        upload, manuscript, variants = await pipeline.ingest(
            data, file.filename or "manuscript", content_type, metadata, auth
        )
    except PipelineError as exc:
        raise HTTPException(status_code=400, detail=exc.message) from exc

    # OCR and analysis read the optimized JPEG, never the original upload.
    pipeline.schedule(manuscript.id, upload.id, variants.optimized_data, "image/jpeg")

    return UploadResponse(
        upload_id=upload.id,
        manuscript_id=manuscript.id,
        message="Manuscript uploaded and being processed",
        image_url=upload.image_url,
        optimized_url=upload.optimized_url,
        thumbnail_url=upload.thumbnail_url,
    )


@router.get(
    "/api/uploads/status/{upload_id}",
    response_model=Upload,
    responses={404: {"model": ErrorResponse}},
)
async def get_upload_status(upload_id: str, auth: AuthDep, catalog: CatalogDep) -> Upload:
    upload = await catalog.get_upload(upload_id)
    if upload is None:
        raise HTTPException(status_code=404, detail="Upload not found")
    return upload


@router.get("/api/uploads/user/uploads", response_model=list[Upload])
async def list_user_uploads(auth: AuthDep, catalog: CatalogDep) -> list[Upload]:
    """Uploads recorded under the caller's email or, for older records, user id."""
    identifiers = [value for value in (auth.email, auth.user_id) if value]
    return await catalog.list_uploads_by_uploader(identifiers)
