"""Manuscript ingestion and enrichment pipeline.

ARCHITECTURE NOTE:
    The pipeline has two halves with very different failure contracts.

    ``ingest`` runs inside the upload request.  It derives and stores the
    image variants, writes an ``Upload`` record and a placeholder
    ``Manuscript`` carrying the uploader's metadata, and links the two.
    Any failure here is the client's problem and surfaces as an error
    response.  Once the variants are stored, a failed catalogue write
    deletes them again so storage keeps no orphaned files.

    ``process`` runs in the background after the response is sent.  It
    moves the manuscript to ``processing``, runs OCR and AI analysis, and
    always tries to leave the record in a terminal state:

        success            -> manuscript published with AI fields,
                              upload completed
        OCR fails          -> continue with empty text
        analysis/persist   -> manuscript published with user metadata,
        fails                 upload completed (partial enrichment)
        critical failure   -> upload failed, manuscript draft, re-raise

    AI-derived descriptive fields (title, description, category, origin,
    language) only replace the uploader's values when the model reported
    a non-zero language or script confidence.
"""

from __future__ import annotations

import asyncio
from typing import Any

from saraswathi.interfaces.catalog_provider import ICatalogProvider
from saraswathi.models.analysis import (
    PENDING_ANALYSIS_TITLE,
    ImageVariants,
    ManuscriptAnalysis,
    ManuscriptImage,
    OCRResult,
)
from saraswathi.models.manuscript import Manuscript, ManuscriptStatus
from saraswathi.models.upload import Upload, UploadStatus
from saraswathi.models.user import AuthContext
from saraswathi.services.analysis_service import ManuscriptAnalyzer
from saraswathi.services.image_service import ImageService
from saraswathi.services.ocr_service import OCRService
from saraswathi.utils.errors import PipelineError
from saraswathi.utils.logging import get_logger
from saraswathi.utils.ocr_text import UNKNOWN_LANGUAGE

REQUIRED_METADATA_FIELDS = ("title", "author", "description", "origin", "language")

# Tags applied when enrichment fails and the manuscript has none of its own.
_MANUAL_UPLOAD_TAGS = ["manual-upload"]


class ManuscriptPipeline:
    """Coordinates image storage, OCR, AI analysis and catalogue updates.

    All collaborators are injected at construction time so tests can swap
    any of them for mocks.
    """

    def __init__(
        self,
        catalog: ICatalogProvider,
        image_service: ImageService,
        ocr_service: OCRService,
        analyzer: ManuscriptAnalyzer,
        max_concurrent_jobs: int = 2,
    ) -> None:
        self._catalog = catalog
        self._images = image_service
        self._ocr = ocr_service
        self._analyzer = analyzer
        self._semaphore = asyncio.Semaphore(max(1, max_concurrent_jobs))
        self._tasks: set[asyncio.Task] = set()
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Ingestion (request path)
    # ------------------------------------------------------------------

    async def ingest(
        self,
        data: bytes,
        original_name: str,
        content_type: str,
        metadata: dict[str, Any],
        identity: AuthContext,
    ) -> tuple[Upload, Manuscript, ImageVariants]:
        """Store the upload and create its placeholder manuscript.

        Raises
        ------
        PipelineError
            If required metadata is missing, the caller has no identity, or
            the file cannot be decoded.
        saraswathi.utils.errors.StorageError
            If the storage backend rejects a variant.
        """
        missing = [f for f in REQUIRED_METADATA_FIELDS if not str(metadata.get(f) or "").strip()]
        if missing:
            raise PipelineError(f"Missing required fields: {', '.join(missing)}")
        if not identity.is_authenticated:
            raise PipelineError("User authentication required")

        variants = await self._images.store_variants(data, original_name, content_type)

        upload: Upload | None = None
        manuscript: Manuscript | None = None
        try:
            upload = await self._catalog.create_upload(
                Upload(
                    file_name=variants.file_name,
                    original_name=original_name,
                    mime_type=content_type,
                    size=len(data),
                    uploaded_by=identity.uploader_id,
                    image_url=variants.image_url,
                    file_url=variants.original.url if variants.original else "",
                    optimized_url=variants.optimized.url,
                    thumbnail_url=variants.thumbnail.url,
                    status=UploadStatus.PROCESSING,
                )
            )
            manuscript = await self._catalog.create_manuscript(
                self._placeholder_manuscript(metadata, identity, variants)
            )
            upload = await self._catalog.update_upload(upload.id, {"manuscript_id": manuscript.id}) or upload
        except Exception as exc:
            self._logger.error(
                "manuscript_ingest_failed", file_name=variants.file_name, error=str(exc)
            )
            await self._roll_back_ingest(variants, upload, manuscript)
            raise

        self._logger.info(
            "manuscript_ingested",
            upload_id=upload.id,
            manuscript_id=manuscript.id,
            content_type=content_type,
            size=len(data),
        )
        return upload, manuscript, variants

    # ------------------------------------------------------------------
    # Enrichment (background path)
    # ------------------------------------------------------------------

    async def process(
        self,
        manuscript_id: str,
        upload_id: str | None,
        image_bytes: bytes | None = None,
        mime_type: str = "image/jpeg",
    ) -> Manuscript | None:
        """Run OCR and AI analysis and bring the manuscript to a terminal state.

        When *image_bytes* is ``None`` the optimized image is fetched from
        storage.  Returns the final manuscript.

        Raises
        ------
        PipelineError
            If the manuscript does not exist.  Any critical failure is
            re-raised after the upload is marked failed and the manuscript
            reverted to draft.
        """
        try:
            manuscript = await self._catalog.get_manuscript(manuscript_id)
            if manuscript is None:
                raise PipelineError(f"Manuscript not found: {manuscript_id}")

            await self._catalog.update_manuscript(
                manuscript_id, {"status": ManuscriptStatus.PROCESSING}
            )
            self._logger.info("pipeline_processing_start", manuscript_id=manuscript_id)

            try:
                if image_bytes is None:
                    image_bytes = await self._images.storage.fetch(manuscript.image_url)

                ocr_result = await self._run_ocr(manuscript_id, image_bytes, mime_type)
                analysis = await self._analyzer.analyze(
                    image_bytes, ocr_result.cleaned_text, mime_type=mime_type
                )
                hint_title = (
                    analysis.title if analysis.title != PENDING_ANALYSIS_TITLE else manuscript.title
                )
                image_hint = await self._analyzer.generate_image_hint(
                    hint_title, analysis.description
                )

                update = build_enrichment_update(manuscript, ocr_result, analysis, image_hint)
                result = await self._catalog.update_manuscript(manuscript_id, update)
                await self._mark_upload(upload_id, UploadStatus.COMPLETED)

                self._logger.info(
                    "pipeline_processing_complete",
                    manuscript_id=manuscript_id,
                    used_ai_metadata=analysis.has_valid_analysis,
                    keywords=len(analysis.keywords),
                    topics=len(analysis.topics),
                    entities=analysis.entities.total(),
                    outline_sections=len(analysis.outline),
                    highlights=len(analysis.highlights),
                )
                return result

            except Exception as exc:
                self._logger.error(
                    "pipeline_enrichment_failed",
                    manuscript_id=manuscript_id,
                    error=str(exc),
                )
                result = await self._catalog.update_manuscript(
                    manuscript_id,
                    {
                        "status": ManuscriptStatus.PUBLISHED,
                        "tags": manuscript.tags or list(_MANUAL_UPLOAD_TAGS),
                    },
                )
                await self._mark_upload(upload_id, UploadStatus.COMPLETED)
                self._logger.info("pipeline_published_user_metadata", manuscript_id=manuscript_id)
                return result

        except Exception as exc:
            self._logger.error(
                "pipeline_processing_failed",
                manuscript_id=manuscript_id,
                upload_id=upload_id,
                error=str(exc),
            )
            await self._revert(manuscript_id, upload_id)
            raise

    def schedule(
        self,
        manuscript_id: str,
        upload_id: str | None,
        image_bytes: bytes | None = None,
        mime_type: str = "image/jpeg",
    ) -> asyncio.Task:
        """Start :meth:`process` in the background and return immediately.

        At most ``max_concurrent_jobs`` jobs run at once; the rest wait on
        the semaphore.  Failures are logged, never propagated.
        """
        task = asyncio.create_task(
            self._run_job(manuscript_id, upload_id, image_bytes, mime_type),
            name=f"process-manuscript-{manuscript_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self._logger.info("pipeline_job_scheduled", manuscript_id=manuscript_id, upload_id=upload_id)
        return task

    async def drain(self) -> None:
        """Wait for every scheduled job to finish (used at shutdown and in tests)."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending_jobs(self) -> int:
        return len(self._tasks)

    # ------------------------------------------------------------------
    # OCR re-run
    # ------------------------------------------------------------------

    async def rerun_ocr(self, manuscript: Manuscript) -> tuple[Manuscript, OCRResult]:
        """Fetch the stored image and OCR it again.

        The existing OCR text is kept when the new run finds nothing.

        Raises
        ------
        saraswathi.utils.errors.StorageError
            If the image cannot be fetched.
        saraswathi.utils.errors.OCRExtractionError
            If every OCR provider fails.
        """
        image_bytes = await self._images.storage.fetch(manuscript.image_url)
        result = await self._ocr.extract_text(
            ManuscriptImage.from_bytes(image_bytes, filename=manuscript.id, source_url=manuscript.image_url)
        )

        if not result.text:
            self._logger.info("ocr_rerun_empty", manuscript_id=manuscript.id)
            return manuscript, result

        updated = await self._catalog.update_manuscript(
            manuscript.id,
            {
                "ocr_text": result.text,
                "cleaned_ocr_text": result.cleaned_text,
                "detected_language": result.detected_language,
            },
        )
        self._logger.info(
            "ocr_rerun_complete",
            manuscript_id=manuscript.id,
            chars=len(result.text),
            provider=result.provider_used,
        )
        return updated or manuscript, result

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _run_job(
        self,
        manuscript_id: str,
        upload_id: str | None,
        image_bytes: bytes | None,
        mime_type: str,
    ) -> None:
        async with self._semaphore:
            try:
                await self.process(manuscript_id, upload_id, image_bytes, mime_type)
            except Exception as exc:
                self._logger.error(
                    "pipeline_job_failed",
                    manuscript_id=manuscript_id,
                    upload_id=upload_id,
                    error=str(exc),
                )

    async def _run_ocr(self, manuscript_id: str, image_bytes: bytes, mime_type: str) -> OCRResult:
        """OCR the image; failures degrade to an empty result."""
        try:
            result = await self._ocr.extract_text(
                ManuscriptImage.from_bytes(image_bytes, filename=manuscript_id, content_type=mime_type)
            )
        except Exception as exc:
            self._logger.warning("pipeline_ocr_failed", manuscript_id=manuscript_id, error=str(exc))
            return OCRResult(detected_language=UNKNOWN_LANGUAGE)

        self._logger.info(
            "pipeline_ocr_complete",
            manuscript_id=manuscript_id,
            chars=len(result.text),
            language=result.detected_language,
            provider=result.provider_used,
        )
        return result

    @staticmethod
    def _placeholder_manuscript(
        metadata: dict[str, Any], identity: AuthContext, variants: ImageVariants
    ) -> Manuscript:
        return Manuscript(
            user_id=identity.owner_id,
            title=str(metadata["title"]).strip(),
            author=str(metadata["author"]).strip(),
            description=str(metadata["description"]).strip(),
            category=str(metadata.get("category") or "").strip() or "General",
            origin=str(metadata["origin"]).strip(),
            language=str(metadata["language"]).strip(),
            location=str(metadata.get("location") or "").strip(),
            image_url=variants.image_url,
            optimized_url=variants.optimized.url,
            thumbnail_url=variants.thumbnail.url,
            file_url=variants.original.url if variants.original else "",
            status=ManuscriptStatus.PUBLISHED,
        )

    async def _roll_back_ingest(
        self,
        variants: ImageVariants,
        upload: Upload | None,
        manuscript: Manuscript | None,
    ) -> None:
        """Best-effort: drop the half-written records, then the stored files."""
        try:
            if manuscript is not None:
                await self._catalog.delete_manuscript(manuscript.id)
            if upload is not None:
                await self._mark_upload(upload.id, UploadStatus.FAILED)
        except Exception as exc:
            self._logger.error("ingest_rollback_failed", file_name=variants.file_name, error=str(exc))
        await self._images.delete_variants(variants)

    async def _mark_upload(self, upload_id: str | None, status: UploadStatus) -> None:
        if upload_id:
            await self._catalog.update_upload(upload_id, {"status": status})

    async def _revert(self, manuscript_id: str, upload_id: str | None) -> None:
        """Best-effort: upload failed, manuscript back to draft."""
        try:
            await self._mark_upload(upload_id, UploadStatus.FAILED)
            await self._catalog.update_manuscript(manuscript_id, {"status": ManuscriptStatus.DRAFT})
        except Exception as exc:
            self._logger.error("pipeline_revert_failed", manuscript_id=manuscript_id, error=str(exc))


def build_enrichment_update(
    manuscript: Manuscript,
    ocr_result: OCRResult,
    analysis: ManuscriptAnalysis,
    image_hint: str,
) -> dict[str, Any]:
    """Fields written to the manuscript after a successful analysis."""
    update: dict[str, Any] = {
        "ocr_text": ocr_result.text or analysis.ocr_text,
        "cleaned_ocr_text": ocr_result.cleaned_text or analysis.cleaned_ocr_text,
        "detected_language": ocr_result.detected_language or UNKNOWN_LANGUAGE,
        "short_summary": analysis.short_summary,
        "detailed_summary": analysis.detailed_summary,
        "keywords": analysis.keywords,
        "topics": analysis.topics,
        "sentiment": analysis.sentiment,
        "entities": analysis.entities,
        "outline": analysis.outline,
        "highlights": analysis.highlights,
        "script_type": analysis.script_type,
        "estimated_century": analysis.estimated_century,
        "material_type": analysis.material_type,
        "confidence_scores": analysis.confidence_scores,
        "tags": analysis.tags or manuscript.tags,
        "image_hint": image_hint,
        "status": ManuscriptStatus.PUBLISHED,
    }
    if analysis.has_valid_analysis:
        update.update(
            title=analysis.title,
            description=analysis.description,
            summary=analysis.description,
            category=analysis.category,
            origin=analysis.origin,
            language=analysis.language,
        )
    return update
