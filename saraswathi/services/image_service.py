"""Derive and store the display variants of an uploaded manuscript.

Every upload produces two JPEG variants:

    optimized   width <= 1600 px, quality 82   (the manuscript's image_url)
    thumbnail   width <= 400 px,  quality 70   (gallery cards)

EXIF orientation is applied first so phone photos are upright, and images
are never enlarged.  For PDF uploads the first page is rendered with PyMuPDF
and the variants are derived from that render; the PDF itself is stored
too so it can be downloaded later.

Pillow and PyMuPDF are synchronous, so the CPU-bound work runs in a worker
thread.
"""

from __future__ import annotations

import asyncio
import io
import uuid
from pathlib import PurePath

import fitz  # PyMuPDF
from PIL import Image, ImageOps, UnidentifiedImageError

from saraswathi.interfaces.image_storage_provider import IImageStorageProvider
from saraswathi.models.analysis import ImageVariants, StoredImage
from saraswathi.utils.errors import PipelineError, StorageError
from saraswathi.utils.logging import get_logger

PDF_CONTENT_TYPE = "application/pdf"


def generate_unique_file_name(original_name: str) -> str:
    """``scroll.png`` -> ``scroll-<uuid4>.png``."""
    path = PurePath(original_name or "manuscript")
    stem = path.stem or "manuscript"
    return f"{stem}-{uuid.uuid4()}{path.suffix}"


def variant_name(file_name: str, suffix: str) -> str:
    """``scroll-<uuid>.png`` + ``opt`` -> ``scroll-<uuid>-opt.jpg``.

    Variants are always JPEG-encoded, so the extension follows the content.
    """
    return f"{PurePath(file_name).stem}-{suffix}.jpg"


class ImageService:
    """Builds optimized/thumbnail variants and pushes them to storage."""

    def __init__(
        self,
        storage: IImageStorageProvider,
        optimized_width: int = 1600,
        optimized_quality: int = 82,
        thumbnail_width: int = 400,
        thumbnail_quality: int = 70,
        folder: str = "manuscripts",
        pdf_render_dpi: int = 150,
    ) -> None:
        self._storage = storage
        self._optimized = (optimized_width, optimized_quality)
        self._thumbnail = (thumbnail_width, thumbnail_quality)
        self._folder = folder
        self._pdf_render_dpi = pdf_render_dpi
        self._logger = get_logger(__name__)

    @property
    def storage(self) -> IImageStorageProvider:
        return self._storage

    async def store_variants(
        self,
        data: bytes,
        original_name: str,
        content_type: str,
    ) -> ImageVariants:
        """Render, resize and upload the variants for one uploaded file.

        Raises
        ------
        PipelineError
            If the file cannot be decoded as an image or PDF.
        saraswathi.utils.errors.StorageError
            If the storage backend rejects an upload.
        """
        file_name = generate_unique_file_name(original_name)
        optimized_bytes, thumbnail_bytes = await asyncio.to_thread(
            self.build_variants, data, content_type
        )

        pending = [
            (optimized_bytes, variant_name(file_name, "opt")),
            (thumbnail_bytes, variant_name(file_name, "thumb")),
        ]
        if content_type == PDF_CONTENT_TYPE:
            pending.append((data, file_name))

        stored: list[StoredImage] = []
        try:
            for payload, name in pending:
                stored.append(await self._storage.upload(payload, name, self._folder))
        except StorageError:
            await self._delete_stored(stored)
            raise

        self._logger.info(
            "image_variants_stored",
            file_name=file_name,
            original_bytes=len(data),
            optimized_bytes=len(optimized_bytes),
            thumbnail_bytes=len(thumbnail_bytes),
            storage=self._storage.get_provider_name(),
        )
        variants = ImageVariants(
            file_name=file_name,
            optimized=stored[0],
            thumbnail=stored[1],
            original=stored[2] if len(stored) > 2 else None,
        )
        variants._optimized_data = optimized_bytes
        return variants

    async def delete_variants(self, variants: ImageVariants) -> None:
        """Remove every stored file of *variants*, e.g. after a failed ingest."""
        stored = [variants.optimized, variants.thumbnail]
        if variants.original is not None:
            stored.append(variants.original)
        await self._delete_stored(stored)

    async def _delete_stored(self, stored: list[StoredImage]) -> None:
        # Cleanup never masks the error that triggered it.
        for image in stored:
            try:
                await self._storage.delete(image.file_id)
            except StorageError as exc:
                self._logger.warning(
                    "image_variant_delete_failed", file_id=image.file_id, error=str(exc)
                )

    def build_variants(self, data: bytes, content_type: str) -> tuple[bytes, bytes]:
        """Return ``(optimized_jpeg, thumbnail_jpeg)`` for *data*."""
        image = self._open(data, content_type)
        optimized = self._encode(image, *self._optimized)
        thumbnail = self._encode(image, *self._thumbnail)
        return optimized, thumbnail

    def render_pdf_first_page(self, data: bytes) -> Image.Image:
        """Render page one of a PDF to an RGB image."""
        try:
            with fitz.open(stream=data, filetype="pdf") as doc:
                if doc.page_count == 0:
                    raise PipelineError("PDF has no pages")
                pix = doc[0].get_pixmap(dpi=self._pdf_render_dpi)
                mode = "RGBA" if pix.alpha else "RGB"
                page = Image.frombytes(mode, (pix.width, pix.height), pix.samples)
        except (fitz.FileDataError, RuntimeError) as exc:
            raise PipelineError(f"Could not render PDF: {exc}") from exc
        return page.convert("RGB")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _open(self, data: bytes, content_type: str) -> Image.Image:
        if content_type == PDF_CONTENT_TYPE:
            return self.render_pdf_first_page(data)
        try:
            image = Image.open(io.BytesIO(data))
            image = ImageOps.exif_transpose(image)
            return image.convert("RGB")
        except (UnidentifiedImageError, OSError) as exc:
            raise PipelineError(f"Unreadable image file: {exc}") from exc

    @staticmethod
    def _encode(image: Image.Image, max_width: int, quality: int) -> bytes:
        width, height = image.size
        if width > max_width:
            new_height = max(1, round(height * max_width / width))
            image = image.resize((max_width, new_height), Image.LANCZOS)
        buf = io.BytesIO()
        image.save(buf, format="JPEG", quality=quality, optimize=True)
        return buf.getvalue()
