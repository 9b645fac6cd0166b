"""Unit tests for ImageService: variant sizing, naming and PDF rendering."""

from __future__ import annotations

import io
import re

import fitz
import pytest
from PIL import Image

from saraswathi.services.image_service import (
    PDF_CONTENT_TYPE,
    ImageService,
    generate_unique_file_name,
    variant_name,
)
from saraswathi.utils.errors import PipelineError, StorageError


def _size(data: bytes) -> tuple[int, int]:
    return Image.open(io.BytesIO(data)).size


def _pdf_bytes() -> bytes:
    doc = fitz.open()
    page = doc.new_page(width=300, height=400)
    page.insert_text((40, 60), "Folio 1")
    data = doc.tobytes()
    doc.close()
    return data


class TestFileNames:
    def test_unique_name_keeps_stem_and_suffix(self) -> None:
        name = generate_unique_file_name("scroll.png")
        assert re.fullmatch(r"scroll-[0-9a-f\-]{36}\.png", name)

    def test_unique_names_differ(self) -> None:
        assert generate_unique_file_name("a.jpg") != generate_unique_file_name("a.jpg")

    def test_empty_name(self) -> None:
        assert generate_unique_file_name("").startswith("manuscript-")

    def test_variant_name_is_always_jpeg(self) -> None:
        assert variant_name("scroll-123.png", "opt") == "scroll-123-opt.jpg"
        assert variant_name("scroll-123.pdf", "thumb") == "scroll-123-thumb.jpg"


class TestBuildVariants:
    def test_large_image_is_downscaled(self, mock_storage, jpeg_factory) -> None:
        service = ImageService(mock_storage)
        optimized, thumbnail = service.build_variants(jpeg_factory(3200, 1600), "image/jpeg")
        assert _size(optimized) == (1600, 800)
        assert _size(thumbnail) == (400, 200)

    def test_small_image_is_never_enlarged(self, mock_storage, jpeg_factory) -> None:
        optimized, thumbnail = ImageService(mock_storage).build_variants(
            jpeg_factory(300, 150), "image/jpeg"
        )
        assert _size(optimized) == (300, 150)
        assert _size(thumbnail) == (300, 150)

    def test_png_with_alpha_becomes_jpeg(self, mock_storage, png_bytes) -> None:
        optimized, _ = ImageService(mock_storage).build_variants(png_bytes, "image/png")
        assert Image.open(io.BytesIO(optimized)).format == "JPEG"

    def test_custom_widths(self, mock_storage, jpeg_factory) -> None:
        service = ImageService(mock_storage, optimized_width=500, thumbnail_width=100)
        optimized, thumbnail = service.build_variants(jpeg_factory(1000, 1000), "image/jpeg")
        assert _size(optimized) == (500, 500)
        assert _size(thumbnail) == (100, 100)

    def test_unreadable_image(self, mock_storage) -> None:
        with pytest.raises(PipelineError, match="Unreadable"):
            ImageService(mock_storage).build_variants(b"not an image", "image/jpeg")

    def test_pdf_first_page_is_rendered(self, mock_storage) -> None:
        optimized, _ = ImageService(mock_storage, pdf_render_dpi=72).build_variants(
            _pdf_bytes(), PDF_CONTENT_TYPE
        )
        assert _size(optimized) == (300, 400)

    def test_broken_pdf(self, mock_storage) -> None:
        with pytest.raises(PipelineError, match="PDF"):
            ImageService(mock_storage).build_variants(b"%PDF-1.4 garbage", PDF_CONTENT_TYPE)


class TestStoreVariants:
    async def test_uploads_optimized_and_thumbnail(self, mock_storage, jpeg_bytes) -> None:
        variants = await ImageService(mock_storage).store_variants(
            jpeg_bytes, "gita.jpg", "image/jpeg"
        )

        assert mock_storage.upload.await_count == 2
        stem = variants.file_name.rsplit(".", 1)[0]
        assert variants.optimized.url == f"https://cdn.test/manuscripts/{stem}-opt.jpg"
        assert variants.thumbnail.url == f"https://cdn.test/manuscripts/{stem}-thumb.jpg"
        assert variants.image_url == variants.optimized.url
        assert variants.original is None
        assert _size(variants.optimized_data) == (200, 100)

    async def test_pdf_original_is_kept(self, mock_storage) -> None:
        variants = await ImageService(mock_storage, folder="scans").store_variants(
            _pdf_bytes(), "codex.pdf", PDF_CONTENT_TYPE
        )
        assert mock_storage.upload.await_count == 3
        assert variants.original is not None
        assert variants.original.url.startswith("https://cdn.test/scans/codex-")
        assert variants.original.url.endswith(".pdf")
        assert variants.optimized.url.endswith("-opt.jpg")

    async def test_storage_error_propagates(self, mock_storage, jpeg_bytes) -> None:
        mock_storage.upload.side_effect = StorageError("disk full")
        with pytest.raises(StorageError):
            await ImageService(mock_storage).store_variants(jpeg_bytes, "a.jpg", "image/jpeg")

    async def test_partial_upload_is_cleaned_up(self, mock_storage, jpeg_bytes) -> None:
        first = mock_storage.upload.side_effect
        calls = 0

        async def _fail_second(data, file_name, folder):
            nonlocal calls
            calls += 1
            if calls == 2:
                raise StorageError("quota exceeded")
            return await first(data, file_name, folder)

        mock_storage.upload.side_effect = _fail_second
        with pytest.raises(StorageError, match="quota"):
            await ImageService(mock_storage).store_variants(jpeg_bytes, "a.jpg", "image/jpeg")

        mock_storage.delete.assert_awaited_once()
        assert mock_storage.delete.await_args.args[0].endswith("-opt.jpg")


class TestDeleteVariants:
    async def test_deletes_every_stored_file(self, mock_storage) -> None:
        service = ImageService(mock_storage)
        variants = await service.store_variants(_pdf_bytes(), "codex.pdf", PDF_CONTENT_TYPE)

        await service.delete_variants(variants)

        deleted = [call.args[0] for call in mock_storage.delete.await_args_list]
        assert deleted == [
            variants.optimized.file_id,
            variants.thumbnail.file_id,
            variants.original.file_id,
        ]

    async def test_storage_errors_are_logged_not_raised(self, mock_storage, jpeg_bytes) -> None:
        service = ImageService(mock_storage)
        variants = await service.store_variants(jpeg_bytes, "a.jpg", "image/jpeg")
        mock_storage.delete.side_effect = StorageError("cdn down")

        await service.delete_variants(variants)

        assert mock_storage.delete.await_count == 2
