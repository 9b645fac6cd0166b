"""Shared pytest fixtures for the Saraswathi test suite."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from saraswathi.interfaces.catalog_provider import ICatalogProvider
from saraswathi.interfaces.image_storage_provider import IImageStorageProvider
from saraswathi.interfaces.llm_provider import ILLMProvider
from saraswathi.interfaces.ocr_provider import IOCRProvider
from saraswathi.models.analysis import OCRResult, StoredImage
from saraswathi.models.manuscript import Manuscript
from saraswathi.providers.catalog.sqlite_catalog_provider import SQLiteCatalogProvider
from saraswathi.providers.users.sqlite_user_provider import SQLiteUserProvider


def make_jpeg(width: int = 200, height: int = 100, color: tuple[int, int, int] = (200, 180, 140)) -> bytes:
    """Create a solid-colour JPEG in memory."""
    img = Image.new("RGB", (width, height), color=color)
    buf = io.BytesIO()
    img.save(buf, format="JPEG")
    return buf.getvalue()


def make_png(width: int = 120, height: int = 80) -> bytes:
    img = Image.new("RGBA", (width, height), color=(10, 20, 30, 128))
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_manuscript(**overrides: Any) -> Manuscript:
    """A published manuscript with the uploader metadata filled in."""
    fields: dict[str, Any] = {
        "user_id": "user-1",
        "title": "Bhagavad Gita Commentary",
        "author": "Unknown scribe",
        "description": "Palm-leaf commentary on the Gita",
        "origin": "Kerala",
        "language": "Sanskrit",
        "image_url": "https://cdn.test/manuscripts/gita-opt.jpg",
    }
    fields.update(overrides)
    return Manuscript(**fields)


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_jpeg()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def sample_manuscript() -> Manuscript:
    return make_manuscript()


@pytest.fixture
def sample_ocr_result() -> OCRResult:
    return OCRResult(
        text="श्रीगणेशाय नमः\nधर्मक्षेत्रे कुरुक्षेत्रे",
        cleaned_text="श्रीगणेशाय नमः धर्मक्षेत्रे कुरुक्षेत्रे",
        detected_language="hi",
        confidence=0.92,
        paragraphs=["श्रीगणेशाय नमः\nधर्मक्षेत्रे कुरुक्षेत्रे"],
        provider_used="google_vision",
    )


# ---------------------------------------------------------------------------
# Mock providers
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_llm_provider() -> ILLMProvider:
    """Mock ILLMProvider; override ``complete`` / ``analyze_image`` per test."""
    mock = MagicMock(spec=ILLMProvider)
    mock.get_provider_name.return_value = "mock-llm"
    mock.is_available.return_value = True
    mock.complete = AsyncMock(return_value="ok")
    mock.analyze_image = AsyncMock(return_value="{}")
    return mock


@pytest.fixture
def mock_ocr_provider(sample_ocr_result: OCRResult) -> IOCRProvider:
    mock = MagicMock(spec=IOCRProvider)
    mock.get_provider_name.return_value = "mock-ocr"
    mock.is_available.return_value = True
    mock.extract_text = AsyncMock(return_value=sample_ocr_result)
    return mock


@pytest.fixture
def mock_storage() -> IImageStorageProvider:
    """Mock IImageStorageProvider that echoes the stored name into the URL."""

    async def _upload(data: bytes, file_name: str, folder: str) -> StoredImage:
        return StoredImage(url=f"https://cdn.test/{folder}/{file_name}", file_id=f"id-{file_name}")

    mock = MagicMock(spec=IImageStorageProvider)
    mock.get_provider_name.return_value = "mock-storage"
    mock.upload = AsyncMock(side_effect=_upload)
    mock.delete = AsyncMock(return_value=None)
    mock.fetch = AsyncMock(return_value=make_jpeg())
    return mock


@pytest.fixture
def mock_catalog() -> ICatalogProvider:
    return MagicMock(spec=ICatalogProvider)


# ---------------------------------------------------------------------------
# SQLite stores on temporary files
# ---------------------------------------------------------------------------


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "catalog.db"


@pytest.fixture
async def catalog(db_path: Path) -> SQLiteCatalogProvider:
    provider = SQLiteCatalogProvider(db_path=db_path)
    await provider.initialize()
    return provider


@pytest.fixture
async def user_provider(db_path: Path) -> SQLiteUserProvider:
    provider = SQLiteUserProvider(db_path=db_path)
    await provider.initialize()
    return provider


@pytest.fixture
def jpeg_factory():
    """Return :func:`make_jpeg` so tests can build images of any size."""
    return make_jpeg


@pytest.fixture
def manuscript_factory():
    """Return :func:`make_manuscript` for tests that need several records."""
    return make_manuscript
