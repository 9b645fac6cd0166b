"""Unit tests for OCRService: provider fallback chain and language finalisation."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest

from saraswathi.interfaces.ocr_provider import IOCRProvider
from saraswathi.models.analysis import ManuscriptImage, OCRResult
from saraswathi.services.ocr_service import OCRService
from saraswathi.utils.errors import OCRExtractionError


def _provider(
    name: str,
    result: OCRResult | None = None,
    *,
    available: bool = True,
    error: Exception | None = None,
) -> MagicMock:
    mock = MagicMock(spec=IOCRProvider)
    mock.get_provider_name.return_value = name
    mock.is_available.return_value = available
    if error is not None:
        mock.extract_text = AsyncMock(side_effect=error)
    else:
        mock.extract_text = AsyncMock(return_value=result)
    return mock


def _result(provider: str, confidence: float, text: str = "Sri Rama", language: str = "en") -> OCRResult:
    return OCRResult(text=text, confidence=confidence, detected_language=language, provider_used=provider)


@pytest.fixture
def image() -> ManuscriptImage:
    return ManuscriptImage.from_bytes(b"\xff\xd8data", filename="leaf.jpg")


class TestExtractText:
    async def test_first_confident_result_wins(self, image: ManuscriptImage) -> None:
        first = _provider("vision", _result("vision", 0.9))
        second = _provider("tesseract", _result("tesseract", 0.95))
        result = await OCRService([first, second]).extract_text(image)

        assert result.provider_used == "vision"
        second.extract_text.assert_not_awaited()

    async def test_falls_through_low_confidence(self, image: ManuscriptImage) -> None:
        first = _provider("vision", _result("vision", 0.3))
        second = _provider("tesseract", _result("tesseract", 0.7))
        result = await OCRService([first, second]).extract_text(image)
        assert result.provider_used == "tesseract"

    async def test_returns_best_below_threshold(self, image: ManuscriptImage) -> None:
        first = _provider("vision", _result("vision", 0.2))
        second = _provider("tesseract", _result("tesseract", 0.4))
        result = await OCRService([first, second], min_confidence=0.8).extract_text(image)
        assert result.provider_used == "tesseract"
        assert result.confidence == 0.4

    async def test_empty_text_is_not_accepted(self, image: ManuscriptImage) -> None:
        blank = _provider("vision", _result("vision", 0.9, text=""))
        real = _provider("tesseract", _result("tesseract", 0.6))
        result = await OCRService([blank, real]).extract_text(image)
        assert result.provider_used == "tesseract"

    async def test_skips_unavailable_provider(self, image: ManuscriptImage) -> None:
        offline = _provider("vision", _result("vision", 0.99), available=False)
        local = _provider("tesseract", _result("tesseract", 0.8))
        result = await OCRService([offline, local]).extract_text(image)

        assert result.provider_used == "tesseract"
        offline.extract_text.assert_not_awaited()

    async def test_skips_failing_provider(self, image: ManuscriptImage) -> None:
        broken = _provider("vision", error=OCRExtractionError("quota", provider_name="vision"))
        local = _provider("tesseract", _result("tesseract", 0.8))
        result = await OCRService([broken, local]).extract_text(image)
        assert result.provider_used == "tesseract"

    async def test_all_fail_raises(self, image: ManuscriptImage) -> None:
        providers = [
            _provider("vision", error=RuntimeError("boom")),
            _provider("tesseract", available=False),
        ]
        with pytest.raises(OCRExtractionError, match="All OCR providers failed"):
            await OCRService(providers).extract_text(image)

    async def test_no_providers_raises(self, image: ManuscriptImage) -> None:
        with pytest.raises(OCRExtractionError):
            await OCRService([]).extract_text(image)


class TestLanguage:
    async def test_engine_locale_is_kept(self, image: ManuscriptImage) -> None:
        provider = _provider("vision", _result("vision", 0.9, text="नमः", language="sa"))
        result = await OCRService([provider]).extract_text(image)
        assert result.detected_language == "sa"

    async def test_heuristic_fills_unknown_language(self, image: ManuscriptImage) -> None:
        provider = _provider(
            "tesseract", _result("tesseract", 0.9, text="திருக்குறள்", language="unknown")
        )
        result = await OCRService([provider]).extract_text(image)
        assert result.detected_language == "Tamil"

    async def test_heuristic_applies_to_fallback_result(self, image: ManuscriptImage) -> None:
        provider = _provider("tesseract", _result("tesseract", 0.1, text="नमः", language=""))
        result = await OCRService([provider]).extract_text(image)
        assert result.detected_language == "Hindi/Sanskrit (Devanagari)"


class TestAvailability:
    def test_is_configured(self) -> None:
        assert OCRService([_provider("a", available=False), _provider("b")]).is_configured()
        assert not OCRService([_provider("a", available=False)]).is_configured()
        assert not OCRService([]).is_configured()

    def test_available_provider_names(self) -> None:
        service = OCRService(
            [_provider("google_vision", available=False), _provider("tesseract")]
        )
        assert service.get_available_providers() == ["tesseract"]
