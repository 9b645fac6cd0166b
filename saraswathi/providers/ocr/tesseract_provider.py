"""Tesseract OCR provider, used when Google Vision is not configured.

Wraps pytesseract.  Tesseract handles clean printed pages reasonably well
but struggles with historic hands, so it sits after Vision in the default
priority list.
"""

from __future__ import annotations

import asyncio
import io
import time

from PIL import Image, ImageOps

from saraswathi.interfaces.ocr_provider import IOCRProvider
from saraswathi.models.analysis import ManuscriptImage, OCRResult
from saraswathi.utils.errors import OCRExtractionError
from saraswathi.utils.logging import get_logger
from saraswathi.utils.ocr_text import UNKNOWN_LANGUAGE, clean_text, split_paragraphs

# pytesseract needs the tesseract binary as well as the wheel.  If either is
# missing is_available() reports False and the OCR service skips us.
try:
    import pytesseract

    _PYTESSERACT_AVAILABLE = True
except ImportError:
    pytesseract = None  # type: ignore[assignment]
    _PYTESSERACT_AVAILABLE = False


class TesseractOCRProvider(IOCRProvider):
    """OCR provider backed by Google Tesseract via pytesseract."""

    def __init__(self, languages: str = "eng") -> None:
        self._languages = languages
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # IOCRProvider interface
    # ------------------------------------------------------------------

    async def extract_text(self, image: ManuscriptImage) -> OCRResult:
        start = time.perf_counter()
        if image.image_data is None:
            raise OCRExtractionError(
                "No image data provided",
                provider_name=self.get_provider_name(),
            )
        try:
            result = await asyncio.to_thread(self._run_tesseract, image.image_data)
        except Exception as exc:
            self._logger.error(
                "ocr_extraction_failed",
                provider="tesseract",
                error=str(exc),
                processing_time=round(time.perf_counter() - start, 3),
            )
            raise OCRExtractionError(
                f"Tesseract OCR failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        elapsed = time.perf_counter() - start
        raw_text, confidence = result
        self._logger.info(
            "ocr_extraction_complete",
            provider="tesseract",
            chars=len(raw_text),
            confidence=round(confidence, 4),
            processing_time=round(elapsed, 3),
        )
        return OCRResult(
            text=raw_text,
            cleaned_text=clean_text(raw_text),
            detected_language=UNKNOWN_LANGUAGE,
            confidence=confidence,
            paragraphs=split_paragraphs(raw_text),
            provider_used=self.get_provider_name(),
            processing_time=elapsed,
        )

    def get_provider_name(self) -> str:
        return "tesseract"

    def is_available(self) -> bool:
        """Check that pytesseract is installed and the Tesseract binary exists."""
        if not _PYTESSERACT_AVAILABLE:
            return False
        try:
            pytesseract.get_tesseract_version()
            return True
        except Exception:
            return False

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _run_tesseract(self, image_bytes: bytes) -> tuple[str, float]:
        """Return (text, mean word confidence 0-1) for one image.

        Text is rebuilt from ``image_to_data`` so Tesseract runs once; a
        blank line is inserted at each block change to keep paragraphs.
        """
        page = ImageOps.exif_transpose(Image.open(io.BytesIO(image_bytes))).convert("L")
        data = pytesseract.image_to_data(
            page, lang=self._languages, output_type=pytesseract.Output.DICT
        )

        lines: list[list[str]] = []
        confidences: list[float] = []
        prev_key: tuple[int, int, int] | None = None
        prev_block = -1
        for i, word in enumerate(data["text"]):
            word = word.strip()
            conf = float(data["conf"][i])
            if not word or conf <= 0:
                continue
            block = data["block_num"][i]
            key = (block, data["par_num"][i], data["line_num"][i])
            if key != prev_key:
                if lines and block != prev_block:
                    lines.append([])
                lines.append([])
                prev_key = key
                prev_block = block
            lines[-1].append(word)
            confidences.append(conf)

        text = "\n".join(" ".join(words) for words in lines).strip()
        confidence = (sum(confidences) / len(confidences) / 100.0) if confidences else 0.0
        return text, min(1.0, confidence)
