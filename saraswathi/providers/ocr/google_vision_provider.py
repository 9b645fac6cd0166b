"""Google Cloud Vision OCR provider.

Uses ``document_text_detection``, which is tuned for dense text and keeps
paragraph structure, and reports a locale we can use as the detected
language.  No language hints are sent so every script Vision supports is
auto-detected (Tamil, Devanagari, Arabic and so on).

The Vision client is synchronous; calls run in a worker thread so the event
loop stays free.
"""

from __future__ import annotations

import asyncio
import os
import time

from google.api_core import exceptions as google_exceptions
from google.cloud import vision
from google.oauth2 import service_account

from saraswathi.config.settings import Settings
from saraswathi.interfaces.ocr_provider import IOCRProvider
from saraswathi.models.analysis import ManuscriptImage, OCRResult
from saraswathi.utils.errors import OCRExtractionError
from saraswathi.utils.logging import get_logger
from saraswathi.utils.ocr_text import UNKNOWN_LANGUAGE, clean_text, split_paragraphs

# Reported when Vision returns text but no per-block confidences.
_DEFAULT_CONFIDENCE = 0.5


class GoogleVisionOCRProvider(IOCRProvider):
    """OCR provider backed by the Google Cloud Vision API."""

    def __init__(self, settings: Settings) -> None:
        self._credentials_path = settings.google_application_credentials
        self._client: vision.ImageAnnotatorClient | None = None
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
            response = await asyncio.to_thread(self._detect, image.image_data)
        except google_exceptions.GoogleAPICallError as exc:
            raise OCRExtractionError(
                f"Vision API call failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if response.error.message:
            raise OCRExtractionError(
                f"Vision API error: {response.error.message}",
                provider_name=self.get_provider_name(),
            )

        elapsed = time.perf_counter() - start
        full_text = ""
        if response.full_text_annotation and response.full_text_annotation.text:
            full_text = response.full_text_annotation.text
        elif response.text_annotations:
            full_text = response.text_annotations[0].description

        if not full_text:
            self._logger.info("vision_no_text_detected", filename=image.filename)
            return OCRResult(provider_used=self.get_provider_name(), processing_time=elapsed)

        locale = ""
        if response.text_annotations:
            locale = response.text_annotations[0].locale or ""

        confidence = self._average_confidence(response)
        self._logger.info(
            "ocr_extraction_complete",
            provider="google_vision",
            chars=len(full_text),
            locale=locale or None,
            confidence=round(confidence, 4),
            processing_time=round(elapsed, 3),
        )
        return OCRResult(
            text=full_text,
            cleaned_text=clean_text(full_text),
            detected_language=locale or UNKNOWN_LANGUAGE,
            confidence=confidence,
            paragraphs=split_paragraphs(full_text),
            provider_used=self.get_provider_name(),
            processing_time=elapsed,
        )

    def get_provider_name(self) -> str:
        return "google_vision"

    def is_available(self) -> bool:
        """Vision is usable when a service-account file is configured and exists."""
        return bool(self._credentials_path) and os.path.exists(self._credentials_path)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_client(self) -> vision.ImageAnnotatorClient:
        if self._client is None:
            credentials = service_account.Credentials.from_service_account_file(
                self._credentials_path
            )
            self._client = vision.ImageAnnotatorClient(credentials=credentials)
        return self._client

    def _detect(self, content: bytes) -> vision.AnnotateImageResponse:
        client = self._get_client()
        return client.document_text_detection(image=vision.Image(content=content))

    @staticmethod
    def _average_confidence(response: vision.AnnotateImageResponse) -> float:
        """Mean block confidence across all pages, or a neutral default."""
        scores = [
            block.confidence
            for page in response.full_text_annotation.pages
            for block in page.blocks
            if block.confidence > 0
        ]
        if not scores:
            return _DEFAULT_CONFIDENCE
        return min(1.0, sum(scores) / len(scores))
