"""OCR provider adapters."""

from saraswathi.providers.ocr.google_vision_provider import GoogleVisionOCRProvider
from saraswathi.providers.ocr.tesseract_provider import TesseractOCRProvider

__all__ = ["GoogleVisionOCRProvider", "TesseractOCRProvider"]
