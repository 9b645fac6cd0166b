"""Abstract base class for OCR service providers.

Defines the contract for any OCR engine used to read text from manuscript
images.  Implementations wrap Google Cloud Vision or Tesseract; swapping
engines requires only a new concrete class.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from saraswathi.models.analysis import ManuscriptImage, OCRResult


# Concrete implementations: GoogleVisionOCRProvider, TesseractOCRProvider
# Located in: saraswathi/providers/ocr/
# The OCR service tries providers in the order given by ocr.provider_priority
# in config/config.yaml.
class IOCRProvider(ABC):
    """Contract for OCR services that extract text from manuscript images."""

    @abstractmethod
    async def extract_text(self, image: ManuscriptImage) -> OCRResult:
        """Run OCR on *image* and return the extraction result.

        Parameters
        ----------
        image:
            The manuscript image.  ``image.image_data`` holds the raw bytes.

        Returns
        -------
        OCRResult
            Raw text, cleaned text, detected language, confidence and
            paragraphs.  ``detected_language`` is the engine's locale when it
            reports one, otherwise ``"unknown"``.

        Raises
        ------
        saraswathi.utils.errors.OCRExtractionError
            If the engine fails or returns nothing usable.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return an identifier such as ``"google_vision"`` or ``"tesseract"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if credentials or binaries are present."""
