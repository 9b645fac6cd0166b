"""OCR orchestration service with multi-provider fallback chain.

Providers are tried in priority order (``ocr.provider_priority`` in
config.yaml; Google Vision then Tesseract by default).  The first result at
or above the confidence threshold wins; otherwise the best sub-threshold
result is returned.  Only when every provider is unavailable or raises does
the service raise.

Language detection is finalised here: the engine's locale is kept when it
reported one, otherwise the Unicode-range heuristic runs over the raw text.
"""

from __future__ import annotations

from saraswathi.interfaces.ocr_provider import IOCRProvider
from saraswathi.models.analysis import ManuscriptImage, OCRResult
from saraswathi.utils.errors import OCRExtractionError
from saraswathi.utils.logging import get_logger
from saraswathi.utils.ocr_text import UNKNOWN_LANGUAGE, detect_language_from_text

_DEFAULT_CONFIDENCE_THRESHOLD = 0.5


class OCRService:
    """Orchestrates OCR extraction across multiple providers."""

    def __init__(
        self,
        providers: list[IOCRProvider],
        min_confidence: float = _DEFAULT_CONFIDENCE_THRESHOLD,
    ) -> None:
        self._providers = providers
        self._min_confidence = min_confidence
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def extract_text(self, image: ManuscriptImage) -> OCRResult:
        """Run OCR on *image* using the provider fallback chain.

        Raises
        ------
        OCRExtractionError
            If every provider either is unavailable or raises an exception.
        """
        best_result: OCRResult | None = None

        for provider in self._providers:
            name = provider.get_provider_name()
            if not provider.is_available():
                self._logger.warning("ocr_provider_unavailable", provider=name)
                continue

            try:
                self._logger.info("ocr_provider_attempting", provider=name)
                result = await provider.extract_text(image)
            except Exception as exc:
                self._logger.warning("ocr_provider_failed", provider=name, error=str(exc))
                continue

            if result.text and result.confidence >= self._min_confidence:
                self._logger.info(
                    "ocr_provider_accepted",
                    provider=name,
                    confidence=round(result.confidence, 4),
                )
                return self._with_language(result)

            if best_result is None or result.confidence > best_result.confidence:
                best_result = result
                self._logger.info(
                    "ocr_provider_below_threshold",
                    provider=name,
                    confidence=round(result.confidence, 4),
                )

        if best_result is not None:
            self._logger.info(
                "ocr_returning_best_fallback",
                provider=best_result.provider_used,
                confidence=round(best_result.confidence, 4),
            )
            return self._with_language(best_result)

        raise OCRExtractionError("All OCR providers failed")

    def is_configured(self) -> bool:
        """True when at least one provider can run."""
        return any(p.is_available() for p in self._providers)

    def get_available_providers(self) -> list[str]:
        """Return the names of providers that are currently available."""
        return [p.get_provider_name() for p in self._providers if p.is_available()]

    @staticmethod
    def _with_language(result: OCRResult) -> OCRResult:
        if result.detected_language and result.detected_language != UNKNOWN_LANGUAGE:
            return result
        return result.model_copy(
            update={"detected_language": detect_language_from_text(result.text)}
        )
