"""Pipeline data models: source image, OCR result, AI analysis, stored variants.

These are the values passed between pipeline stages:

    1. An upload becomes a ``ManuscriptImage``           (raw bytes + MIME)
    2. ImageService derives and stores ``ImageVariants``  (optimized + thumb)
    3. OCRService reads the image into an ``OCRResult``
    4. ManuscriptAnalyzer produces a ``ManuscriptAnalysis``

All models are frozen; stages create new instances rather than mutating.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

from saraswathi.models.manuscript import ConfidenceScores, NamedEntities, Sentiment

# Title the analyzer reports when the model call could not be completed.
PENDING_ANALYSIS_TITLE = "Manuscript Analysis Pending"


class ManuscriptImage(BaseModel):
    """An image handed to OCR or analysis.

    The raw bytes live in a private attribute so the model stays cheap to
    log and serialize.
    """

    model_config = ConfigDict(frozen=True)

    filename: str
    content_type: str = "image/jpeg"
    source_url: str = ""
    _image_data: bytes | None = PrivateAttr(default=None)

    @property
    def image_data(self) -> bytes | None:
        return self._image_data

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        filename: str = "manuscript.jpg",
        content_type: str = "image/jpeg",
        source_url: str = "",
    ) -> ManuscriptImage:
        image = cls(filename=filename, content_type=content_type, source_url=source_url)
        image._image_data = data
        return image


class OCRResult(BaseModel):
    """Text extracted from a manuscript image by one OCR provider."""

    model_config = ConfigDict(frozen=True)

    text: str = ""
    cleaned_text: str = ""
    detected_language: str = "unknown"
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    paragraphs: list[str] = Field(default_factory=list)
    provider_used: str = ""
    processing_time: float = 0.0

    @classmethod
    def empty(cls, provider_used: str = "") -> OCRResult:
        return cls(provider_used=provider_used)


class ManuscriptAnalysis(BaseModel):
    """Comprehensive metadata produced by the generative model."""

    model_config = ConfigDict(frozen=True)

    title: str = "Untitled Manuscript"
    description: str = "No description available."
    category: str = "Uncategorized"
    origin: str = "Unknown"
    language: str = "Unknown"
    script_type: str = "Unknown"
    estimated_century: str = "Unknown"
    material_type: str = "Unknown"

    ocr_text: str = ""
    cleaned_ocr_text: str = ""

    short_summary: str = "No summary available."
    detailed_summary: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    topics: list[str] = Field(default_factory=list)
    sentiment: Sentiment = Field(default_factory=Sentiment)
    entities: NamedEntities = Field(default_factory=NamedEntities)
    outline: list[str] = Field(default_factory=list)
    highlights: list[str] = Field(default_factory=list)
    confidence_scores: ConfidenceScores = Field(default_factory=ConfidenceScores)
    tags: list[str] = Field(default_factory=list)

    @property
    def has_valid_analysis(self) -> bool:
        """True when the model was confident about language or script.

        Only then may the analysis overwrite user-supplied metadata.
        """
        return self.confidence_scores.language > 0 or self.confidence_scores.script > 0

    @classmethod
    def fallback(cls, ocr_text: str = "") -> ManuscriptAnalysis:
        """Placeholder returned when the model call fails."""
        return cls(
            title=PENDING_ANALYSIS_TITLE,
            description="Comprehensive AI analysis could not be performed. Please review manually.",
            category="General",
            ocr_text=ocr_text,
            cleaned_ocr_text=ocr_text,
            short_summary="Analysis pending.",
            sentiment=Sentiment(tone="neutral", score=0.5, description="Not analyzed"),
            confidence_scores=ConfidenceScores(),
            tags=["pending-analysis"],
        )


class StoredImage(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str
    file_id: str


class ImageVariants(BaseModel):
    """Derived images and where storage put them."""

    model_config = ConfigDict(frozen=True)

    file_name: str
    optimized: StoredImage
    thumbnail: StoredImage
    original: StoredImage | None = None
    _optimized_data: bytes | None = PrivateAttr(default=None)

    @property
    def image_url(self) -> str:
        """The canonical display URL of a manuscript is its optimized variant."""
        return self.optimized.url

    @property
    def optimized_data(self) -> bytes | None:
        return self._optimized_data
