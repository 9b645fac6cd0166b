"""Generative analysis of manuscript images.

One multimodal call looks at the page image together with the OCR text and
returns a single JSON document covering attribution (title, origin,
language, script, century, material), summaries, keywords, topics,
sentiment, named entities, an outline, highlights, confidence scores and
tags.

The analyzer never raises from :meth:`ManuscriptAnalyzer.analyze`: any
model, transport or parsing failure yields
:meth:`ManuscriptAnalysis.fallback`, whose zero confidence scores tell the
pipeline not to overwrite the uploader's metadata.  The smaller helpers
(image hint, translation) degrade the same way.
"""

from __future__ import annotations

import json
import re
from typing import Any

from saraswathi.interfaces.llm_provider import ILLMProvider
from saraswathi.models.analysis import ManuscriptAnalysis
from saraswathi.models.manuscript import ConfidenceScores, NamedEntities, Sentiment
from saraswathi.utils.logging import get_logger

# Matches markdown code fences (```json ... ``` or ``` ... ```) that models
# wrap around JSON output despite being asked not to.
_JSON_FENCE_RE = re.compile(r"```(?:json)?\s*\n?(.*?)\n?\s*```", re.DOTALL)

_SYSTEM_PROMPT = (
    "You are an expert in manuscript analysis, paleography, and cultural heritage. "
    "You read manuscripts in every script, including Sanskrit, Tamil, Arabic and Latin."
)

_ANALYSIS_SCHEMA = """\
{
  "title": "Short descriptive title",
  "description": "Detailed 2-3 paragraph description",
  "category": "Subject category (Religion/Medicine/Literature/etc)",
  "origin": "Cultural/regional origin",
  "language": "Primary language",
  "script_type": "Script used (Devanagari/Tamil/etc)",
  "estimated_century": "Approximate era",
  "material_type": "Material (Palm leaf/Paper/etc)",
  "ocr_text": "%(ocr_instruction)s",
  "cleaned_ocr_text": "Cleaned version of OCR text",
  "short_summary": "1-2 sentence summary of content",
  "detailed_summary": ["Bullet point 1", "Bullet point 2", "Bullet point 3"],
  "keywords": ["keyword1", "keyword2", "... up to 10"],
  "topics": ["topic1", "topic2"],
  "sentiment": {"tone": "neutral/scholarly/reverent/etc", "score": 0.5, "description": "Brief sentiment description"},
  "entities": {"people": [], "places": [], "dates": [], "organizations": []},
  "outline": ["Section 1", "Section 2"],
  "highlights": ["Important sentence 1", "... 5-10 key sentences"],
  "confidence_scores": {"script": 0.8, "language": 0.9, "century": 0.6, "region": 0.7},
  "tags": ["tag1", "tag2", "... 5-10 relevant tags"]
}"""

# Used when the model omits a confidence score but otherwise answered.
_DEFAULT_SCORE = 0.5


def _text(value: Any, default: str) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return default


def _str_list(value: Any, limit: int | None = None) -> list[str]:
    if not isinstance(value, list):
        return []
    items = [str(item).strip() for item in value if isinstance(item, (str, int, float)) and str(item).strip()]
    return items[:limit] if limit is not None else items


def _score(value: Any, default: float = _DEFAULT_SCORE) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return default
    return min(1.0, max(0.0, float(value)))


class ManuscriptAnalyzer:
    """Turns an image plus OCR text into a :class:`ManuscriptAnalysis`."""

    def __init__(
        self,
        llm_provider: ILLMProvider | None,
        ocr_prompt_chars: int = 2000,
        max_keywords: int = 10,
        max_highlights: int = 10,
    ) -> None:
        self._llm = llm_provider
        self._ocr_prompt_chars = ocr_prompt_chars
        self._max_keywords = max_keywords
        self._max_highlights = max_highlights
        self._logger = get_logger(__name__)

    @property
    def is_configured(self) -> bool:
        return self._llm is not None and self._llm.is_available()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def analyze(
        self,
        image_bytes: bytes,
        ocr_text: str,
        mime_type: str = "image/jpeg",
    ) -> ManuscriptAnalysis:
        """Run the comprehensive analysis; returns the fallback on any failure."""
        if not self.is_configured:
            self._logger.warning("analysis_skipped_no_provider")
            return ManuscriptAnalysis.fallback(ocr_text)

        prompt = self._build_analysis_prompt(ocr_text)
        try:
            response = await self._llm.analyze_image(image_bytes, prompt, mime_type=mime_type)
            data = self._parse_llm_response(response)
            analysis = self._to_analysis(data, ocr_text)
        except Exception as exc:
            self._logger.warning(
                "analysis_failed",
                provider=self._llm.get_provider_name(),
                error=str(exc),
            )
            return ManuscriptAnalysis.fallback(ocr_text)

        self._logger.info(
            "analysis_complete",
            provider=self._llm.get_provider_name(),
            keywords=len(analysis.keywords),
            topics=len(analysis.topics),
            entities=analysis.entities.total(),
            outline_sections=len(analysis.outline),
            highlights=len(analysis.highlights),
        )
        return analysis

    async def generate_image_hint(self, title: str, description: str) -> str:
        """A one-paragraph prompt for generating a cover image."""
        fallback = f'Historical manuscript cover for "{title}"'
        if not self.is_configured:
            return fallback
        prompt = (
            "Create a descriptive hint for an AI image generator to create a cover "
            "image for this manuscript:\n\n"
            f"Title: {title}\nDescription: {description}\n\n"
            "Provide a single paragraph description suitable for image generation "
            "(artistic style, mood, colors, elements to include)."
        )
        try:
            hint = await self._llm.complete(system_prompt="", user_prompt=prompt, temperature=0.7)
        except Exception as exc:
            self._logger.warning("image_hint_failed", error=str(exc))
            return fallback
        return hint.strip() or fallback

    async def translate(self, text: str, target_language: str = "English") -> str:
        """Translate *text*; the original is returned when translation fails."""
        if not text or not self.is_configured:
            return text
        prompt = (
            f"Translate the following text to {target_language}. "
            f"Preserve the meaning and cultural context:\n\n{text}"
        )
        try:
            translated = await self._llm.complete(system_prompt=_SYSTEM_PROMPT, user_prompt=prompt)
        except Exception as exc:
            self._logger.warning("translation_failed", target_language=target_language, error=str(exc))
            return text
        return translated.strip() or text

    # ------------------------------------------------------------------
    # Prompt + response handling
    # ------------------------------------------------------------------

    def _build_analysis_prompt(self, ocr_text: str) -> str:
        excerpt = ocr_text[: self._ocr_prompt_chars]
        if len(ocr_text) > self._ocr_prompt_chars:
            excerpt += "...[truncated]"
        ocr_instruction = "Use provided OCR text" if ocr_text else "Transcribe readable text"
        return (
            f"{_SYSTEM_PROMPT}\n\n"
            "Analyze this manuscript image and the extracted OCR text and return a "
            "COMPREHENSIVE JSON response with ALL the following fields.\n\n"
            f"OCR Text Reference:\n{excerpt}\n\n"
            "Required JSON Structure (respond with ONLY the JSON, no markdown blocks):\n"
            f"{_ANALYSIS_SCHEMA % {'ocr_instruction': ocr_instruction}}"
        )

    @staticmethod
    def _parse_llm_response(response: str) -> dict[str, Any]:
        """Extract the JSON object from a model reply.

        Raises
        ------
        json.JSONDecodeError
            If no valid JSON can be extracted.
        ValueError
            If the JSON is not an object.
        """
        text = response.strip()
        fence_match = _JSON_FENCE_RE.search(text)
        if fence_match:
            text = fence_match.group(1).strip()

        if not text.startswith("{"):
            brace_start = text.find("{")
            brace_end = text.rfind("}")
            if brace_start != -1 and brace_end > brace_start:
                text = text[brace_start : brace_end + 1]

        parsed = json.loads(text)
        if not isinstance(parsed, dict):
            raise ValueError(f"Expected a JSON object, got {type(parsed).__name__}")
        return parsed

    def _to_analysis(self, data: dict[str, Any], ocr_text: str) -> ManuscriptAnalysis:
        sentiment = data.get("sentiment") if isinstance(data.get("sentiment"), dict) else {}
        entities = data.get("entities") if isinstance(data.get("entities"), dict) else {}
        scores = data.get("confidence_scores")
        scores = scores if isinstance(scores, dict) else {}

        return ManuscriptAnalysis(
            title=_text(data.get("title"), "Untitled Manuscript"),
            description=_text(data.get("description"), "No description available."),
            category=_text(data.get("category"), "Uncategorized"),
            origin=_text(data.get("origin"), "Unknown"),
            language=_text(data.get("language"), "Unknown"),
            script_type=_text(data.get("script_type"), "Unknown"),
            estimated_century=_text(data.get("estimated_century"), "Unknown"),
            material_type=_text(data.get("material_type"), "Unknown"),
            ocr_text=_text(data.get("ocr_text"), ocr_text),
            cleaned_ocr_text=_text(data.get("cleaned_ocr_text"), ocr_text),
            short_summary=_text(data.get("short_summary"), "No summary available."),
            detailed_summary=_str_list(data.get("detailed_summary")),
            keywords=_str_list(data.get("keywords"), self._max_keywords),
            topics=_str_list(data.get("topics")),
            sentiment=Sentiment(
                tone=_text(sentiment.get("tone"), "neutral"),
                score=_score(sentiment.get("score")) or _DEFAULT_SCORE,
                description=_text(
                    sentiment.get("description"), "No sentiment analysis available"
                ),
            ),
            entities=NamedEntities(
                people=_str_list(entities.get("people")),
                places=_str_list(entities.get("places")),
                dates=_str_list(entities.get("dates")),
                organizations=_str_list(entities.get("organizations")),
            ),
            outline=_str_list(data.get("outline")),
            highlights=_str_list(data.get("highlights"), self._max_highlights),
            confidence_scores=ConfidenceScores(
                script=_score(scores.get("script")),
                language=_score(scores.get("language")),
                century=_score(scores.get("century")),
                region=_score(scores.get("region")),
            ),
            tags=_str_list(data.get("tags")),
        )
