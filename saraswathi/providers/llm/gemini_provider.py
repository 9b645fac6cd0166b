"""Google Gemini provider adapter.

Wraps ``google-generativeai`` to implement :class:`ILLMProvider`.  Gemini is
the preferred backend for manuscript analysis: one multimodal call sees the
page image and the OCR text together.

Differences from the OpenAI/Anthropic adapters:
    - The system prompt is bound to the model via ``system_instruction``
    - Images are passed inline as ``{"mime_type", "data"}`` parts
    - ``response.text`` raises ``ValueError`` when the reply was blocked
"""

from __future__ import annotations

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions

from saraswathi.config.settings import Settings
from saraswathi.interfaces.llm_provider import ILLMProvider
from saraswathi.providers.llm._media import detect_media_type
from saraswathi.utils.errors import AIAnalysisError
from saraswathi.utils.logging import get_logger

logger = get_logger(__name__)


class GeminiLLMProvider(ILLMProvider):
    """LLM provider backed by the Gemini API (``gemini-2.0-flash`` by default)."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.gemini_api_key
        self._model_name = settings.gemini_model or "gemini-2.0-flash"
        if self._api_key:
            genai.configure(api_key=self._api_key)

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        model = genai.GenerativeModel(
            self._model_name,
            system_instruction=system_prompt or None,
        )
        return await self._generate(
            model,
            [user_prompt],
            temperature=temperature,
            max_tokens=max_tokens,
            event="gemini_completion",
        )

    async def analyze_image(
        self,
        image_bytes: bytes,
        prompt: str,
        mime_type: str = "image/jpeg",
    ) -> str:
        model = genai.GenerativeModel(self._model_name)
        image_part = {
            "mime_type": detect_media_type(image_bytes, fallback=mime_type),
            "data": image_bytes,
        }
        return await self._generate(
            model,
            [image_part, prompt],
            temperature=0.2,
            max_tokens=8192,
            event="gemini_image_analysis",
        )

    def get_provider_name(self) -> str:
        return "gemini"

    def is_available(self) -> bool:
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _generate(
        self,
        model: genai.GenerativeModel,
        contents: list,
        *,
        temperature: float,
        max_tokens: int,
        event: str,
    ) -> str:
        try:
            response = await model.generate_content_async(
                contents,
                generation_config={
                    "temperature": temperature,
                    "max_output_tokens": max_tokens,
                },
            )
            text = response.text
        except google_exceptions.GoogleAPIError as exc:
            raise AIAnalysisError(
                message=f"Gemini API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except ValueError as exc:
            # Raised by response.text when the candidate was blocked or empty.
            raise AIAnalysisError(
                message=f"Gemini returned no text: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not text:
            raise AIAnalysisError(
                message="Gemini returned empty response",
                provider_name=self.get_provider_name(),
            )
        usage = getattr(response, "usage_metadata", None)
        logger.info(
            event,
            model=self._model_name,
            tokens=getattr(usage, "total_token_count", None),
        )
        return text
