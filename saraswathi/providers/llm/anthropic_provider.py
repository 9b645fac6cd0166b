"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`.

Key differences from the OpenAI adapter:
    - System prompt is a separate parameter, not a message in the list
    - Images use an "image" block with a base64 source, placed before the text
    - Response content is a list of blocks, so text blocks are joined
"""

from __future__ import annotations

import base64

import anthropic

from saraswathi.config.settings import Settings
from saraswathi.interfaces.llm_provider import ILLMProvider
from saraswathi.providers.llm._media import detect_media_type
from saraswathi.utils.errors import AIAnalysisError
from saraswathi.utils.logging import get_logger

logger = get_logger(__name__)


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Messages API."""

    def __init__(self, settings: Settings) -> None:
        self._api_key = settings.anthropic_api_key
        self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
        self._model = "claude-sonnet-4-20250514"

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
        kwargs: dict = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": user_prompt}],
            "temperature": temperature,
        }
        if system_prompt:
            kwargs["system"] = system_prompt
        return await self._create(kwargs, event="anthropic_completion")

    async def analyze_image(
        self,
        image_bytes: bytes,
        prompt: str,
        mime_type: str = "image/jpeg",
    ) -> str:
        b64 = base64.b64encode(image_bytes).decode("utf-8")
        kwargs: dict = {
            "model": self._model,
            "max_tokens": 8192,
            "temperature": 0.2,
            "messages": [
                {
                    "role": "user",
                    "content": [
                        {
                            "type": "image",
                            "source": {
                                "type": "base64",
                                "media_type": detect_media_type(image_bytes, fallback=mime_type),
                                "data": b64,
                            },
                        },
                        {"type": "text", "text": prompt},
                    ],
                }
            ],
        }
        return await self._create(kwargs, event="anthropic_image_analysis")

    def get_provider_name(self) -> str:
        return "anthropic"

    def is_available(self) -> bool:
        """Return ``True`` if an Anthropic API key is configured."""
        return bool(self._api_key)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _create(self, kwargs: dict, *, event: str) -> str:
        try:
            response = await self._client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise AIAnalysisError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        text_blocks = [block.text for block in response.content if block.type == "text"]
        if not text_blocks:
            raise AIAnalysisError(
                message="Anthropic returned no text content",
                provider_name=self.get_provider_name(),
            )
        logger.info(
            event,
            model=self._model,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
        )
        return "\n".join(text_blocks)
