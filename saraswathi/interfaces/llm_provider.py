"""Abstract base class for generative model providers.

The manuscript analyzer only needs two capabilities: plain text completion
(image hints, translation) and a multimodal call that looks at the page
image alongside a prompt (comprehensive analysis).
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations: GeminiLLMProvider, OpenAILLMProvider, AnthropicLLMProvider
# Located in: saraswathi/providers/llm/
class ILLMProvider(ABC):
    """Contract for generative model backends."""

    @abstractmethod
    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> str:
        """Generate a text completion.

        Raises
        ------
        saraswathi.utils.errors.AIAnalysisError
            If the API call fails or returns no text.
        """

    @abstractmethod
    async def analyze_image(
        self,
        image_bytes: bytes,
        prompt: str,
        mime_type: str = "image/jpeg",
    ) -> str:
        """Send *image_bytes* together with *prompt* and return the reply text.

        Raises
        ------
        saraswathi.utils.errors.AIAnalysisError
            If the API call fails or returns no text.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return an identifier such as ``"gemini"`` or ``"anthropic"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (no network call)."""
