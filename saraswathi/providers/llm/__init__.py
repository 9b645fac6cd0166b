"""Generative model adapters, tried in the order Gemini, OpenAI, Anthropic."""

from saraswathi.providers.llm.anthropic_provider import AnthropicLLMProvider
from saraswathi.providers.llm.gemini_provider import GeminiLLMProvider
from saraswathi.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["AnthropicLLMProvider", "GeminiLLMProvider", "OpenAILLMProvider"]
