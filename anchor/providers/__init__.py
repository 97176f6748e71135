"""LLM provider abstraction module."""

from anchor.providers.base import LLMProvider, LLMResponse
from anchor.providers.litellm_provider import LiteLLMProvider

__all__ = ["LLMProvider", "LLMResponse", "LiteLLMProvider"]
